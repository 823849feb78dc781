"""
Setup configuration for pixel-augment package.
"""

from setuptools import setup, find_packages
import os

# Read the contents of README file
def read_file(filename):
    """Read file contents."""
    with open(os.path.join(os.path.dirname(__file__), filename), encoding='utf-8') as f:
        return f.read()


# Read version from __init__.py
def get_version():
    """Extract version from __init__.py."""
    version_file = os.path.join('pixel_augment', '__init__.py')
    with open(version_file, 'r') as f:
        for line in f:
            if line.startswith('__version__'):
                return line.split('=')[1].strip().strip('"').strip("'")
    return '0.1.0'


setup(
    name='pixel-augment',
    version=get_version(),
    description='Seedable, probability-gated image augmentation with separable and sliding-window blurs',
    long_description=read_file('README.md') if os.path.exists('README.md') else '',
    long_description_content_type='text/markdown',
    packages=find_packages(exclude=['tests', 'tests.*', 'examples', 'examples.*']),
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Intended Audience :: Science/Research',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Scientific/Engineering :: Artificial Intelligence',
        'Topic :: Scientific/Engineering :: Image Processing',
    ],
    python_requires='>=3.10',
    install_requires=[
        'torch>=2.0.0',
    ],
    extras_require={
        'dev': [
            'pytest>=7.0.0',
        ],
    },
    keywords='pytorch augmentation image-processing blur deep-learning',
)
