"""
Pixel-Augment: Randomized, Composable Image Augmentation

A library of seedable image operations for preprocessing and augmentation
ahead of training pipelines. Every operation is gated by a probability and
draws its random parameters from its own generator, so a fixed seed always
reproduces the same augmentations.

Key Features:
- Probability gate with a single, consistent "skip" contract
- Geometric operations: resize, crop, rotate, zoom, flip, invert, random erase
- Gaussian blur by direct separable convolution
- Box blur with O(1)-per-pixel sliding-window accumulators
- Fast Gaussian blur approximated by sequential box blurs
- torch.nn.Module operations that compose with torch.nn.Sequential

Example:
    ```python
    import torch
    import pixel_augment as pa
    
    pipeline = torch.nn.Sequential(
        pa.Flip(pa.FlipType.HORIZONTAL, p=0.5, seed=1),
        pa.Rotate((-15, 15), p=0.5, seed=2),
        pa.FastGaussianBlur(sigma=2.0, passes=3, p=0.3, seed=3),
    )
    
    img = torch.randint(0, 256, (3, 224, 224), dtype=torch.uint8)
    augmented = pipeline(img)
    ```
"""

from . import functional
from . import transforms
from . import generator
from . import kernels
from . import utils
from . import config

# Import configuration helpers
from .config import enable_trace, disable_trace, is_trace_enabled

# Import the numeric generators
from .generator import (
    NULL_SEED,
    UniformGenerator,
    ContinuousUniformGenerator,
    DiscreteUniformGenerator,
    uniform_generator,
)

# Import commonly used operations
from .transforms import (
    # Operation contract
    Operation,
    apply_all,
    Echo,
    # Geometric operations
    Resize,
    Crop,
    Rotate,
    Zoom,
    Flip,
    Invert,
    RandomErase,
    # Blur operations
    GaussianBlur,
    BoxBlur,
    FastGaussianBlur,
)

# Import parameter records and modes
from .functional import (
    InterpolationMode,
    FlipType,
    ImageSize,
    RotateRange,
    ZoomFactor,
)

__version__ = "0.1.0"

__all__ = [
    # Submodules
    'functional',
    'transforms',
    'generator',
    'kernels',
    'utils',
    'config',
    
    # Configuration
    'enable_trace',
    'disable_trace',
    'is_trace_enabled',
    
    # Numeric generators
    'NULL_SEED',
    'UniformGenerator',
    'ContinuousUniformGenerator',
    'DiscreteUniformGenerator',
    'uniform_generator',
    
    # Operation contract
    'Operation',
    'apply_all',
    'Echo',
    # Geometric operations
    'Resize',
    'Crop',
    'Rotate',
    'Zoom',
    'Flip',
    'Invert',
    'RandomErase',
    # Blur operations
    'GaussianBlur',
    'BoxBlur',
    'FastGaussianBlur',
    
    # Parameter records and modes
    'InterpolationMode',
    'FlipType',
    'ImageSize',
    'RotateRange',
    'ZoomFactor',
]
