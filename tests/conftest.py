"""
Shared pytest configuration and fixtures for Pixel-Augment tests.

This file contains common setup, fixtures, and utilities used across all test files.
"""

import pytest
import torch
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pixel_augment as pa


@pytest.fixture
def rng():
    """Seeded torch generator for building test images."""
    return torch.Generator().manual_seed(1234)


@pytest.fixture
def rgb_image(rng):
    """Random uint8 RGB image of shape (3, 24, 32)."""
    return torch.randint(0, 256, (3, 24, 32), generator=rng, dtype=torch.uint8)


@pytest.fixture
def gradient_image():
    """uint8 image whose pixels are all distinct and non-zero, shape (1, 4, 6)."""
    return (torch.arange(24, dtype=torch.uint8) + 1).reshape(1, 4, 6)


@pytest.fixture(autouse=True)
def restore_trace_flag():
    """Leave the global trace flag as each test found it."""
    saved = pa.config.ENABLE_TRACE
    yield
    pa.config.ENABLE_TRACE = saved


def naive_box_blur(image, length):
    """
    Per-pixel reference box blur with Python lists.

    Vertical pass then horizontal pass, clamp-to-edge, integer sums divided
    with truncation after each pass.
    """
    channels, height, width = image.shape
    half = length // 2
    src = image.tolist()

    def clamp(i, n):
        return min(max(i, 0), n - 1)

    transient = [
        [
            [sum(src[c][clamp(y - half + t, height)][x] for t in range(length)) // length for x in range(width)]
            for y in range(height)
        ]
        for c in range(channels)
    ]
    out = [
        [
            [sum(transient[c][y][clamp(x - half + t, width)] for t in range(length)) // length for x in range(width)]
            for y in range(height)
        ]
        for c in range(channels)
    ]
    return torch.tensor(out, dtype=image.dtype)
