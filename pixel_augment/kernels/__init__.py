"""
Tensor routines behind the functional API.

These operate on (C, H, W) tensors without any input validation; the
functional API checks its arguments before calling into them.
"""

from .filter_kernel import (
    gaussian_kernel,
    box_kernel,
    box_pass_sizes,
    box_pass_schedule,
)

from .convolution_kernel import (
    Accumulator,
    convolve_axis,
    separable_convolve,
    box_accumulate_axis,
    box_blur,
    box_blur_direct,
)

from .geometric_kernel import (
    crop_kernel,
    rotate_kernel,
    erase_kernel,
)

__all__ = [
    'gaussian_kernel',
    'box_kernel',
    'box_pass_sizes',
    'box_pass_schedule',
    'Accumulator',
    'convolve_axis',
    'separable_convolve',
    'box_accumulate_axis',
    'box_blur',
    'box_blur_direct',
    'crop_kernel',
    'rotate_kernel',
    'erase_kernel',
]
