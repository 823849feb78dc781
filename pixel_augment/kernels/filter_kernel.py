"""
1D filter construction for the blur operations.

Gaussian kernels are float64 weights normalized to sum to one. Box kernels
are int64 ones; the divisor (the kernel length) is applied at use time so
integer images can be averaged with exact integer arithmetic.
"""

import math
from typing import List, Optional

import torch


def default_gaussian_length(sigma: float) -> int:
    """Odd kernel length covering +/- 3 sigma."""
    return 2 * math.ceil(3.0 * sigma) + 1


def gaussian_kernel(sigma: float, length: Optional[int] = None) -> torch.Tensor:
    """
    Build a normalized 1D Gaussian kernel.

    Weights are exp(-x^2 / (2 sigma^2)) for x measured from index length // 2,
    divided by their sum.

    Args:
        sigma: Standard deviation in pixels (must be positive)
        length: Number of taps. Defaults to 2 * ceil(3 * sigma) + 1.

    Returns:
        float64 tensor of shape (length,)

    Raises:
        ValueError: If sigma or length is not positive
    """
    if sigma <= 0:
        raise ValueError(f"sigma must be positive, got {sigma}")
    if length is None:
        length = default_gaussian_length(sigma)
    if length <= 0:
        raise ValueError(f"Kernel length must be positive, got {length}")

    x = torch.arange(length, dtype=torch.float64) - (length // 2)
    weights = torch.exp(-(x * x) / (2.0 * sigma * sigma))
    return weights / weights.sum()


def box_kernel(length: int) -> torch.Tensor:
    """
    Build a box kernel of `length` ones.

    Raises:
        ValueError: If length is not positive
    """
    if length <= 0:
        raise ValueError(f"Kernel length must be positive, got {length}")
    return torch.ones(length, dtype=torch.int64)


def box_pass_sizes(sigma: float, passes: int) -> List[int]:
    """
    Box lengths whose sequential application approximates a Gaussian.

    Uses the usual "boxes for Gauss" schedule: pick the largest odd width wl
    below the ideal width sqrt(12 sigma^2 / n + 1), then run the first m
    passes with wl and the remaining ones with wl + 2 so that the summed
    variance is as close to sigma^2 as possible.

    Args:
        sigma: Target standard deviation (must be positive)
        passes: Number of box passes (must be positive)

    Returns:
        List of `passes` odd box lengths
    """
    if sigma <= 0:
        raise ValueError(f"sigma must be positive, got {sigma}")
    if passes <= 0:
        raise ValueError(f"Number of passes must be positive, got {passes}")

    variance = 12.0 * sigma * sigma
    ideal_width = math.sqrt(variance / passes + 1.0)
    lower_width = int(math.floor(ideal_width))
    if lower_width % 2 == 0:
        lower_width -= 1
    upper_width = lower_width + 2

    ideal_count = (
        variance - passes * lower_width * lower_width - 4 * passes * lower_width - 3 * passes
    ) / (-4 * lower_width - 4)
    count = min(max(round(ideal_count), 0), passes)

    return [lower_width if i < count else upper_width for i in range(passes)]


def box_pass_schedule(sigma: float, passes: int) -> List[torch.Tensor]:
    """
    Box kernels, in application order, approximating a Gaussian of `sigma`.

    Example:
        ```python
        [len(k) for k in box_pass_schedule(3.0, 3)]
        # [5, 5, 7]
        ```
    """
    return [box_kernel(size) for size in box_pass_sizes(sigma, passes)]


__all__ = [
    'default_gaussian_length',
    'gaussian_kernel',
    'box_kernel',
    'box_pass_sizes',
    'box_pass_schedule',
]
