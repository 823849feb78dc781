"""
Tensor routines for geometric transformations (crop, rotate, erase).

Operations modify memory indexing rather than pixel values. Images are
(C, H, W) tensors; no validation happens here.
"""

import math

import torch


def crop_kernel(image: torch.Tensor, top: int, left: int, height: int, width: int) -> torch.Tensor:
    """Copy the (height, width) window at (top, left) into a new tensor."""
    return image[:, top:top + height, left:left + width].clone()


def round_half_away(values: torch.Tensor) -> torch.Tensor:
    """Round to nearest, ties away from zero (torch.round ties to even)."""
    return torch.sign(values) * torch.floor(values.abs() + 0.5)


def rotate_kernel(image: torch.Tensor, angle: float, fill: float = 0) -> torch.Tensor:
    """
    Rotate about the image center by inverse mapping with nearest sampling.

    For a destination pixel (x, y) with xt = x - W // 2 and yt = y - H // 2,
    the source pixel is

        xs = round(cos(a) * xt - sin(a) * yt + W // 2)
        ys = round(sin(a) * xt + cos(a) * yt + H // 2)

    Destination pixels whose source falls outside the image keep `fill`.

    Args:
        image: Tensor of shape (C, H, W)
        angle: Rotation angle in degrees
        fill: Value of destination pixels with no source pixel

    Returns:
        New tensor of the same shape and dtype
    """
    _, height, width = image.shape
    half_width = width // 2
    half_height = height // 2
    radians = math.radians(angle)
    cos_a = math.cos(radians)
    sin_a = math.sin(radians)

    ys, xs = torch.meshgrid(
        torch.arange(height, dtype=torch.float64) - half_height,
        torch.arange(width, dtype=torch.float64) - half_width,
        indexing='ij',
    )
    source_x = round_half_away(cos_a * xs - sin_a * ys + half_width).to(torch.int64)
    source_y = round_half_away(sin_a * xs + cos_a * ys + half_height).to(torch.int64)

    inside = (source_x >= 0) & (source_x < width) & (source_y >= 0) & (source_y < height)

    output = torch.full_like(image, fill)
    output[:, inside] = image[:, source_y[inside], source_x[inside]]
    return output


def erase_kernel(
    image: torch.Tensor,
    top: int,
    left: int,
    noise: torch.Tensor,
) -> torch.Tensor:
    """
    Overwrite the window at (top, left) with `noise` of shape (C, h, w).

    Returns:
        New tensor; pixels outside the window are copied unchanged
    """
    output = image.clone()
    _, height, width = noise.shape
    output[:, top:top + height, left:left + width] = noise
    return output


__all__ = [
    'crop_kernel',
    'round_half_away',
    'rotate_kernel',
    'erase_kernel',
]
