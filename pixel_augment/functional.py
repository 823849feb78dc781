"""
Functional API for Pixel-Augment image transformations.

This module provides stateless, PyTorch-style functions that validate their
inputs and wrap the tensor routines in `pixel_augment.kernels`. The
transform classes in `pixel_augment.transforms` draw the random parameters
and call into these functions.

Images are tensors of shape (C, H, W). Integer dtypes (typically uint8)
hold fixed-width channels; floating dtypes hold values in [0, 1]. Every
function returns a new tensor and leaves its input untouched.
"""

from typing import NamedTuple, Sequence

import torch
import torch.nn.functional as nnF

from .kernels.convolution_kernel import (
    box_blur as _box_blur_kernel,
    separable_convolve,
)
from .kernels.filter_kernel import (
    box_pass_sizes,
    gaussian_kernel,
)
from .kernels.geometric_kernel import (
    crop_kernel,
    erase_kernel,
    rotate_kernel,
)
from .utils import parse_pair


# Interpolation modes (similar to torchvision.transforms.InterpolationMode)
class InterpolationMode:
    """Interpolation modes for resizing.

    Matches torchvision's InterpolationMode names for compatibility.
    """
    NEAREST = "nearest"
    BILINEAR = "bilinear"


class FlipType:
    """Flip directions accepted by `flip` and `transforms.Flip`."""
    HORIZONTAL = "Horizontal"
    VERTICAL = "Vertical"


class ImageSize(NamedTuple):
    """Image dimensions in pixels."""
    height: int
    width: int


class RotateRange(NamedTuple):
    """Bounds of a random rotation, in degrees."""
    min_rotate: float
    max_rotate: float


class ZoomFactor(NamedTuple):
    """Bounds of a random zoom factor."""
    min_factor: float
    max_factor: float


def as_image_size(size: int | Sequence[int], name: str = "size") -> ImageSize:
    """
    Convert an int (square) or a (height, width) pair into an ImageSize.

    Raises:
        ValueError: If either dimension is not positive
    """
    height, width = parse_pair(size, name)
    if height <= 0 or width <= 0:
        raise ValueError(f"{name} must be positive, got height={height}, width={width}")
    return ImageSize(int(height), int(width))


def _validate_image_tensor(tensor: torch.Tensor, name: str = "tensor") -> None:
    """
    Validate that the input is a single image tensor.

    Args:
        tensor: Input tensor to validate
        name: Name of the tensor for error messages

    Raises:
        TypeError: If tensor is not a torch.Tensor or has a bool dtype
        ValueError: If tensor is not 3D or has an empty dimension

    Note:
        This functional API expects 3D tensors (C, H, W).
        Transform classes handle lists and 4D (N, C, H, W) batches by
        calling the functional API once per image.
    """
    if not isinstance(tensor, torch.Tensor):
        raise TypeError(f"{name} must be a torch.Tensor, got {type(tensor)}")

    if tensor.dtype == torch.bool:
        raise TypeError(f"{name} must have a numeric dtype, got {tensor.dtype}")

    if tensor.ndim != 3:
        raise ValueError(
            f"{name} must be a 3D tensor with shape (C, H, W), "
            f"got shape {tuple(tensor.shape)}"
        )

    if min(tensor.shape) == 0:
        raise ValueError(f"{name} must not have an empty dimension, got shape {tuple(tensor.shape)}")


def max_channel_value(dtype: torch.dtype) -> float:
    """Largest channel value: the dtype maximum for integers, 1.0 for floats."""
    if dtype.is_floating_point:
        return 1.0
    return torch.iinfo(dtype).max


# ============================================================================
# Geometric Transformations
# ============================================================================


def resize(
    image: torch.Tensor,
    height: int,
    width: int,
    interpolation: str = InterpolationMode.BILINEAR,
) -> torch.Tensor:
    """
    Resize an image to (height, width).

    Integer images are interpolated in float32 and rounded back to their
    dtype (clamped to its range).

    Args:
        image: Input image tensor of shape (C, H, W)
        height: Output height (must be positive)
        width: Output width (must be positive)
        interpolation: InterpolationMode.NEAREST or InterpolationMode.BILINEAR

    Returns:
        Resized tensor of shape (C, height, width)

    Example:
        ```python
        img = torch.randint(0, 256, (3, 32, 32), dtype=torch.uint8)
        resize(img, 48, 64).shape
        ```
        torch.Size([3, 48, 64])
    """
    _validate_image_tensor(image, "image")

    if height <= 0 or width <= 0:
        raise ValueError(f"Resize target must be positive, got height={height}, width={width}")
    if interpolation not in (InterpolationMode.NEAREST, InterpolationMode.BILINEAR):
        raise ValueError(f"Only 'nearest' and 'bilinear' interpolation are supported, got {interpolation}")

    if tuple(image.shape[-2:]) == (height, width):
        return image.clone()

    work = image.unsqueeze(0)
    if not work.is_floating_point():
        work = work.to(torch.float32)

    if interpolation == InterpolationMode.BILINEAR:
        output = nnF.interpolate(work, size=(height, width), mode="bilinear", align_corners=False)
    else:
        output = nnF.interpolate(work, size=(height, width), mode="nearest")
    output = output.squeeze(0)

    if image.is_floating_point():
        return output.to(image.dtype)
    info = torch.iinfo(image.dtype)
    return output.round().clamp(info.min, info.max).to(image.dtype)


def crop(
    image: torch.Tensor,
    top: int,
    left: int,
    height: int,
    width: int,
) -> torch.Tensor:
    """
    Crop a rectangular region from the input image.

    Args:
        image: Input image tensor of shape (C, H, W)
        top: Top pixel coordinate of the crop
        left: Left pixel coordinate of the crop
        height: Height of the cropped image
        width: Width of the cropped image

    Returns:
        Cropped tensor of shape (C, height, width)

    Raises:
        ValueError: If height or width is not positive
        IndexError: If the crop window does not lie inside the image
    """
    _validate_image_tensor(image, "image")

    _, image_height, image_width = image.shape

    if height <= 0 or width <= 0:
        raise ValueError(f"Crop size must be positive, got height={height}, width={width}")

    if top < 0 or left < 0 or top + height > image_height or left + width > image_width:
        raise IndexError(
            f"Crop window (top={top}, left={left}, height={height}, width={width}) "
            f"exceeds image size ({image_height}, {image_width})"
        )

    return crop_kernel(image, top, left, height, width)


def center_crop(
    image: torch.Tensor,
    output_size: tuple[int, int] | int,
) -> torch.Tensor:
    """
    Crop the center of the image to the given size.

    The window starts at (H // 2 - height // 2, W // 2 - width // 2).

    Args:
        image: Input image tensor of shape (C, H, W)
        output_size: Desired output size (height, width) or int for square crop

    Returns:
        Center-cropped tensor of shape (C, output_size[0], output_size[1])

    Raises:
        IndexError: If output_size is larger than image size
    """
    _validate_image_tensor(image, "image")

    crop_height, crop_width = as_image_size(output_size, "output_size")
    _, image_height, image_width = image.shape

    if crop_height > image_height or crop_width > image_width:
        raise IndexError(
            f"Crop size ({crop_height}, {crop_width}) larger than "
            f"image size ({image_height}, {image_width})"
        )

    crop_top = image_height // 2 - crop_height // 2
    crop_left = image_width // 2 - crop_width // 2

    return crop(image, crop_top, crop_left, crop_height, crop_width)


def rotate(image: torch.Tensor, angle: float, fill: float = 0) -> torch.Tensor:
    """
    Rotate the image about its center by `angle` degrees.

    Each output pixel is sampled from the nearest source pixel of the
    inverse mapping. Output pixels whose source lies outside the image are
    set to `fill`; nothing is wrapped or clamped.

    Args:
        image: Input image tensor of shape (C, H, W)
        angle: Rotation angle in degrees
        fill: Value for pixels without a source pixel (default: 0)

    Returns:
        Rotated tensor of the same shape
    """
    _validate_image_tensor(image, "image")
    return rotate_kernel(image, angle, fill)


def horizontal_flip(image: torch.Tensor) -> torch.Tensor:
    """Swap column x with column W - 1 - x."""
    _validate_image_tensor(image, "image")
    return image.flip(-1)


def vertical_flip(image: torch.Tensor) -> torch.Tensor:
    """Swap row y with row H - 1 - y."""
    _validate_image_tensor(image, "image")
    return image.flip(-2)


def flip(image: torch.Tensor, flip_type: str) -> torch.Tensor:
    """
    Flip the image in the given direction.

    Args:
        image: Input image tensor of shape (C, H, W)
        flip_type: FlipType.HORIZONTAL ("Horizontal") or FlipType.VERTICAL ("Vertical")

    Raises:
        ValueError: If flip_type is not a known direction
    """
    if flip_type == FlipType.HORIZONTAL:
        return horizontal_flip(image)
    if flip_type == FlipType.VERTICAL:
        return vertical_flip(image)
    raise ValueError(
        f"Unknown flip type {flip_type!r}, choose either "
        f"'{FlipType.HORIZONTAL}' or '{FlipType.VERTICAL}'"
    )


def invert(image: torch.Tensor) -> torch.Tensor:
    """
    Replace every channel value v with max_value - v.

    max_value is 255 for uint8, the dtype maximum for other unsigned dtypes
    and 1.0 for float images. Signed integer images are mirrored about the
    center of their range (min + max - v) so the result stays in range.
    """
    _validate_image_tensor(image, "image")
    if image.is_floating_point():
        return (max_channel_value(image.dtype) - image).to(image.dtype)
    info = torch.iinfo(image.dtype)
    return (info.min + info.max - image.to(torch.int64)).to(image.dtype)


def erase(image: torch.Tensor, top: int, left: int, noise: torch.Tensor) -> torch.Tensor:
    """
    Overwrite the rectangle at (top, left) with `noise`.

    Args:
        image: Input image tensor of shape (C, H, W)
        top: Top pixel coordinate of the rectangle
        left: Left pixel coordinate of the rectangle
        noise: Replacement pixels of shape (C, h, w), cast to the image dtype

    Returns:
        New tensor; pixels outside the rectangle are unchanged

    Raises:
        ValueError: If noise has the wrong number of channels
        IndexError: If the rectangle does not lie inside the image
    """
    _validate_image_tensor(image, "image")
    _validate_image_tensor(noise, "noise")

    channels, image_height, image_width = image.shape
    noise_channels, height, width = noise.shape

    if noise_channels != channels:
        raise ValueError(f"noise must have {channels} channels, got {noise_channels}")
    if top < 0 or left < 0 or top + height > image_height or left + width > image_width:
        raise IndexError(
            f"Erase window (top={top}, left={left}, height={height}, width={width}) "
            f"exceeds image size ({image_height}, {image_width})"
        )

    return erase_kernel(image, top, left, noise.to(image.dtype))


# ============================================================================
# Blur Operations
# ============================================================================


def gaussian_blur(
    image: torch.Tensor,
    sigma: float,
    length: int | None = None,
    kernel: torch.Tensor | None = None,
) -> torch.Tensor:
    """
    Blur with a direct separable Gaussian convolution (clamp-to-edge).

    Integer results are truncated, not rounded, to the channel dtype.

    Args:
        image: Input image tensor of shape (C, H, W)
        sigma: Standard deviation in pixels
        length: Kernel length (default: 2 * ceil(3 * sigma) + 1)
        kernel: Prebuilt 1D kernel; when given, sigma and length are ignored

    Returns:
        Blurred tensor of the same shape and dtype
    """
    _validate_image_tensor(image, "image")
    if kernel is None:
        kernel = gaussian_kernel(sigma, length)
    elif kernel.ndim != 1 or kernel.numel() == 0:
        raise ValueError(f"kernel must be a non-empty 1D tensor, got shape {tuple(kernel.shape)}")
    return separable_convolve(image, kernel)


def box_blur(image: torch.Tensor, length: int) -> torch.Tensor:
    """
    Average over a length x length box with sliding-window accumulators.

    Cost per pixel does not depend on `length`. For integer images the
    result equals the direct all-ones convolution exactly.

    Args:
        image: Input image tensor of shape (C, H, W)
        length: Box length (must be positive)

    Returns:
        Blurred tensor of the same shape and dtype
    """
    _validate_image_tensor(image, "image")
    if length <= 0:
        raise ValueError(f"Kernel length must be positive, got {length}")
    return _box_blur_kernel(image, length)


def fast_gaussian_blur(image: torch.Tensor, sigma: float, passes: int = 3) -> torch.Tensor:
    """
    Approximate a Gaussian blur by `passes` sequential box blurs.

    Box lengths come from `kernels.box_pass_sizes(sigma, passes)`; the
    approximation improves as `passes` grows.

    Args:
        image: Input image tensor of shape (C, H, W)
        sigma: Target standard deviation in pixels
        passes: Number of box passes (default: 3)
    """
    _validate_image_tensor(image, "image")
    result = image
    for length in box_pass_sizes(sigma, passes):
        result = _box_blur_kernel(result, length)
    return result


__all__ = [
    'InterpolationMode',
    'FlipType',
    'ImageSize',
    'RotateRange',
    'ZoomFactor',
    'as_image_size',
    'max_channel_value',
    'resize',
    'crop',
    'center_crop',
    'rotate',
    'horizontal_flip',
    'vertical_flip',
    'flip',
    'invert',
    'erase',
    'gaussian_blur',
    'box_blur',
    'fast_gaussian_blur',
]
