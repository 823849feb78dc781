"""
Separable convolution and sliding-window box accumulation.

Images are (C, H, W) tensors. Every routine here reads outside the image
with clamp-to-edge: tap t of a length-k kernel centred on position i reads
position clamp(i - k // 2 + t, 0, size - 1).

Two ways of averaging with a box are provided:

- box_blur_direct: the plain k-tap convolution with an all-ones kernel,
  O(k) per output pixel
- box_blur: a running per-line sum that drops one pixel and picks up one
  pixel per step, O(1) per output pixel

For integer images both sum exactly in int64 and divide with truncation, so
their outputs are identical.

No input validation happens here; see pixel_augment.functional.
"""

import torch


# Vertical (rows) and horizontal (columns) axes of a (C, H, W) tensor
HEIGHT_AXIS = 1
WIDTH_AXIS = 2

# Normalized float weights can sum to a hair short of an integer (e.g. 99.99999999
# for a flat field of 100, -4.99999999 for -5); this guard, applied away from
# zero, keeps truncation from dropping a level.
TRUNCATION_GUARD = 1e-6


def _wide_dtype(dtype: torch.dtype) -> torch.dtype:
    """Overflow-safe accumulation dtype for a channel dtype."""
    return torch.float64 if dtype.is_floating_point else torch.int64


def _clamp(position: int, size: int) -> int:
    return min(max(position, 0), size - 1)


def clamped_taps(size: int, length: int, tap: int) -> torch.Tensor:
    """
    Source indices read by tap `tap` for every output position along an axis.

    Args:
        size: Length of the axis
        length: Kernel length
        tap: Tap index in [0, length)

    Returns:
        int64 tensor of shape (size,)
    """
    positions = torch.arange(size, dtype=torch.int64) - (length // 2) + tap
    return positions.clamp(0, size - 1)


def store(values: torch.Tensor, dtype: torch.dtype) -> torch.Tensor:
    """
    Narrow wide accumulated values to the channel dtype.

    Integer channels are truncated (not rounded) and clamped to their range.
    Float channels are stored as they are.
    """
    if dtype.is_floating_point:
        return values.to(dtype)
    info = torch.iinfo(dtype)
    if values.is_floating_point():
        values = torch.trunc(values + torch.sign(values) * TRUNCATION_GUARD)
    return values.clamp(info.min, info.max).to(dtype)


class Accumulator:
    """
    Running per-channel sums for a window sliding along one axis.

    One accumulator serves every scan line of the axis at once: `values` has
    the shape of one cross-section of the image (for a vertical slide of a
    (C, H, W) image that is (C, W), one sum per channel per column).

    Args:
        shape: Shape of one cross-section
        dtype: Wide accumulation dtype (int64 or float64)
    """

    def __init__(self, shape, dtype: torch.dtype = torch.int64):
        self.values = torch.zeros(shape, dtype=dtype)

    def add(self, pixels: torch.Tensor) -> None:
        self.values += pixels

    def shift(self, removed: torch.Tensor, added: torch.Tensor) -> None:
        """Drop the pixels that left the window and add the ones that entered."""
        self.values += added
        self.values -= removed

    def div(self, denominator: int, dtype: torch.dtype) -> torch.Tensor:
        """Per-channel average narrowed to `dtype` (integer division truncates)."""
        if self.values.is_floating_point():
            return store(self.values / denominator, dtype)
        return store(torch.div(self.values, denominator, rounding_mode='trunc'), dtype)


def convolve_axis(
    image: torch.Tensor,
    weights: torch.Tensor,
    axis: int,
    divisor: int | None = None,
) -> torch.Tensor:
    """
    Direct 1D convolution of every line of `image` along `axis`.

    Float weights accumulate in float64. Integer weights accumulate in int64
    (float64 for float images) and the sums are divided by `divisor`.

    Args:
        image: Tensor of shape (C, H, W)
        weights: 1D kernel
        axis: HEIGHT_AXIS or WIDTH_AXIS
        divisor: Integer divisor applied after summing (integer kernels only)

    Returns:
        Tensor with the shape and dtype of `image`
    """
    size = image.shape[axis]
    length = weights.shape[0]

    if weights.is_floating_point():
        source = image.to(torch.float64)
        weights = weights.to(torch.float64)
    else:
        source = image.to(_wide_dtype(image.dtype))

    total = torch.zeros_like(source)
    for tap in range(length):
        total += weights[tap].item() * source.index_select(axis, clamped_taps(size, length, tap))

    if divisor is not None:
        if total.is_floating_point():
            total = total / divisor
        else:
            total = torch.div(total, divisor, rounding_mode='trunc')
    return store(total, image.dtype)


def separable_convolve(
    image: torch.Tensor,
    weights: torch.Tensor,
    divisor: int | None = None,
) -> torch.Tensor:
    """
    2D convolution as a vertical pass into a transient followed by a
    horizontal pass over the transient.

    The transient is narrowed to the image dtype between passes.
    """
    transient = convolve_axis(image, weights, HEIGHT_AXIS, divisor)
    return convolve_axis(transient, weights, WIDTH_AXIS, divisor)


def box_accumulate_axis(image: torch.Tensor, length: int, axis: int) -> torch.Tensor:
    """
    Box average along `axis` with a sliding-window accumulator.

    The window at position i covers taps i - length // 2 ... i - length // 2 + length - 1
    (clamped). The first window is primed with `length` additions; every
    later position costs one shift, independent of `length`.

    Args:
        image: Tensor of shape (C, H, W)
        length: Box length
        axis: HEIGHT_AXIS or WIDTH_AXIS

    Returns:
        Tensor with the shape and dtype of `image`
    """
    size = image.shape[axis]
    half = length // 2
    source = image.to(_wide_dtype(image.dtype))
    output = torch.empty_like(image)

    accumulator = Accumulator(source.select(axis, 0).shape, source.dtype)
    for tap in range(length):
        accumulator.add(source.select(axis, _clamp(tap - half, size)))
    output.select(axis, 0).copy_(accumulator.div(length, image.dtype))

    for position in range(1, size):
        removed = _clamp(position - 1 - half, size)
        added = _clamp(position - half + length - 1, size)
        accumulator.shift(source.select(axis, removed), source.select(axis, added))
        output.select(axis, position).copy_(accumulator.div(length, image.dtype))

    return output


def box_blur(image: torch.Tensor, length: int) -> torch.Tensor:
    """Sliding-window box blur: vertical pass, then horizontal pass."""
    transient = box_accumulate_axis(image, length, HEIGHT_AXIS)
    return box_accumulate_axis(transient, length, WIDTH_AXIS)


def box_blur_direct(image: torch.Tensor, length: int) -> torch.Tensor:
    """Reference box blur by direct convolution with an all-ones kernel."""
    ones = torch.ones(length, dtype=torch.int64)
    return separable_convolve(image, ones, divisor=length)


__all__ = [
    'HEIGHT_AXIS',
    'WIDTH_AXIS',
    'Accumulator',
    'clamped_taps',
    'store',
    'convolve_axis',
    'separable_convolve',
    'box_accumulate_axis',
    'box_blur',
    'box_blur_direct',
]
