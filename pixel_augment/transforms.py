"""
Operation classes for randomized image augmentation.

Every operation is a torch.nn.Module holding a probability `p` and its own
seeded generator. Each call first draws once from that generator to decide
whether the operation fires (the gate), then draws whatever parameters the
transform needs. The gate draw is consumed even when `p` is 0 or 1, so the
parameter draws of later calls do not depend on earlier gate outcomes.

Skipping never fails and never returns None: a skipped call hands back the
very tensor it was given. A fired call returns a new tensor and leaves the
input untouched. Use `Operation.perform_with_flag()` to also learn whether it fired.

Operations are not thread-safe: the generator advances on every call. For
parallel workers, give each worker its own `operation.clone(seed)`.
"""

import copy
from typing import List, Optional, Sequence, Tuple, Union

import torch
import torch.nn as nn

from . import functional as F
from .functional import FlipType, InterpolationMode, RotateRange, ZoomFactor
from .generator import NULL_SEED, ContinuousUniformGenerator, DiscreteUniformGenerator
from .kernels.filter_kernel import box_pass_schedule, gaussian_kernel
from .utils import log, trace


Images = Union[torch.Tensor, Sequence[torch.Tensor]]


# ============================================================================
# Operation Contract
# ============================================================================


class Operation(nn.Module):
    """
    Base class of all operations: a probability gate plus `perform`.

    Subclasses implement `transform(image)`, the unconditional transform of
    one (C, H, W) tensor. `perform` gates it and handles sequences.

    Args:
        p: Probability of applying the operation on each call (default: 1.0, always)
        seed: Random seed (default: 0, derived from the current time)

    Example:
        ```python
        op = Flip(FlipType.HORIZONTAL, p=0.5, seed=42)
        img = torch.randint(0, 256, (3, 64, 64), dtype=torch.uint8)
        out = op(img)                           # flipped about half of the time
        out, fired = op.perform_with_flag(img)  # same, plus whether it fired
        outs = op.perform([img, img])           # independent gate per image
        ```
    """

    def __init__(self, p: float = 1.0, seed: int = NULL_SEED):
        super().__init__()
        if not (0.0 <= p <= 1.0):
            raise ValueError(f"p ({p}) must be in [0, 1]")
        self.p = p
        self._reseed(seed)

    def _reseed(self, seed: int) -> None:
        self.generator = ContinuousUniformGenerator(seed)

    @property
    def seed(self) -> int:
        """Seed actually in use (time-derived when constructed with 0)."""
        return self.generator.seed

    def operate_this_time(self) -> bool:
        """Consume one unit draw and decide whether the operation fires."""
        return self.generator.draw() < self.p

    def uniform(self, lower: Optional[float] = None, upper: Optional[float] = None) -> float:
        """
        One draw from the operation's generator.

        Returns a unit draw in [0, 1), or (upper - lower) * unit + lower when
        bounds are given.

        Raises:
            ValueError: If only one of the bounds is given
        """
        if (lower is None) != (upper is None):
            raise ValueError(f"uniform() needs both bounds or neither, got lower={lower}, upper={upper}")
        unit = self.generator.draw()
        if lower is None:
            return unit
        return (upper - lower) * unit + lower

    def transform(self, image: torch.Tensor) -> torch.Tensor:
        """Apply the operation unconditionally to one (C, H, W) tensor."""
        raise NotImplementedError

    def perform_with_flag(self, image: torch.Tensor) -> Tuple[torch.Tensor, bool]:
        """
        Gate and transform one image.

        Returns:
            Tuple of (result, fired). When the gate fails, result is `image` itself.
        """
        if not self.operate_this_time():
            return image, False
        return self.transform(image), True

    def perform(self, image: Images) -> Images:
        """
        Apply the operation to an image or to a sequence of images.

        Args:
            image: (C, H, W) tensor, list/tuple of such tensors, or an
                   (N, C, H, W) batch

        Returns:
            A tensor for a single image, a list (same order) for a list or
            tuple, and a re-stacked batch for a 4D tensor. Each image gets
            its own gate decision.

        Raises:
            ValueError: If the images of a 4D batch come out with different
                        shapes (pass a list instead)
        """
        if isinstance(image, (list, tuple)):
            return apply_all(self, image)

        if isinstance(image, torch.Tensor) and image.ndim == 4:
            results = apply_all(self, image.unbind(0))
            if not results:
                return image.clone()
            shapes = {tuple(result.shape) for result in results}
            if len(shapes) > 1:
                raise ValueError(
                    f"Batch results have different shapes {sorted(shapes)}; "
                    f"pass a list of images instead of a 4D tensor"
                )
            return torch.stack(results)

        result, _ = self.perform_with_flag(image)
        return result

    def forward(self, image: Images) -> Images:
        return self.perform(image)

    def clone(self, seed: int = NULL_SEED) -> "Operation":
        """
        Copy of this operation with freshly seeded generators.

        Use one clone per thread or worker; the original keeps its own state.
        """
        twin = copy.copy(self)
        twin._reseed(seed)
        return twin

    def __repr__(self):
        return f"{self.__class__.__name__}(p={self.p}, seed={self.seed})"


def apply_all(operation: Operation, images: Sequence[torch.Tensor]) -> List[torch.Tensor]:
    """
    Apply `operation` to every image in order, one gate decision per image.

    Args:
        operation: Any Operation
        images: Sequence of (C, H, W) tensors

    Returns:
        List of results, same length and order as `images`
    """
    return [operation.perform(image) for image in images]


class Echo(Operation):
    """
    Report a message on stderr whenever the gate fires.

    The image is always returned unchanged. Handy as a probe inside a
    sequence of operations.

    Args:
        message: Text to report
        p: Probability of reporting (default: 1.0)
        seed: Random seed (default: 0, time-derived)
    """

    def __init__(self, message: str = "", p: float = 1.0, seed: int = NULL_SEED):
        super().__init__(p, seed)
        self.message = message

    def transform(self, image: torch.Tensor) -> torch.Tensor:
        log(self.message)
        return image

    def __repr__(self):
        return f"{self.__class__.__name__}(message={self.message!r}, p={self.p}, seed={self.seed})"


# ============================================================================
# Geometric Operations
# ============================================================================


class Resize(Operation):
    """
    Resize to a random size between `lower` and `upper`.

    One unit factor is drawn per call and used for both dimensions:
    height = int(lower.height + factor * (upper.height - lower.height)),
    and the same for width.

    Args:
        lower: Size at factor 0, (height, width) or int for square
        upper: Size at factor 1, (height, width) or int for square
        interpolation: InterpolationMode.BILINEAR (default) or InterpolationMode.NEAREST
        p: Probability of resizing (default: 1.0)
        seed: Random seed (default: 0, time-derived)

    Example:
        ```python
        op = Resize((32, 32), (64, 96), seed=7)
        op(torch.zeros(3, 50, 50, dtype=torch.uint8)).shape
        ```
        torch.Size([3, 47, 62])   # for some factor in [0, 1)
    """

    def __init__(
        self,
        lower: Union[int, Sequence[int]],
        upper: Union[int, Sequence[int]],
        interpolation: str = InterpolationMode.BILINEAR,
        p: float = 1.0,
        seed: int = NULL_SEED,
    ):
        super().__init__(p, seed)
        self.lower = F.as_image_size(lower, "lower")
        self.upper = F.as_image_size(upper, "upper")
        self.interpolation = interpolation

    def transform(self, image: torch.Tensor) -> torch.Tensor:
        factor = self.uniform()
        height = int((self.upper.height - self.lower.height) * factor + self.lower.height)
        width = int((self.upper.width - self.lower.width) * factor + self.lower.width)
        trace(f"Resize: factor={factor:.4f} -> ({height}, {width})")
        return F.resize(image, height, width, self.interpolation)

    def __repr__(self):
        return (
            f"{self.__class__.__name__}(lower={tuple(self.lower)}, upper={tuple(self.upper)}, "
            f"interpolation={self.interpolation}, p={self.p}, seed={self.seed})"
        )


class Crop(Operation):
    """
    Crop a fixed-size window, either centered or at a random position.

    Centered windows start at (H // 2 - height // 2, W // 2 - width // 2).
    Random windows draw the left offset uniformly from [0, W - width] and
    then the top offset from [0, H - height].

    Args:
        size: Desired output size (height, width) or int for square crop
        center: True for a centered window, False for a random one (default: True)
        p: Probability of cropping (default: 1.0)
        seed: Random seed (default: 0, time-derived)

    Raises:
        ValueError: At construction, if size is not positive
        IndexError: When called on an image smaller than `size`
    """

    def __init__(
        self,
        size: Union[int, Sequence[int]],
        center: bool = True,
        p: float = 1.0,
        seed: int = NULL_SEED,
    ):
        super().__init__(p, seed)
        self.size = F.as_image_size(size, "size")
        self.center = center

    def _draw_offset(self, limit: int) -> int:
        """Uniform integer in [0, limit]."""
        return min(int(self.uniform() * (limit + 1)), limit)

    def transform(self, image: torch.Tensor) -> torch.Tensor:
        if self.center:
            return F.center_crop(image, self.size)

        _, h, w = image.shape
        th, tw = self.size
        if h < th or w < tw:
            raise IndexError(f"Image size ({h}, {w}) is smaller than crop size ({th}, {tw})")

        left = self._draw_offset(w - tw)
        top = self._draw_offset(h - th)
        trace(f"Crop: top={top}, left={left}")
        return F.crop(image, top, left, th, tw)

    def __repr__(self):
        return (
            f"{self.__class__.__name__}(size={tuple(self.size)}, center={self.center}, "
            f"p={self.p}, seed={self.seed})"
        )


class Rotate(Operation):
    """
    Rotate about the image center by a random angle.

    The angle (degrees) is drawn uniformly from [min_rotate, max_rotate).
    Pixels whose inverse-mapped source lies outside the image get `fill`.

    Args:
        rotate_range: (min_rotate, max_rotate) in degrees
        fill: Value for pixels without a source pixel (default: 0)
        p: Probability of rotating (default: 1.0)
        seed: Random seed (default: 0, time-derived)
    """

    def __init__(
        self,
        rotate_range: Sequence[float],
        fill: float = 0,
        p: float = 1.0,
        seed: int = NULL_SEED,
    ):
        super().__init__(p, seed)
        self.range = RotateRange(*rotate_range)
        if self.range.min_rotate > self.range.max_rotate:
            raise ValueError(f"rotate_range must be increasing, got {tuple(self.range)}")
        self.fill = fill

    def transform(self, image: torch.Tensor) -> torch.Tensor:
        angle = self.uniform(self.range.min_rotate, self.range.max_rotate)
        trace(f"Rotate: angle={angle:.3f}")
        return F.rotate(image, angle, self.fill)

    def __repr__(self):
        return (
            f"{self.__class__.__name__}(rotate_range={tuple(self.range)}, fill={self.fill}, "
            f"p={self.p}, seed={self.seed})"
        )


class Zoom(Operation):
    """
    Zoom in by a random factor, keeping the image size.

    The factor is drawn from [min_factor, max_factor) and truncated to one
    decimal place. The image is resized by that factor and center-cropped
    back to its original size.

    Args:
        factor: (min_factor, max_factor), both at least 1.0
        interpolation: InterpolationMode.BILINEAR (default) or InterpolationMode.NEAREST
        p: Probability of zooming (default: 1.0)
        seed: Random seed (default: 0, time-derived)

    Raises:
        ValueError: If min_factor < 1 or the range is decreasing. Zooming out
                    cannot be cropped back to the original size.
    """

    def __init__(
        self,
        factor: Sequence[float],
        interpolation: str = InterpolationMode.BILINEAR,
        p: float = 1.0,
        seed: int = NULL_SEED,
    ):
        super().__init__(p, seed)
        self.factor = ZoomFactor(*factor)
        if not 1.0 <= self.factor.min_factor <= self.factor.max_factor:
            raise ValueError(
                f"factor must satisfy 1 <= min_factor <= max_factor, got {tuple(self.factor)}"
            )
        self.interpolation = interpolation

    def transform(self, image: torch.Tensor) -> torch.Tensor:
        zoom = self.uniform(self.factor.min_factor, self.factor.max_factor)
        zoom = int(zoom * 10.0) / 10.0

        _, h, w = image.shape
        zoomed = F.resize(image, int(h * zoom), int(w * zoom), self.interpolation)
        trace(f"Zoom: factor={zoom:.1f}")
        return F.center_crop(zoomed, (h, w))

    def __repr__(self):
        return (
            f"{self.__class__.__name__}(factor={tuple(self.factor)}, "
            f"interpolation={self.interpolation}, p={self.p}, seed={self.seed})"
        )


class Flip(Operation):
    """
    Mirror the image horizontally or vertically.

    Args:
        flip_type: FlipType.HORIZONTAL ("Horizontal") or FlipType.VERTICAL ("Vertical")
        p: Probability of flipping (default: 1.0)
        seed: Random seed (default: 0, time-derived)

    Raises:
        ValueError: If flip_type is not a known direction
    """

    def __init__(self, flip_type: str, p: float = 1.0, seed: int = NULL_SEED):
        if flip_type not in (FlipType.HORIZONTAL, FlipType.VERTICAL):
            raise ValueError(
                f"Unknown flip type {flip_type!r}, choose either "
                f"'{FlipType.HORIZONTAL}' or '{FlipType.VERTICAL}'"
            )
        super().__init__(p, seed)
        self.flip_type = flip_type

    def transform(self, image: torch.Tensor) -> torch.Tensor:
        return F.flip(image, self.flip_type)

    def __repr__(self):
        return f"{self.__class__.__name__}(flip_type={self.flip_type!r}, p={self.p}, seed={self.seed})"


class Invert(Operation):
    """
    Invert every channel value (255 - v for uint8, 1.0 - v for float images).

    Args:
        p: Probability of inverting (default: 1.0)
        seed: Random seed (default: 0, time-derived)
    """

    def transform(self, image: torch.Tensor) -> torch.Tensor:
        return F.invert(image)


class RandomErase(Operation):
    """
    Replace a random rectangle with per-channel uniform noise.

    Both mask bounds are first clamped to the image. One unit factor sizes
    the rectangle, so height and width move together between the lower and
    upper mask sizes. The top and then the left offset are drawn exactly
    uniformly over every position where the rectangle fits (rejection
    sampling on a full-range integer generator, so no modulo bias).

    Offsets and noise come from their own generators. Unless given, their
    seeds derive from the operation seed (seed + 1 and seed + 2), so a
    single seed reproduces the whole erase.

    Args:
        lower_mask_size: Smallest rectangle (height, width) or int for square
        upper_mask_size: Largest rectangle (height, width) or int for square
        p: Probability of erasing (default: 1.0)
        seed: Random seed (default: 0, time-derived)
        offset_seed: Seed of the offset generator (default: derived)
        noise_seed: Seed of the noise generator (default: derived)
    """

    def __init__(
        self,
        lower_mask_size: Union[int, Sequence[int]],
        upper_mask_size: Union[int, Sequence[int]],
        p: float = 1.0,
        seed: int = NULL_SEED,
        offset_seed: Optional[int] = None,
        noise_seed: Optional[int] = None,
    ):
        super().__init__(p, seed)
        self.lower_mask_size = F.as_image_size(lower_mask_size, "lower_mask_size")
        self.upper_mask_size = F.as_image_size(upper_mask_size, "upper_mask_size")
        if (self.lower_mask_size.height > self.upper_mask_size.height
                or self.lower_mask_size.width > self.upper_mask_size.width):
            raise ValueError(
                f"lower_mask_size {tuple(self.lower_mask_size)} must not exceed "
                f"upper_mask_size {tuple(self.upper_mask_size)}"
            )
        if offset_seed is not None or noise_seed is not None:
            self._seed_erase_generators(offset_seed, noise_seed)

    def _reseed(self, seed: int) -> None:
        super()._reseed(seed)
        self._seed_erase_generators(None, None)

    def clone(
        self,
        seed: int = NULL_SEED,
        offset_seed: Optional[int] = None,
        noise_seed: Optional[int] = None,
    ) -> "RandomErase":
        """
        Copy of this operation with freshly seeded generators.

        Offset and noise seeds given at construction are not carried over:
        unless passed here, they derive from the new seed (seed + 1 and
        seed + 2).
        """
        twin = super().clone(seed)
        if offset_seed is not None or noise_seed is not None:
            twin._seed_erase_generators(offset_seed, noise_seed)
        return twin

    def _seed_erase_generators(self, offset_seed: Optional[int], noise_seed: Optional[int]) -> None:
        base = self.generator.seed
        self.offset_generator = DiscreteUniformGenerator(
            base + 1 if offset_seed is None else offset_seed, dtype=torch.int32
        )
        self.noise_generator = ContinuousUniformGenerator(base + 2 if noise_seed is None else noise_seed)

    def _draw_offset(self, choices: int) -> int:
        """Exactly uniform integer in [0, choices)."""
        generator = self.offset_generator
        span = generator.upper - generator.lower + 1
        limit = span - span % choices
        while True:
            value = generator.draw() - generator.lower
            if value < limit:
                return value % choices

    def _draw_noise(self, shape: Tuple[int, int, int], dtype: torch.dtype) -> torch.Tensor:
        unit = self.noise_generator.draw(shape)
        if dtype.is_floating_point:
            return unit.to(dtype)
        info = torch.iinfo(dtype)
        levels = info.max - info.min + 1
        values = torch.floor(unit * levels).to(torch.int64) + info.min
        return values.clamp(info.min, info.max).to(dtype)

    def transform(self, image: torch.Tensor) -> torch.Tensor:
        channels, h, w = image.shape
        lower_h = min(h, self.lower_mask_size.height)
        lower_w = min(w, self.lower_mask_size.width)
        upper_h = min(h, self.upper_mask_size.height)
        upper_w = min(w, self.upper_mask_size.width)

        factor = self.uniform()
        erase_h = int((upper_h - lower_h) * factor) + lower_h
        erase_w = int((upper_w - lower_w) * factor) + lower_w

        top = self._draw_offset(h - erase_h + 1)
        left = self._draw_offset(w - erase_w + 1)
        trace(f"RandomErase: top={top}, left={left}, size=({erase_h}, {erase_w})")

        noise = self._draw_noise((channels, erase_h, erase_w), image.dtype)
        return F.erase(image, top, left, noise)

    def __repr__(self):
        return (
            f"{self.__class__.__name__}(lower_mask_size={tuple(self.lower_mask_size)}, "
            f"upper_mask_size={tuple(self.upper_mask_size)}, p={self.p}, seed={self.seed})"
        )


# ============================================================================
# Blur Operations
# ============================================================================


class GaussianBlur(Operation):
    """
    Gaussian blur by direct separable convolution (clamp-to-edge).

    Cost grows with the kernel length; see FastGaussianBlur for a
    length-independent approximation.

    Args:
        sigma: Standard deviation in pixels
        length: Kernel length (default: 2 * ceil(3 * sigma) + 1)
        p: Probability of blurring (default: 1.0)
        seed: Random seed (default: 0, time-derived)
    """

    def __init__(
        self,
        sigma: float,
        length: Optional[int] = None,
        p: float = 1.0,
        seed: int = NULL_SEED,
    ):
        super().__init__(p, seed)
        self.sigma = sigma
        self.kernel = gaussian_kernel(sigma, length)

    def transform(self, image: torch.Tensor) -> torch.Tensor:
        return F.gaussian_blur(image, self.sigma, kernel=self.kernel)

    def __repr__(self):
        return (
            f"{self.__class__.__name__}(sigma={self.sigma}, length={self.kernel.numel()}, "
            f"p={self.p}, seed={self.seed})"
        )


class BoxBlur(Operation):
    """
    Box (mean) blur with sliding-window accumulators.

    Each output pixel is the truncated mean of the length x length box
    around it; cost per pixel does not depend on the length.

    Args:
        length: Box length, or a box kernel whose length is used
        p: Probability of blurring (default: 1.0)
        seed: Random seed (default: 0, time-derived)

    Raises:
        ValueError: If length is not positive
    """

    def __init__(
        self,
        length: Union[int, torch.Tensor],
        p: float = 1.0,
        seed: int = NULL_SEED,
    ):
        super().__init__(p, seed)
        if isinstance(length, torch.Tensor):
            length = length.numel()
        if length <= 0:
            raise ValueError(f"Kernel length must be positive, got {length}")
        self.length = int(length)

    def transform(self, image: torch.Tensor) -> torch.Tensor:
        return F.box_blur(image, self.length)

    def __repr__(self):
        return f"{self.__class__.__name__}(length={self.length}, p={self.p}, seed={self.seed})"


class FastGaussianBlur(Operation):
    """
    Approximate Gaussian blur by sequential box blurs.

    The box lengths follow `kernels.box_pass_schedule(sigma, passes)`. The
    gate is evaluated once for the whole blur; when it fires every pass runs,
    each one blurring the previous pass's output. More passes get closer to
    the true Gaussian.

    Args:
        sigma: Target standard deviation in pixels
        passes: Number of box passes (default: 3)
        p: Probability of blurring (default: 1.0)
        seed: Random seed (default: 0, time-derived)
    """

    def __init__(
        self,
        sigma: float,
        passes: int = 3,
        p: float = 1.0,
        seed: int = NULL_SEED,
    ):
        super().__init__(p, seed)
        self.sigma = sigma
        self.passes = nn.ModuleList(
            BoxBlur(kernel, seed=self.seed) for kernel in box_pass_schedule(sigma, passes)
        )

    def transform(self, image: torch.Tensor) -> torch.Tensor:
        for box in self.passes:
            image = box.transform(image)
        return image

    def __repr__(self):
        lengths = [box.length for box in self.passes]
        return (
            f"{self.__class__.__name__}(sigma={self.sigma}, box_lengths={lengths}, "
            f"p={self.p}, seed={self.seed})"
        )


__all__ = [
    'Operation',
    'apply_all',
    'Echo',
    'Resize',
    'Crop',
    'Rotate',
    'Zoom',
    'Flip',
    'Invert',
    'RandomErase',
    'GaussianBlur',
    'BoxBlur',
    'FastGaussianBlur',
]
