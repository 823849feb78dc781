"""
Seedable uniform random number generation.

Every stochastic operation owns its own generator so that its draws depend
only on its seed and on how many times it has been used. Two kinds exist:

- ContinuousUniformGenerator: floats in a half-open range, [0, 1) by default
- DiscreteUniformGenerator: integers in a closed range, the full range of
  the requested integer dtype by default

Use `uniform_generator()` to pick the kind from a torch dtype.

Seed 0 (NULL_SEED) means "derive a seed from the current time"; the seed
actually used is kept on the generator (`generator.seed`). Any other seed is
fully reproducible.

Generators are not thread-safe. Give each worker its own generator.
"""

import time
from abc import ABC, abstractmethod
from typing import Optional, Sequence, Union

import torch

from .utils import trace


NULL_SEED = 0

# Seeds derived from the clock are folded into this many bits
_TIME_SEED_MASK = (1 << 48) - 1

Size = Optional[Union[int, Sequence[int]]]


def resolve_seed(seed: int) -> int:
    """
    Turn a user seed into the seed that is actually used.

    Args:
        seed: Non-negative seed. 0 requests a time-derived seed.

    Returns:
        The seed itself, or a non-zero seed derived from the current time

    Raises:
        ValueError: If seed is negative
    """
    if seed < 0:
        raise ValueError(f"seed must be non-negative, got {seed}")
    if seed != NULL_SEED:
        return seed
    derived = (time.time_ns() & _TIME_SEED_MASK) or 1
    trace(f"seed 0 resolved to time-derived seed {derived}")
    return derived


def _as_size(size: Size):
    if isinstance(size, int):
        return (size,)
    return tuple(size)


class UniformGenerator(ABC):
    """
    Common interface of the uniform generators.

    Args:
        seed: Random seed (0 = derive from the current time)
    """

    def __init__(self, seed: int = NULL_SEED):
        self.seed = resolve_seed(seed)
        self._engine = torch.Generator()
        self._engine.manual_seed(self.seed)

    @abstractmethod
    def draw(self, size: Size = None):
        """
        Draw from the configured range.

        Args:
            size: None for a single Python number, otherwise the shape of the
                  tensor of independent draws to return
        """

    def __call__(self):
        return self.draw()

    def __repr__(self):
        return f"{self.__class__.__name__}(seed={self.seed}, lower={self.lower}, upper={self.upper})"


class ContinuousUniformGenerator(UniformGenerator):
    """
    Uniform floats in [lower, upper).

    Args:
        seed: Random seed (0 = derive from the current time)
        lower: Inclusive lower bound (default: 0.0)
        upper: Exclusive upper bound (default: 1.0)

    Example:
        ```python
        gen = ContinuousUniformGenerator(seed=42)
        gen.draw()        # 0.8823...
        gen.draw(3)       # tensor([...], dtype=torch.float64)
        ```
    """

    def __init__(self, seed: int = NULL_SEED, lower: float = 0.0, upper: float = 1.0):
        if not lower < upper:
            raise ValueError(f"lower ({lower}) must be smaller than upper ({upper})")
        super().__init__(seed)
        self.lower = float(lower)
        self.upper = float(upper)

    def draw(self, size: Size = None):
        if size is None:
            unit = torch.rand((), generator=self._engine, dtype=torch.float64).item()
            return (self.upper - self.lower) * unit + self.lower
        unit = torch.rand(_as_size(size), generator=self._engine, dtype=torch.float64)
        return unit * (self.upper - self.lower) + self.lower


class DiscreteUniformGenerator(UniformGenerator):
    """
    Uniform integers in the closed range [lower, upper].

    The default range is the full range of `dtype`. For torch.int64 the
    single largest value is never drawn, because torch's exclusive upper
    bound cannot go past it.

    Args:
        seed: Random seed (0 = derive from the current time)
        lower: Inclusive lower bound (default: minimum of dtype)
        upper: Inclusive upper bound (default: maximum of dtype)
        dtype: Integer kind that defines the default range and the dtype of
               tensor draws (default: torch.int64)
    """

    def __init__(
        self,
        seed: int = NULL_SEED,
        lower: Optional[int] = None,
        upper: Optional[int] = None,
        dtype: torch.dtype = torch.int64,
    ):
        if dtype.is_floating_point or dtype == torch.bool:
            raise ValueError(f"DiscreteUniformGenerator needs an integer dtype, got {dtype}")
        info = torch.iinfo(dtype)
        lower = info.min if lower is None else int(lower)
        upper = info.max if upper is None else int(upper)
        if not info.min <= lower <= upper <= info.max:
            raise ValueError(
                f"bounds must satisfy {info.min} <= lower <= upper <= {info.max}, "
                f"got lower={lower}, upper={upper}"
            )
        super().__init__(seed)
        self.lower = lower
        self.upper = upper
        self.dtype = dtype

    def draw(self, size: Size = None):
        high = min(self.upper + 1, torch.iinfo(torch.int64).max)
        if size is None:
            return torch.randint(self.lower, high, (), generator=self._engine, dtype=torch.int64).item()
        values = torch.randint(self.lower, high, _as_size(size), generator=self._engine, dtype=torch.int64)
        return values.to(self.dtype)


def uniform_generator(
    seed: int = NULL_SEED,
    lower: Optional[Union[int, float]] = None,
    upper: Optional[Union[int, float]] = None,
    dtype: torch.dtype = torch.float64,
) -> UniformGenerator:
    """
    Create the generator kind that matches `dtype`.

    Floating dtypes give a ContinuousUniformGenerator over [lower, upper)
    (default [0, 1)); integer dtypes give a DiscreteUniformGenerator over
    [lower, upper] (default: the full range of the dtype).

    Args:
        seed: Random seed (0 = derive from the current time)
        lower: Optional lower bound
        upper: Optional upper bound
        dtype: Numeric kind to generate (default: torch.float64)

    Returns:
        A UniformGenerator
    """
    if dtype.is_floating_point:
        return ContinuousUniformGenerator(
            seed,
            0.0 if lower is None else lower,
            1.0 if upper is None else upper,
        )
    return DiscreteUniformGenerator(seed, lower, upper, dtype=dtype)


__all__ = [
    'NULL_SEED',
    'resolve_seed',
    'UniformGenerator',
    'ContinuousUniformGenerator',
    'DiscreteUniformGenerator',
    'uniform_generator',
]
