"""
Utility functions for Pixel-Augment.
"""

import sys
from typing import Sequence, Tuple, Union

from . import config


MESSAGE_PREFIX = "[Pixel-Augment]"


def log(message: str) -> None:
    """Print a prefixed library message on stderr."""
    print(f"{MESSAGE_PREFIX} {message}", file=sys.stderr)


def trace(message: str) -> None:
    """
    Report a message only when tracing is enabled.
    
    The flag is looked up on every call (not imported by value) so that
    `enable_trace()` takes effect for operations that already exist.
    
    Args:
        message: Text to report
    """
    if config.ENABLE_TRACE:
        log(message)


def parse_pair(value: Union[int, Sequence[int]], name: str) -> Tuple[int, int]:
    """
    Normalize an int or a 1/2-element sequence into a (first, second) pair.
    
    Args:
        value: Single int (used for both entries) or a sequence of one or two ints
        name: Parameter name for error messages
        
    Returns:
        Tuple of two values
        
    Raises:
        ValueError: If the sequence does not have one or two elements
    """
    if isinstance(value, int):
        return (value, value)
    if isinstance(value, (tuple, list)) and len(value) == 1:
        return (value[0], value[0])
    pair = tuple(value)
    if len(pair) != 2:
        raise ValueError(f"{name} must have 2 elements, got {len(pair)}")
    return pair


__all__ = [
    'log',
    'trace',
    'parse_pair',
]
