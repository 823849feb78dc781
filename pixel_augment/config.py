"""
Global configuration for Pixel-Augment.

Flags are read once from the environment at import time and can be flipped
at runtime with the functions below.
"""

import os


# Tracing configuration
# Set to True to print every fired operation together with the parameters it drew
# Set to False (default) to keep augmentation silent
ENABLE_TRACE = os.getenv('PIXEL_AUGMENT_TRACE', '0') == '1'


def enable_trace():
    """
    Enable tracing of fired operations.
    
    When enabled, every operation whose gate fires reports its name and the
    random parameters it drew on stderr. Operations created with seed 0 also
    report the time-derived seed they resolved to, so a run can be replayed.
    
    Example:
        ```python
        import pixel_augment as pa
        pa.enable_trace()
        # Now every fired operation is reported
        ```
    """
    global ENABLE_TRACE
    ENABLE_TRACE = True
    print("[Pixel-Augment] Tracing enabled. Fired operations will be reported on stderr.")


def disable_trace():
    """
    Disable tracing of fired operations.
    
    Example:
        ```python
        import pixel_augment as pa
        pa.disable_trace()
        ```
    """
    global ENABLE_TRACE
    ENABLE_TRACE = False
    print("[Pixel-Augment] Tracing disabled.")


def is_trace_enabled() -> bool:
    """
    Check if tracing is currently enabled.
    
    Returns:
        bool: True if tracing is enabled, False otherwise
    """
    return ENABLE_TRACE


__all__ = [
    'ENABLE_TRACE',
    'enable_trace',
    'disable_trace',
    'is_trace_enabled',
]
