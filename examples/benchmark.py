"""
Benchmark sliding-window box blur against direct box convolution.

The sliding-window blur keeps one running sum per scan line, so its cost
should stay flat as the box grows, while the direct convolution grows
linearly with the box length.

Usage:
    python examples/benchmark.py
    python examples/benchmark.py --size 512 --lengths 3,15,63
"""

import argparse

import torch
from torch.utils.benchmark import Timer

from pixel_augment.kernels import box_blur, box_blur_direct


def benchmark_box_blur(size=256, lengths=(3, 7, 15, 31, 63)):
    """
    Time both box blur implementations for each length.

    Args:
        size: Square image size
        lengths: Box lengths to measure

    Returns:
        list of (length, sliding_ms, direct_ms)
    """
    generator = torch.Generator().manual_seed(0)
    img = torch.randint(0, 256, (3, size, size), generator=generator, dtype=torch.uint8)

    results = []
    for length in lengths:
        sliding = Timer(
            stmt="box_blur(img, length)",
            globals={"box_blur": box_blur, "img": img, "length": length},
        ).blocked_autorange(min_run_time=0.5)
        direct = Timer(
            stmt="box_blur_direct(img, length)",
            globals={"box_blur_direct": box_blur_direct, "img": img, "length": length},
        ).blocked_autorange(min_run_time=0.5)
        results.append((length, sliding.median * 1e3, direct.median * 1e3))
    return results


def main():
    parser = argparse.ArgumentParser(description="Sliding-window vs direct box blur benchmark")
    parser.add_argument('--size', type=int, default=256, help='Square image size (default: 256)')
    parser.add_argument(
        '--lengths',
        type=str,
        default='3,7,15,31,63',
        help='Comma-separated box lengths (default: 3,7,15,31,63)',
    )
    args = parser.parse_args()
    lengths = tuple(int(x) for x in args.lengths.split(','))

    print(f"| Box length | Sliding window (ms) | Direct (ms) | Speedup |")
    print(f"|-----------:|--------------------:|------------:|--------:|")
    for length, sliding_ms, direct_ms in benchmark_box_blur(args.size, lengths):
        print(f"| {length:>10} | {sliding_ms:>19.2f} | {direct_ms:>11.2f} | {direct_ms / sliding_ms:>6.2f}x |")


if __name__ == "__main__":
    main()
