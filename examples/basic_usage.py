"""
Basic usage examples for Pixel-Augment.

This script demonstrates the main features of the library with simple examples.
Everything runs on CPU tensors.
"""

import torch
import pixel_augment as pa
import pixel_augment.functional as F


def make_image(height=64, width=64):
    """Deterministic uint8 RGB test image with a diagonal gradient."""
    ys = torch.arange(height).unsqueeze(1)
    xs = torch.arange(width).unsqueeze(0)
    gradient = ((xs + ys) * 255 // (height + width - 2)).to(torch.uint8)
    return torch.stack([gradient, gradient.flip(-1), 255 - gradient])


def example_1_probability_gate():
    """Example 1: Gated operation and the skip contract."""
    print("\n" + "="*60)
    print("Example 1: Probability Gate")
    print("="*60)
    
    img = make_image()
    flip = pa.Flip(pa.FlipType.HORIZONTAL, p=0.5, seed=42)
    
    fired_count = 0
    for _ in range(10):
        out, fired = flip.perform_with_flag(img)
        if not fired:
            assert out is img  # skipped calls return the input itself
        fired_count += fired
    print(f"Fired {fired_count} out of 10 calls (p=0.5)")
    print("✓ Gate works!")


def example_2_geometric():
    """Example 2: Geometric operations."""
    print("\n" + "="*60)
    print("Example 2: Geometric Operations")
    print("="*60)
    
    img = make_image()
    print(f"Input shape: {tuple(img.shape)}")
    
    operations = [
        pa.Resize((32, 32), (96, 96), seed=1),
        pa.Crop((48, 48), center=False, seed=2),
        pa.Rotate((-30, 30), seed=3),
        pa.Zoom((1.0, 1.5), seed=4),
        pa.Invert(seed=5),
        pa.RandomErase((8, 8), (16, 16), seed=6),
    ]
    for op in operations:
        out = op(img)
        print(f"{op!r:<80} -> {tuple(out.shape)}")
    print("✓ Geometric operations applied successfully!")


def example_3_blur():
    """Example 3: Gaussian vs fast (box pass) Gaussian blur."""
    print("\n" + "="*60)
    print("Example 3: Blur Operations")
    print("="*60)
    
    img = make_image().to(torch.float64) / 255.0
    exact = pa.GaussianBlur(sigma=3.0)(img)
    
    for passes in (1, 2, 3, 4, 5):
        approx = pa.FastGaussianBlur(sigma=3.0, passes=passes)(img)
        error = (approx - exact).abs().max().item()
        print(f"passes={passes}: box lengths={pa.kernels.box_pass_sizes(3.0, passes)}, max error={error:.5f}")
    print("✓ Error shrinks as passes grow!")


def example_4_batches_and_clones():
    """Example 4: Sequences of images and per-worker clones."""
    print("\n" + "="*60)
    print("Example 4: Batches and Clones")
    print("="*60)
    
    images = [make_image(), make_image(32, 48), make_image(40, 40)]
    blur = pa.BoxBlur(5, p=0.5, seed=7)
    results = blur.perform(images)
    print(f"Input shapes:  {[tuple(i.shape) for i in images]}")
    print(f"Output shapes: {[tuple(r.shape) for r in results]}")
    
    # One clone per worker keeps every worker's draws independent and reproducible
    workers = [blur.clone(seed=100 + i) for i in range(4)]
    print(f"Worker seeds: {[w.seed for w in workers]}")
    print("✓ Sequences and clones work!")


def example_5_functional():
    """Example 5: Functional API (no randomness)."""
    print("\n" + "="*60)
    print("Example 5: Functional API")
    print("="*60)
    
    img = make_image()
    cropped = F.center_crop(img, (32, 32))
    rotated = F.rotate(img, 90.0)
    blurred = F.box_blur(img, 7)
    print(f"center_crop: {tuple(cropped.shape)}, rotate: {tuple(rotated.shape)}, box_blur: {tuple(blurred.shape)}")
    print("✓ Functional API works!")


def main():
    """Run all examples."""
    print("\n" + "="*60)
    print("Pixel-Augment Examples")
    print("="*60)
    
    example_1_probability_gate()
    example_2_geometric()
    example_3_blur()
    example_4_batches_and_clones()
    example_5_functional()
    
    print("\n" + "="*60)
    print("All examples completed successfully!")
    print("="*60)


if __name__ == "__main__":
    main()
