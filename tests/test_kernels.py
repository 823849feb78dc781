"""
Tests for filter construction and the convolution/accumulation engine.

The sliding-window box blur must agree exactly with the direct all-ones
convolution and with a per-pixel Python reference.
"""

import pytest
import torch

from pixel_augment.kernels import (
    Accumulator,
    box_blur,
    box_blur_direct,
    box_kernel,
    box_pass_schedule,
    box_pass_sizes,
    convolve_axis,
    gaussian_kernel,
)
from pixel_augment.kernels.convolution_kernel import (
    HEIGHT_AXIS,
    WIDTH_AXIS,
    box_accumulate_axis,
    clamped_taps,
    store,
)

from conftest import naive_box_blur


class TestFilterConstruction:
    """Test Gaussian and box kernels and the pass schedule."""
    
    def test_gaussian_kernel_default_length(self):
        """Default length covers +/- 3 sigma."""
        assert gaussian_kernel(1.0).shape == (7,)
        assert gaussian_kernel(2.5).shape == (17,)
    
    def test_gaussian_kernel_is_normalized_and_symmetric(self):
        kernel = gaussian_kernel(1.5)
        
        assert kernel.dtype == torch.float64
        torch.testing.assert_close(kernel.sum(), torch.tensor(1.0, dtype=torch.float64))
        torch.testing.assert_close(kernel, kernel.flip(0))
        assert kernel.argmax().item() == kernel.numel() // 2
    
    def test_gaussian_kernel_explicit_length(self):
        kernel = gaussian_kernel(2.0, 5)
        assert kernel.shape == (5,)
        torch.testing.assert_close(kernel.sum(), torch.tensor(1.0, dtype=torch.float64))
    
    @pytest.mark.parametrize("sigma,length", [(0.0, None), (-1.0, None), (1.0, 0), (1.0, -3)])
    def test_gaussian_kernel_rejects_degenerate_parameters(self, sigma, length):
        with pytest.raises(ValueError):
            gaussian_kernel(sigma, length)
    
    def test_box_kernel(self):
        kernel = box_kernel(4)
        assert kernel.dtype == torch.int64
        assert kernel.tolist() == [1, 1, 1, 1]
    
    @pytest.mark.parametrize("length", [0, -2])
    def test_box_kernel_rejects_degenerate_length(self, length):
        with pytest.raises(ValueError):
            box_kernel(length)
    
    @pytest.mark.parametrize("sigma,passes,expected", [
        (3.0, 1, [11]),
        (3.0, 3, [5, 5, 7]),
        (3.0, 5, [3, 5, 5, 5, 5]),
        (2.0, 1, [7]),
    ])
    def test_box_pass_sizes(self, sigma, passes, expected):
        assert box_pass_sizes(sigma, passes) == expected
    
    @pytest.mark.parametrize("sigma", [0.5, 1.0, 2.0, 4.5, 10.0])
    @pytest.mark.parametrize("passes", [1, 2, 3, 4, 6])
    def test_box_pass_sizes_are_odd_and_near_target_variance(self, sigma, passes):
        """Box variances (w^2 - 1) / 12 add up close to sigma^2."""
        sizes = box_pass_sizes(sigma, passes)
        
        assert len(sizes) == passes
        assert all(size % 2 == 1 and size >= 1 for size in sizes)
        variance = sum((size * size - 1) / 12.0 for size in sizes)
        # Each pass may be off by at most one width step
        assert abs(variance - sigma * sigma) <= passes * (sizes[-1] + 1) / 3.0
    
    def test_box_pass_schedule_returns_box_kernels(self):
        schedule = box_pass_schedule(3.0, 3)
        assert [k.numel() for k in schedule] == [5, 5, 7]
        assert all(k.dtype == torch.int64 and bool((k == 1).all()) for k in schedule)
    
    def test_box_pass_schedule_rejects_zero_passes(self):
        with pytest.raises(ValueError):
            box_pass_schedule(1.0, 0)


class TestAccumulator:
    """Test the running-sum accumulator."""
    
    def test_add_shift_div(self):
        acc = Accumulator((1, 2))
        acc.add(torch.tensor([[1, 2]]))
        acc.add(torch.tensor([[3, 4]]))
        assert acc.values.tolist() == [[4, 6]]
        
        acc.shift(torch.tensor([[1, 2]]), torch.tensor([[10, 10]]))
        assert acc.values.tolist() == [[13, 14]]
        
        out = acc.div(2, torch.uint8)
        assert out.dtype == torch.uint8
        assert out.tolist() == [[6, 7]]
    
    def test_sums_do_not_overflow_channel_width(self):
        """uint8 pixels are summed in int64."""
        acc = Accumulator((3,))
        for _ in range(10):
            acc.add(torch.full((3,), 255, dtype=torch.uint8))
        assert acc.values.tolist() == [2550, 2550, 2550]
        assert acc.div(10, torch.uint8).tolist() == [255, 255, 255]
    
    def test_float_accumulator(self):
        acc = Accumulator((2,), torch.float64)
        acc.add(torch.tensor([0.25, 0.5], dtype=torch.float64))
        acc.add(torch.tensor([0.5, 0.5], dtype=torch.float64))
        torch.testing.assert_close(acc.div(2, torch.float32), torch.tensor([0.375, 0.5]))


class TestConvolution:
    """Test direct convolution and the clamp-to-edge policy."""
    
    def test_clamped_taps(self):
        assert clamped_taps(5, 3, 0).tolist() == [0, 0, 1, 2, 3]
        assert clamped_taps(5, 3, 1).tolist() == [0, 1, 2, 3, 4]
        assert clamped_taps(5, 3, 2).tolist() == [1, 2, 3, 4, 4]
    
    def test_identity_kernel(self, rgb_image):
        identity = torch.tensor([0.0, 1.0, 0.0], dtype=torch.float64)
        assert torch.equal(convolve_axis(rgb_image, identity, HEIGHT_AXIS), rgb_image)
        assert torch.equal(convolve_axis(rgb_image, identity, WIDTH_AXIS), rgb_image)
    
    def test_edge_taps_repeat_border_pixels(self):
        """A left-looking tap at column 0 reads column 0 again."""
        image = torch.tensor([[[10, 20, 30]]], dtype=torch.uint8)
        shift_left = torch.tensor([1.0, 0.0, 0.0], dtype=torch.float64)
        
        out = convolve_axis(image, shift_left, WIDTH_AXIS)
        assert out.tolist() == [[[10, 10, 20]]]
    
    def test_float_results_are_truncated_for_integer_images(self):
        """Weighted sums are truncated, not rounded, into integer channels."""
        image = torch.tensor([[[0, 1, 1]]], dtype=torch.uint8)
        half = torch.tensor([0.5, 0.5], dtype=torch.float64)
        
        # Taps at i - 1 and i: [0, 0.5, 1.0]
        out = convolve_axis(image, half, WIDTH_AXIS)
        assert out.tolist() == [[[0, 0, 1]]]
    
    def test_store_clamps_to_dtype_range(self):
        values = torch.tensor([-5.0, 12.7, 300.0], dtype=torch.float64)
        assert store(values, torch.uint8).tolist() == [0, 12, 255]


class TestSlidingWindowEquivalence:
    """The sliding-window blur must equal the direct box convolution."""
    
    @pytest.mark.parametrize("shape", [(3, 7, 5), (1, 1, 9), (2, 12, 3), (1, 6, 6)])
    @pytest.mark.parametrize("length", [1, 2, 3, 4, 6, 15])
    def test_matches_direct_and_naive(self, shape, length):
        generator = torch.Generator().manual_seed(sum(shape) * 31 + length)
        image = torch.randint(0, 256, shape, generator=generator, dtype=torch.uint8)
        
        sliding = box_blur(image, length)
        direct = box_blur_direct(image, length)
        naive = naive_box_blur(image, length)
        
        assert torch.equal(sliding, direct)
        assert torch.equal(sliding, naive)
    
    @pytest.mark.parametrize("axis", [HEIGHT_AXIS, WIDTH_AXIS])
    @pytest.mark.parametrize("length", [2, 5, 20])
    def test_single_axis_matches_direct(self, axis, length, rgb_image):
        sliding = box_accumulate_axis(rgb_image, length, axis)
        direct = convolve_axis(rgb_image, torch.ones(length, dtype=torch.int64), axis, divisor=length)
        assert torch.equal(sliding, direct)
    
    def test_wide_dtype_channels(self):
        """16-bit channels are averaged without overflow."""
        generator = torch.Generator().manual_seed(0)
        image = torch.randint(0, 2**14, (2, 9, 11), generator=generator, dtype=torch.int16)
        assert torch.equal(box_blur(image, 5), box_blur_direct(image, 5))
    
    def test_float_images_agree_closely(self):
        generator = torch.Generator().manual_seed(0)
        image = torch.rand((3, 10, 8), generator=generator, dtype=torch.float64)
        torch.testing.assert_close(box_blur(image, 4), box_blur_direct(image, 4))
