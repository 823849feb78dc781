"""
Tests for the blur operations: Gaussian, box and multi-pass box.
"""

import pytest
import torch

import pixel_augment as pa
import pixel_augment.functional as F
from pixel_augment.generator import ContinuousUniformGenerator

from conftest import naive_box_blur


def _impulse(size=41):
    img = torch.zeros(1, size, size, dtype=torch.float64)
    img[0, size // 2, size // 2] = 1.0
    return img


class TestFlatFields:
    """Blurring a constant image must not change it."""
    
    def test_box_blur_uniform_image(self):
        img = torch.full((1, 4, 4), 100, dtype=torch.uint8)
        result = pa.BoxBlur(3, seed=1)(img)
        assert torch.equal(result, img)
    
    @pytest.mark.parametrize("length", [1, 2, 5, 9])
    def test_box_blur_lengths(self, length):
        img = torch.full((3, 7, 6), 201, dtype=torch.uint8)
        assert torch.equal(F.box_blur(img, length), img)
    
    @pytest.mark.parametrize("sigma", [0.5, 1.0, 3.0])
    def test_gaussian_blur_uint8_exact(self, sigma):
        img = torch.full((3, 9, 9), 100, dtype=torch.uint8)
        assert torch.equal(pa.GaussianBlur(sigma, seed=1)(img), img)
    
    @pytest.mark.parametrize("sigma", [0.5, 1.0, 2.0])
    @pytest.mark.parametrize("value", [-5, -128, 127])
    def test_gaussian_blur_signed_exact(self, sigma, value):
        """Negative levels survive both passes without drifting toward zero."""
        img = torch.full((1, 9, 9), value, dtype=torch.int8)
        assert torch.equal(F.gaussian_blur(img, sigma), img)

    def test_gaussian_blur_float(self):
        img = torch.full((2, 8, 8), 0.4)
        torch.testing.assert_close(F.gaussian_blur(img, 2.0), img)
    
    def test_fast_gaussian_blur(self):
        img = torch.full((3, 12, 12), 37, dtype=torch.uint8)
        assert torch.equal(pa.FastGaussianBlur(2.0, seed=1)(img), img)


class TestBoxBlur:
    """Test BoxBlur against reference implementations."""
    
    @pytest.mark.parametrize("length", [2, 3, 4, 7])
    def test_matches_naive_reference(self, rgb_image, length):
        assert torch.equal(pa.BoxBlur(length, seed=1)(rgb_image), naive_box_blur(rgb_image, length))
    
    def test_kernel_tensor_length(self):
        op = pa.BoxBlur(torch.ones(5, dtype=torch.int64), seed=1)
        assert op.length == 5
    
    @pytest.mark.parametrize("length", [0, -3])
    def test_invalid_length(self, length, rgb_image):
        with pytest.raises(ValueError):
            pa.BoxBlur(length, seed=1)
        with pytest.raises(ValueError):
            F.box_blur(rgb_image, length)


class TestGaussianBlur:
    """Test the direct Gaussian blur."""
    
    def test_impulse_response_is_kernel_outer_product(self):
        kernel = pa.kernels.gaussian_kernel(1.0)
        result = pa.GaussianBlur(1.0, seed=1)(_impulse(15))
        
        expected = torch.zeros(15, 15, dtype=torch.float64)
        expected[4:11, 4:11] = torch.outer(kernel, kernel)
        torch.testing.assert_close(result[0], expected)
    
    def test_integer_results_truncate(self, rgb_image):
        """uint8 results never exceed the exact float result."""
        exact = F.gaussian_blur(rgb_image.to(torch.float64), 1.5)
        result = F.gaussian_blur(rgb_image, 1.5)
        
        assert bool((result.to(torch.float64) <= exact + 1e-3).all())
        assert bool((result.to(torch.float64) >= exact - 2.0).all())
    
    def test_explicit_length(self):
        op = pa.GaussianBlur(2.0, length=5, seed=1)
        assert op.kernel.numel() == 5
    
    def test_prebuilt_kernel_validation(self, rgb_image):
        with pytest.raises(ValueError):
            F.gaussian_blur(rgb_image, 1.0, kernel=torch.ones(2, 2))
    
    def test_invalid_sigma(self):
        with pytest.raises(ValueError):
            pa.GaussianBlur(0.0, seed=1)


class TestFastGaussianBlur:
    """Test the multi-pass box approximation."""
    
    def test_more_passes_converge_to_gaussian(self):
        """The L2 error against the true Gaussian shrinks with each schedule."""
        img = _impulse()
        target = pa.GaussianBlur(3.0, seed=1)(img)
        
        errors = [
            torch.linalg.vector_norm(pa.FastGaussianBlur(3.0, passes=n, seed=1)(img) - target).item()
            for n in (1, 3, 5)
        ]
        assert errors[0] > errors[1] > errors[2]
    
    def test_matches_sequential_box_blurs(self, rgb_image):
        result = pa.FastGaussianBlur(3.0, passes=3, seed=1)(rgb_image)
        
        expected = rgb_image
        for length in (5, 5, 7):
            expected = F.box_blur(expected, length)
        assert torch.equal(result, expected)
        assert torch.equal(F.fast_gaussian_blur(rgb_image, 3.0, 3), expected)
    
    def test_single_gate_for_all_passes(self, rgb_image):
        """Only the outer generator is drawn; pass generators stay untouched."""
        op = pa.FastGaussianBlur(2.0, passes=4, p=0.5, seed=29)
        reference = ContinuousUniformGenerator(29)
        
        for _ in range(10):
            result, fired = op.perform_with_flag(rgb_image)
            assert fired == (reference.draw() < 0.5)
            if not fired:
                assert result is rgb_image
        
        for box in op.passes:
            assert box.generator.draw() == ContinuousUniformGenerator(29).draw()
    
    def test_invalid_passes(self):
        with pytest.raises(ValueError):
            pa.FastGaussianBlur(2.0, passes=0, seed=1)
