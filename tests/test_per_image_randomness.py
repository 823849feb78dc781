"""
Tests for per-image randomness.

Every image of a sequence gets its own gate and parameter draws, taken in
order from the operation's generator. Independent clones let workers run in
parallel with reproducible results.
"""

from concurrent.futures import ThreadPoolExecutor

import torch

import pixel_augment as pa
from pixel_augment.generator import ContinuousUniformGenerator


class TestPerImageGates:
    """Test gate decisions across a sequence."""
    
    def test_flags_follow_generator_sequence(self, rng):
        images = [torch.randint(0, 256, (3, 6, 6), generator=rng, dtype=torch.uint8) for _ in range(32)]
        op = pa.Flip(pa.FlipType.HORIZONTAL, p=0.5, seed=101)
        reference = ContinuousUniformGenerator(101)
        
        results = op(images)
        
        fired_count = 0
        for image, result in zip(images, results):
            if reference.draw() < 0.5:
                fired_count += 1
                assert torch.equal(result, image.flip(-1))
            else:
                assert result is image
        # Both outcomes occur over 32 images
        assert 0 < fired_count < 32
    
    def test_identical_images_get_different_parameters(self, rgb_image):
        results = pa.Rotate((-90, 90), seed=5)([rgb_image] * 4)
        assert any(not torch.equal(results[0], other) for other in results[1:])
    
    def test_draw_order_is_gate_then_parameters(self, rgb_image):
        """Per image: gate draw, then the crop's left and top draws."""
        op = pa.Crop(4, center=False, p=0.5, seed=55)
        reference = ContinuousUniformGenerator(55)
        
        for result in op([rgb_image] * 10):
            if reference.draw() < 0.5:
                left = min(int(reference.draw() * 29), 28)
                top = min(int(reference.draw() * 21), 20)
                assert torch.equal(result, rgb_image[:, top:top + 4, left:left + 4])
            else:
                assert result is rgb_image


class TestParallelClones:
    """Clones are independent and reproducible across threads."""
    
    def test_thread_pool_matches_sequential(self, rng):
        chunks = [
            [torch.randint(0, 256, (3, 16, 16), generator=rng, dtype=torch.uint8) for _ in range(5)]
            for _ in range(4)
        ]
        op = pa.RandomErase(2, 6, p=0.7, seed=3)
        
        def run(worker):
            return op.clone(seed=1000 + worker)(chunks[worker])
        
        with ThreadPoolExecutor(max_workers=4) as pool:
            parallel = list(pool.map(run, range(4)))
        sequential = [run(worker) for worker in range(4)]
        
        for a_chunk, b_chunk in zip(parallel, sequential):
            for a, b in zip(a_chunk, b_chunk):
                assert torch.equal(a, b)
