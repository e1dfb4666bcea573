"""
Tests for pixel sampling and the foreground/background split.
"""
import numpy as np
import pytest

from conftest import halves_image, left_half_mask, solid_image
from huepalette.config import config
from huepalette.services.colors.models import SampledPixels
from huepalette.services.colors.sampling import (
    brightness_filter,
    generate_sampling_indices,
    sample_at_scale,
    sample_pixels,
    split_by_luminance,
    split_pixels,
)


class TestSamplingIndices:
    """Golden-ratio index generation"""

    def test_small_image_takes_every_pixel(self):
        indices = generate_sampling_indices(100, 5000)
        np.testing.assert_array_equal(indices, np.arange(100))

    def test_large_image_respects_budget(self):
        indices = generate_sampling_indices(1_000_000, 5000)
        assert len(indices) == 5000
        assert indices.min() >= 0
        assert indices.max() < 1_000_000

    def test_indices_are_deterministic(self):
        np.testing.assert_array_equal(
            generate_sampling_indices(250_000, 3000),
            generate_sampling_indices(250_000, 3000),
        )

    def test_empty_inputs(self):
        assert len(generate_sampling_indices(0, 100)) == 0
        assert len(generate_sampling_indices(100, 0)) == 0


class TestBrightnessFilter:
    """Open brightness band"""

    def test_extremes_are_dropped(self):
        pixels = np.array([[0, 0, 0], [255, 255, 255], [128, 128, 128], [10, 10, 10]], dtype=np.uint8)
        keep = brightness_filter(pixels)
        assert keep.tolist() == [False, False, True, False]

    def test_band_is_exclusive(self):
        """A pixel exactly at the lower bound is excluded"""
        pixels = np.array([[15, 15, 15], [16, 16, 16]], dtype=np.uint8)
        assert brightness_filter(pixels, 15, 240).tolist() == [False, True]


class TestSamplePixels:
    """Sampling with and without a mask"""

    def test_no_mask_marks_everything_foreground(self):
        sampled = sample_pixels(solid_image((200, 50, 0)))
        assert len(sampled) == 100
        assert sampled.is_foreground.all()

    def test_mask_is_read_per_pixel(self):
        image = halves_image((200, 50, 0), (0, 100, 200))
        sampled = sample_pixels(image, left_half_mask())

        foreground = sampled.pixels[sampled.is_foreground]
        background = sampled.pixels[~sampled.is_foreground]
        assert len(foreground) == 200
        assert (foreground == [200, 50, 0]).all()
        assert (background == [0, 100, 200]).all()

    def test_mask_of_different_size_is_resized(self):
        image = halves_image((200, 50, 0), (0, 100, 200), width=40, height=40)
        sampled = sample_at_scale(image, left_half_mask(20, 20), 5000)
        foreground = sampled.pixels[sampled.is_foreground]
        assert (foreground == [200, 50, 0]).all()

    def test_dark_image_yields_nothing(self):
        sampled = sample_pixels(solid_image((5, 5, 5)))
        assert len(sampled) == 0

    def test_multi_scale_reads_mask_at_every_scale(self, monkeypatch):
        """Above the threshold, all three scales contribute and keep the mask"""
        monkeypatch.setattr(config, "MULTI_SCALE_THRESHOLD", 100)
        image = halves_image((200, 50, 0), (0, 100, 200), width=40, height=40)

        sampled = sample_pixels(image, left_half_mask(40, 40), max_samples=5000)

        # 1600 + 400 + 100 pixels at scales 1.0, 0.5 and 0.25
        assert len(sampled) == 2100
        foreground = sampled.pixels[sampled.is_foreground]
        assert len(foreground) == 1050
        assert (foreground == [200, 50, 0]).all()


class TestSplit:
    """Mask split and luminance fallback"""

    def test_luminance_split_puts_bright_half_in_foreground(self):
        pixels = np.array([[10, 10, 200]] * 5 + [[250, 200, 20]] * 5, dtype=np.uint8)
        foreground, background = split_by_luminance(pixels, 0.5)
        assert (foreground == [250, 200, 20]).all()
        assert (background == [10, 10, 200]).all()

    def test_mask_split_is_kept(self):
        sampled = SampledPixels(
            pixels=np.array([[200, 50, 0]] * 3 + [[0, 100, 200]] * 7, dtype=np.uint8),
            is_foreground=np.array([True] * 3 + [False] * 7),
        )
        split = split_pixels(sampled)
        assert not split.used_luminance_split
        assert split.foreground.shape[0] == 3
        assert split.foreground_ratio == pytest.approx(0.3)

    def test_empty_side_falls_back_to_luminance(self):
        sampled = SampledPixels(
            pixels=np.array([[200, 50, 0]] * 5 + [[0, 100, 200]] * 5, dtype=np.uint8),
            is_foreground=np.ones(10, dtype=bool),
        )
        split = split_pixels(sampled)
        assert split.used_luminance_split
        assert (split.foreground == [200, 50, 0]).all()
        assert split.total == 10

    def test_tiny_foreground_falls_back(self):
        flags = np.zeros(100, dtype=bool)
        flags[0] = True
        sampled = SampledPixels(pixels=np.full((100, 3), 120, dtype=np.uint8), is_foreground=flags)
        assert split_pixels(sampled, min_foreground_ratio=0.05).used_luminance_split
