"""
Tests for weighted K-means++ clustering.
"""
import numpy as np
import pytest

from huepalette.services.colors.clustering import (
    MAX_REPETITIONS,
    SeededRandom,
    apply_saturation_bias,
    cluster,
    determine_optimal_color_count,
    generate_seed,
    saturation_repetitions,
)
from huepalette.services.colors.models import total_weight


def _pixels(*groups):
    """Stack (color, count) groups into an (N, 3) uint8 array."""
    return np.array([color for color, count in groups for _ in range(count)], dtype=np.uint8)


class TestSeededRandom:
    """Deterministic generator"""

    def test_same_seed_same_sequence(self):
        a, b = SeededRandom(42), SeededRandom(42)
        assert [a.next() for _ in range(5)] == [b.next() for _ in range(5)]

    def test_values_in_unit_interval(self):
        rng = SeededRandom(7)
        assert all(0.0 <= rng.next() < 1.0 for _ in range(100))

    def test_seed_depends_on_content(self):
        red = _pixels(((255, 0, 0), 50))
        blue = _pixels(((0, 0, 255), 50))
        assert generate_seed(red) == generate_seed(red.copy())
        assert generate_seed(red) != generate_seed(blue)
        assert generate_seed(red) >= 0


class TestSaturationBias:
    """Pixel duplication by saturation"""

    def test_gray_is_not_repeated(self):
        assert saturation_repetitions(128, 128, 128) == 1

    def test_vivid_red_gets_maximum_boost(self):
        assert saturation_repetitions(255, 0, 0) == MAX_REPETITIONS

    def test_bias_preserves_order_and_grows(self):
        pixels = _pixels(((128, 128, 128), 2), ((255, 0, 0), 1))
        biased = apply_saturation_bias(pixels)
        assert biased.shape[0] == 2 + MAX_REPETITIONS
        assert (biased[:2] == [128, 128, 128]).all()
        assert (biased[2:] == [255, 0, 0]).all()

    def test_empty_input(self):
        empty = np.zeros((0, 3), dtype=np.uint8)
        assert apply_saturation_bias(empty).shape == (0, 3)


class TestCluster:
    """K-means behaviour"""

    def test_uniform_pixels_give_one_cluster(self):
        """Scenario: a uniform red set yields a single cluster of weight 1.0"""
        colors = cluster(_pixels(((255, 0, 0), 100)), 5)
        assert len(colors) == 1
        assert colors[0].weight == pytest.approx(1.0)
        assert abs(colors[0].r - 255) <= 1 and colors[0].g <= 1 and colors[0].b <= 1

    def test_two_colors_split_evenly(self):
        pixels = _pixels(((200, 50, 0), 60), ((0, 100, 200), 60))
        colors = cluster(pixels, 2)
        assert len(colors) == 2
        assert [c.weight for c in colors] == pytest.approx([0.5, 0.5])
        found = {c.rgb for c in colors}
        for expected in [(200, 50, 0), (0, 100, 200)]:
            assert any(all(abs(a - b) <= 1 for a, b in zip(rgb, expected)) for rgb in found)

    def test_weights_sum_to_one_and_sorted(self):
        pixels = _pixels(((200, 50, 0), 70), ((0, 100, 200), 20), ((30, 180, 60), 10))
        colors = cluster(pixels, 3)
        assert total_weight(colors) == pytest.approx(1.0)
        weights = [c.weight for c in colors]
        assert weights == sorted(weights, reverse=True)
        assert weights[0] == pytest.approx(0.7)

    def test_deterministic(self):
        rng = np.random.default_rng(3)
        pixels = rng.integers(0, 256, size=(800, 3), dtype=np.uint8)
        assert cluster(pixels, 6) == cluster(pixels.copy(), 6)

    def test_fewer_pixels_than_clusters(self):
        pixels = _pixels(((10, 20, 30), 1), ((200, 100, 50), 1))
        colors = cluster(pixels, 5)
        assert len(colors) == 2
        assert all(c.weight == pytest.approx(0.5) for c in colors)

    def test_empty_input(self):
        assert cluster(np.zeros((0, 3), dtype=np.uint8), 4) == []

    def test_terminates_with_single_iteration(self):
        rng = np.random.default_rng(11)
        pixels = rng.integers(0, 256, size=(500, 3), dtype=np.uint8)
        colors = cluster(pixels, 8, max_iterations=1)
        assert total_weight(colors) == pytest.approx(1.0)


class TestOptimalColorCount:
    """Variance-based palette size"""

    def test_requested_count_wins(self):
        flat = _pixels(((255, 0, 0), 10))
        assert determine_optimal_color_count(flat, flat, 7) == 7

    def test_flat_image_gets_minimum(self):
        flat = _pixels(((255, 0, 0), 50))
        assert determine_optimal_color_count(flat, flat) == 5

    def test_busy_image_stays_in_range(self):
        rng = np.random.default_rng(5)
        noisy = rng.integers(0, 256, size=(600, 3), dtype=np.uint8)
        count = determine_optimal_color_count(noisy[:300], noisy[300:])
        assert 5 <= count <= 15
