"""
Tests for near-duplicate merging and backfill.
"""
import pytest

from huepalette.services.colors.deduplication import (
    SpatialHash,
    deduplicate,
    ensure_minimum_colors,
    final_cleanup,
    hue_distance,
    is_near_duplicate,
    spatial_key,
)
from huepalette.services.colors.models import OklabColor, WeightedColor, total_weight


def wc(r, g, b, weight):
    return WeightedColor(r=r, g=g, b=b, weight=weight)


class TestSpatialHash:
    """Grid index over OKLab"""

    def test_spatial_key(self):
        assert spatial_key(OklabColor(l=0.5, a=0.0, b=0.0)) == 50505
        assert spatial_key(OklabColor(l=0.0, a=-0.5, b=-0.5)) == 0

    def test_neighbors_are_axis_adjacent_only(self):
        index = SpatialHash()
        index.insert(50505, 0)
        index.insert(50506, 1)  # +b
        index.insert(50605, 2)  # +a
        index.insert(50606, 3)  # diagonal
        assert sorted(index.neighbors(50505)) == [0, 1, 2]
        assert len(index) == 4

    def test_hue_distance_wraps(self):
        assert hue_distance(350, 10) == 20
        assert hue_distance(0, 180) == 180
        assert hue_distance(90, 90) == 0


class TestDeduplicate:
    """Weight-conserving merge"""

    def test_close_reds_merge_into_first(self):
        """Scenario: two reds a few degrees apart collapse into one color"""
        merged = deduplicate([wc(200, 30, 30, 0.6), wc(210, 40, 20, 0.4)])
        assert len(merged) == 1
        assert merged[0].rgb == (200, 30, 30)
        assert merged[0].weight == pytest.approx(1.0)

    def test_distinct_colors_are_kept(self):
        merged = deduplicate([wc(255, 0, 0, 0.5), wc(0, 0, 255, 0.5)])
        assert {c.rgb for c in merged} == {(255, 0, 0), (0, 0, 255)}

    def test_weight_is_conserved(self):
        colors = [
            wc(200, 30, 30, 0.3),
            wc(205, 35, 28, 0.2),
            wc(30, 160, 60, 0.2),
            wc(40, 60, 210, 0.15),
            wc(128, 128, 128, 0.1),
            wc(135, 135, 135, 0.05),
        ]
        merged = deduplicate(colors)
        assert total_weight(merged) == pytest.approx(1.0)
        assert len(merged) < len(colors)
        weights = [c.weight for c in merged]
        assert weights == sorted(weights, reverse=True)

    def test_single_and_empty(self):
        assert deduplicate([]) == []
        only = [wc(1, 2, 3, 1.0)]
        assert deduplicate(only) == only

    def test_is_near_duplicate(self):
        assert is_near_duplicate(wc(200, 30, 30, 1), wc(210, 40, 20, 1), 0.35)
        assert not is_near_duplicate(wc(200, 50, 0, 1), wc(0, 100, 200, 1), 0.35)


class TestFinalCleanup:
    """Stricter second pass"""

    def test_merges_and_conserves(self):
        cleaned = final_cleanup([wc(200, 30, 30, 0.7), wc(210, 40, 20, 0.2), wc(0, 100, 200, 0.1)])
        assert len(cleaned) == 2
        assert total_weight(cleaned) == pytest.approx(1.0)
        assert cleaned[0].weight == pytest.approx(0.9)


class TestEnsureMinimumColors:
    """Backfill from the sliced-away pool"""

    def test_backfills_distant_color(self):
        red = wc(255, 0, 0, 0.8)
        pool = [red, wc(250, 10, 10, 0.1), wc(0, 0, 255, 0.1)]
        result = ensure_minimum_colors([red], pool, target_count=2)
        assert [c.rgb for c in result] == [(255, 0, 0), (0, 0, 255)]

    def test_skips_color_too_close(self):
        red = wc(255, 0, 0, 0.8)
        pool = [red, wc(0, 0, 255, 0.1), wc(250, 10, 10, 0.1)]
        result = ensure_minimum_colors([red], pool, target_count=2)
        assert [c.rgb for c in result] == [(255, 0, 0)]

    def test_enough_colors_untouched(self):
        colors = [wc(255, 0, 0, 0.5), wc(0, 0, 255, 0.5)]
        assert ensure_minimum_colors(colors, colors, target_count=2) == colors
