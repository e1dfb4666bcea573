"""
Palette clustering stage.

Turns the foreground/background pixel split into a weighted candidate list:
budget the palette between segments, over-cluster each segment, then
dedup, diversity, slice, final cleanup and backfill. Both segments run the
same path. A last pass merges near-duplicates across segments.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from huepalette.config import config
from huepalette.errors import ClusteringError
from .clustering import apply_saturation_bias, cluster, determine_optimal_color_count
from .conversion import round_half_up
from .deduplication import deduplicate, ensure_minimum_colors, final_cleanup, is_near_duplicate
from .diversity import enforce_diversity
from .models import PixelSplit, WeightedColor

OVER_CLUSTER_FACTOR = 4
MIN_FOREGROUND_SHARE = 0.3
MIN_SEGMENT_COLORS = 2


@dataclass(frozen=True)
class PaletteCandidate:
    """A color ready for formatting; ``color.weight`` is its share of all sampled pixels."""
    color: WeightedColor
    segment: str  # "foreground" or "background"


def color_budget(target: int, foreground_ratio: float) -> Tuple[int, int]:
    """Split the palette size between foreground and background."""
    foreground = max(MIN_SEGMENT_COLORS, round_half_up(target * max(MIN_FOREGROUND_SHARE, foreground_ratio)))
    background = max(MIN_SEGMENT_COLORS, target - foreground)
    return foreground, background


def merge_across_segments(
    foreground: Sequence[PaletteCandidate],
    background: Sequence[PaletteCandidate],
    threshold: Optional[float] = None,
) -> List[PaletteCandidate]:
    """
    Fold background colors into matching foreground colors.

    Weights are summed, so the merged list carries the same total share.

    Returns:
        Candidates sorted by weight descending (foreground first on ties)
    """
    threshold = config.DEDUP_THRESHOLD if threshold is None else threshold
    merged = list(foreground)
    kept_background = []

    for candidate in background:
        target = next(
            (i for i, kept in enumerate(merged) if is_near_duplicate(candidate.color, kept.color, threshold)),
            None,
        )
        if target is None:
            kept_background.append(candidate)
        else:
            kept = merged[target]
            merged[target] = PaletteCandidate(
                color=kept.color.with_weight(kept.color.weight + candidate.color.weight),
                segment=kept.segment,
            )

    combined = merged + kept_background
    return sorted(combined, key=lambda c: -c.color.weight)


class PaletteClusteringStage:
    """Per-segment clustering and refinement."""

    def __init__(
        self,
        dedup_threshold: Optional[float] = None,
        min_hue_difference: Optional[float] = None,
        over_cluster_factor: int = OVER_CLUSTER_FACTOR,
    ):
        self.dedup_threshold = config.DEDUP_THRESHOLD if dedup_threshold is None else dedup_threshold
        self.min_hue_difference = (
            config.MIN_HUE_DIFFERENCE if min_hue_difference is None else min_hue_difference
        )
        self.over_cluster_factor = over_cluster_factor

    def cluster_segment(self, pixels: np.ndarray, target_count: int, segment: str) -> List[WeightedColor]:
        """
        Refined colors for one segment.

        Args:
            pixels: (N, 3) uint8 pixels of the segment
            target_count: Colors wanted from this segment
            segment: Segment name, for logging

        Returns:
            Colors with weights relative to the segment (sum <= 1)

        Raises:
            ClusteringError: The segment has no pixels
        """
        if pixels.shape[0] == 0:
            raise ClusteringError(f"No {segment} pixels to cluster", {"segment": segment})

        biased = apply_saturation_bias(pixels)
        raw = cluster(biased, target_count * self.over_cluster_factor)
        deduped = deduplicate(raw, self.dedup_threshold)
        diverse = enforce_diversity(deduped, self.min_hue_difference)
        cleaned = final_cleanup(diverse[:target_count])
        result = ensure_minimum_colors(cleaned, diverse, target_count)

        logger.debug(
            f"{segment}: {len(raw)} candidates -> {len(deduped)} deduped -> "
            f"{len(diverse)} diverse -> {len(result)} final"
        )
        return result

    def _segment_candidates(self, pixels: np.ndarray, target_count: int, segment: str, share: float) -> List[PaletteCandidate]:
        try:
            colors = self.cluster_segment(pixels, target_count, segment)
        except ClusteringError as e:
            logger.warning(f"Clustering skipped: {e.message}")
            return []
        return [PaletteCandidate(color=c.with_weight(c.weight * share), segment=segment) for c in colors]

    def run(
        self,
        split: PixelSplit,
        num_colors: Optional[int] = None,
        include_background: bool = True,
    ) -> List[PaletteCandidate]:
        """
        Cluster both segments and merge them into one weighted list.

        Args:
            split: Foreground/background pixels
            num_colors: Requested palette size; None picks one from pixel variance
            include_background: When False background colors are dropped

        Returns:
            Candidates sorted by global pixel share, descending
        """
        total = split.total
        if total == 0:
            logger.warning("No pixels survived sampling, palette is empty")
            return []

        target = determine_optimal_color_count(split.foreground, split.background, num_colors)
        foreground_ratio = split.foreground_ratio
        fg_count, bg_count = color_budget(target, foreground_ratio)
        logger.info(
            f"Target color count: {target} ({'requested' if num_colors else 'auto-detected'}), "
            f"distributing {fg_count} foreground + {bg_count} background"
        )

        foreground = self._segment_candidates(split.foreground, fg_count, "foreground", foreground_ratio)
        if not include_background:
            return sorted(foreground, key=lambda c: -c.color.weight)

        background = self._segment_candidates(
            split.background, bg_count, "background", split.background.shape[0] / total
        )
        return merge_across_segments(foreground, background, self.dedup_threshold)
