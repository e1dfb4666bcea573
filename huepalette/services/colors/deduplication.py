"""
Near-duplicate merging for cluster outputs.

Candidates are looked up through a coarse grid over OKLab space so that each
color is only compared against retained colors in its own and the six
axis-adjacent cells. Every merge moves the absorbed color's weight onto the
retained color, so the total weight of a set never changes.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence

from loguru import logger

from huepalette.config import config
from .conversion import rgb_to_hsl, rgb_to_oklab
from .models import HslColor, OklabColor, WeightedColor, sort_by_weight

GRID_SIZE = 10
NEIGHBOR_OFFSETS = (0, -10000, -100, -1, 1, 100, 10000)

# Anisotropic distance: chroma axes count more than lightness
LIGHTNESS_WEIGHT = 1.0
CHROMA_WEIGHT = 8.0
BACKFILL_CHROMA_WEIGHT = 6.0

FINAL_CLEANUP_HSL_DELTA = 12


@dataclass(frozen=True)
class _Entry:
    color: WeightedColor
    oklab: OklabColor
    hsl: HslColor
    bucket: int


def spatial_key(oklab: OklabColor) -> int:
    """Integer grid cell for an OKLab value."""
    l_bucket = math.floor(oklab.l * GRID_SIZE)
    a_bucket = math.floor((oklab.a + 0.5) * GRID_SIZE)
    b_bucket = math.floor((oklab.b + 0.5) * GRID_SIZE)
    return l_bucket * 10000 + a_bucket * 100 + b_bucket


class SpatialHash:
    """Grid index from bucket key to the indices stored in that cell."""

    def __init__(self):
        self._cells: Dict[int, List[int]] = {}

    def insert(self, key: int, index: int) -> None:
        self._cells.setdefault(key, []).append(index)

    def neighbors(self, key: int) -> Iterator[int]:
        """Indices in the cell and its six axis-adjacent cells, in insertion order per cell."""
        for offset in NEIGHBOR_OFFSETS:
            yield from self._cells.get(key + offset, ())

    def __len__(self) -> int:
        return sum(len(cell) for cell in self._cells.values())


def _prepare(colors: Sequence[WeightedColor]) -> List[_Entry]:
    entries = []
    for color in colors:
        oklab = rgb_to_oklab(color.r, color.g, color.b)
        entries.append(_Entry(color, oklab, rgb_to_hsl(color.r, color.g, color.b), spatial_key(oklab)))
    return entries


def hue_distance(h1: float, h2: float) -> float:
    """Wrapped hue difference in degrees, at most 180."""
    diff = abs(h1 - h2) % 360
    return 360 - diff if diff > 180 else diff


def perceptual_distance(
    c1: OklabColor,
    c2: OklabColor,
    chroma_weight: float = CHROMA_WEIGHT,
) -> float:
    dl = c1.l - c2.l
    da = c1.a - c2.a
    db = c1.b - c2.b
    return math.sqrt(dl * dl * LIGHTNESS_WEIGHT + da * da * chroma_weight + db * db * chroma_weight)


def similar_in_hsl(h1: HslColor, h2: HslColor) -> bool:
    """Fast heuristic, tighter for near-neutral pairs."""
    hue_diff = hue_distance(h1.h, h2.h)
    sat_diff = abs(h1.s - h2.s)
    light_diff = abs(h1.l - h2.l)

    very_neutral = h1.s < 10 or h2.s < 10
    neutral = h1.s < 20 or h2.s < 20

    if very_neutral and light_diff < 22:
        return True
    if neutral and light_diff < 15 and sat_diff < 20:
        return True
    return hue_diff < 32 and sat_diff < 25 and light_diff < 20


def adaptive_threshold(h1: HslColor, h2: HslColor, threshold: float) -> float:
    if h1.s < 10 or h2.s < 10:
        return threshold * 0.7
    if h1.s < 20 or h2.s < 20:
        return threshold * 0.85
    return threshold


def is_near_duplicate(c1: WeightedColor, c2: WeightedColor, threshold: float) -> bool:
    """Merge criterion shared by the stage dedup and the cross-segment pass."""
    hsl1 = rgb_to_hsl(c1.r, c1.g, c1.b)
    hsl2 = rgb_to_hsl(c2.r, c2.g, c2.b)
    if similar_in_hsl(hsl1, hsl2):
        return True
    distance = perceptual_distance(rgb_to_oklab(c1.r, c1.g, c1.b), rgb_to_oklab(c2.r, c2.g, c2.b))
    return distance < adaptive_threshold(hsl1, hsl2, threshold)


def _merge(entries: List[_Entry], matches) -> List[WeightedColor]:
    """Greedy pass: the first entry is always retained, later ones fold into a retained match."""
    if not entries:
        return []

    index = SpatialHash()
    for i, entry in enumerate(entries):
        index.insert(entry.bucket, i)

    retained = {0}
    weights = {0: entries[0].color.weight}

    for i in range(1, len(entries)):
        entry = entries[i]
        target: Optional[int] = None

        for candidate in index.neighbors(entry.bucket):
            if candidate == i or candidate not in retained:
                continue
            if matches(entry, entries[candidate]):
                target = candidate
                break

        if target is None:
            retained.add(i)
            weights[i] = entry.color.weight
        else:
            weights[target] += entry.color.weight

    merged = [entries[i].color.with_weight(weights[i]) for i in sorted(retained)]
    return sort_by_weight(merged)


def deduplicate(
    colors: Sequence[WeightedColor],
    threshold: Optional[float] = None,
) -> List[WeightedColor]:
    """
    Weight-conserving merge of near-identical colors.

    Args:
        colors: Weight-sorted cluster output
        threshold: Perceptual distance below which two colors merge

    Returns:
        Retained colors with accumulated weights, sorted by weight descending
    """
    threshold = config.DEDUP_THRESHOLD if threshold is None else threshold
    if len(colors) <= 1:
        return list(colors)

    def matches(entry: _Entry, kept: _Entry) -> bool:
        if similar_in_hsl(entry.hsl, kept.hsl):
            return True
        distance = perceptual_distance(entry.oklab, kept.oklab)
        return distance < adaptive_threshold(entry.hsl, kept.hsl, threshold)

    result = _merge(_prepare(colors), matches)
    logger.debug(f"Deduplicated {len(colors)} -> {len(result)} colors (threshold={threshold})")
    return result


def final_cleanup(
    colors: Sequence[WeightedColor],
    threshold: Optional[float] = None,
) -> List[WeightedColor]:
    """Stricter second pass with absolute HSL deltas and a fixed perceptual threshold."""
    threshold = config.FINAL_CLEANUP_THRESHOLD if threshold is None else threshold
    if len(colors) <= 1:
        return list(colors)

    def matches(entry: _Entry, kept: _Entry) -> bool:
        if perceptual_distance(entry.oklab, kept.oklab) < threshold:
            return True
        return (
            hue_distance(entry.hsl.h, kept.hsl.h) < FINAL_CLEANUP_HSL_DELTA
            and abs(entry.hsl.s - kept.hsl.s) < FINAL_CLEANUP_HSL_DELTA
            and abs(entry.hsl.l - kept.hsl.l) < FINAL_CLEANUP_HSL_DELTA
        )

    return _merge(_prepare(colors), matches)


def ensure_minimum_colors(
    colors: Sequence[WeightedColor],
    pool: Sequence[WeightedColor],
    target_count: int,
    minimum: Optional[int] = None,
    distance: Optional[float] = None,
) -> List[WeightedColor]:
    """
    Pad a too-small result from the colors that were sliced away.

    Only pool entries past ``target_count`` are considered, and only those at
    least ``distance`` away from every color already present.
    """
    minimum = config.MIN_COLORS_PER_SEGMENT if minimum is None else minimum
    distance = config.BACKFILL_DISTANCE if distance is None else distance

    needed = min(minimum, target_count) - len(colors)
    if needed <= 0:
        return list(colors)

    existing = [rgb_to_oklab(c.r, c.g, c.b) for c in colors]
    additions = []
    for candidate in pool[target_count:target_count + needed + 2]:
        oklab = rgb_to_oklab(candidate.r, candidate.g, candidate.b)
        too_close = any(
            perceptual_distance(oklab, other, BACKFILL_CHROMA_WEIGHT) < distance
            for other in existing
        )
        if not too_close:
            additions.append(candidate)

    if additions:
        logger.debug(f"Backfilled {min(len(additions), needed)} colors from pool")
    return list(colors) + additions[:needed]
