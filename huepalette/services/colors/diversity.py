"""
Hue diversity filter.

Greedy and order-preserving: the highest-weight occurrence of a look wins,
and a rejected color's weight is folded into the kept color that blocked it.
"""

from typing import List, Optional, Sequence

from loguru import logger

from huepalette.config import config
from .conversion import rgb_to_hsl
from .deduplication import hue_distance
from .models import HslColor, WeightedColor

NEUTRAL_SATURATION = 15
NEUTRAL_LIGHTNESS_GAP = 25


def is_neutral(hsl: HslColor) -> bool:
    return hsl.s < NEUTRAL_SATURATION


def chromatic_conflict(a: HslColor, b: HslColor, min_hue_difference: float) -> bool:
    """True when two chromatic colors read as the same hue under any of the three rules."""
    hue_diff = hue_distance(a.h, b.h)
    sat_diff = abs(a.s - b.s)
    light_diff = abs(a.l - b.l)

    if hue_diff < min_hue_difference and sat_diff < 20:
        return True
    if hue_diff < 18 and sat_diff < 25 and light_diff < 22:
        return True
    return hue_diff < 25 and sat_diff < 15


def enforce_diversity(
    colors: Sequence[WeightedColor],
    min_hue_difference: Optional[float] = None,
) -> List[WeightedColor]:
    """
    Keep colors that are visibly distinct from everything kept before them.

    Neutrals are compared only against kept neutrals (by lightness) and
    chromatic colors only against kept chromatic colors.

    Args:
        colors: Weight-sorted colors
        min_hue_difference: Hue gap in degrees (defaults to config.MIN_HUE_DIFFERENCE)

    Returns:
        Surviving colors in input order
    """
    min_hue_difference = (
        config.MIN_HUE_DIFFERENCE if min_hue_difference is None else min_hue_difference
    )
    if not colors:
        return []

    kept = [colors[0]]
    kept_hsl = [rgb_to_hsl(colors[0].r, colors[0].g, colors[0].b)]

    for color in colors[1:]:
        hsl = rgb_to_hsl(color.r, color.g, color.b)
        blocker = None

        for index, existing in enumerate(kept_hsl):
            if is_neutral(hsl):
                if is_neutral(existing) and abs(hsl.l - existing.l) < NEUTRAL_LIGHTNESS_GAP:
                    blocker = index
                    break
            elif not is_neutral(existing) and chromatic_conflict(hsl, existing, min_hue_difference):
                blocker = index
                break

        if blocker is None:
            kept.append(color)
            kept_hsl.append(hsl)
        else:
            kept[blocker] = kept[blocker].with_weight(kept[blocker].weight + color.weight)

    logger.debug(f"Diversity filter kept {len(kept)}/{len(colors)} colors")
    return kept
