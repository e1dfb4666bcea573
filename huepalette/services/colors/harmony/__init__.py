"""
huepalette Harmony Engine

Generates complementary, analogous, triadic and split-complementary companions
for a palette color by rotating its OKLCH hue while holding lightness and
chroma fixed.
"""

from dataclasses import dataclass
from typing import List, Tuple

from ..conversion import oklch_to_rgb, rgb_to_hex
from ..models import OklchColor
from huepalette.schemas import ColorHarmony, HarmonyColor
from .tints import format_oklch, generate_shades, generate_tints, generate_tints_and_shades


@dataclass(frozen=True)
class HarmonyRule:
    """A hue rotation and the label given to its result."""
    category: str  # "complementary", "analogous", "triadic", "split_complementary"
    degrees: float
    label: str


HARMONY_RULES: Tuple[HarmonyRule, ...] = (
    HarmonyRule("complementary", 180, "Complementary"),
    HarmonyRule("analogous", 30, "Analogous 1"),
    HarmonyRule("analogous", -30, "Analogous 2"),
    HarmonyRule("triadic", 120, "Triadic 1"),
    HarmonyRule("triadic", 240, "Triadic 2"),
    HarmonyRule("split_complementary", 150, "Split 1"),
    HarmonyRule("split_complementary", 210, "Split 2"),
)


def rotate_hue(h: float, degrees: float) -> float:
    """
    Rotate hue by specified degrees.

    Args:
        h: Original hue in degrees [0, 360)
        degrees: Rotation in degrees (can be negative)

    Returns:
        Rotated hue wrapped into [0, 360)
    """
    return (h + degrees) % 360


def make_harmony_color(oklch: OklchColor, hue: float, name: str) -> HarmonyColor:
    rotated = OklchColor(l=oklch.l, c=oklch.c, h=hue)
    return HarmonyColor(
        hex=rgb_to_hex(*oklch_to_rgb(rotated)),
        oklch=format_oklch(rotated),
        name=name,
    )


def generate_harmonies(oklch: OklchColor) -> ColorHarmony:
    """
    Build all harmony groups for a base color.

    Args:
        oklch: Base color

    Returns:
        ColorHarmony with one complementary and two of each other group
    """
    groups = {"complementary": [], "analogous": [], "triadic": [], "split_complementary": []}
    for rule in HARMONY_RULES:
        groups[rule.category].append(
            make_harmony_color(oklch, rotate_hue(oklch.h, rule.degrees), rule.label)
        )

    return ColorHarmony(
        complementary=groups["complementary"][0],
        analogous=groups["analogous"],
        triadic=groups["triadic"],
        split_complementary=groups["split_complementary"],
    )


def empty_harmony() -> ColorHarmony:
    """Placeholder used when harmonies are disabled for a run."""
    return ColorHarmony()


__all__: List[str] = [
    "HarmonyRule",
    "HARMONY_RULES",
    "rotate_hue",
    "generate_harmonies",
    "empty_harmony",
    "generate_tints",
    "generate_shades",
    "generate_tints_and_shades",
]
