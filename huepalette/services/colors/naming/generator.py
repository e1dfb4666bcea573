"""
Deterministic color naming.

Names depend only on the RGB value and on the run's tracker state, so the
same color named first in two fresh runs gets the same name, while repeated
colors within a run get distinct names.
"""

import math
import re
from typing import Optional, Tuple

from ..conversion import rgb_to_hsl
from ..models import HslColor
from .palettes import (
    EARTH_HUE_RANGE,
    EARTH_SATURATION_MAX,
    EARTH_SATURATION_MIN,
    EARTH_TONES,
    NEUTRAL_EXTREME_SATURATION,
    NEUTRAL_NAMES,
    NEUTRAL_SATURATION,
    PANTONE_COLORS,
    get_hue_palette,
    get_tone_bucket,
)
from .tracker import PaletteNameTracker

DESCRIPTOR_CONFLICTS = {
    "vivid": ("muted", "dusky", "soft", "pale", "deep"),
    "muted": ("vivid", "bright", "luminous"),
    "deep": ("bright", "luminous", "soft", "pale"),
    "bright": ("deep", "dusky", "muted"),
    "luminous": ("deep", "dusky", "muted"),
    "soft": ("vivid", "deep"),
    "pale": ("vivid", "deep"),
}

# Base names that already carry an intensity of their own
SELF_DESCRIBING_WORDS = (
    "glow", "gleam", "ember", "flame", "blaze", "burst", "haze", "mist", "drift",
    "veil", "shadow", "night", "dawn", "dusk", "light", "dark", "bright",
)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9\s\-]")


def sanitize_name(name: str) -> str:
    sanitized = _UNSAFE_CHARS.sub("", name).strip()
    return sanitized or "Color"


def is_neutral(hsl: HslColor) -> bool:
    if hsl.s <= NEUTRAL_SATURATION:
        return True
    return hsl.s <= NEUTRAL_EXTREME_SATURATION and (hsl.l <= 25 or hsl.l >= 85)


def is_earthy(hsl: HslColor) -> bool:
    low, high = EARTH_HUE_RANGE
    return EARTH_SATURATION_MIN <= hsl.s <= EARTH_SATURATION_MAX and low <= hsl.h <= high


def intensity_descriptor(saturation: int, lightness: int, tone: str) -> Optional[str]:
    if saturation <= 15:
        return {"light": "Soft", "dark": "Deep"}.get(tone, "Muted")
    if saturation <= 30:
        return None

    if saturation >= 75:
        if 50 <= lightness <= 75:
            return "Vivid"
        if lightness > 85:
            return "Bright"
        if lightness < 30:
            return "Deep"
        return None

    if saturation >= 50:
        if tone == "dark" and lightness < 30:
            return "Rich"
        if tone == "light" and lightness > 80:
            return "Luminous"
        return None

    if saturation >= 35 and tone == "dark" and lightness < 25:
        return "Dusky"
    return None


def conflicts_with(base_name: str, descriptor: str) -> bool:
    lower_base = base_name.lower()
    lower_desc = descriptor.lower()

    if lower_desc in lower_base:
        return True
    if any(word in lower_base for word in DESCRIPTOR_CONFLICTS.get(lower_desc, ())):
        return True
    return any(word in lower_base for word in SELF_DESCRIBING_WORDS)


def name_seed(hsl: HslColor) -> int:
    return int(math.floor(hsl.h * 17 + hsl.s * 13 + hsl.l * 11 + 0.5))


def generate_color_name(rgb: Tuple[int, int, int], tracker: PaletteNameTracker) -> str:
    """
    Name a color and record it in the run's tracker.

    Args:
        rgb: (r, g, b) in [0, 255]
        tracker: The current run's tracker

    Returns:
        A name not yet used in this run
    """
    hsl = rgb_to_hsl(*rgb)
    tone = get_tone_bucket(hsl.l, hsl.s)
    seed = name_seed(hsl)

    if is_neutral(hsl):
        base = tracker.pick_name(NEUTRAL_NAMES, tone, seed, "neutral")
        return tracker.claim(sanitize_name(base))

    if is_earthy(hsl):
        base = tracker.pick_name(EARTH_TONES, tone, seed, "earth")
        return tracker.claim(sanitize_name(base))

    palette = get_hue_palette(hsl.h)
    base = tracker.pick_name(palette.names, tone, seed, palette.family.lower())
    descriptor = tracker.pick_descriptor(intensity_descriptor(hsl.s, hsl.l, tone), base)

    if descriptor and not conflicts_with(base, descriptor):
        name = f"{descriptor} {base}"
    else:
        name = base
    return tracker.claim(sanitize_name(name))


def css_variable_name(color_name: str) -> str:
    """``"Vivid Scarlet"`` -> ``"--color-vivid-scarlet"``."""
    slug = re.sub(r"\s+", "-", color_name.lower())
    slug = re.sub(r"[^a-z0-9\-]", "", slug)
    return f"--color-{slug or 'unknown'}"


def nearest_pantone(rgb: Tuple[int, int, int]) -> str:
    """Closest entry of the bundled Pantone subset by RGB distance."""
    r, g, b = rgb
    best_name = "PANTONE N/A"
    best_distance = math.inf
    for name, (pr, pg, pb) in PANTONE_COLORS:
        distance = math.sqrt((r - pr) ** 2 + (g - pg) ** 2 + (b - pb) ** 2)
        if distance < best_distance:
            best_distance = distance
            best_name = name
    return best_name
