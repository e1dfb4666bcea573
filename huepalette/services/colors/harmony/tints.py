"""
Tints and shades in OKLCH.

Step size and chroma falloff shrink as the base color approaches white (for
tints) or black (for shades), so very light and very dark colors still get
distinguishable steps.
"""

from typing import List, Optional, Tuple

from huepalette.config import config
from huepalette.schemas import TintShade
from ..conversion import oklch_to_rgb, rgb_to_hex
from ..models import OklchColor

MAX_LIGHTNESS = 0.99
MIN_LIGHTNESS = 0.01


def format_oklch(oklch: OklchColor) -> str:
    return f"oklch({oklch.l * 100:.2f}% {oklch.c:.3f} {oklch.h:.1f})"


def _step(oklch: OklchColor, level: int, name: str) -> TintShade:
    return TintShade(
        level=level,
        hex=rgb_to_hex(*oklch_to_rgb(oklch)),
        oklch=format_oklch(oklch),
        name=name,
    )


def generate_tints(oklch: OklchColor, color_name: str, count: Optional[int] = None) -> List[TintShade]:
    """Lighter steps named ``"<name> 300"`` down to ``"<name> 0"``."""
    count = count or config.TINT_SHADE_COUNT
    l, c, h = oklch.l, oklch.c, oklch.h
    headroom = max(0.0, MAX_LIGHTNESS - l)

    tints = []
    for i in range(1, count + 1):
        if l > 0.85:
            step = min(headroom / count, 0.02)
            tint_l = min(l + i * step, MAX_LIGHTNESS)
            tint_c = c * (1 - (i / count) * 0.5)
        elif l > 0.7:
            step = min(headroom / count, 0.05)
            tint_l = min(l + i * step, MAX_LIGHTNESS)
            tint_c = c * (1 - (i / count) * 0.3)
        else:
            tint_l = min(l + i * 0.1, MAX_LIGHTNESS)
            tint_c = c

        tints.append(_step(OklchColor(l=tint_l, c=tint_c, h=h), i * 10, f"{color_name} {400 - i * 100}"))
    return tints


def generate_shades(oklch: OklchColor, color_name: str, count: Optional[int] = None) -> List[TintShade]:
    """Darker steps named ``"<name> 600"`` up to ``"<name> 900"``."""
    count = count or config.TINT_SHADE_COUNT
    l, c, h = oklch.l, oklch.c, oklch.h
    room = max(0.0, l - MIN_LIGHTNESS)

    shades = []
    for i in range(1, count + 1):
        if l < 0.25:
            step = min(room / count, 0.02)
            shade_l = max(l - i * step, MIN_LIGHTNESS)
            shade_c = c * (1 - (i / count) * 0.6)
        elif l < 0.4:
            step = min(room / count, 0.05)
            shade_l = max(l - i * step, MIN_LIGHTNESS)
            shade_c = c * (1 - (i / count) * 0.4)
        else:
            shade_l = max(l - i * 0.1, MIN_LIGHTNESS)
            shade_c = c

        shades.append(_step(OklchColor(l=shade_l, c=shade_c, h=h), i * 10, f"{color_name} {500 + i * 100}"))
    return shades


def generate_tints_and_shades(oklch: OklchColor, color_name: str) -> Tuple[List[TintShade], List[TintShade]]:
    return generate_tints(oklch, color_name), generate_shades(oklch, color_name)
