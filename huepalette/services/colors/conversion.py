"""
Color space conversions.

OKLab/OKLCH carry the clustering and distance math; HSL drives the naming and
diversity heuristics. Scalar conversions keyed by an RGB triple are memoized
in bounded process-wide LRU caches: they are pure functions, so sharing them
between concurrent extractions is safe and ``clear_conversion_caches`` exists
for memory management only.
"""

import math
from functools import lru_cache
from typing import Dict, Tuple

import numpy as np

from huepalette.config import config
from .models import HslColor, OklabColor, OklchColor

RGB = Tuple[int, int, int]

# sRGB -> linear lookup table for 8-bit channels
_LINEAR_LUT = np.array(
    [c / 12.92 if c <= 0.04045 else ((c + 0.055) / 1.055) ** 2.4
     for c in (i / 255.0 for i in range(256))],
    dtype=np.float64,
)

_RGB_TO_LMS = np.array([
    [0.4122214708, 0.5363325363, 0.0514459929],
    [0.2119034982, 0.6806995451, 0.1073969566],
    [0.0883024619, 0.2817188376, 0.6299787005],
])

_LMS_TO_OKLAB = np.array([
    [0.2104542553, 0.7936177850, -0.0040720468],
    [1.9779984951, -2.4285922050, 0.4505937099],
    [0.0259040371, 0.7827717662, -0.8086757660],
])


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values, matching CSS conventions."""
    return int(math.floor(value + 0.5))


def clamp_channel(value: float) -> int:
    return max(0, min(255, round_half_up(value)))


def srgb_encode(linear: float) -> float:
    """Exact linear -> sRGB transfer, returns [0, 255]."""
    linear = max(0.0, min(1.0, linear))
    if linear <= 0.0031308:
        encoded = 12.92 * linear
    else:
        encoded = 1.055 * linear ** (1 / 2.4) - 0.055
    return encoded * 255.0


@lru_cache(maxsize=config.OKLAB_CACHE_SIZE)
def rgb_to_oklab(r: int, g: int, b: int) -> OklabColor:
    rl, gl, bl = _LINEAR_LUT[r], _LINEAR_LUT[g], _LINEAR_LUT[b]

    lms = _RGB_TO_LMS @ np.array([rl, gl, bl])
    lab = _LMS_TO_OKLAB @ np.cbrt(lms)

    return OklabColor(l=float(lab[0]), a=float(lab[1]), b=float(lab[2]))


def rgb_array_to_oklab(pixels: np.ndarray) -> np.ndarray:
    """
    Vectorized RGB -> OKLab for a pixel set.

    Args:
        pixels: (N, 3) uint8 array

    Returns:
        (N, 3) float64 array of L, a, b
    """
    if pixels.size == 0:
        return np.zeros((0, 3), dtype=np.float64)
    linear = _LINEAR_LUT[pixels.astype(np.intp)]
    lms = linear @ _RGB_TO_LMS.T
    return np.cbrt(lms) @ _LMS_TO_OKLAB.T


def oklab_to_oklch(oklab: OklabColor) -> OklchColor:
    c = math.sqrt(oklab.a * oklab.a + oklab.b * oklab.b)
    h = math.degrees(math.atan2(oklab.b, oklab.a))
    if h < 0:
        h += 360.0

    return OklchColor(
        l=round(oklab.l, 4),
        c=round(c, 4),
        h=round(h, 2) % 360.0,
    )


def rgb_to_oklch(r: int, g: int, b: int) -> OklchColor:
    return oklab_to_oklch(rgb_to_oklab(r, g, b))


@lru_cache(maxsize=config.OKLCH_CACHE_SIZE)
def _oklch_to_rgb(l: float, c: float, h: float) -> RGB:
    h_rad = math.radians(h)
    a = c * math.cos(h_rad)
    b = c * math.sin(h_rad)
    return oklab_to_rgb(l, a, b)


def oklch_to_rgb(oklch: OklchColor) -> RGB:
    """OKLCH -> 8-bit RGB, out-of-gamut channels are clamped."""
    return _oklch_to_rgb(oklch.l, oklch.c, oklch.h)


def oklab_to_rgb(l: float, a: float, b: float) -> RGB:
    l_ = l + 0.3963377774 * a + 0.2158037573 * b
    m_ = l - 0.1055613458 * a - 0.0638541728 * b
    s_ = l - 0.0894841775 * a - 1.2914855480 * b

    lms_l = l_ ** 3
    lms_m = m_ ** 3
    lms_s = s_ ** 3

    rl = 4.0767416621 * lms_l - 3.3077115913 * lms_m + 0.2309699292 * lms_s
    gl = -1.2684380046 * lms_l + 2.6097574011 * lms_m - 0.3413193965 * lms_s
    bl = -0.0041960863 * lms_l - 0.7034186147 * lms_m + 1.7076147010 * lms_s

    return (
        clamp_channel(srgb_encode(rl)),
        clamp_channel(srgb_encode(gl)),
        clamp_channel(srgb_encode(bl)),
    )


@lru_cache(maxsize=config.HSL_CACHE_SIZE)
def rgb_to_hsl(r: int, g: int, b: int) -> HslColor:
    """RGB -> HSL with integer degrees and percentages."""
    rn, gn, bn = r / 255.0, g / 255.0, b / 255.0
    max_c = max(rn, gn, bn)
    min_c = min(rn, gn, bn)
    delta = max_c - min_c

    h = 0.0
    s = 0.0
    l = (max_c + min_c) / 2

    if delta != 0:
        s = delta / (2 - max_c - min_c) if l > 0.5 else delta / (max_c + min_c)
        h = _hue_fraction(rn, gn, bn, max_c, delta)

    return HslColor(
        h=round_half_up(h * 360) % 360,
        s=round_half_up(s * 100),
        l=round_half_up(l * 100),
    )


def _hue_fraction(rn: float, gn: float, bn: float, max_c: float, delta: float) -> float:
    if max_c == rn:
        return ((gn - bn) / delta + (6 if gn < bn else 0)) / 6
    if max_c == gn:
        return ((bn - rn) / delta + 2) / 6
    return ((rn - gn) / delta + 4) / 6


def rgb_to_hsb(r: int, g: int, b: int) -> Tuple[int, int, int]:
    rn, gn, bn = r / 255.0, g / 255.0, b / 255.0
    max_c = max(rn, gn, bn)
    min_c = min(rn, gn, bn)
    delta = max_c - min_c
    s = 0.0 if max_c == 0 else delta / max_c
    h = _hue_fraction(rn, gn, bn, max_c, delta) if delta != 0 else 0.0
    return round_half_up(h * 360) % 360, round_half_up(s * 100), round_half_up(max_c * 100)


def rgb_to_cmyk(r: int, g: int, b: int) -> Tuple[int, int, int, int]:
    rn, gn, bn = r / 255.0, g / 255.0, b / 255.0
    k = 1 - max(rn, gn, bn)
    if k == 1:
        return 0, 0, 0, 100
    return (
        round_half_up((1 - rn - k) / (1 - k) * 100),
        round_half_up((1 - gn - k) / (1 - k) * 100),
        round_half_up((1 - bn - k) / (1 - k) * 100),
        round_half_up(k * 100),
    )


def rgb_to_lab(r: int, g: int, b: int) -> Tuple[int, int, int]:
    """RGB -> CIE L*a*b* (D65), integer components."""
    rl, gl, bl = _LINEAR_LUT[r], _LINEAR_LUT[g], _LINEAR_LUT[b]

    x = (rl * 0.4124 + gl * 0.3576 + bl * 0.1805) / 0.95047
    y = (rl * 0.2126 + gl * 0.7152 + bl * 0.0722) / 1.0
    z = (rl * 0.0193 + gl * 0.1192 + bl * 0.9505) / 1.08883

    def f(t: float) -> float:
        return t ** (1 / 3) if t > 0.008856 else 7.787 * t + 16 / 116

    fx, fy, fz = f(x), f(y), f(z)
    return (
        round_half_up(116 * fy - 16),
        round_half_up(500 * (fx - fy)),
        round_half_up(200 * (fy - fz)),
    )


def lab_to_lch(l: int, a: int, b: int) -> Tuple[int, int, int]:
    c = math.sqrt(a * a + b * b)
    h = math.degrees(math.atan2(b, a))
    if h < 0:
        h += 360
    return l, round_half_up(c), round_half_up(h) % 360


def rgb_to_hex(r: int, g: int, b: int) -> str:
    return f"#{clamp_channel(r):02X}{clamp_channel(g):02X}{clamp_channel(b):02X}"


def hex_to_rgb(hex_color: str) -> RGB:
    """Convert #RRGGBB to an RGB tuple."""
    hex_clean = hex_color.lstrip("#")
    if len(hex_clean) != 6:
        raise ValueError(f"Invalid hex color format: {hex_color}")
    try:
        return tuple(int(hex_clean[i:i + 2], 16) for i in (0, 2, 4))
    except ValueError:
        raise ValueError(f"Invalid hex color format: {hex_color}")


def perceived_brightness(r: int, g: int, b: int) -> int:
    """Integer luma approximation on a 0-255 scale."""
    return (77 * r + 150 * g + 29 * b) >> 8


def clear_conversion_caches() -> None:
    rgb_to_oklab.cache_clear()
    rgb_to_hsl.cache_clear()
    _oklch_to_rgb.cache_clear()


def get_conversion_cache_stats() -> Dict[str, Dict[str, int]]:
    stats = {}
    for name, cached in (
        ("oklab", rgb_to_oklab),
        ("hsl", rgb_to_hsl),
        ("oklch", _oklch_to_rgb),
    ):
        info = cached.cache_info()
        stats[name] = {
            "size": info.currsize,
            "max_size": info.maxsize,
            "hits": info.hits,
            "misses": info.misses,
        }
    return stats
