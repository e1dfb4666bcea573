"""
Assembly of final palette entries.

Fans a clustered color out to naming, accessibility and harmony and packs
the results into an immutable ExtractedColor.
"""

from typing import Optional, Tuple

from huepalette.schemas import (
    CMYKFormat,
    CMYKValues,
    ColorFormats,
    ColorMetadata,
    ColorSource,
    ExtractedColor,
    HSBFormat,
    HSBValues,
    HSLFormat,
    HSLValues,
    LABFormat,
    LABValues,
    LCHFormat,
    LCHValues,
    OKLCHFormat,
    OKLCHValues,
    RGBFormat,
    RGBValues,
)
from huepalette.utils.ids import color_id
from .accessibility import build_accessibility_info
from .conversion import (
    lab_to_lch,
    rgb_to_cmyk,
    rgb_to_hex,
    rgb_to_hsb,
    rgb_to_hsl,
    rgb_to_lab,
    rgb_to_oklch,
)
from .harmony import empty_harmony, generate_harmonies
from .harmony.tints import format_oklch, generate_tints_and_shades
from .naming import PaletteNameTracker, css_variable_name, generate_color_name, nearest_pantone

RGB = Tuple[int, int, int]

FOREGROUND_BASE_CONFIDENCE = 0.85
BACKGROUND_BASE_CONFIDENCE = 0.75
COVERAGE_CONFIDENCE_WEIGHT = 0.15


def color_temperature(hue: int) -> str:
    """Warm for reds/yellows/magentas, cool for greens to blues."""
    if 0 <= hue <= 60 or 300 <= hue <= 360:
        return "warm"
    if 120 <= hue <= 240:
        return "cool"
    return "neutral"


def source_confidence(segment: str, coverage: float) -> float:
    base = FOREGROUND_BASE_CONFIDENCE if segment == "foreground" else BACKGROUND_BASE_CONFIDENCE
    return min(1.0, base + coverage * COVERAGE_CONFIDENCE_WEIGHT)


def build_color_formats(rgb: RGB) -> ColorFormats:
    """Every supported representation of ``rgb``, each with its CSS string."""
    r, g, b = rgb
    oklch = rgb_to_oklch(r, g, b)
    hsl = rgb_to_hsl(r, g, b)
    hsb = rgb_to_hsb(r, g, b)
    cmyk = rgb_to_cmyk(r, g, b)
    lab = rgb_to_lab(r, g, b)
    lch = lab_to_lch(*lab)

    return ColorFormats(
        hex=rgb_to_hex(r, g, b),
        rgb=RGBFormat(css=f"rgb({r}, {g}, {b})", values=RGBValues(r=r, g=g, b=b)),
        oklch=OKLCHFormat(
            css=format_oklch(oklch),
            values=OKLCHValues(l=oklch.l, c=oklch.c, h=oklch.h),
        ),
        hsl=HSLFormat(
            css=f"hsl({hsl.h}, {hsl.s}%, {hsl.l}%)",
            values=HSLValues(h=hsl.h, s=hsl.s, l=hsl.l),
        ),
        hsb=HSBFormat(
            css=f"hsb({hsb[0]}, {hsb[1]}%, {hsb[2]}%)",
            values=HSBValues(h=hsb[0], s=hsb[1], b=hsb[2]),
        ),
        cmyk=CMYKFormat(
            css=f"cmyk({cmyk[0]}%, {cmyk[1]}%, {cmyk[2]}%, {cmyk[3]}%)",
            values=CMYKValues(c=cmyk[0], m=cmyk[1], y=cmyk[2], k=cmyk[3]),
        ),
        lab=LABFormat(
            css=f"lab({lab[0]} {lab[1]} {lab[2]})",
            values=LABValues(l=lab[0], a=lab[1], b=lab[2]),
        ),
        lch=LCHFormat(
            css=f"lch({lch[0]} {lch[1]} {lch[2]})",
            values=LCHValues(l=lch[0], c=lch[1], h=lch[2]),
        ),
    )


def build_extracted_color(
    rgb: RGB,
    coverage: float,
    segment: str,
    index: int,
    tracker: PaletteNameTracker,
    category: Optional[str] = None,
    generate_harmony: bool = True,
) -> ExtractedColor:
    """
    Build one palette entry.

    Args:
        rgb: Final cluster color
        coverage: Share of sampled pixels represented by this color
        segment: "foreground" or "background"
        index: 1-based position in the palette, used for the id
        tracker: The run's name tracker
        category: Semantic label attached to the source segment, if any
        generate_harmony: When False the harmony groups are left empty

    Returns:
        Immutable ExtractedColor
    """
    coverage = max(0.0, min(1.0, coverage))
    name = generate_color_name(rgb, tracker)
    formats = build_color_formats(rgb)
    oklch = rgb_to_oklch(*rgb)
    tints, shades = generate_tints_and_shades(oklch, name)

    return ExtractedColor(
        id=color_id(index),
        name=name,
        source=ColorSource(
            segment=segment,
            category=category,
            pixel_coverage=coverage,
            confidence=source_confidence(segment, coverage),
        ),
        formats=formats,
        accessibility=build_accessibility_info(rgb),
        tints=tints,
        shades=shades,
        harmony=generate_harmonies(oklch) if generate_harmony else empty_harmony(),
        metadata=ColorMetadata(
            temperature=color_temperature(formats.hsl.values.h),
            nearest_css_color=name.lower(),
            pantone_approximation=nearest_pantone(rgb),
            css_variable_name=css_variable_name(name),
        ),
    )
