"""
Color naming with run-scoped uniqueness.
"""

from .generator import css_variable_name, generate_color_name, nearest_pantone
from .palettes import HUE_PALETTES, get_hue_palette, get_tone_bucket
from .tracker import PaletteNameTracker

__all__ = [
    "PaletteNameTracker",
    "generate_color_name",
    "css_variable_name",
    "nearest_pantone",
    "get_hue_palette",
    "get_tone_bucket",
    "HUE_PALETTES",
]
