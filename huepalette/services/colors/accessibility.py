"""
Contrast checks for palette colors.

WCAG 2.x relative-luminance contrast against pure white and pure black, an
APCA-style luminance difference, and a text color recommendation.
"""

from typing import Tuple

from huepalette.schemas import (
    AccessibilityInfo,
    APCAResult,
    ContrastResult,
    SuggestedTextColor,
)

RGB = Tuple[int, int, int]

WHITE: RGB = (255, 255, 255)
BLACK: RGB = (0, 0, 0)

AA_NORMAL = 4.5
AA_LARGE = 3.0
AAA_NORMAL = 7.0
AAA_LARGE = 4.5


def _channel_to_linear(channel: int) -> float:
    c = channel / 255.0
    return c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4


def relative_luminance(rgb: RGB) -> float:
    r, g, b = (_channel_to_linear(c) for c in rgb)
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def contrast_ratio(rgb1: RGB, rgb2: RGB) -> float:
    """WCAG contrast ratio in [1, 21]."""
    l1 = relative_luminance(rgb1)
    l2 = relative_luminance(rgb2)
    lighter, darker = max(l1, l2), min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)


def build_contrast_result(ratio: float) -> ContrastResult:
    # Pass/fail uses the unrounded ratio
    return ContrastResult(
        ratio=round(ratio, 1),
        wcag_aa_normal=ratio >= AA_NORMAL,
        wcag_aa_large=ratio >= AA_LARGE,
        wcag_aaa_normal=ratio >= AAA_NORMAL,
        wcag_aaa_large=ratio >= AAA_LARGE,
    )


def apca_score(text_rgb: RGB, background_rgb: RGB) -> int:
    """Luminance difference scaled to 0-100."""
    contrast = abs(relative_luminance(text_rgb) - relative_luminance(background_rgb))
    return int(round(contrast * 100))


def build_accessibility_info(rgb: RGB) -> AccessibilityInfo:
    """
    Contrast summary for one color.

    Args:
        rgb: (r, g, b) in [0, 255]

    Returns:
        AccessibilityInfo with white/black contrast, APCA and suggested text color
    """
    white_ratio = contrast_ratio(rgb, WHITE)
    black_ratio = contrast_ratio(rgb, BLACK)

    if white_ratio > black_ratio:
        suggested = SuggestedTextColor(
            hex="#FFFFFF",
            reason=f"Higher contrast ({white_ratio:.1f} vs {black_ratio:.1f})",
        )
    else:
        suggested = SuggestedTextColor(
            hex="#000000",
            reason=f"Higher contrast ({black_ratio:.1f} vs {white_ratio:.1f})",
        )

    return AccessibilityInfo(
        contrast_on_white=build_contrast_result(white_ratio),
        contrast_on_black=build_contrast_result(black_ratio),
        apca=APCAResult(on_white=apca_score(rgb, WHITE), on_black=apca_score(rgb, BLACK)),
        suggested_text_color=suggested,
    )
