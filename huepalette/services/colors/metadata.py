"""
Palette-level scoring.

Computes diversity, separation, naming quality and the summary fields of
ExtractionMetadata from a finished palette.
"""

import math
import time
from typing import Optional, Sequence

from huepalette.schemas import (
    ExtractedColor,
    ExtractionConfidence,
    ExtractionMetadata,
    SegmentationQualityInfo,
)
from huepalette.services.segmentation.postprocess import SegmentationResult
from .conversion import round_half_up

# Separation distance scaling
SEPARATION_L_SCALE = 100
SEPARATION_C_SCALE = 250
SEPARATION_H_SCALE = 1.5
SEPARATION_FLOOR = 40
SEPARATION_RANGE = 60

VIBRANT_SATURATION = 65
RICH_DIVERSITY = 0.7

TEMPERATURE_ORDER = ("warm", "cool", "neutral")


def _round2(value: float) -> float:
    return round_half_up(value * 100) / 100


def compute_color_diversity(colors: Sequence[ExtractedColor]) -> float:
    """Normalised Shannon entropy of pixel coverage, in [0, 1]."""
    if len(colors) < 2:
        return 0.0

    weights = [max(color.source.pixel_coverage, 0.0) for color in colors]
    total = sum(weights) or 1.0
    entropy = 0.0
    for weight in weights:
        p = weight / total
        if p > 0:
            entropy -= p * math.log(p)

    normalized = entropy / math.log(len(colors))
    return _round2(max(0.0, min(1.0, normalized)))


def compute_color_separation(colors: Sequence[ExtractedColor]) -> float:
    """
    Mean pairwise OKLCH distance mapped to [0, 1].

    A single color (or none) is perfectly separated by definition.
    """
    if len(colors) < 2:
        return 1.0

    total_distance = 0.0
    pairs = 0
    for i in range(len(colors)):
        c1 = colors[i].formats.oklch.values
        for j in range(i + 1, len(colors)):
            c2 = colors[j].formats.oklch.values
            dl = (c1.l - c2.l) * SEPARATION_L_SCALE
            dc = (c1.c - c2.c) * SEPARATION_C_SCALE
            dh = abs(c1.h - c2.h)
            if dh > 180:
                dh = 360 - dh
            dh *= SEPARATION_H_SCALE
            total_distance += math.sqrt(dl * dl + dc * dc + dh * dh)
            pairs += 1

    average = total_distance / pairs
    normalized = (average - SEPARATION_FLOOR) / SEPARATION_RANGE
    return _round2(max(0.0, min(1.0, normalized)))


def compute_naming_quality(colors: Sequence[ExtractedColor]) -> float:
    if not colors:
        return 1.0
    return _round2(len({color.name for color in colors}) / len(colors))


def compute_average_saturation(colors: Sequence[ExtractedColor]) -> int:
    if not colors:
        return 0
    return round_half_up(sum(color.formats.hsl.values.s for color in colors) / len(colors))


def resolve_dominant_temperature(colors: Sequence[ExtractedColor]) -> str:
    """Most frequent temperature; ties resolve warm, then cool, then neutral."""
    tally = {temperature: 0 for temperature in TEMPERATURE_ORDER}
    for color in colors:
        tally[color.metadata.temperature] += 1
    # max() keeps the first of equal counts
    return max(TEMPERATURE_ORDER, key=lambda temperature: tally[temperature])


def build_suggested_usage(dominant_temperature: str, color_diversity: float, average_saturation: float) -> str:
    if average_saturation >= VIBRANT_SATURATION:
        return "Vibrant palette for energetic, expressive designs"
    if dominant_temperature == "cool":
        if color_diversity >= RICH_DIVERSITY:
            return "Professional, calming palette with rich accents"
        return "Minimal, cool-toned palette"
    if dominant_temperature == "warm":
        return "Inviting palette ideal for lifestyle or hospitality brands"
    if color_diversity >= RICH_DIVERSITY:
        return "Versatile palette for modern interfaces"
    return "Balanced palette for everyday use"


def build_extraction_metadata(
    palette: Sequence[ExtractedColor],
    segmentation: SegmentationResult,
    processing_start_time: float,
    now: Optional[float] = None,
) -> ExtractionMetadata:
    """
    Summarise a finished palette.

    Args:
        palette: Final palette entries
        segmentation: Result of the segmentation gate for the same image
        processing_start_time: ``time.time()`` when the run started
        now: End timestamp, defaults to the current time

    Returns:
        ExtractionMetadata
    """
    now = time.time() if now is None else now
    diversity = compute_color_diversity(palette)
    separation = compute_color_separation(palette)
    naming_quality = compute_naming_quality(palette)
    average_saturation = compute_average_saturation(palette)
    dominant_temperature = resolve_dominant_temperature(palette)

    return ExtractionMetadata(
        processing_time_ms=max(0, int((now - processing_start_time) * 1000)),
        color_count=len(palette),
        algorithm="weighted-kmeans",
        color_diversity=diversity,
        average_saturation=average_saturation,
        dominant_temperature=dominant_temperature,
        suggested_usage=build_suggested_usage(dominant_temperature, diversity, average_saturation),
        segmentation_quality=SegmentationQualityInfo(
            method=segmentation.method,
            confidence=segmentation.quality,
            foreground_detected=segmentation.mask is not None and not segmentation.used_fallback,
            used_fallback=segmentation.used_fallback,
        ),
        extraction_confidence=ExtractionConfidence(
            overall=_round2((segmentation.confidence + separation + naming_quality) / 3),
            color_separation=separation,
            naming_quality=naming_quality,
        ),
    )
