"""
huepalette Segmentation Post-processing
Segment parsing, foreground mask assembly and confidence scoring.
"""
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import cv2
import numpy as np
from loguru import logger

from huepalette.services.imaging import decode_mask_png
from .classification import classify_segment

# Confidence attached to each outcome of the gate
FALLBACK_NULL_MASK = ("medium", 0.5)
FALLBACK_PROVIDER_ERROR = ("low", 0.4)
FALLBACK_UNEXPECTED = ("low", 0.3)

LARGE_FOREGROUND_PERCENT = 95.0


@dataclass(frozen=True, eq=False)
class ForegroundMask:
    """Binary foreground mask (uint8, 255 = foreground) at image size."""
    mask: np.ndarray
    foreground_percentage: float


@dataclass(frozen=True)
class SemanticSegment:
    """One labelled region returned by a segmentation model."""
    label: str
    score: float
    mask: Optional[str] = None  # base64 PNG


@dataclass(frozen=True, eq=False)
class SegmentationResult:
    """
    Outcome of the segmentation gate for one image.

    Never absent: when providers fail, ``mask`` is None, ``used_fallback`` is
    True and the method is "fallback-luminance".
    """
    mask: Optional[np.ndarray]
    method: str
    quality: str
    confidence: float
    used_fallback: bool
    categories: Tuple[str, ...] = ()
    foreground_percentage: Optional[float] = None


def parse_segments(payload: Any) -> List[SemanticSegment]:
    """
    Parse a provider response into segments.

    Non-list payloads and items without a label are dropped.
    """
    if not isinstance(payload, list):
        return []

    segments = []
    for item in payload:
        if not isinstance(item, dict) or not item.get("label"):
            continue
        try:
            score = float(item.get("score") or 0.0)
        except (TypeError, ValueError):
            score = 0.0
        segments.append(SemanticSegment(label=str(item["label"]), score=score, mask=item.get("mask")))
    return segments


def binarize_mask(mask: np.ndarray, threshold: int = 128) -> np.ndarray:
    """Map values above ``threshold`` to 255, everything else to 0."""
    if mask.ndim == 3:
        mask = cv2.cvtColor(mask, cv2.COLOR_RGB2GRAY)
    return np.where(mask > threshold, 255, 0).astype(np.uint8)


def calculate_foreground_percentage(mask: np.ndarray) -> float:
    """Percentage (0-100) of mask pixels that are foreground."""
    if mask.size == 0:
        return 0.0
    return float(np.count_nonzero(mask > 128)) / mask.size * 100


def assemble_foreground_mask(
    segments: Sequence[SemanticSegment],
    size: Tuple[int, int],
) -> Optional[ForegroundMask]:
    """
    Union the masks of all foreground and uncertain segments.

    Args:
        segments: Panoptic segments with base64 PNG masks
        size: Image (width, height)

    Returns:
        ForegroundMask, or None when no foreground segment contributed
    """
    width, height = size
    combined = np.zeros((height, width), dtype=np.uint8)
    contributing = 0

    for segment in segments:
        classification = classify_segment(segment.label, segment.score, segments)
        if classification == "background" or not segment.mask:
            continue
        try:
            segment_mask = decode_mask_png(segment.mask, size)
        except ValueError as e:
            logger.warning(f"Failed to process mask for {segment.label}: {e}")
            continue

        np.maximum(combined, segment_mask, out=combined)
        contributing += 1
        logger.debug(f"Added {classification} segment: {segment.label} (score: {segment.score:.2f})")

    if contributing == 0:
        logger.warning("No foreground segments identified")
        return None

    percentage = calculate_foreground_percentage(combined)
    if percentage > LARGE_FOREGROUND_PERCENT:
        logger.info(f"Large foreground detected ({percentage:.1f}%), may be a close-up")

    return ForegroundMask(mask=combined, foreground_percentage=percentage)


def score_foreground(percentage: float) -> Tuple[str, float]:
    """
    Quality and confidence for a foreground percentage.

    5-70% is high (0.9); 1-5% is medium (0.75); 70-90% is medium (0.8);
    anything else is low (0.6).
    """
    if 5 <= percentage <= 70:
        return "high", 0.9
    if 1 <= percentage < 5:
        return "medium", 0.75
    if 70 < percentage <= 90:
        return "medium", 0.8
    return "low", 0.6


def fallback_result(quality: str, confidence: float, categories: Sequence[str] = ()) -> SegmentationResult:
    """Luminance-split fallback result."""
    return SegmentationResult(
        mask=None,
        method="fallback-luminance",
        quality=quality,
        confidence=confidence,
        used_fallback=True,
        categories=tuple(categories),
    )
