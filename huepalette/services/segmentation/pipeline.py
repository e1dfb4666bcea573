"""
huepalette Segmentation Gate
Runs both provider calls concurrently and turns their outcomes into a
SegmentationResult. Never raises: every failure degrades to the luminance
fallback.
"""
import time
from typing import Awaitable, Callable, List, Optional, TypeVar

from huepalette.services.observability.metrics import get_metrics_collector
from huepalette.services.reliability import TaskOutcome, TimeoutManager, gather_settled, retry_transient
from huepalette.utils.logging import get_logger
from .engines import SegmentationProvider
from .engines.huggingface_engine import get_huggingface_engine
from .postprocess import (
    FALLBACK_NULL_MASK,
    FALLBACK_PROVIDER_ERROR,
    FALLBACK_UNEXPECTED,
    SegmentationResult,
    fallback_result,
    score_foreground,
)

T = TypeVar("T")

PRIMARY_METHOD = "mask2former"


class SegmentationGate:
    """Foreground detection with confidence scoring and fallback."""

    def __init__(
        self,
        provider: Optional[SegmentationProvider] = None,
        timeout_manager: Optional[TimeoutManager] = None,
        retry_delay_ms: Optional[int] = None,
    ):
        self.provider = provider or get_huggingface_engine()
        self.timeouts = timeout_manager or TimeoutManager()
        self.retry_delay_ms = retry_delay_ms

    async def _call(self, operation: str, func: Callable[[bytes], Awaitable[T]], image_buffer: bytes) -> T:
        async with self.timeouts.timeout(operation):
            return await retry_transient(
                lambda: func(image_buffer), operation=operation, delay_ms=self.retry_delay_ms
            )

    async def segment(self, image_buffer: bytes, request_id: Optional[str] = None) -> SegmentationResult:
        """
        Segment an image buffer.

        Args:
            image_buffer: Encoded image bytes
            request_id: Request ID for logging

        Returns:
            SegmentationResult; ``mask`` is None whenever ``used_fallback`` is True
        """
        logger = get_logger()
        metrics = get_metrics_collector()
        start_time = time.time()
        log_extra = {"request_id": request_id, "provider": self.provider.name}

        try:
            outcomes = await gather_settled({
                "foreground": self._call("foreground", self.provider.segment_foreground, image_buffer),
                "semantic": self._call("semantic", self.provider.segment_semantic, image_buffer),
            })
            categories = self._categories(outcomes["semantic"], request_id)
            result = self._resolve(outcomes["foreground"], categories, request_id)
        except Exception as e:
            logger.error(f"Unexpected error in segmentation gate: {e}", extra={
                **log_extra, "error_type": type(e).__name__,
            })
            metrics.increment_failure_count("segmentation_unexpected")
            result = fallback_result(*FALLBACK_UNEXPECTED)

        if result.used_fallback:
            metrics.increment_fallback_count()

        logger.info("Segmentation complete", extra={
            **log_extra,
            "method": result.method,
            "quality": result.quality,
            "confidence": result.confidence,
            "used_fallback": result.used_fallback,
            "categories": len(result.categories),
            "ms_segment": int((time.time() - start_time) * 1000),
        })
        return result

    def _resolve(
        self,
        outcome: TaskOutcome,
        categories: List[str],
        request_id: Optional[str],
    ) -> SegmentationResult:
        logger = get_logger()

        if not outcome.ok:
            logger.warning(f"Foreground segmentation failed, using luminance fallback: {outcome.error}", extra={
                "request_id": request_id,
                "error_type": type(outcome.error).__name__,
                "ms_foreground": outcome.duration_ms,
            })
            get_metrics_collector().increment_failure_count("segmentation_provider")
            return fallback_result(*FALLBACK_PROVIDER_ERROR, categories=categories)

        foreground = outcome.value
        if foreground is None or foreground.foreground_percentage <= 0:
            logger.warning("Segmentation returned no foreground, using luminance fallback", extra={
                "request_id": request_id,
            })
            return fallback_result(*FALLBACK_NULL_MASK, categories=categories)

        quality, confidence = score_foreground(foreground.foreground_percentage)
        return SegmentationResult(
            mask=foreground.mask,
            method=PRIMARY_METHOD,
            quality=quality,
            confidence=confidence,
            used_fallback=False,
            categories=tuple(categories),
            foreground_percentage=foreground.foreground_percentage,
        )

    def _categories(self, outcome: TaskOutcome, request_id: Optional[str]) -> List[str]:
        if not outcome.ok:
            get_logger().warning(f"Semantic segmentation failed: {outcome.error}", extra={
                "request_id": request_id,
                "error_type": type(outcome.error).__name__,
            })
            return []
        # Unique labels, first occurrence order
        return list(dict.fromkeys(segment.label for segment in outcome.value or [] if segment.label))
