"""
huepalette Extraction Orchestrator
Coordinates segmentation, sampling, clustering, formatting and scoring for
one image.
"""
import asyncio
import inspect
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import numpy as np
from pydantic import ValidationError as PydanticValidationError

from huepalette.config import config
from huepalette.errors import ExtractionTimeoutError, OperationTimeoutError, ValidationError
from huepalette.schemas import (
    ColorPaletteResult,
    ExtractedColor,
    ExtractionOptions,
    ImageDimensions,
    SegmentInfo,
    SegmentShare,
    SourceImage,
)
from huepalette.services.colors.conversion import round_half_up
from huepalette.services.colors.extraction import PaletteCandidate, PaletteClusteringStage
from huepalette.services.colors.formatting import build_extracted_color
from huepalette.services.colors.metadata import build_extraction_metadata
from huepalette.services.colors.models import PixelSplit
from huepalette.services.colors.naming import PaletteNameTracker
from huepalette.services.colors.sampling import sample_pixels, split_pixels
from huepalette.services.imaging import decode_image, get_image_dimensions
from huepalette.services.observability.metrics import get_metrics_collector, performance_monitor
from huepalette.services.reliability import TimeoutManager
from huepalette.services.segmentation.pipeline import SegmentationGate
from huepalette.services.segmentation.postprocess import SegmentationResult
from huepalette.utils.ids import generate_palette_id, generate_request_id
from huepalette.utils.logging import get_logger

PartialCallback = Callable[[List[ExtractedColor]], Any]


@dataclass
class ExtractionHooks:
    """Progress callbacks for one run. ``on_partial`` may be sync or async."""
    on_partial: Optional[PartialCallback] = None


def _coerce_options(options: Union[ExtractionOptions, Dict[str, Any], None]) -> ExtractionOptions:
    if options is None:
        return ExtractionOptions()
    if isinstance(options, ExtractionOptions):
        return options
    try:
        return ExtractionOptions.model_validate(options)
    except PydanticValidationError as e:
        raise ValidationError("Invalid extraction options", {"errors": e.errors()}) from e


def _round1(value: float) -> float:
    return round_half_up(value * 10) / 10


def build_segment_info(split: PixelSplit, segmentation: SegmentationResult) -> SegmentInfo:
    """
    Foreground/background shares reported with the palette.

    The mask's own percentage is used when the mask drove the split;
    otherwise the share comes from the sampled pixel split.
    """
    if segmentation.foreground_percentage is not None and not split.used_luminance_split:
        foreground = _round1(segmentation.foreground_percentage)
        background = _round1(100 - segmentation.foreground_percentage)
    else:
        foreground = _round1(split.foreground_ratio * 100)
        background = _round1((1 - split.foreground_ratio) * 100) if split.total else 0.0

    return SegmentInfo(
        foreground=SegmentShare(pixel_percentage=foreground),
        background=SegmentShare(pixel_percentage=background),
        categories=list(segmentation.categories),
        method=segmentation.method,
        quality=segmentation.quality,
    )


class ColorExtractionOrchestrator:
    """Runs the extraction pipeline for one image at a time per call."""

    def __init__(
        self,
        segmentation_gate: Optional[SegmentationGate] = None,
        clustering_stage: Optional[PaletteClusteringStage] = None,
        timeout_manager: Optional[TimeoutManager] = None,
    ):
        self.timeouts = timeout_manager or TimeoutManager()
        self.gate = segmentation_gate or SegmentationGate(timeout_manager=self.timeouts)
        self.stage = clustering_stage or PaletteClusteringStage()

    def _cluster(
        self,
        image_rgb: np.ndarray,
        segmentation: SegmentationResult,
        options: ExtractionOptions,
        request_id: str,
    ) -> Tuple[PixelSplit, List[PaletteCandidate]]:
        with performance_monitor("sampling", request_id=request_id):
            sampled = sample_pixels(image_rgb, segmentation.mask)
            split = split_pixels(sampled)

        with performance_monitor("clustering", request_id=request_id, pixels=split.total):
            candidates = self.stage.run(split, options.num_colors, options.include_background)

        return split, candidates

    async def _format_palette(
        self,
        candidates: List[PaletteCandidate],
        options: ExtractionOptions,
        hooks: ExtractionHooks,
        request_id: str,
    ) -> List[ExtractedColor]:
        # Fresh tracker per run, never shared between runs
        tracker = PaletteNameTracker()
        palette: List[ExtractedColor] = []
        partial_size = config.PARTIAL_COLOR_COUNT
        partial_sent = False

        for index, candidate in enumerate(candidates, start=1):
            palette.append(build_extracted_color(
                candidate.color.rgb,
                candidate.color.weight,
                candidate.segment,
                index,
                tracker,
                generate_harmony=options.generate_harmonies,
            ))
            if not partial_sent and len(palette) >= partial_size:
                await self._emit_partial(hooks, palette[:partial_size], request_id)
                partial_sent = True

        if not partial_sent and palette:
            await self._emit_partial(hooks, palette[:partial_size], request_id)

        return palette

    async def _emit_partial(self, hooks: ExtractionHooks, prefix: List[ExtractedColor], request_id: str) -> None:
        if hooks.on_partial is None:
            return
        try:
            result = hooks.on_partial(list(prefix))
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            get_logger().warning(f"on_partial hook failed: {e}", extra={"request_id": request_id})

    async def extract(
        self,
        image_buffer: bytes,
        options: Union[ExtractionOptions, Dict[str, Any], None] = None,
        hooks: Optional[ExtractionHooks] = None,
        filename: Optional[str] = None,
    ) -> ColorPaletteResult:
        """
        Extract a named, scored palette from an encoded image.

        Args:
            image_buffer: Encoded image bytes (PNG, JPEG, WebP, GIF or BMP)
            options: ExtractionOptions or an equivalent dict
            hooks: Optional progress callbacks
            filename: Original filename, echoed in the result

        Returns:
            ColorPaletteResult

        Raises:
            ValidationError: Bad configuration, options or image buffer
        """
        request_id = generate_request_id()
        logger = get_logger()
        metrics = get_metrics_collector()
        start_time = time.time()

        problems = config.validate()
        if problems:
            logger.error("Refusing to run with invalid configuration", extra={
                "request_id": request_id, "problems": problems,
            })
            raise ValidationError("Invalid configuration", {"problems": problems})

        options = _coerce_options(options)
        hooks = hooks or ExtractionHooks()
        metrics.increment_extraction_count()
        logger.info("Starting palette extraction", extra={
            "request_id": request_id,
            "bytes": len(image_buffer) if isinstance(image_buffer, (bytes, bytearray, memoryview)) else None,
            "num_colors": options.num_colors,
        })

        try:
            with performance_monitor("decode", request_id=request_id):
                image_rgb = await asyncio.to_thread(decode_image, image_buffer)
        except ValidationError as e:
            logger.warning(f"Rejected image: {e.message}", extra={
                "request_id": request_id, "error_code": e.code,
            })
            metrics.increment_failure_count("validation")
            raise

        width, height = get_image_dimensions(image_rgb)

        with performance_monitor("segmentation", request_id=request_id):
            segmentation = await self.gate.segment(image_buffer, request_id)

        split, candidates = await asyncio.to_thread(
            self._cluster, image_rgb, segmentation, options, request_id
        )

        with performance_monitor("formatting", request_id=request_id, colors=len(candidates)):
            palette = await self._format_palette(candidates, options, hooks, request_id)

        metadata = build_extraction_metadata(palette, segmentation, start_time)
        result = ColorPaletteResult(
            id=generate_palette_id(),
            source_image=SourceImage(
                filename=filename,
                dimensions=ImageDimensions(width=width, height=height),
                processed_at=datetime.now(timezone.utc).isoformat(),
            ),
            segments=build_segment_info(split, segmentation),
            palette=palette,
            metadata=metadata,
        )

        logger.info("Palette extraction completed", extra={
            "request_id": request_id,
            "dims": f"{width}x{height}",
            "colors": len(palette),
            "method": segmentation.method,
            "used_fallback": segmentation.used_fallback,
            "luminance_split": split.used_luminance_split,
            "ms_total": metadata.processing_time_ms,
            "result": "ok",
        })
        return result

    async def extract_with_timeout(
        self,
        image_buffer: bytes,
        options: Union[ExtractionOptions, Dict[str, Any], None] = None,
        hooks: Optional[ExtractionHooks] = None,
        filename: Optional[str] = None,
        timeout_ms: Optional[int] = None,
    ) -> ColorPaletteResult:
        """
        ``extract`` under the caller-level total timeout.

        Raises:
            ExtractionTimeoutError: The run overran; its result is discarded
        """
        custom_timeout = timeout_ms / 1000 if timeout_ms else None
        try:
            async with self.timeouts.timeout("total", custom_timeout):
                return await self.extract(image_buffer, options, hooks, filename)
        except OperationTimeoutError as e:
            if isinstance(e, ExtractionTimeoutError):
                raise
            get_metrics_collector().increment_failure_count("timeout")
            raise ExtractionTimeoutError("Palette extraction timed out", e.context) from e


# Global orchestrator instance (lazy initialization)
_orchestrator: Optional[ColorExtractionOrchestrator] = None


def get_orchestrator() -> ColorExtractionOrchestrator:
    """Get or create the default orchestrator."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = ColorExtractionOrchestrator()
    return _orchestrator


async def extract_palette(
    image_buffer: bytes,
    options: Union[ExtractionOptions, Dict[str, Any], None] = None,
    hooks: Optional[ExtractionHooks] = None,
    filename: Optional[str] = None,
) -> ColorPaletteResult:
    """Extract a palette with the default orchestrator under the total timeout."""
    return await get_orchestrator().extract_with_timeout(image_buffer, options, hooks, filename)
