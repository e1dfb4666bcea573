"""
Hugging Face Segmentation Engine
Panoptic foreground detection and semantic labelling over the inference API.
"""
import asyncio
from typing import Any, List, Optional

import requests
from loguru import logger

from huepalette.config import config
from huepalette.errors import ExternalAPIError, SegmentationError
from huepalette.services.imaging import read_image_size, resize_to_fit
from huepalette.services.segmentation.postprocess import (
    ForegroundMask,
    SemanticSegment,
    assemble_foreground_mask,
    parse_segments,
)
from . import SegmentationProvider

MODEL_LOADING_STATUS = 503
ERROR_BODY_PREVIEW = 200


class HuggingFaceEngine(SegmentationProvider):
    """Segmentation through hosted Mask2Former and SegFormer models."""

    name = "huggingface"

    def __init__(
        self,
        api_url: Optional[str] = None,
        token: Optional[str] = None,
        foreground_model: Optional[str] = None,
        semantic_model: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = (api_url or config.HF_API_URL).rstrip("/")
        self.token = token if token is not None else config.HF_TOKEN
        self.foreground_model = foreground_model or config.HF_FOREGROUND_MODEL
        self.semantic_model = semantic_model or config.HF_SEMANTIC_MODEL
        self._session = session or requests.Session()

    def _post(self, model: str, payload: bytes, timeout_s: float) -> Any:
        """
        POST raw image bytes to a hosted model.

        Returns:
            Decoded JSON body

        Raises:
            SegmentationError: No API token configured
            ExternalAPIError: Transport failure, non-2xx status or bad JSON.
                503 (model loading) is flagged transient.
        """
        if not self.token:
            raise SegmentationError("Segmentation API token is not configured", {"model": model})

        try:
            response = self._session.post(
                f"{self.api_url}/{model}",
                data=payload,
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Content-Type": "application/octet-stream",
                },
                timeout=timeout_s,
            )
        except requests.RequestException as e:
            raise ExternalAPIError(f"Request to {model} failed: {e}", service=model) from e

        if response.status_code == MODEL_LOADING_STATUS:
            raise ExternalAPIError(
                f"{model} is loading", service=model, status=response.status_code, transient=True
            )
        if not response.ok:
            if response.status_code in (401, 403):
                logger.error(f"Authentication rejected by {model}, check the API token")
            raise ExternalAPIError(
                f"{model} failed with status {response.status_code}",
                service=model,
                status=response.status_code,
                context={"body": response.text[:ERROR_BODY_PREVIEW]},
            )

        try:
            return response.json()
        except ValueError as e:
            raise ExternalAPIError(
                f"{model} returned invalid JSON", service=model, status=response.status_code
            ) from e

    async def segment_foreground(self, image_buffer: bytes) -> Optional[ForegroundMask]:
        """
        Foreground mask from panoptic segments.

        Returns:
            ForegroundMask at the image's size, or None when the model found
            no segments or none of them is foreground
        """
        payload = await asyncio.to_thread(
            self._post, self.foreground_model, bytes(image_buffer), config.TIMEOUT_FOREGROUND_MS / 1000
        )
        segments = parse_segments(payload)
        if not segments:
            logger.warning(f"{self.foreground_model} returned no segments")
            return None

        logger.info(
            f"Received {len(segments)} segments: "
            + ", ".join(f"{s.label}({s.score:.2f})" for s in segments)
        )
        size = read_image_size(image_buffer)
        return await asyncio.to_thread(assemble_foreground_mask, segments, size)

    async def segment_semantic(self, image_buffer: bytes) -> List[SemanticSegment]:
        """Semantic regions of the image, sent downscaled to fit SEMANTIC_MAX_EDGE."""
        resized = await asyncio.to_thread(resize_to_fit, image_buffer, config.SEMANTIC_MAX_EDGE)
        payload = await asyncio.to_thread(
            self._post, self.semantic_model, resized, config.TIMEOUT_SEMANTIC_MS / 1000
        )
        segments = parse_segments(payload)
        logger.info(f"Found {len(segments)} semantic regions")
        return segments


# Global engine instance (lazy initialization)
_engine: Optional[HuggingFaceEngine] = None


def get_huggingface_engine() -> HuggingFaceEngine:
    """Get or create global Hugging Face engine instance."""
    global _engine
    if _engine is None:
        _engine = HuggingFaceEngine()
    return _engine
