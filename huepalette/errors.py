"""
huepalette Error Taxonomy

Only ValidationError (and its decode subclass) and ExtractionTimeoutError are
surfaced to callers. Segmentation and clustering errors are recoverable and are
reported through fallback flags and confidence fields instead.
"""
from typing import Any, Dict, Optional


class PaletteError(Exception):
    """Base class for all extraction errors."""

    code = "PALETTE_ERROR"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationError(PaletteError):
    """Malformed or empty input. Fatal: raised to the caller."""

    code = "VALIDATION_ERROR"


class ImageDecodeError(ValidationError):
    """The buffer could not be decoded as an image."""

    code = "IMAGE_DECODE_ERROR"


class SegmentationError(PaletteError):
    """Segmentation failed. Always degrades to the luminance fallback."""

    code = "SEGMENTATION_ERROR"


class ExternalAPIError(SegmentationError):
    """Network or provider failure."""

    code = "EXTERNAL_API_ERROR"

    def __init__(
        self,
        message: str,
        service: str,
        status: Optional[int] = None,
        transient: bool = False,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, {**(context or {}), "service": service, "status": status})
        self.service = service
        self.status = status
        self.transient = transient


class ClusteringError(PaletteError):
    """Degenerate clustering input. Yields an empty slice for that segment."""

    code = "CLUSTERING_ERROR"


class OperationTimeoutError(PaletteError):
    """A single awaited operation exceeded its time budget."""

    code = "OPERATION_TIMEOUT"


class ExtractionTimeoutError(OperationTimeoutError):
    """The whole run exceeded the caller-level timeout."""

    code = "TIMEOUT_ERROR"


def user_message(error: Exception) -> str:
    """User-visible text for a failure."""
    if isinstance(error, ValidationError):
        return "Could not process this image"
    if isinstance(error, ExtractionTimeoutError):
        return "Processing this image took too long"
    return "An unexpected error occurred"
