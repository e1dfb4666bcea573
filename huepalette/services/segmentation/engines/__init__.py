"""
Segmentation provider interface.

A provider answers two independent questions about an image buffer: where
the foreground is, and which semantic regions it contains. Either call may
raise; the gate isolates failures.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from huepalette.services.segmentation.postprocess import ForegroundMask, SemanticSegment


class SegmentationProvider(ABC):
    """Source of foreground masks and semantic labels."""

    name: str = "provider"

    @abstractmethod
    async def segment_foreground(self, image_buffer: bytes) -> Optional[ForegroundMask]:
        """Foreground mask at image size, or None when nothing was found."""

    @abstractmethod
    async def segment_semantic(self, image_buffer: bytes) -> List[SemanticSegment]:
        """Labelled regions of the image."""
