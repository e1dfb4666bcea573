"""
Test configuration and fixtures for huepalette tests.
"""
import asyncio
import base64
from typing import Any, List, Optional, Sequence, Tuple

import cv2
import numpy as np
import pytest

from huepalette.errors import ExternalAPIError
from huepalette.services.colors.conversion import clear_conversion_caches
from huepalette.services.observability.metrics import reset_metrics
from huepalette.services.reliability import TimeoutManager
from huepalette.services.segmentation.engines import SegmentationProvider
from huepalette.services.segmentation.pipeline import SegmentationGate
from huepalette.services.segmentation.postprocess import ForegroundMask, SemanticSegment

RGB = Tuple[int, int, int]


def encode_png(image_rgb: np.ndarray) -> bytes:
    """PNG bytes for an RGB (or single-channel) array."""
    if image_rgb.ndim == 3:
        image_rgb = cv2.cvtColor(image_rgb, cv2.COLOR_RGB2BGR)
    success, buffer = cv2.imencode(".png", image_rgb)
    assert success
    return buffer.tobytes()


def encode_png_b64(image: np.ndarray) -> str:
    return base64.b64encode(encode_png(image)).decode("ascii")


def solid_image(color: RGB, width: int = 10, height: int = 10) -> np.ndarray:
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[:, :] = color
    return image


def halves_image(left: RGB, right: RGB, width: int = 20, height: int = 20) -> np.ndarray:
    image = solid_image(left, width, height)
    image[:, width // 2:] = right
    return image


def stripes_image(colors: Sequence[RGB], stripe_width: int = 10, height: int = 20) -> np.ndarray:
    image = np.zeros((height, stripe_width * len(colors), 3), dtype=np.uint8)
    for i, color in enumerate(colors):
        image[:, i * stripe_width:(i + 1) * stripe_width] = color
    return image


def left_half_mask(width: int = 20, height: int = 20) -> np.ndarray:
    mask = np.zeros((height, width), dtype=np.uint8)
    mask[:, : width // 2] = 255
    return mask


class FakeProvider(SegmentationProvider):
    """
    Scripted provider.

    Each call consumes the next scripted outcome; an exception instance is
    raised, anything else is returned. The last outcome repeats.
    """

    name = "fake"

    def __init__(
        self,
        foreground: Optional[List[Any]] = None,
        semantic: Optional[List[Any]] = None,
        delay: float = 0.0,
    ):
        self.foreground_script = list(foreground) if foreground is not None else [None]
        self.semantic_script = list(semantic) if semantic is not None else [[]]
        self.delay = delay
        self.foreground_calls = 0
        self.semantic_calls = 0

    @staticmethod
    def _next(script: List[Any], index: int) -> Any:
        outcome = script[min(index, len(script) - 1)]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def segment_foreground(self, image_buffer: bytes) -> Optional[ForegroundMask]:
        index = self.foreground_calls
        self.foreground_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return self._next(self.foreground_script, index)

    async def segment_semantic(self, image_buffer: bytes) -> List[SemanticSegment]:
        index = self.semantic_calls
        self.semantic_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return self._next(self.semantic_script, index)


def network_failure(service: str = "fake-model") -> ExternalAPIError:
    return ExternalAPIError("Connection refused", service=service)


@pytest.fixture(autouse=True)
def reset_state():
    """Reset metrics and conversion caches before each test."""
    reset_metrics()
    clear_conversion_caches()
    yield


@pytest.fixture
def failing_provider() -> FakeProvider:
    """Provider whose calls both reject with a network failure."""
    return FakeProvider(foreground=[network_failure()], semantic=[network_failure()])


@pytest.fixture
def failing_gate(failing_provider) -> SegmentationGate:
    return SegmentationGate(provider=failing_provider, retry_delay_ms=0)


@pytest.fixture
def fast_timeouts() -> TimeoutManager:
    return TimeoutManager(timeouts_ms={"foreground": 1000, "semantic": 1000, "total": 5000})


@pytest.fixture
def red_png() -> bytes:
    """Uniform 10x10 pure red."""
    return encode_png(solid_image((255, 0, 0)))


@pytest.fixture
def orange_blue_png() -> bytes:
    """Half RGB(200, 50, 0), half RGB(0, 100, 200)."""
    return encode_png(halves_image((200, 50, 0), (0, 100, 200)))


@pytest.fixture
def close_reds_png() -> bytes:
    """Half RGB(200, 30, 30), half RGB(210, 40, 20)."""
    return encode_png(halves_image((200, 30, 30), (210, 40, 20)))


@pytest.fixture
def rainbow_png() -> bytes:
    """Six saturated stripes."""
    return encode_png(stripes_image([
        (220, 30, 30), (230, 200, 20), (30, 180, 60),
        (20, 190, 200), (40, 60, 210), (190, 40, 190),
    ]))
