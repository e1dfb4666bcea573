"""
Tests for segment classification, mask assembly, the provider engine and the
segmentation gate.
"""
import asyncio
from unittest.mock import MagicMock

import numpy as np
import pytest
import requests

from conftest import FakeProvider, encode_png, encode_png_b64, left_half_mask, network_failure, solid_image
from huepalette.errors import ExternalAPIError, SegmentationError
from huepalette.services.observability.metrics import get_metrics_collector
from huepalette.services.reliability import TimeoutManager
from huepalette.services.segmentation.classification import classify_segment
from huepalette.services.segmentation.engines.huggingface_engine import HuggingFaceEngine
from huepalette.services.segmentation.pipeline import SegmentationGate
from huepalette.services.segmentation.postprocess import (
    ForegroundMask,
    SemanticSegment,
    assemble_foreground_mask,
    binarize_mask,
    calculate_foreground_percentage,
    parse_segments,
    score_foreground,
)


def _half_mask() -> ForegroundMask:
    return ForegroundMask(mask=left_half_mask(), foreground_percentage=50.0)


def _loading_error() -> ExternalAPIError:
    return ExternalAPIError("Model is loading", service="fake-model", status=503, transient=True)


class TestClassification:
    """Panoptic label classes"""

    def test_things_are_foreground(self):
        assert classify_segment("person", 0.5, []) == "foreground"
        assert classify_segment("Dog", 0.5, []) == "foreground"

    def test_stuff_is_background(self):
        assert classify_segment("sky-other-merged", 0.99, []) == "background"
        assert classify_segment("road", 0.99, []) == "background"
        assert classify_segment("unknown-thing", 0.99, []) == "background"

    def test_ambiguous_needs_confidence_and_busy_scene(self):
        busy = [object()] * 4
        assert classify_segment("wall", 0.96, busy) == "uncertain"
        assert classify_segment("wall", 0.90, busy) == "background"
        assert classify_segment("wall", 0.96, busy[:3]) == "background"


class TestPostprocess:
    """Parsing, masks and scoring"""

    def test_parse_segments_drops_bad_items(self):
        segments = parse_segments([
            {"label": "person", "score": 0.9, "mask": "abc"},
            {"label": "", "score": 0.5},
            {"score": 0.5},
            "junk",
            {"label": "wall", "score": "n/a"},
        ])
        assert [s.label for s in segments] == ["person", "wall"]
        assert segments[0].mask == "abc"
        assert segments[1].score == 0.0

    def test_parse_segments_non_list(self):
        assert parse_segments({"error": "loading"}) == []
        assert parse_segments(None) == []

    def test_binarize_and_percentage(self):
        mask = np.array([[0, 128], [129, 255]], dtype=np.uint8)
        assert binarize_mask(mask).tolist() == [[0, 0], [255, 255]]
        assert calculate_foreground_percentage(mask) == 50.0
        assert calculate_foreground_percentage(np.zeros((0, 0), dtype=np.uint8)) == 0.0

    def test_assemble_union_of_foreground_segments(self):
        full = np.full((20, 20), 255, dtype=np.uint8)
        segments = [
            SemanticSegment("person", 0.98, encode_png_b64(left_half_mask())),
            SemanticSegment("sky", 0.99, encode_png_b64(full)),
        ]
        result = assemble_foreground_mask(segments, (20, 20))
        assert result.foreground_percentage == 50.0
        assert (result.mask[:, :10] == 255).all()
        assert (result.mask[:, 10:] == 0).all()

    def test_assemble_skips_broken_masks(self):
        segments = [
            SemanticSegment("person", 0.9, "%%%"),
            SemanticSegment("cat", 0.9, None),
        ]
        assert assemble_foreground_mask(segments, (20, 20)) is None

    def test_assemble_without_foreground(self):
        segments = [SemanticSegment("sky", 0.9, encode_png_b64(left_half_mask()))]
        assert assemble_foreground_mask(segments, (20, 20)) is None

    @pytest.mark.parametrize("percentage,expected", [
        (5, ("high", 0.9)),
        (70, ("high", 0.9)),
        (4.9, ("medium", 0.75)),
        (1, ("medium", 0.75)),
        (75, ("medium", 0.8)),
        (90, ("medium", 0.8)),
        (95, ("low", 0.6)),
        (0.5, ("low", 0.6)),
    ])
    def test_score_bands(self, percentage, expected):
        assert score_foreground(percentage) == expected


class TestSegmentationGate:
    """Concurrent provider calls with fallback"""

    async def test_provider_failure_falls_back(self, failing_gate, failing_provider):
        """Scenario: both calls fail, luminance fallback at 0.4"""
        result = await failing_gate.segment(b"image")

        assert result.mask is None
        assert result.method == "fallback-luminance"
        assert result.quality == "low"
        assert result.confidence == 0.4
        assert result.used_fallback
        assert result.categories == ()
        assert failing_provider.foreground_calls == 1

        metrics = get_metrics_collector()
        assert metrics.get_counter("segmentation_fallback_total") == 1
        assert metrics.get_failure_count("segmentation_provider") == 1

    async def test_mask_success(self):
        provider = FakeProvider(
            foreground=[_half_mask()],
            semantic=[[
                SemanticSegment("person", 0.9),
                SemanticSegment("sky", 0.8),
                SemanticSegment("person", 0.7),
            ]],
        )
        result = await SegmentationGate(provider=provider).segment(b"image", request_id="pal-1")

        assert result.method == "mask2former"
        assert result.quality == "high"
        assert result.confidence == 0.9
        assert not result.used_fallback
        assert result.mask is not None
        assert result.foreground_percentage == 50.0
        assert result.categories == ("person", "sky")
        assert get_metrics_collector().get_counter("segmentation_fallback_total") == 0

    async def test_null_mask_is_medium_fallback(self):
        result = await SegmentationGate(provider=FakeProvider()).segment(b"image")
        assert result.used_fallback
        assert (result.quality, result.confidence) == ("medium", 0.5)

    async def test_empty_mask_is_medium_fallback(self):
        empty = ForegroundMask(mask=np.zeros((4, 4), dtype=np.uint8), foreground_percentage=0.0)
        result = await SegmentationGate(provider=FakeProvider(foreground=[empty])).segment(b"image")
        assert result.mask is None
        assert (result.quality, result.confidence) == ("medium", 0.5)

    async def test_semantic_failure_keeps_mask(self):
        provider = FakeProvider(foreground=[_half_mask()], semantic=[network_failure()])
        result = await SegmentationGate(provider=provider, retry_delay_ms=0).segment(b"image")
        assert not result.used_fallback
        assert result.categories == ()

    async def test_foreground_failure_keeps_categories(self):
        provider = FakeProvider(foreground=[network_failure()], semantic=[[SemanticSegment("cat", 0.9)]])
        result = await SegmentationGate(provider=provider, retry_delay_ms=0).segment(b"image")
        assert result.used_fallback
        assert result.categories == ("cat",)

    async def test_slow_semantic_does_not_block_foreground(self):
        class SlowSemantic(FakeProvider):
            async def segment_semantic(self, image_buffer):
                await asyncio.sleep(1)
                return []

        timeouts = TimeoutManager(timeouts_ms={"foreground": 1000, "semantic": 50})
        gate = SegmentationGate(provider=SlowSemantic(foreground=[_half_mask()]), timeout_manager=timeouts)
        result = await gate.segment(b"image")
        assert result.method == "mask2former"
        assert result.categories == ()

    async def test_foreground_timeout_falls_back(self):
        timeouts = TimeoutManager(timeouts_ms={"foreground": 50, "semantic": 50})
        gate = SegmentationGate(provider=FakeProvider(foreground=[_half_mask()], delay=1), timeout_manager=timeouts)
        result = await gate.segment(b"image")
        assert (result.quality, result.confidence) == ("low", 0.4)

    async def test_transient_error_retried_once(self):
        provider = FakeProvider(foreground=[_loading_error(), _half_mask()])
        result = await SegmentationGate(provider=provider, retry_delay_ms=0).segment(b"image")
        assert provider.foreground_calls == 2
        assert not result.used_fallback

    async def test_persistent_loading_gives_up_after_two_calls(self):
        provider = FakeProvider(foreground=[_loading_error()])
        result = await SegmentationGate(provider=provider, retry_delay_ms=0).segment(b"image")
        assert provider.foreground_calls == 2
        assert (result.quality, result.confidence) == ("low", 0.4)

    async def test_network_failure_not_retried(self, failing_provider):
        await SegmentationGate(provider=failing_provider, retry_delay_ms=0).segment(b"image")
        assert failing_provider.foreground_calls == 1
        assert failing_provider.semantic_calls == 1

    async def test_unexpected_error_is_absorbed(self):
        result = await SegmentationGate(provider=FakeProvider(foreground=["not a mask"])).segment(b"image")
        assert result.used_fallback
        assert (result.quality, result.confidence) == ("low", 0.3)
        assert get_metrics_collector().get_failure_count("segmentation_unexpected") == 1


def _response(status_code=200, payload=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text
    response.json.return_value = payload
    return response


class TestHuggingFaceEngine:
    """Provider over a mocked HTTP session"""

    @pytest.fixture
    def image_png(self):
        return encode_png(solid_image((200, 50, 0), width=20, height=20))

    def _engine(self, session, token="hf_test"):
        return HuggingFaceEngine(
            api_url="https://models.test/",
            token=token,
            foreground_model="fg-model",
            semantic_model="sem-model",
            session=session,
        )

    async def test_segment_foreground(self, image_png):
        session = MagicMock()
        session.post.return_value = _response(payload=[
            {"label": "person", "score": 0.98, "mask": encode_png_b64(left_half_mask())},
            {"label": "sky", "score": 0.99, "mask": encode_png_b64(np.full((20, 20), 255, np.uint8))},
        ])

        result = await self._engine(session).segment_foreground(image_png)

        assert result.foreground_percentage == 50.0
        args, kwargs = session.post.call_args
        assert args[0] == "https://models.test/fg-model"
        assert kwargs["headers"]["Authorization"] == "Bearer hf_test"
        assert kwargs["data"] == image_png

    async def test_no_segments_is_none(self, image_png):
        session = MagicMock()
        session.post.return_value = _response(payload=[])
        assert await self._engine(session).segment_foreground(image_png) is None

    async def test_segment_semantic_sends_png(self, image_png):
        session = MagicMock()
        session.post.return_value = _response(payload=[{"label": "wall", "score": 0.9}, {"label": None}])

        segments = await self._engine(session).segment_semantic(image_png)

        assert [s.label for s in segments] == ["wall"]
        args, kwargs = session.post.call_args
        assert args[0] == "https://models.test/sem-model"
        assert kwargs["data"].startswith(b"\x89PNG")

    async def test_model_loading_is_transient(self, image_png):
        session = MagicMock()
        session.post.return_value = _response(status_code=503)
        with pytest.raises(ExternalAPIError) as exc_info:
            await self._engine(session).segment_foreground(image_png)
        assert exc_info.value.transient
        assert exc_info.value.status == 503

    async def test_server_error(self, image_png):
        session = MagicMock()
        session.post.return_value = _response(status_code=500, text="x" * 500)
        with pytest.raises(ExternalAPIError) as exc_info:
            await self._engine(session).segment_foreground(image_png)
        assert not exc_info.value.transient
        assert len(exc_info.value.context["body"]) == 200

    async def test_transport_error(self, image_png):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(ExternalAPIError):
            await self._engine(session).segment_foreground(image_png)

    async def test_invalid_json(self, image_png):
        session = MagicMock()
        response = _response()
        response.json.side_effect = ValueError("no json")
        session.post.return_value = response
        with pytest.raises(ExternalAPIError, match="invalid JSON"):
            await self._engine(session).segment_foreground(image_png)

    async def test_missing_token(self, image_png):
        session = MagicMock()
        with pytest.raises(SegmentationError):
            await self._engine(session, token="").segment_foreground(image_png)
        session.post.assert_not_called()

    async def test_gate_over_failing_engine_falls_back(self, image_png):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("refused")
        gate = SegmentationGate(provider=self._engine(session), retry_delay_ms=0)
        result = await gate.segment(image_png)
        assert (result.method, result.confidence) == ("fallback-luminance", 0.4)
