from types import SimpleNamespace

import pytest

from fakes import ScriptedVision, vision_json
from stamper.exceptions import InferenceFailure, MalformedInferenceResponse
from stamper.models import FrameSample
from stamper.retry import RetryPolicy
from stamper.vision_locate import (
    VISION_PROMPT,
    AnthropicVisionProvider,
    locate_frame,
    parse_vision_response,
)


@pytest.fixture
def frame(tmp_path):
    path = tmp_path / "frame_000001.jpg"
    path.write_bytes(b"frame-0")
    return FrameSample(index=0, interval=30, image_path=str(path))


def test_parse_plain_json():
    result = parse_vision_response(vision_json("medium", "Bleecker St, Manhattan, NYC", heading=45))

    assert result.confidence == "medium"
    assert result.location_query == "Bleecker St, Manhattan, NYC"
    assert result.street_signs == ["Broadway"]
    assert result.heading_estimate == 45
    assert result.is_locatable


def test_parse_strips_code_fences():
    text = "```json\n" + vision_json("low", "Canal St, Manhattan, NYC") + "\n```"

    assert parse_vision_response(text).location_query == "Canal St, Manhattan, NYC"


def test_parse_normalizes_heading():
    assert parse_vision_response(vision_json(heading=370)).heading_estimate == 10
    assert parse_vision_response(vision_json(heading=-90)).heading_estimate == 270


def test_parse_missing_heading_is_none():
    result = parse_vision_response('{"confidence": "none", "location_query": ""}')

    assert result.heading_estimate is None
    assert not result.is_locatable


@pytest.mark.parametrize(
    "text",
    [
        "I think this is Times Square",
        "[1, 2, 3]",
        '{"confidence": "certain", "location_query": "x"}',
        '{"confidence": "high", "location_query": "x", "heading_estimate": "north"}',
        '{"confidence": "high", "location_query": "x", "landmarks": "Empire State"}',
        '{"confidence": "high", "location_query": "x", "heading_estimate": 1e999}',
        '{"confidence": "high", "location_query": "x", "heading_estimate": NaN}',
    ],
)
def test_parse_rejects_malformed(text):
    with pytest.raises(MalformedInferenceResponse):
        parse_vision_response(text)


def test_locate_frame_retries_then_succeeds(frame):
    sleeps = []
    vision = ScriptedVision({0: [InferenceFailure("timeout"), InferenceFailure("timeout"), vision_json()]})

    result = locate_frame(frame, vision, RetryPolicy(sleep=sleeps.append))

    assert result.confidence == "high"
    assert vision.calls == [0, 0, 0]
    assert sleeps == [1.0, 2.0]


def test_locate_frame_gives_up_after_three_attempts(frame):
    vision = ScriptedVision({0: ["not json"]})

    assert locate_frame(frame, vision, RetryPolicy(sleep=lambda s: None)) is None
    assert len(vision.calls) == 3


def test_anthropic_provider_sends_image_and_prompt():
    captured = {}

    def create(**kwargs):
        captured.update(kwargs)
        return SimpleNamespace(content=[SimpleNamespace(text=vision_json())])

    client = SimpleNamespace(messages=SimpleNamespace(create=create))
    provider = AnthropicVisionProvider(client=client, model="test-model")

    text = provider.describe(b"\xff\xd8jpeg", VISION_PROMPT)

    assert parse_vision_response(text).confidence == "high"
    assert captured["model"] == "test-model"
    image, prompt = captured["messages"][0]["content"]
    assert image["source"]["media_type"] == "image/jpeg"
    assert prompt["text"] == VISION_PROMPT
    assert provider.name == "test-model"
