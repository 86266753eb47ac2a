"""Claude Vision scene location: where in NYC was this frame filmed?"""

import base64
import json
import logging
import math
import re
from abc import ABC, abstractmethod
from typing import Optional

from config.parameters import (
    CONFIDENCE_LEVELS,
    VISION_BACKOFF_STEP_S,
    VISION_MAX_TOKENS,
    VISION_MODEL,
    VISION_RETRIES,
)
from stamper.exceptions import InferenceFailure, MalformedInferenceResponse
from stamper.models import FrameSample, VisionResult
from stamper.retry import RetryPolicy

logger = logging.getLogger(__name__)


VISION_PROMPT = """You are looking at a single frame from a walking tour video filmed in New York City.

Work out the EXACT spot where the camera was standing, using whatever is visible:
- green street name signs at intersections
- shop, restaurant and business signs
- subway entrances and their line letters or numbers
- landmarks: bridges, parks, notable buildings, statues, public art
- building numbers, scaffolding permits, parking and bus stop signs
- neighborhood texture (cobblestones, fire escapes, brownstones)

Respond ONLY with valid JSON, no markdown, no backticks, no explanation:

{"confidence":"high or medium or low or none","location_query":"search string for a geocoder, e.g. 'Broadway and W 42nd St, Manhattan, NYC'","reasoning":"which clues you used, one sentence","street_signs":["street names you can read"],"landmarks":["landmarks you recognise"],"heading_estimate":0}

heading_estimate is the compass bearing the camera faces (0=north, 90=east, 180=south, 270=west), judged from shadows, street grid, one-way signs or known landmarks.
If the location cannot be determined at all, use confidence "none" and an empty location_query.
Intersection-level precision is ideal. Always end location_query with the borough, e.g. "Manhattan, NYC" or "Brooklyn, NYC"."""


class VisionProvider(ABC):
    """Sends one image plus a prompt to a vision model and returns its raw text."""

    name = "vision"

    @abstractmethod
    def describe(self, image_bytes: bytes, prompt: str) -> str:
        """Raise InferenceFailure when the call itself fails."""


class AnthropicVisionProvider(VisionProvider):
    def __init__(self, client=None, model: str = VISION_MODEL, max_tokens: int = VISION_MAX_TOKENS):
        if client is None:
            from anthropic import Anthropic
            client = Anthropic()
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    @property
    def name(self) -> str:
        return self.model

    def describe(self, image_bytes: bytes, prompt: str) -> str:
        import anthropic

        image_base64 = base64.b64encode(image_bytes).decode("utf-8")
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": "image/jpeg",
                                "data": image_base64,
                            },
                        },
                        {"type": "text", "text": prompt},
                    ],
                }],
            )
        except anthropic.APIError as e:
            raise InferenceFailure(f"Vision API error: {e}") from e
        if not response.content:
            raise MalformedInferenceResponse("Vision API returned no content")
        return response.content[0].text


def _string_list(value) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise MalformedInferenceResponse(f"Expected a list, got {type(value).__name__}")
    return [str(v) for v in value if v is not None]


def parse_vision_response(text: str) -> VisionResult:
    """Parse the model's JSON answer, tolerating markdown code fences."""
    text = (text or "").strip()
    text = re.sub(r"^```(?:json)?\s*", "", text, flags=re.IGNORECASE)
    text = re.sub(r"\s*```$", "", text)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedInferenceResponse(f"Vision response is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedInferenceResponse("Vision response is not a JSON object")

    confidence = str(data.get("confidence", "")).strip().lower()
    if confidence not in CONFIDENCE_LEVELS:
        raise MalformedInferenceResponse(f"Unknown confidence level: {confidence!r}")

    heading = data.get("heading_estimate")
    if heading is not None:
        try:
            heading = float(heading) % 360
        except (TypeError, ValueError) as e:
            raise MalformedInferenceResponse(f"Bad heading_estimate: {heading!r}") from e
        if not math.isfinite(heading):
            raise MalformedInferenceResponse(f"Bad heading_estimate: {data['heading_estimate']!r}")

    return VisionResult(
        confidence=confidence,
        location_query=str(data.get("location_query") or "").strip(),
        reasoning=str(data.get("reasoning") or ""),
        street_signs=_string_list(data.get("street_signs")),
        landmarks=_string_list(data.get("landmarks")),
        heading_estimate=heading,
    )


def default_retry_policy() -> RetryPolicy:
    """Two retries after the first attempt, waiting 1s then 2s."""
    return RetryPolicy(retries=VISION_RETRIES, backoff_step=VISION_BACKOFF_STEP_S)


def locate_frame(
    frame: FrameSample,
    provider: VisionProvider,
    retry_policy: Optional[RetryPolicy] = None,
    prompt: str = VISION_PROMPT,
) -> Optional[VisionResult]:
    """Ask the vision provider where *frame* was filmed.

    Transport errors and unparseable answers share one retry budget. Returns
    None once the budget is spent; the caller skips the frame.
    """
    retry_policy = retry_policy or default_retry_policy()
    with open(frame.image_path, "rb") as f:
        image_bytes = f.read()

    def attempt() -> VisionResult:
        return parse_vision_response(provider.describe(image_bytes, prompt))

    try:
        return retry_policy.call(
            attempt,
            exceptions=InferenceFailure,
            label=f"Vision frame {frame.index + 1}",
        )
    except InferenceFailure as e:
        logger.error("Vision error on frame %d (t=%ds): %s", frame.index + 1, frame.timestamp_s, e)
        return None
