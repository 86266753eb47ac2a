"""Data records passed between pipeline stages."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class VideoMeta:
    """Source video metadata resolved by the acquirer."""

    video_id: str
    title: str
    duration: int
    channel_id: str
    channel_name: str
    channel_slug: str
    video_path: str


@dataclass(frozen=True)
class FrameSample:
    """One sampled frame on disk. ``index`` is 0-based."""

    index: int
    interval: int
    image_path: str

    @property
    def timestamp_s(self) -> int:
        return (self.index + 1) * self.interval


@dataclass
class VisionResult:
    confidence: str
    location_query: str
    reasoning: str = ""
    street_signs: list[str] = field(default_factory=list)
    landmarks: list[str] = field(default_factory=list)
    heading_estimate: Optional[float] = None

    @property
    def is_locatable(self) -> bool:
        """True when the result is worth sending to the geocoder."""
        return self.confidence != "none" and bool(self.location_query.strip())


@dataclass(frozen=True)
class GeocodedPoint:
    lat: float
    lng: float
    place_name: str


@dataclass
class RouteCandidate:
    """A frame that survived inference and geocoding."""

    timestamp_s: int
    vision: VisionResult
    geo: GeocodedPoint
    heading: float = 0.0


@dataclass(frozen=True)
class Waypoint:
    timestamp_s: int
    lat: float
    lng: float
    heading: int

    def to_dict(self) -> dict:
        return {
            "timestamp_s": self.timestamp_s,
            "lat": self.lat,
            "lng": self.lng,
            "heading": self.heading,
        }
