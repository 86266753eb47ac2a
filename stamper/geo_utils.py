"""Coordinate math and slug helpers."""

import math
import re


def slugify(text: str) -> str:
    """Lowercase, collapse runs of non-alphanumerics into one hyphen, trim hyphens."""
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def planar_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Euclidean distance in degree space.

    Not a geodesic distance: east-west and north-south degrees are treated
    the same. Only used for near-duplicate detection.
    """
    return math.sqrt((lat2 - lat1) ** 2 + (lng2 - lng1) ** 2)


def forward_azimuth(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Initial great-circle bearing from point 1 to point 2, in [0, 360)."""
    rlat1, rlat2 = math.radians(lat1), math.radians(lat2)
    dlng = math.radians(lng2 - lng1)
    y = math.sin(dlng) * math.cos(rlat2)
    x = math.cos(rlat1) * math.sin(rlat2) - math.sin(rlat1) * math.cos(rlat2) * math.cos(dlng)
    return (math.degrees(math.atan2(y, x)) + 360) % 360


def normalize_heading(value: float) -> int:
    """Round to the nearest degree and wrap into [0, 360)."""
    return int(round(value)) % 360


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return distance in metres between two GPS coordinates."""
    R = 6_371_000  # Earth radius in metres
    rlat1, rlat2 = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = math.sin(dlat / 2) ** 2 + math.cos(rlat1) * math.cos(rlat2) * math.sin(dlon / 2) ** 2
    return R * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def route_length_m(points: list[dict]) -> float:
    """Total walked length of a waypoint list (dicts with lat/lng), in metres."""
    total = 0.0
    for i in range(1, len(points)):
        total += haversine(
            points[i - 1]["lat"], points[i - 1]["lng"],
            points[i]["lat"], points[i]["lng"],
        )
    return total
