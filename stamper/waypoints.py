"""Waypoint synthesis: near-duplicate removal and compass headings."""

from collections import Counter

from config.parameters import COORD_DECIMALS, DEDUP_THRESHOLD_DEG
from stamper.geo_utils import forward_azimuth, normalize_heading, planar_distance
from stamper.models import GeocodedPoint, RouteCandidate, Waypoint


def deduplicate(
    candidates: list[RouteCandidate],
    threshold: float = DEDUP_THRESHOLD_DEG,
) -> list[RouteCandidate]:
    """Drop candidates that sit on top of the last kept one.

    Candidates are walked in timestamp order. The first is always kept; each
    later one is dropped if its planar degree distance to the most recently
    kept candidate is below *threshold*. Running this on its own output is a
    no-op.
    """
    kept: list[RouteCandidate] = []
    for candidate in sorted(candidates, key=lambda c: c.timestamp_s):
        if kept:
            last = kept[-1].geo
            dist = planar_distance(last.lat, last.lng, candidate.geo.lat, candidate.geo.lng)
            if dist < threshold:
                continue
        kept.append(candidate)
    return kept


def compute_heading(origin: GeocodedPoint, target: GeocodedPoint) -> float:
    return forward_azimuth(origin.lat, origin.lng, target.lat, target.lng)


def synthesize_waypoints(
    candidates: list[RouteCandidate],
    threshold: float = DEDUP_THRESHOLD_DEG,
) -> list[Waypoint]:
    """Deduplicate candidates and derive a heading for each kept point.

    Every waypoint but the last faces the next kept waypoint. The last one has
    nothing ahead of it, so it keeps the vision model's heading estimate.

    Distances are planar in degrees, not metres. Coordinates are rounded only
    after deduplication, so two kept points closer than one rounding step can
    come out with identical lat/lng.
    """
    kept = deduplicate(candidates, threshold)

    waypoints = []
    for i, c in enumerate(kept):
        if i < len(kept) - 1:
            heading = compute_heading(c.geo, kept[i + 1].geo)
        else:
            heading = c.heading or 0
        waypoints.append(Waypoint(
            timestamp_s=c.timestamp_s,
            lat=round(c.geo.lat, COORD_DECIMALS),
            lng=round(c.geo.lng, COORD_DECIMALS),
            heading=normalize_heading(heading),
        ))
    return waypoints


def confidence_breakdown(candidates: list[RouteCandidate]) -> dict[str, int]:
    """Count high/medium/low results across all located candidates (pre-dedup)."""
    counts = Counter(c.vision.confidence for c in candidates)
    return {level: counts.get(level, 0) for level in ("high", "medium", "low")}
