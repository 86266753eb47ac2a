"""Route document assembly and persistence."""

import json
import logging
import os
from datetime import datetime, timezone
from numbers import Real

from config.parameters import SLUG_MAX_LENGTH, THUMBNAIL_URL_TEMPLATE
from stamper.exceptions import NoLocationsFound
from stamper.geo_utils import slugify
from stamper.models import VideoMeta, Waypoint

logger = logging.getLogger(__name__)

PROVENANCE_KEY = "_auto_stamper"


def title_slug(title: str) -> str:
    """Filename stem for a video title, at most 80 characters."""
    return slugify(title)[:SLUG_MAX_LENGTH]


def thumbnail_url(video_id: str) -> str:
    return THUMBNAIL_URL_TEMPLATE.format(video_id=video_id)


def build_route_document(meta: VideoMeta, waypoints: list[Waypoint], provenance: dict) -> dict:
    """Assemble the JSON document consumed by the seed importer."""
    return {
        "channel": {
            "youtube_id": meta.channel_id,
            "name": meta.channel_name,
            "slug": meta.channel_slug,
        },
        "video": {
            "youtube_id": meta.video_id,
            "title": meta.title,
            "duration_secs": meta.duration,
            "thumbnail_url": thumbnail_url(meta.video_id),
        },
        "points": [w.to_dict() for w in waypoints],
        PROVENANCE_KEY: {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            **provenance,
        },
    }


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def validate_route_document(doc: dict) -> None:
    """Check the import contract: groups present, typed fields, ordered points.

    Raises:
        ValueError: describing the first violation found.
    """
    for group in ("channel", "video", "points"):
        if group not in doc:
            raise ValueError(f"Route document is missing '{group}'")

    for key in ("youtube_id", "name", "slug"):
        if not isinstance(doc["channel"].get(key), str):
            raise ValueError(f"channel.{key} must be a string")
    for key in ("youtube_id", "title", "thumbnail_url"):
        if not isinstance(doc["video"].get(key), str):
            raise ValueError(f"video.{key} must be a string")
    if not _is_number(doc["video"].get("duration_secs")):
        raise ValueError("video.duration_secs must be a number")

    points = doc["points"]
    if not isinstance(points, list) or not points:
        raise ValueError("points must be a non-empty list")
    previous = None
    for i, point in enumerate(points):
        for key in ("timestamp_s", "lat", "lng", "heading"):
            if not _is_number(point.get(key)):
                raise ValueError(f"points[{i}].{key} must be a number")
        if not 0 <= point["heading"] < 360:
            raise ValueError(f"points[{i}].heading out of range: {point['heading']}")
        if previous is not None and point["timestamp_s"] <= previous:
            raise ValueError(f"points[{i}] is out of timestamp order")
        previous = point["timestamp_s"]


def write_route_document(doc: dict, output_dir: str) -> str:
    """Validate and write *doc*, replacing any earlier file for the same title.

    Raises:
        NoLocationsFound: the document has no points.
    """
    if not doc.get("points"):
        raise NoLocationsFound(f"No waypoints for \"{doc['video']['title']}\"")
    validate_route_document(doc)

    os.makedirs(output_dir, exist_ok=True)
    # Titles with no ASCII alphanumerics fall back to the video id
    stem = title_slug(doc["video"]["title"]) or doc["video"]["youtube_id"]
    out_path = os.path.join(output_dir, f"{stem}.json")
    if os.path.exists(out_path):
        logger.info("Overwriting existing route document %s", out_path)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(doc, f, indent=2, ensure_ascii=False)
    return out_path
