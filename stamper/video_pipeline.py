"""Auto-stamper per-video pipeline: one URL in, one route document out."""

import logging
import os
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from config.parameters import (
    DEFAULT_INTERVAL_S,
    DEDUP_THRESHOLD_DEG,
    DOWNLOADS_DIR,
    FRAMES_DIR,
    GEOCODE_DELAY_S,
    OUTPUT_DIR,
)
from skills.geocoding import NYC, BoundingBox, GeocodingProvider, geocode
from stamper.acquire import download_video
from stamper.exceptions import GeocodeMiss, NoLocationsFound, StamperError
from stamper.geo_utils import route_length_m
from stamper.models import FrameSample, RouteCandidate, VideoMeta
from stamper.retry import RetryPolicy
from stamper.route_output import build_route_document, write_route_document
from stamper.video_frames import extract_frames
from stamper.vision_locate import VisionProvider, default_retry_policy, locate_frame
from stamper.waypoints import confidence_breakdown, synthesize_waypoints
from stamper.workspace import video_workspace

logger = logging.getLogger(__name__)

CONFIDENCE_TAGS = {"high": "H", "medium": "M", "low": "L"}


class VideoStage(Enum):
    ACQUIRING = "acquiring"
    SAMPLING = "sampling"
    LOCATING = "locating"
    SYNTHESIZING = "synthesizing"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineContext:
    """Providers and settings shared by every video in a run."""

    vision: VisionProvider
    geocoder: GeocodingProvider
    interval: int = DEFAULT_INTERVAL_S
    keep_video: bool = False
    output_dir: str = OUTPUT_DIR
    download_dir: str = DOWNLOADS_DIR
    frames_dir: str = FRAMES_DIR
    bbox: BoundingBox = NYC
    geocode_delay: float = GEOCODE_DELAY_S
    dedup_threshold: float = DEDUP_THRESHOLD_DEG
    retry_policy: RetryPolicy = field(default_factory=default_retry_policy)
    sleep: Callable[[float], None] = time.sleep
    acquire: Callable[[str, str], VideoMeta] = download_video
    sample: Callable[..., list[FrameSample]] = extract_frames


@dataclass
class VideoOutcome:
    url: str
    stage: VideoStage
    output_path: Optional[str] = None
    reason: Optional[str] = None
    error: Optional[str] = None
    failed_at: Optional[VideoStage] = None

    @property
    def ok(self) -> bool:
        return self.stage is VideoStage.DONE


def format_time(secs: int) -> str:
    mins, secs = divmod(int(secs), 60)
    return f"{mins:02d}:{secs:02d}"


def locate_frames(frames: list[FrameSample], ctx: PipelineContext) -> list[RouteCandidate]:
    """Run inference then geocoding on each frame, strictly one call at a time.

    Frames that fail inference, come back with confidence "none" or an empty
    query, or miss in the geocoder are skipped.
    """
    candidates: list[RouteCandidate] = []
    total = len(frames)

    print(f"\n  Analyzing {total} frames with {ctx.vision.name}...\n")

    for frame in frames:
        i = frame.index
        pct = round((i + 1) / total * 100)
        prefix = f"  [{i + 1:>3}/{total}] t={format_time(frame.timestamp_s)} ({pct}%) ... "

        vision = locate_frame(frame, ctx.vision, ctx.retry_policy)
        if vision is None or not vision.is_locatable:
            print(prefix + f"skip ({vision.confidence if vision else 'error'})")
            continue

        try:
            geo = geocode(
                vision.location_query,
                ctx.geocoder,
                bbox=ctx.bbox,
                delay=ctx.geocode_delay,
                sleep=ctx.sleep,
            )
        except GeocodeMiss:
            print(prefix + f'geocode miss: "{vision.location_query}"')
            continue

        candidates.append(RouteCandidate(
            timestamp_s=frame.timestamp_s,
            vision=vision,
            geo=geo,
            heading=vision.heading_estimate or 0,
        ))
        tag = CONFIDENCE_TAGS.get(vision.confidence, "?")
        print(prefix + f"[{tag}] {geo.place_name[:55]}")

    return candidates


def _cleanup_video(meta: Optional[VideoMeta], keep_video: bool) -> None:
    if meta is None or keep_video or not meta.video_path:
        return
    if os.path.exists(meta.video_path):
        os.remove(meta.video_path)


def process_video(url: str, ctx: PipelineContext) -> VideoOutcome:
    """Drive one URL through acquire → sample → locate → synthesize → write.

    Never raises for pipeline failures: the returned outcome carries the stage
    that failed and the failure class name as ``reason``.
    """
    print(f"\n{'=' * 70}")
    print(f"Processing: {url}")
    print("=" * 70)

    stage = VideoStage.ACQUIRING
    meta = None
    try:
        meta = ctx.acquire(url, ctx.download_dir)

        with video_workspace(ctx.frames_dir, key=meta.video_id) as workdir:
            stage = VideoStage.SAMPLING
            frames = ctx.sample(meta.video_path, ctx.interval, os.path.join(workdir, "frames"))

            stage = VideoStage.LOCATING
            candidates = locate_frames(frames, ctx)

        _cleanup_video(meta, ctx.keep_video)

        if not candidates:
            raise NoLocationsFound(f'No locations identified for "{meta.title}"')
        print(f"\n  Located {len(candidates)}/{len(frames)} frames")

        stage = VideoStage.SYNTHESIZING
        waypoints = synthesize_waypoints(candidates, ctx.dedup_threshold)
        breakdown = confidence_breakdown(candidates)

        stage = VideoStage.WRITING
        doc = build_route_document(meta, waypoints, {
            "source_url": url,
            "interval_s": ctx.interval,
            "frames_analyzed": len(frames),
            "locations_found": len(candidates),
            "points_after_dedup": len(waypoints),
            "confidence_breakdown": breakdown,
            "vision_model": ctx.vision.name,
            "geocoder": ctx.geocoder.name,
        })
        out_path = write_route_document(doc, ctx.output_dir)
    except Exception as e:
        _cleanup_video(meta, ctx.keep_video)
        if isinstance(e, StamperError):
            logger.warning("%s failed during %s: %s", url, stage.value, e)
        else:
            logger.exception("Unexpected error while %s %s", stage.value, url)
        print(f"  FAILED ({type(e).__name__}): {e}")
        return VideoOutcome(
            url=url,
            stage=VideoStage.FAILED,
            reason=type(e).__name__,
            error=str(e),
            failed_at=stage,
        )

    km = route_length_m(doc["points"]) / 1000
    print(f"\n  Saved: {out_path}")
    print(
        f"  {len(waypoints)} waypoints, {km:.2f} km "
        f"({breakdown['high']}H {breakdown['medium']}M {breakdown['low']}L)"
    )
    return VideoOutcome(url=url, stage=VideoStage.DONE, output_path=out_path)
