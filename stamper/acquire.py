"""Video download and metadata via yt-dlp."""

import json
import logging
import os
import subprocess
import sys
from dataclasses import replace

from config.parameters import (
    DOWNLOAD_FORMAT,
    DOWNLOAD_MERGE_FORMAT,
    DOWNLOAD_TIMEOUT_S,
    METADATA_TIMEOUT_S,
)
from stamper.exceptions import AcquisitionFailure
from stamper.geo_utils import slugify
from stamper.models import VideoMeta

logger = logging.getLogger(__name__)

YT_DLP = [sys.executable, "-m", "yt_dlp"]


def _run_yt_dlp(args: list[str], timeout: int) -> str:
    """Run yt-dlp and return stdout; any tool failure becomes AcquisitionFailure."""
    try:
        result = subprocess.run(
            YT_DLP + args,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=True,
        )
    except subprocess.TimeoutExpired as e:
        raise AcquisitionFailure(f"yt-dlp timed out after {timeout}s") from e
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip().splitlines()
        detail = stderr[-1] if stderr else f"exit code {e.returncode}"
        raise AcquisitionFailure(f"yt-dlp failed: {detail}") from e
    except OSError as e:
        raise AcquisitionFailure(f"Could not run yt-dlp: {e}") from e
    return result.stdout


def parse_metadata(info: dict, video_path: str = "") -> VideoMeta:
    """Build VideoMeta from a yt-dlp info dict."""
    video_id = info.get("id")
    if not video_id:
        raise AcquisitionFailure("yt-dlp metadata has no video id")
    channel_name = info.get("channel") or info.get("uploader") or "Unknown"
    return VideoMeta(
        video_id=str(video_id),
        title=info.get("title") or "Unknown",
        duration=int(info.get("duration") or 0),
        channel_id=info.get("channel_id") or "unknown",
        channel_name=channel_name,
        channel_slug=slugify(channel_name),
        video_path=video_path,
    )


def fetch_metadata(url: str) -> dict:
    stdout = _run_yt_dlp(["--dump-json", "--no-download", "--no-playlist", url], METADATA_TIMEOUT_S)
    try:
        return json.loads(stdout)
    except json.JSONDecodeError as e:
        raise AcquisitionFailure(f"Unreadable yt-dlp metadata: {e}") from e


def download_video(url: str, download_dir: str) -> VideoMeta:
    """Resolve metadata for *url* and download it (720p max) into *download_dir*.

    Raises:
        AcquisitionFailure: network or tool error, or no file was produced.
    """
    os.makedirs(download_dir, exist_ok=True)

    print("\n  Fetching metadata...")
    info = fetch_metadata(url)
    meta = parse_metadata(info)

    mins, secs = divmod(meta.duration, 60)
    print(f"  Title: {meta.title}")
    print(f"  Channel: {meta.channel_name}")
    print(f"  Duration: {mins}m {secs}s")

    out_template = os.path.join(download_dir, f"{meta.video_id}.%(ext)s")
    print("  Downloading (720p)...")
    _run_yt_dlp(
        [
            "-f", DOWNLOAD_FORMAT,
            "--merge-output-format", DOWNLOAD_MERGE_FORMAT,
            "--no-playlist",
            "-o", out_template,
            url,
        ],
        DOWNLOAD_TIMEOUT_S,
    )

    files = sorted(
        f for f in os.listdir(download_dir)
        if f.startswith(f"{meta.video_id}.") and not f.endswith(".part")
    )
    if not files:
        raise AcquisitionFailure(f"Download failed: no file found for {meta.video_id}")
    video_path = os.path.join(download_dir, files[0])
    print(f"  Downloaded: {files[0]}")

    return replace(meta, video_path=video_path)
