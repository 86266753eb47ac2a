"""Frame sampling from walking tour video using OpenCV."""

import logging
import os
import shutil
from typing import Optional

import cv2

from config.parameters import DEFAULT_INTERVAL_S, FRAME_JPEG_QUALITY, FRAME_MAX_WIDTH
from stamper.exceptions import ExtractionFailure
from stamper.models import FrameSample

logger = logging.getLogger(__name__)


def _sample_frame_numbers(fps: float, total_frames: int, interval: int) -> list[int]:
    """Frame numbers at t = interval, 2 * interval, ... up to the video's end."""
    if fps <= 0 or total_frames <= 0:
        return []
    duration_sec = total_frames / fps
    count = int(duration_sec // interval)
    return [min(int(round((i + 1) * interval * fps)), total_frames - 1) for i in range(count)]


def extract_frames(
    video_path: str,
    interval: int = DEFAULT_INTERVAL_S,
    output_dir: Optional[str] = None,
    max_width: int = FRAME_MAX_WIDTH,
) -> list[FrameSample]:
    """Save one JPEG every *interval* seconds of video.

    The i-th frame (0-based) is taken at ``(i + 1) * interval`` seconds, so a
    video shorter than one interval yields nothing.

    Args:
        video_path: path to a video file.
        interval: seconds between samples (positive int).
        output_dir: frame area; cleared and recreated before writing.
        max_width: frames wider than this are downscaled, aspect preserved.

    Returns:
        Ordered list of FrameSample.

    Raises:
        ExtractionFailure: the video cannot be read or yields zero frames.
    """
    if interval <= 0:
        raise ValueError(f"interval must be positive, got {interval}")
    if output_dir is None:
        output_dir = os.path.join(os.path.dirname(os.path.abspath(video_path)), "frames")

    # Clear and recreate output dir
    if os.path.exists(output_dir):
        shutil.rmtree(output_dir)
    os.makedirs(output_dir, exist_ok=True)

    print(f"  Extracting frames every {interval}s...")

    cap = cv2.VideoCapture(video_path)
    if not cap.isOpened():
        raise ExtractionFailure(f"Cannot open video: {video_path}")

    try:
        fps = cap.get(cv2.CAP_PROP_FPS)
        total_frames = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
        targets = _sample_frame_numbers(fps, total_frames, interval)

        samples: list[FrameSample] = []
        frame_num = 0
        for target in targets:
            # grab() skips decoding for frames we don't keep
            while frame_num < target:
                if not cap.grab():
                    break
                frame_num += 1
            if frame_num < target:
                break
            ret, frame = cap.read()
            if not ret:
                break
            frame_num += 1

            h, w = frame.shape[:2]
            if w > max_width:
                scale = max_width / w
                frame = cv2.resize(frame, (max_width, int(h * scale)))

            index = len(samples)
            image_path = os.path.join(output_dir, f"frame_{index + 1:06d}.jpg")
            cv2.imwrite(image_path, frame, [cv2.IMWRITE_JPEG_QUALITY, FRAME_JPEG_QUALITY])
            samples.append(FrameSample(index=index, interval=interval, image_path=image_path))
    finally:
        cap.release()

    if not samples:
        raise ExtractionFailure(
            f"No frames extracted from {os.path.basename(video_path)} "
            f"(shorter than {interval}s or unreadable)"
        )

    print(f"  Extracted {len(samples)} frames")
    return samples
