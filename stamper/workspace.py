"""Per-video scratch directories."""

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)


@contextmanager
def video_workspace(base_dir: str, key: str = "video") -> Iterator[str]:
    """Yield a fresh scratch directory owned by one video.

    The directory is unique per call and removed on every exit path, so a
    crashed or interrupted video never leaves frames for the next one.
    """
    os.makedirs(base_dir, exist_ok=True)
    path = tempfile.mkdtemp(prefix=f"{key}-", dir=base_dir)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        remove_if_empty(base_dir)


def remove_if_empty(path: str) -> None:
    if os.path.isdir(path) and not os.listdir(path):
        os.rmdir(path)
        logger.info("Removed empty directory %s", path)
