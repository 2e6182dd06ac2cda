from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

import cv2
import numpy as np

from .errors import SourceError
from .log import get_logger

logger = get_logger(__name__)


class VideoSource:
    """Sequential reader over an opened cv2.VideoCapture."""

    def __init__(self, capture: cv2.VideoCapture, path: str = ""):
        self._capture = capture
        self.path = path
        self.frame_count = int(capture.get(cv2.CAP_PROP_FRAME_COUNT) or 0)
        # Fractional rates such as 29.97 are kept as-is.
        self.fps = float(capture.get(cv2.CAP_PROP_FPS) or 0.0)

    def read_next(self) -> Optional[np.ndarray]:
        """Return the next decoded frame, or None at end of stream."""
        ok, frame = self._capture.read()
        if not ok or frame is None:
            return None
        return frame

    def release(self) -> None:
        self._capture.release()


@contextmanager
def open_video_source(video_path: str) -> Iterator[VideoSource]:
    """Open `video_path` for the duration of the block, then release it."""
    cap = cv2.VideoCapture(video_path)
    if not cap.isOpened():
        cap.release()
        raise SourceError(f"Failed to open video: {video_path}")

    source = VideoSource(cap, video_path)
    logger.debug(
        "Opened %s: %d frames at %.3f fps", video_path, source.frame_count, source.fps
    )
    try:
        yield source
    finally:
        source.release()
