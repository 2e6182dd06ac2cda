import numpy as np
import pytest


def make_noise(seed: int, width: int = 64, height: int = 48) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)


class FakeSource:
    """In-memory stand-in for VideoSource."""

    def __init__(self, frames, fps=30.0, frame_count=None, path="clip.mp4"):
        self._frames = list(frames)
        self.fps = fps
        self.frame_count = len(self._frames) if frame_count is None else frame_count
        self.path = path
        self.reads = 0

    def read_next(self):
        if self.reads >= len(self._frames):
            return None
        frame = self._frames[self.reads]
        self.reads += 1
        return frame


@pytest.fixture
def reference():
    return make_noise(0)


@pytest.fixture
def other_image():
    return make_noise(1)
