from __future__ import annotations

import os
from typing import Optional

import cv2
import numpy as np

from .config import defaults
from .errors import InputError, ScoreError

DEFAULT_METHOD = cv2.TM_CCOEFF_NORMED

_READ_MODES = {
    1: cv2.IMREAD_COLOR,
    2: cv2.IMREAD_REDUCED_COLOR_2,
    4: cv2.IMREAD_REDUCED_COLOR_4,
    8: cv2.IMREAD_REDUCED_COLOR_8,
}


def load_reference(path: str, scale: int | None = None) -> np.ndarray:
    """Decode the reference image, downscaled by `scale` at read time."""
    scale = scale or defaults.reference_scale
    if scale not in _READ_MODES:
        raise InputError(f"Unsupported reference scale: {scale}")
    if not os.path.isfile(path):
        raise InputError(f'File at "{path}" not found...')
    image = cv2.imread(path, _READ_MODES[scale])
    if image is None or image.size == 0:
        raise InputError(f"Could not decode reference image: {path}")
    return image


def score(
    frame: Optional[np.ndarray],
    reference: Optional[np.ndarray],
    method: int = DEFAULT_METHOD,
) -> float:
    """Similarity of `frame` to `reference`.

    The frame is first resized to the reference's dimensions so the result map
    of cv2.matchTemplate is a single value. With the default TM_CCOEFF_NORMED
    the score lies in [-1, 1], 1.0 meaning identical up to brightness and
    contrast.
    """
    if frame is None or reference is None or frame.size == 0 or reference.size == 0:
        raise ScoreError("Cannot score an empty image")

    height, width = reference.shape[:2]
    try:
        resized = cv2.resize(frame, (width, height))
        result = cv2.matchTemplate(resized, reference, method)
        _, max_val, _, _ = cv2.minMaxLoc(result)
    except cv2.error as e:
        raise ScoreError(str(e)) from e
    return float(max_val)


def matches(
    frame: Optional[np.ndarray],
    reference: Optional[np.ndarray],
    threshold: float,
    method: int = DEFAULT_METHOD,
) -> bool:
    value = score(frame, reference, method)
    # A NaN score compares False, so it never matches.
    return value >= threshold


class FrameScorer:
    """Scores frames against one reference image at a fixed threshold."""

    def __init__(self, reference: np.ndarray, threshold: float, method: int = DEFAULT_METHOD):
        if reference is None or reference.size == 0:
            raise InputError("Reference image is empty")
        self.reference = reference
        self.threshold = threshold
        self.method = method

    def score(self, frame: np.ndarray) -> float:
        return score(frame, self.reference, self.method)

    def matches(self, frame: np.ndarray) -> bool:
        return matches(frame, self.reference, self.threshold, self.method)
