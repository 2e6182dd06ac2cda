"""Turn a per-frame match signal into contiguous frame runs.

A run opens on the first matching frame and closes on the first frame that
no longer matches; that frame's index becomes the run's end index, so
``end.index - start.index`` is the number of frames that matched. A run
still open when the video ends is closed by ``flush()`` at the last frame
that was processed.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, List, Optional

Encoder = Callable[[], bytes]


@dataclass(frozen=True)
class FrameSnapshot:
    index: int
    image: bytes = b""


@dataclass(frozen=True)
class Run:
    start: FrameSnapshot
    end: FrameSnapshot

    def __post_init__(self) -> None:
        if self.end.index < self.start.index:
            raise ValueError(
                f"Run ends before it starts: {self.start.index} > {self.end.index}"
            )

    @property
    def start_index(self) -> int:
        return self.start.index

    @property
    def end_index(self) -> int:
        return self.end.index

    @property
    def length(self) -> int:
        """Run length in frames."""
        return self.end.index - self.start.index


class DetectorState(enum.Enum):
    IDLE = "idle"
    IN_RUN = "in_run"


def _no_image() -> bytes:
    return b""


class RunDetector:
    """Two-state machine fed one (index, matched) sample at a time.

    Samples must arrive in strictly increasing index order. `encode` is only
    called for frames whose image has to be retained: the first frame of a
    run, and every matching frame when `track_end_snapshot` is set.
    """

    def __init__(self, track_end_snapshot: bool = False):
        self.track_end_snapshot = track_end_snapshot
        self.state = DetectorState.IDLE
        self._start: Optional[FrameSnapshot] = None
        self._last_match: Optional[FrameSnapshot] = None
        self._last_index: Optional[int] = None

    @property
    def last_index(self) -> Optional[int]:
        return self._last_index

    def feed(self, index: int, matched: bool, encode: Encoder = _no_image) -> Optional[Run]:
        """Advance by one sample; returns the run closed by this sample, if any."""
        if index < 0:
            raise ValueError(f"Frame index must be non-negative, got {index}")
        if self._last_index is not None and index <= self._last_index:
            raise ValueError(
                f"Frame index {index} is not after the previous index {self._last_index}"
            )
        self._last_index = index

        if self.state is DetectorState.IDLE:
            if matched:
                self._start = FrameSnapshot(index, encode())
                self._last_match = self._start
                self.state = DetectorState.IN_RUN
            return None

        if matched:
            if self.track_end_snapshot:
                self._last_match = FrameSnapshot(index, encode())
            return None

        # First non-matching frame closes the run; the image is the last match's.
        return self._close(index)

    def flush(self) -> Optional[Run]:
        """Close a run left open at end of stream."""
        if self.state is not DetectorState.IN_RUN:
            return None
        return self._close(self._last_index)

    def _close(self, end_index: int) -> Run:
        run = Run(
            start=self._start,
            end=FrameSnapshot(end_index, self._last_match.image),
        )
        self._start = None
        self._last_match = None
        self.state = DetectorState.IDLE
        return run


def detect_runs(
    samples,
    track_end_snapshot: bool = False,
) -> List[Run]:
    """Collect all runs from an iterable of (index, matched) pairs."""
    detector = RunDetector(track_end_snapshot=track_end_snapshot)
    runs: List[Run] = []
    for index, matched in samples:
        run = detector.feed(index, matched)
        if run is not None:
            runs.append(run)
    run = detector.flush()
    if run is not None:
        runs.append(run)
    return runs
