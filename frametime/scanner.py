from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

import cv2
import numpy as np
from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

from .config import ScanConfig
from .errors import ExportError, ScoreError, SourceError
from .log import get_logger
from .runs import Run, RunDetector
from .scorer import FrameScorer, load_reference
from .video_source import open_video_source

logger = get_logger(__name__)


@dataclass
class ScanReport:
    video_path: str
    fps: float
    frame_count: int
    frames_processed: int = 0
    matched_frames: int = 0
    score_failures: int = 0
    runs: List[Run] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        """False when the source ran out of frames before its reported count."""
        return self.frames_processed >= self.frame_count


def encode_frame(frame: np.ndarray, ext: str = ".png") -> bytes:
    ok, buf = cv2.imencode(ext, frame)
    if not ok:
        raise ExportError(f"Failed to encode frame as {ext}")
    return buf.tobytes()


def _snapshot_encoder(frame: np.ndarray, index: int):
    def encode() -> bytes:
        try:
            return encode_frame(frame)
        except (ExportError, cv2.error) as e:
            logger.warning("Frame %d could not be encoded: %s", index, e)
            return b""

    return encode


def check_source(frame_count: int, fps: float, video_path: str = "") -> None:
    """Reject sources that cannot produce a time-based report."""
    if frame_count <= 0:
        raise SourceError(f"Video has no frames: {video_path}")
    if not fps > 0:
        raise SourceError(f"Video reports a non-positive frame rate ({fps}): {video_path}")


def scan_source(
    source,
    scorer: FrameScorer,
    *,
    track_end_snapshot: bool = False,
    show_progress: bool = True,
) -> ScanReport:
    """Score every frame of an opened source and collect matching runs.

    `source` needs `frame_count`, `fps` and `read_next()`; `path` is optional.
    """
    video_path = getattr(source, "path", "")
    check_source(source.frame_count, source.fps, video_path)

    report = ScanReport(video_path=video_path, fps=source.fps, frame_count=source.frame_count)
    detector = RunDetector(track_end_snapshot=track_end_snapshot)

    with logging_redirect_tqdm(loggers=[logging.getLogger("frametime")]):
        with tqdm(
            total=source.frame_count,
            desc="Processing",
            unit="frame",
            disable=not show_progress,
        ) as pbar:
            for index in range(source.frame_count):
                frame = source.read_next()
                if frame is None:
                    logger.warning(
                        "Video ended at frame %d of %d", index, source.frame_count
                    )
                    break

                try:
                    matched = scorer.matches(frame)
                except ScoreError as e:
                    report.score_failures += 1
                    logger.debug("Frame %d could not be scored: %s", index, e)
                    matched = False

                if matched:
                    report.matched_frames += 1
                    logger.debug("Adding frame at %d", index)

                run = detector.feed(index, matched, _snapshot_encoder(frame, index))
                if run is not None:
                    report.runs.append(run)
                report.frames_processed = index + 1
                pbar.update(1)

    run = detector.flush()
    if run is not None:
        report.runs.append(run)

    logger.info(
        "Scanned %d/%d frames: %d runs, %d matching frames",
        report.frames_processed,
        report.frame_count,
        len(report.runs),
        report.matched_frames,
    )
    if report.score_failures:
        logger.warning("%d frames could not be scored", report.score_failures)
    return report


def scan(config: ScanConfig, show_progress: bool = True) -> ScanReport:
    """Scan `config.video_path` against `config.reference_path`."""
    reference = load_reference(config.reference_path, config.reference_scale)
    scorer = FrameScorer(reference, config.threshold)
    logger.info(
        "Scanning %s against %s (threshold %.2f)",
        config.video_path,
        config.reference_path,
        config.threshold,
    )
    with open_video_source(config.video_path) as source:
        return scan_source(
            source,
            scorer,
            track_end_snapshot=config.track_end_snapshot,
            show_progress=show_progress,
        )
