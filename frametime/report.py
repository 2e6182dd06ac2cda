from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from typing import Dict, List

from .errors import ExportError, SourceError
from .log import get_logger
from .runs import Run
from .scanner import ScanReport

logger = get_logger(__name__)

SEPARATOR = "----------"
SNAPSHOT_EXT = ".png"


class ExportOutcome(enum.Enum):
    WRITTEN = "written"
    ALREADY_EXISTS = "already_exists"
    WRITE_FAILED = "write_failed"
    DIRECTORY_FAILED = "directory_failed"


@dataclass(frozen=True)
class RunTiming:
    start_seconds: float
    elapsed_seconds: float


def _require_fps(fps: float) -> float:
    fps = float(fps)
    if not fps > 0:
        raise SourceError(f"Cannot convert frames to time at {fps} fps")
    return fps


def frames_to_seconds(frames: int, fps: float) -> float:
    return frames / _require_fps(fps)


def run_timing(run: Run, fps: float) -> RunTiming:
    """Start time and duration of `run` in seconds."""
    fps = _require_fps(fps)
    return RunTiming(
        start_seconds=run.start_index / fps,
        elapsed_seconds=run.length / fps,
    )


def _split_millis(seconds: float):
    millis = int(round(seconds * 1000))
    hours, millis = divmod(millis, 3_600_000)
    minutes, millis = divmod(millis, 60_000)
    secs, millis = divmod(millis, 1000)
    return hours, minutes, secs, millis


def format_timestamp(seconds: float) -> str:
    """Format seconds as hh:mm:ss.fff."""
    hours, minutes, secs, millis = _split_millis(seconds)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}"


def format_seconds(seconds: float) -> str:
    return f"{seconds:.3f}"


def snapshot_name(run: Run, fps: float) -> str:
    """File name (without extension) for the run's starting snapshot."""
    start = run_timing(run, fps).start_seconds
    hours, minutes, secs, _ = _split_millis(start)
    return f"Frame{run.start_index}_{hours:02d}-{minutes:02d}-{secs:02d}"


def snapshot_dir_for(video_path: str, base_dir: str) -> str:
    stem = os.path.splitext(os.path.basename(video_path))[0]
    return os.path.join(base_dir, stem.strip().replace(" ", "_"))


def _write_new_file(data: bytes, destination: str) -> None:
    folder = os.path.dirname(destination)
    if folder:
        try:
            os.makedirs(folder, exist_ok=True)
        except OSError as e:
            raise ExportError(f"Could not create directory {folder}: {e}") from e
    # "x" mode fails instead of truncating an existing file.
    with open(destination, "xb") as f:
        f.write(data)


def write_snapshot(data: bytes, destination: str) -> ExportOutcome:
    """Write encoded image bytes to a destination that must not exist yet."""
    if os.path.exists(destination):
        return ExportOutcome.ALREADY_EXISTS
    try:
        _write_new_file(data, destination)
    except FileExistsError:
        return ExportOutcome.ALREADY_EXISTS
    except ExportError as e:
        logger.warning("%s", e)
        return ExportOutcome.DIRECTORY_FAILED
    except OSError as e:
        logger.warning("Could not write %s: %s", destination, e)
        return ExportOutcome.WRITE_FAILED
    return ExportOutcome.WRITTEN


def export_snapshots(report: ScanReport, base_dir: str) -> Dict[str, ExportOutcome]:
    """Write the starting snapshot of every run; failures are logged and skipped."""
    folder = snapshot_dir_for(report.video_path, base_dir)
    outcomes: Dict[str, ExportOutcome] = {}
    for run in report.runs:
        destination = os.path.join(folder, snapshot_name(run, report.fps) + SNAPSHOT_EXT)
        if not run.start.image:
            logger.warning("No image retained for frame %d, skipping", run.start_index)
            outcomes[destination] = ExportOutcome.WRITE_FAILED
            continue

        outcome = write_snapshot(run.start.image, destination)
        outcomes[destination] = outcome
        if outcome is ExportOutcome.WRITTEN:
            logger.debug("Saved snapshot %s", destination)
        elif outcome is ExportOutcome.ALREADY_EXISTS:
            logger.warning("Snapshot %s already exists, not overwriting", destination)
        elif outcome is ExportOutcome.DIRECTORY_FAILED:
            logger.warning("Snapshot folder %s unavailable, stopping export", folder)
            break
    return outcomes


def render_report(report: ScanReport) -> str:
    """Human-readable summary of a scan."""
    fps = _require_fps(report.fps)
    lines: List[str] = [SEPARATOR]
    for run in report.runs:
        timing = run_timing(run, fps)
        lines.append(
            f"{format_timestamp(timing.start_seconds)} "
            f"(for {format_seconds(timing.elapsed_seconds)} seconds)"
        )
    lines.append(SEPARATOR)
    lines.append("")
    lines.append(f"Total Frames: {report.matched_frames}")
    lines.append(f"Total Time: {format_timestamp(report.matched_frames / fps)}")
    if not report.complete:
        lines.append(
            f"INCOMPLETE: video ended after {report.frames_processed} "
            f"of {report.frame_count} frames"
        )
    if report.score_failures:
        lines.append(f"Frames not scored: {report.score_failures}")
    return "\n".join(lines)
