import os

import pytest

from frametime import report as report_module
from frametime.errors import SourceError
from frametime.report import (
    ExportOutcome,
    export_snapshots,
    format_seconds,
    format_timestamp,
    frames_to_seconds,
    render_report,
    run_timing,
    snapshot_dir_for,
    snapshot_name,
    write_snapshot,
)
from frametime.runs import FrameSnapshot, Run
from frametime.scanner import ScanReport


def _run(start, end, image=b"png-bytes"):
    return Run(start=FrameSnapshot(start, image), end=FrameSnapshot(end, image))


def test_run_timing_at_30fps():
    timing = run_timing(_run(90, 120), 30.0)
    assert timing.start_seconds == pytest.approx(3.0)
    assert timing.elapsed_seconds == pytest.approx(1.0)


def test_fractional_fps_is_not_truncated():
    timing = run_timing(_run(2997, 3027), 29.97)
    assert timing.start_seconds == pytest.approx(100.0)
    assert timing.elapsed_seconds == pytest.approx(30 / 29.97)


@pytest.mark.parametrize("fps", [0, 0.0, -30.0])
def test_non_positive_fps_raises(fps):
    with pytest.raises(SourceError):
        run_timing(_run(0, 1), fps)
    with pytest.raises(SourceError):
        frames_to_seconds(10, fps)


def test_format_timestamp():
    assert format_timestamp(0) == "00:00:00.000"
    assert format_timestamp(3.0) == "00:00:03.000"
    assert format_timestamp(3725.5) == "01:02:05.500"
    assert format_timestamp(59.9996) == "00:01:00.000"


def test_format_seconds():
    assert format_seconds(1.0) == "1.000"
    assert format_seconds(1 / 3) == "0.333"


def test_snapshot_name():
    assert snapshot_name(_run(90, 120), 30.0) == "Frame90_00-00-03"
    assert snapshot_name(_run(113_400, 113_401), 30.0) == "Frame113400_01-03-00"


def test_snapshot_dir_for(tmp_path):
    base = str(tmp_path)
    assert snapshot_dir_for("/videos/My Clip.mp4", base) == os.path.join(base, "My_Clip")


def test_write_snapshot_creates_directory(tmp_path):
    dest = tmp_path / "nested" / "Frame1.png"
    assert write_snapshot(b"abc", str(dest)) is ExportOutcome.WRITTEN
    assert dest.read_bytes() == b"abc"


def test_write_snapshot_never_overwrites(tmp_path):
    dest = tmp_path / "Frame1.png"
    dest.write_bytes(b"original")

    assert write_snapshot(b"new", str(dest)) is ExportOutcome.ALREADY_EXISTS
    assert dest.read_bytes() == b"original"


def test_write_snapshot_directory_failure(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_bytes(b"")

    outcome = write_snapshot(b"abc", str(blocker / "sub" / "Frame1.png"))
    assert outcome is ExportOutcome.DIRECTORY_FAILED


def test_write_snapshot_write_failure(tmp_path, monkeypatch):
    dest = tmp_path / "Frame1.png"

    def denied(path, mode="r", *args, **kwargs):
        raise PermissionError(13, "Permission denied", path)

    # Shadows the builtin inside frametime.report only.
    monkeypatch.setattr(report_module, "open", denied, raising=False)

    assert write_snapshot(b"abc", str(dest)) is ExportOutcome.WRITE_FAILED
    assert not dest.exists()


def _report(runs, fps=30.0, frame_count=300, processed=300, matched=0):
    return ScanReport(
        video_path="/videos/My Clip.mp4",
        fps=fps,
        frame_count=frame_count,
        frames_processed=processed,
        matched_frames=matched,
        runs=runs,
    )


def test_export_snapshots_skips_existing(tmp_path):
    report = _report([_run(90, 120, b"first"), _run(150, 160, b"second")])
    folder = tmp_path / "My_Clip"
    folder.mkdir()
    existing = folder / "Frame150_00-00-05.png"
    existing.write_bytes(b"keep me")

    outcomes = export_snapshots(report, str(tmp_path))

    assert outcomes == {
        str(folder / "Frame90_00-00-03.png"): ExportOutcome.WRITTEN,
        str(existing): ExportOutcome.ALREADY_EXISTS,
    }
    assert (folder / "Frame90_00-00-03.png").read_bytes() == b"first"
    assert existing.read_bytes() == b"keep me"


def test_export_snapshots_skips_runs_without_image(tmp_path):
    report = _report([_run(0, 3, b"")])
    outcomes = export_snapshots(report, str(tmp_path))
    assert list(outcomes.values()) == [ExportOutcome.WRITE_FAILED]
    assert not (tmp_path / "My_Clip").exists()


def test_render_report():
    report = _report([_run(90, 120), _run(150, 165)], matched=45)
    text = render_report(report)

    assert text.splitlines() == [
        "----------",
        "00:00:03.000 (for 1.000 seconds)",
        "00:00:05.000 (for 0.500 seconds)",
        "----------",
        "",
        "Total Frames: 45",
        "Total Time: 00:00:01.500",
    ]


def test_render_report_marks_incomplete_scan():
    report = _report([], frame_count=300, processed=120)
    assert "INCOMPLETE" in render_report(report)


def test_render_report_without_fps_raises():
    with pytest.raises(SourceError):
        render_report(_report([], fps=0.0))
