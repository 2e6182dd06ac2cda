import subprocess

import pytest

from frametime import downloader
from frametime.errors import DownloadError


def _completed(stdout=""):
    return subprocess.CompletedProcess(args=["yt-dlp"], returncode=0, stdout=stdout, stderr="")


def test_fetch_returns_printed_path(tmp_path, monkeypatch):
    seen = {}

    def fake_run(cmd, **kwargs):
        seen["cmd"] = cmd
        seen["kwargs"] = kwargs
        target = tmp_path / "My Clip.mp4"
        target.write_bytes(b"video")
        return _completed(f"{target}\n")

    monkeypatch.setattr(downloader.subprocess, "run", fake_run)

    path = downloader.fetch("  https://example.com/watch?v=1 ", str(tmp_path), timeout=5)

    assert path == str(tmp_path / "My Clip.mp4")
    assert seen["cmd"][0] == "yt-dlp"
    assert seen["cmd"][-1] == "https://example.com/watch?v=1"
    assert seen["kwargs"]["timeout"] == 5
    assert seen["kwargs"]["check"] is True


def test_fetch_falls_back_to_directory_listing(tmp_path, monkeypatch):
    def fake_run(cmd, **kwargs):
        (tmp_path / "video.webm").write_bytes(b"video")
        (tmp_path / "video.mp4.part").write_bytes(b"partial")
        return _completed("")

    monkeypatch.setattr(downloader.subprocess, "run", fake_run)

    assert downloader.fetch("https://example.com/v", str(tmp_path)) == str(tmp_path / "video.webm")


def test_fetch_without_output_file_fails(tmp_path, monkeypatch):
    monkeypatch.setattr(downloader.subprocess, "run", lambda cmd, **kw: _completed(""))
    with pytest.raises(DownloadError):
        downloader.fetch("https://example.com/v", str(tmp_path))


def test_fetch_missing_binary(tmp_path, monkeypatch):
    def fake_run(cmd, **kwargs):
        raise FileNotFoundError("yt-dlp")

    monkeypatch.setattr(downloader.subprocess, "run", fake_run)
    with pytest.raises(DownloadError, match="yt-dlp not found"):
        downloader.fetch("https://example.com/v", str(tmp_path))


def test_fetch_process_failure(tmp_path, monkeypatch):
    def fake_run(cmd, **kwargs):
        raise subprocess.CalledProcessError(1, cmd, output="", stderr="ERROR: Unsupported URL\n")

    monkeypatch.setattr(downloader.subprocess, "run", fake_run)
    with pytest.raises(DownloadError, match="Unsupported URL"):
        downloader.fetch("https://example.com/v", str(tmp_path))


def test_fetch_timeout(tmp_path, monkeypatch):
    def fake_run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    monkeypatch.setattr(downloader.subprocess, "run", fake_run)
    with pytest.raises(DownloadError, match="timed out"):
        downloader.fetch("https://example.com/v", str(tmp_path), timeout=1)


def test_fetch_rejects_blank_url(tmp_path):
    with pytest.raises(DownloadError):
        downloader.fetch("   ", str(tmp_path))
