"""Download a video from a URL via yt-dlp so it can be scanned locally.

Requires yt-dlp to be installed (it is a declared dependency; a system package
on PATH works too).
"""

import os
import subprocess
from typing import Optional

from .config import defaults, paths
from .errors import DownloadError
from .log import get_logger

logger = get_logger(__name__)

VIDEO_EXTS = (".mp4", ".mkv", ".webm", ".avi", ".mov", ".flv", ".wmv")


def _find_downloaded_video(dir_path: str) -> Optional[str]:
    """Return the newest video file in dir_path (skip .part and metadata)."""
    candidates = []
    for name in os.listdir(dir_path):
        if name.endswith(".part") or name.endswith(".ytdl"):
            continue
        if name.lower().endswith(VIDEO_EXTS):
            candidates.append(os.path.join(dir_path, name))
    if not candidates:
        return None
    candidates.sort(key=os.path.getmtime, reverse=True)
    return candidates[0]


def _printed_path(stdout: str) -> Optional[str]:
    lines = [line.strip() for line in (stdout or "").splitlines() if line.strip()]
    return lines[-1] if lines else None


def fetch(url: str, output_dir: Optional[str] = None, timeout: Optional[int] = None) -> str:
    """Download `url` into output_dir and return the local video path.

    Raises DownloadError if yt-dlp is missing, fails, times out, or leaves no
    video file behind.
    """
    url = (url or "").strip()
    if not url:
        raise DownloadError("No URL given")

    output_dir = output_dir or paths.downloads_dir
    timeout = timeout or defaults.download_timeout
    os.makedirs(output_dir, exist_ok=True)
    out_tpl = os.path.join(output_dir, "%(title)s.%(ext)s")

    logger.info('Downloading to "%s"...', output_dir)
    try:
        proc = subprocess.run(
            [
                "yt-dlp",
                "--no-playlist",
                "--no-warnings",
                "--no-simulate",
                "--print",
                "after_move:filepath",
                "-o",
                out_tpl,
                url,
            ],
            check=True,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise DownloadError(
            "yt-dlp not found. Install it (e.g. pip install yt-dlp or system package) and ensure it is on PATH."
        ) from e
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or "").strip().splitlines()
        raise DownloadError(
            f"yt-dlp failed for {url}: {detail[-1] if detail else e.returncode}"
        ) from e
    except subprocess.TimeoutExpired as e:
        raise DownloadError(f"Download of {url} timed out after {timeout}s") from e

    path = _printed_path(proc.stdout)
    if not path or not os.path.isfile(path):
        path = _find_downloaded_video(output_dir)
    if not path or not os.path.isfile(path):
        raise DownloadError(f"No video file found after downloading {url}")

    logger.info("Download complete: %s", path)
    return path
