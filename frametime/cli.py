import argparse
import os
import sys
from typing import Callable, Optional

from . import config
from .config import ScanConfig, validate_threshold
from .downloader import fetch
from .errors import DownloadError, InputError, SourceError
from .log import configure_logging
from .report import export_snapshots, render_report
from .scanner import scan
from .scorer import load_reference

OPTIONS = (
    ("process", "Process"),
    ("download-process", "Download from YouTube then Process"),
    ("download", "Download from YouTube only"),
)
DEFAULT_OPTION = 1


def _error(message: str) -> None:
    print(message, file=sys.stderr)
    print("", file=sys.stderr)


def clean_path(raw: Optional[str]) -> str:
    """Strip whitespace and the quotes a drag-and-drop path may carry."""
    return (raw or "").strip().replace('"', "")


def parse_threshold(raw: Optional[str], default: float) -> float:
    """Blank input selects `default`; anything else must be a number in [0, 1]."""
    raw = (raw or "").strip()
    if not raw:
        return default
    return validate_threshold(raw)


def parse_option(raw: Optional[str]) -> str:
    raw = (raw or "").strip()
    if not raw:
        return OPTIONS[DEFAULT_OPTION - 1][0]
    try:
        value = int(raw)
    except ValueError as e:
        raise InputError("Option was invalid...") from e
    if not 1 <= value <= len(OPTIONS):
        raise InputError("Option was invalid...")
    return OPTIONS[value - 1][0]


def prompt_option() -> str:
    while True:
        for i, (_, label) in enumerate(OPTIONS, start=1):
            suffix = " (default)" if i == DEFAULT_OPTION else ""
            print(f"{i}) {label}{suffix}")
        print("")
        try:
            return parse_option(input(f"Select Option (1 - {len(OPTIONS)}): "))
        except InputError as e:
            _error(str(e))


def prompt_file(
    label: str,
    initial: Optional[str] = None,
    check: Optional[Callable[[str], object]] = None,
) -> str:
    """Ask until an existing file is given; `check` may reject it with InputError."""
    path = clean_path(initial)
    asked = initial is not None
    while True:
        if path and os.path.isfile(path):
            if check is None:
                return path
            try:
                check(path)
                return path
            except InputError as e:
                _error(str(e))
        elif asked:
            _error(f'File at "{path}" not found...')
        asked = True
        path = clean_path(input(f"Full Path to {label} (drag/drop): "))


def prompt_reference(args: argparse.Namespace) -> str:
    def check(path: str) -> None:
        load_reference(path, args.reference_scale)

    return prompt_file("Compare Frame Image", args.reference, check)


def prompt_threshold(default: float) -> float:
    while True:
        raw = input(
            f"Threshold (0.00 - 1.00) (How close the frame should match) (Default: {default}): "
        )
        try:
            return parse_threshold(raw, default)
        except InputError:
            _error("Invalid Threshold...")


def prompt_download(url: Optional[str], output_dir: str) -> str:
    """Download until a URL succeeds; returns the local video path."""
    while True:
        if not url:
            url = input("Full URL to YouTube Video: ").strip()
        try:
            return fetch(url, output_dir)
        except DownloadError as e:
            _error(f"Download failed... Please check the URL ({e})")
            url = None


def run_scan(video_path: str, reference_path: str, threshold: float, args: argparse.Namespace) -> int:
    try:
        scan_cfg = ScanConfig(
            video_path=video_path,
            reference_path=reference_path,
            threshold=threshold,
            reference_scale=args.reference_scale,
            track_end_snapshot=args.track_end_snapshot,
            export_snapshots=not args.no_export,
            snapshots_dir=args.snapshots_dir,
        )
        report = scan(scan_cfg, show_progress=not args.no_progress)
    except InputError as e:
        _error(str(e))
        return 1
    except SourceError as e:
        _error(f"Scan failed: {e}")
        return 1

    print(render_report(report))
    if scan_cfg.export_snapshots and report.runs:
        export_snapshots(report, scan_cfg.snapshot_base_dir)
    return 0


def _threshold_arg(args: argparse.Namespace) -> float:
    if args.threshold is not None:
        return args.threshold
    return prompt_threshold(config.defaults.threshold)


def cmd_process(args: argparse.Namespace) -> int:
    video_path = prompt_file("Video", args.video)
    reference_path = prompt_reference(args)
    return run_scan(video_path, reference_path, _threshold_arg(args), args)


def cmd_download_process(args: argparse.Namespace) -> int:
    video_path = prompt_download(args.url, args.download_dir or config.paths.downloads_dir)
    reference_path = prompt_reference(args)
    return run_scan(video_path, reference_path, _threshold_arg(args), args)


def cmd_download(args: argparse.Namespace) -> int:
    video_path = prompt_download(args.url, args.download_dir or config.paths.downloads_dir)
    print(f"Downloaded: {video_path}")
    return 0


COMMANDS = {
    "process": cmd_process,
    "download-process": cmd_download_process,
    "download": cmd_download,
}


def _threshold_type(raw: str) -> float:
    try:
        return validate_threshold(raw)
    except InputError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _add_scan_options(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--reference",
        type=str,
        default=None,
        help="Path to the reference frame image (prompted for if omitted)",
    )
    p.add_argument(
        "--threshold",
        type=_threshold_type,
        default=None,
        help=f"Minimum match score, 0.00 - 1.00 (default: {config.defaults.threshold})",
    )


def _add_common_options(p: argparse.ArgumentParser, suppress: bool = False) -> None:
    """Options accepted both before and after the subcommand.

    The subcommand copies use SUPPRESS so they only override what was given
    before the subcommand when they appear on the command line themselves.
    """

    def default(value):
        return argparse.SUPPRESS if suppress else value

    p.add_argument(
        "--snapshots-dir",
        type=str,
        default=default(None),
        help="Directory for exported snapshots (default: config.paths.snapshots_dir)",
    )
    p.add_argument(
        "--download-dir",
        type=str,
        default=default(None),
        help="Directory for downloaded videos (default: config.paths.downloads_dir)",
    )
    p.add_argument(
        "--no-export",
        action="store_true",
        default=default(False),
        help="Do not write a snapshot image for each run",
    )
    p.add_argument(
        "--reference-scale",
        type=int,
        choices=config.REFERENCE_SCALES,
        default=default(config.defaults.reference_scale),
        help=f"Downscale factor applied when reading the reference image (default: {config.defaults.reference_scale})",
    )
    p.add_argument(
        "--track-end-snapshot",
        action="store_true",
        default=default(False),
        help="Keep the last matching frame of each run as its end snapshot",
    )
    p.add_argument(
        "--no-progress",
        action="store_true",
        default=default(False),
        help="Hide the progress bar",
    )
    p.add_argument(
        "--log-level",
        type=str.upper,
        choices=config.LOG_LEVELS,
        default=default(config.defaults.log_level),
        help=f"Logging level (default: {config.defaults.log_level})",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Find where a reference frame appears in a video"
    )
    _add_common_options(parser)
    subparsers = parser.add_subparsers(dest="command")

    # process
    p_process = subparsers.add_parser("process", help="Scan a local video")
    p_process.add_argument(
        "--video",
        type=str,
        default=None,
        help="Path to the video file (prompted for if omitted)",
    )
    _add_scan_options(p_process)
    _add_common_options(p_process, suppress=True)

    # download-process
    p_dl_process = subparsers.add_parser(
        "download-process", help="Download a video with yt-dlp, then scan it"
    )
    p_dl_process.add_argument("--url", type=str, default=None, help="Video URL")
    _add_scan_options(p_dl_process)
    _add_common_options(p_dl_process, suppress=True)

    # download
    p_download = subparsers.add_parser("download", help="Download a video with yt-dlp only")
    p_download.add_argument("--url", type=str, default=None, help="Video URL")
    _add_common_options(p_download, suppress=True)

    return parser


def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    # Interactive selection leaves subcommand options unset.
    for name in ("video", "url", "reference", "threshold"):
        if not hasattr(args, name):
            setattr(args, name, None)

    try:
        command = args.command or prompt_option()
        return COMMANDS[command](args)
    except (KeyboardInterrupt, EOFError):
        _error("Cancelled.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
