"""
Reference-frame time finder.

Modules:
- config: global defaults for paths and scan parameters.
- errors: exception hierarchy shared by the scan and the CLI.
- log: logging setup for the frametime namespace.
- scorer: OpenCV template-matching score of a frame against a reference.
- runs: run detector turning per-frame matches into frame intervals.
- video_source: scoped OpenCV video reader.
- scanner: drives a whole video through the scorer and run detector.
- report: time conversion, summary rendering and snapshot export.
- downloader: yt-dlp based video download.
- cli: command-line interface entrypoint.
"""

__version__ = "0.1.0"
