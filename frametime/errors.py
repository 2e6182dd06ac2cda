class FrameTimeError(Exception):
    """Base error for known frametime failures."""


class InputError(FrameTimeError):
    """Raised for a missing file or an out-of-range parameter."""


class ScoreError(FrameTimeError):
    """Raised when a frame cannot be compared with the reference image."""


class SourceError(FrameTimeError):
    """Raised when the video as a whole cannot be scanned."""


class ExportError(FrameTimeError):
    """Raised when a snapshot cannot be written."""


class DownloadError(FrameTimeError):
    """Raised when a video URL could not be downloaded."""
