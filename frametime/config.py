import os
from dataclasses import dataclass, field
from typing import Optional

from .errors import InputError


BASE_DIR = os.environ.get("FRAMETIME_DATA_DIR", os.getcwd())

# cv2.imread reduced-colour modes are only defined for these downscale factors.
REFERENCE_SCALES = (1, 2, 4, 8)


@dataclass
class PathConfig:
    data_dir: str = BASE_DIR
    snapshots_dir: str = os.path.join(data_dir, "Snapshots")
    downloads_dir: str = data_dir


DEFAULT_THRESHOLD = 0.6
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class ScanDefaults:
    threshold: float = DEFAULT_THRESHOLD
    reference_scale: int = 8  # reference is decoded at 1/8 size
    log_level: str = "INFO"
    download_timeout: int = 3600  # seconds


def validate_threshold(value: float) -> float:
    """Return value as a float in [0, 1] or raise InputError."""
    try:
        threshold = float(value)
    except (TypeError, ValueError) as e:
        raise InputError(f"Invalid threshold: {value!r}") from e
    # NaN fails both comparisons, so it is rejected here too.
    if not 0.0 <= threshold <= 1.0:
        raise InputError(f"Threshold must be between 0.00 and 1.00, got {value!r}")
    return threshold


def defaults_from_env(environ=None) -> ScanDefaults:
    """Scan defaults with FRAMETIME_* overrides; invalid values are ignored."""
    environ = os.environ if environ is None else environ
    cfg = ScanDefaults()
    try:
        cfg.threshold = validate_threshold(environ.get("FRAMETIME_THRESHOLD", DEFAULT_THRESHOLD))
    except InputError:
        pass
    log_level = environ.get("FRAMETIME_LOG_LEVEL", cfg.log_level).upper()
    if log_level in LOG_LEVELS:
        cfg.log_level = log_level
    return cfg


paths = PathConfig()
defaults = defaults_from_env()


@dataclass(frozen=True)
class ScanConfig:
    """Everything a single scan needs; fixed for the duration of the scan."""

    video_path: str
    reference_path: str
    threshold: float = field(default_factory=lambda: defaults.threshold)
    reference_scale: int = field(default_factory=lambda: defaults.reference_scale)
    track_end_snapshot: bool = False
    export_snapshots: bool = True
    snapshots_dir: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "threshold", validate_threshold(self.threshold))
        if self.reference_scale not in REFERENCE_SCALES:
            raise InputError(
                f"Reference scale must be one of {REFERENCE_SCALES}, got {self.reference_scale}"
            )
        if not self.video_path or not os.path.isfile(self.video_path):
            raise InputError(f'File at "{self.video_path}" not found...')
        if not self.reference_path or not os.path.isfile(self.reference_path):
            raise InputError(f'File at "{self.reference_path}" not found...')

    @property
    def snapshot_base_dir(self) -> str:
        return self.snapshots_dir or paths.snapshots_dir
