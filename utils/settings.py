"""Project wide configuration dataclasses and default values."""

from dataclasses import dataclass
from pathlib import Path

# Root dir
BASE_DIR = Path(__file__).resolve().parent.parent

# File names inside an offline capture directory
IMAGE_NAMES = ("image.jpg", "image.jpeg", "image.png")
DEPTH_BIN = "depth.bin"
DEPTH_NPY = "depth.npy"
CAPTURE_META = "capture.json"
CALIBRATION_JSON = "calibration.json"

# Bytes per depth sample (kCVPixelFormatType_DepthFloat32)
DEPTH_SAMPLE_SIZE = 4


@dataclass(frozen=True)
class Paths:
    """
    Filesystem locations used by the CLI tools.
    """

    CONF_DIR: Path = BASE_DIR / "conf"
    OUTPUT_DIR: Path = BASE_DIR / ".payloads"


paths = Paths()


@dataclass(frozen=True)
class LoggingCfg:
    """
    Logging configuration for the project.

    - level: Log level ("INFO", "DEBUG", etc.)
    - json: Enable/disable structured JSON logging.
    - log_dir: Directory where log files are stored.
    - log_format: Console log output format.
    - log_file_format: File log output format.
    - progress_bar_format: TQDM progress bar format.
    """

    level: str = "INFO"
    json: bool = True
    log_dir: Path = Path(".logs")
    log_format: str = (
        "<green>{time:MM-DD HH:mm:ss}</green>"
        "[<level>{level:.3}</level>]"
        "[<cyan>{extra[module]:.16}</cyan>:<cyan>{line:<3}</cyan>]"
        "<level>{message}</level>"
    )
    log_file_format: str = "{time:YYYY-MM-DD HH:mm:ss}[{level}][{file}:{line}]{message}"
    progress_bar_format: str = (
        "{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]"
    )


logging = LoggingCfg()


@dataclass(frozen=True)
class TransportCfg:
    """
    Capture upload endpoint.
    A single best-effort POST, no retries.
    """

    endpoint: str = "http://192.168.1.30:8080/capture"
    timeout: float = 30.0  # sec


transport = TransportCfg()


@dataclass(frozen=True)
class CaptureCfg:
    """
    Payload encoding options.

    - image_ext: Codec used when the color image arrives as raw pixels.
    - jpeg_quality: OpenCV JPEG quality [0, 100].
    - json_indent: Indentation of the Shape B document (None = compact).
    """

    image_ext: str = ".jpg"
    jpeg_quality: int = 95
    json_indent: int | None = 2


capture = CaptureCfg()


@dataclass(frozen=True)
class ProjectionCfg:
    """
    Point cloud projection options.

    - rescale_calibration: Rescale intrinsics from the calibration reference
      dimensions to the depth map size before projecting.
    """

    rescale_calibration: bool = False


projection = ProjectionCfg()

__all__ = [
    "Paths",
    "LoggingCfg",
    "TransportCfg",
    "CaptureCfg",
    "ProjectionCfg",
    "paths",
    "logging",
    "transport",
    "capture",
    "projection",
    "IMAGE_NAMES",
    "DEPTH_BIN",
    "DEPTH_NPY",
    "CAPTURE_META",
    "CALIBRATION_JSON",
    "DEPTH_SAMPLE_SIZE",
]
