"""Batch image conversion (WebP/PNG) and video compression (ffmpeg)."""

from .config import ImageConfig, VideoConfig
from .errors import (
    AuroraError,
    ConfigError,
    EncoderNotFoundError,
    InputMissingError,
    StartupError,
    TranscodeError,
    UnsafeOutputError,
)
from .images import ImageConversionEngine
from .progress import ProgressReporter
from .stats import RunSummary
from .video import VideoCompressionEngine

__version__ = "1.0.0"

__all__ = [
    "AuroraError",
    "ConfigError",
    "EncoderNotFoundError",
    "ImageConfig",
    "ImageConversionEngine",
    "InputMissingError",
    "ProgressReporter",
    "RunSummary",
    "StartupError",
    "TranscodeError",
    "UnsafeOutputError",
    "VideoCompressionEngine",
    "VideoConfig",
]
