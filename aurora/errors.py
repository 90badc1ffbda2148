from pathlib import Path
from typing import List, Optional


class AuroraError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(AuroraError):
    """Invalid run configuration."""


class StartupError(AuroraError):
    """Raised before any file is touched; aborts the whole run."""


class InputMissingError(StartupError):
    def __init__(self, path: Path):
        super().__init__(f"Input directory does not exist: {path}")
        self.path = path


class EncoderNotFoundError(StartupError):
    def __init__(self, hint: Optional[str] = None):
        message = "FFmpeg not found in PATH. Please install FFmpeg."
        if hint:
            message = f"FFmpeg binary not found: {hint}"
        super().__init__(message)


class UnsafeOutputError(StartupError):
    """Output directory overlaps the input tree, so clearing it could destroy sources."""

    def __init__(self, input_dir: Path, output_dir: Path):
        super().__init__(
            f"Output directory {output_dir} overlaps input directory {input_dir}"
        )
        self.input_dir = input_dir
        self.output_dir = output_dir


class TranscodeError(AuroraError):
    """A single file failed to transcode."""

    def __init__(self, path: Path, message: str, return_code: Optional[int] = None,
                 output_tail: Optional[List[str]] = None):
        super().__init__(f"{path.name}: {message}")
        self.path = path
        self.return_code = return_code
        self.output_tail = output_tail or []


class CopyError(AuroraError):
    def __init__(self, source: Path, destination: Path, reason: str):
        super().__init__(f"Failed to copy {source} to {destination}: {reason}")
        self.source = source
        self.destination = destination


class CancelledError(AuroraError):
    """The run was cancelled while a file was in flight."""
