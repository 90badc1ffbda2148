from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from .errors import ConfigError, UnsafeOutputError

# Valid x264 presets
VALID_PRESETS = ['ultrafast', 'superfast', 'veryfast', 'faster', 'fast', 'medium', 'slow', 'slower', 'veryslow', 'placebo']

TARGET_FORMATS = ('webp', 'png')

DEFAULT_QUALITY = 80
DEFAULT_MAX_WIDTH = 1920
DEFAULT_CRF = 23
DEFAULT_PRESET = "medium"

PathLike = Union[str, Path]

# =============================================================================
# Validation
# =============================================================================

def validate_crf(crf: int) -> Tuple[bool, str]:
    """Validate CRF value for libx264."""
    if not 0 <= crf <= 51:
        return False, f"CRF must be between 0 and 51 for libx264 (got {crf})"
    return True, ""


def validate_preset(preset: str) -> Tuple[bool, str]:
    """Validate preset value."""
    if preset.lower() not in VALID_PRESETS:
        return False, f"Invalid preset '{preset}'. Valid options: {', '.join(VALID_PRESETS)}"
    return True, ""


def validate_image_quality(quality: int) -> Tuple[bool, str]:
    """Validate image quality value."""
    if not 0 <= quality <= 100:
        return False, f"Image quality must be between 0 and 100 (got {quality})"
    return True, ""


def validate_max_width(max_width: int) -> Tuple[bool, str]:
    if max_width <= 0:
        return False, f"Maximum width must be a positive number of pixels (got {max_width})"
    return True, ""


def validate_target_format(target_format: str) -> Tuple[bool, str]:
    if target_format not in TARGET_FORMATS:
        return False, f"Invalid target format '{target_format}'. Valid options: {', '.join(TARGET_FORMATS)}"
    return True, ""


def _raise_if_invalid(*checks: Tuple[bool, str]) -> None:
    for valid, msg in checks:
        if not valid:
            raise ConfigError(msg)


def check_paths_disjoint(input_dir: Path, output_dir: Path) -> None:
    """
    Reject an output root that equals, contains or sits inside the input root.
    Clearing such an output directory would delete source files.
    """
    src = input_dir.resolve()
    dst = output_dir.resolve()
    if src == dst or src in dst.parents or dst in src.parents:
        raise UnsafeOutputError(input_dir, output_dir)

# =============================================================================
# Run Configuration
# =============================================================================

@dataclass(frozen=True)
class ImageConfig:
    """Settings for one image conversion run."""
    input_dir: PathLike
    output_dir: PathLike
    clear_output_dir: bool = False
    quality: int = DEFAULT_QUALITY
    max_width: int = DEFAULT_MAX_WIDTH
    target_format: str = "webp"

    def __post_init__(self):
        object.__setattr__(self, "input_dir", Path(self.input_dir))
        object.__setattr__(self, "output_dir", Path(self.output_dir))
        object.__setattr__(self, "target_format", str(self.target_format).lower().lstrip('.'))
        _raise_if_invalid(
            validate_image_quality(self.quality),
            validate_max_width(self.max_width),
            validate_target_format(self.target_format),
        )

    @property
    def target_extension(self) -> str:
        return '.' + self.target_format

    def check_paths(self) -> None:
        check_paths_disjoint(self.input_dir, self.output_dir)


@dataclass(frozen=True)
class VideoConfig:
    """Settings for one video compression run."""
    input_dir: PathLike
    output_dir: PathLike
    clear_output_dir: bool = False
    crf: int = DEFAULT_CRF
    preset: str = DEFAULT_PRESET
    ffmpeg_path: Optional[PathLike] = None

    def __post_init__(self):
        object.__setattr__(self, "input_dir", Path(self.input_dir))
        object.__setattr__(self, "output_dir", Path(self.output_dir))
        object.__setattr__(self, "preset", self.preset.lower())
        if self.ffmpeg_path is not None:
            object.__setattr__(self, "ffmpeg_path", Path(self.ffmpeg_path))
        _raise_if_invalid(validate_crf(self.crf), validate_preset(self.preset))

    def check_paths(self) -> None:
        check_paths_disjoint(self.input_dir, self.output_dir)
