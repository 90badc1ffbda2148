from enum import Enum
from pathlib import PurePath
from typing import Union

# Reserved placeholder that keeps empty directories under version control
SENTINEL_NAME = ".gitkeep"

# Raster formats accepted as conversion sources
RASTER_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.gif'}

# Supported video extensions
VIDEO_EXTENSIONS = {'.mp4', '.avi', '.mov', '.mkv', '.webm', '.flv', '.wmv'}


class MediaKind(Enum):
    """Category of a file as seen by one of the engines."""
    RASTER = "raster"
    WEBP = "webp"
    PNG = "png"
    VIDEO = "video"
    OTHER = "other"


def _extension(name: Union[str, PurePath]) -> str:
    return PurePath(name).suffix.lower()


def classify_image(name: Union[str, PurePath]) -> MediaKind:
    """Classify a file for a WebP-target run."""
    ext = _extension(name)
    if ext == '.webp':
        return MediaKind.WEBP
    if ext in RASTER_EXTENSIONS:
        return MediaKind.RASTER
    return MediaKind.OTHER


def classify_image_for_png_mode(name: Union[str, PurePath]) -> MediaKind:
    """
    Classify a file for a PNG-target run.
    WebP and non-PNG rasters are transcoded, PNG files are already in the target format.
    """
    ext = _extension(name)
    if ext == '.webp':
        return MediaKind.WEBP
    if ext == '.png':
        return MediaKind.PNG
    if ext in RASTER_EXTENSIONS:
        return MediaKind.RASTER
    return MediaKind.OTHER


def classify_video(name: Union[str, PurePath]) -> MediaKind:
    return MediaKind.VIDEO if _extension(name) in VIDEO_EXTENSIONS else MediaKind.OTHER


def is_sentinel(name: Union[str, PurePath]) -> bool:
    return PurePath(name).name == SENTINEL_NAME


# Marker of the hidden temp file a video is encoded into before the final rename
PARTIAL_MARKER = ".aurora-part"


def partial_name(name: str) -> str:
    """Hidden temp name for an output; keeps the real extension so ffmpeg picks the muxer."""
    path = PurePath(name)
    return f".{path.stem}{PARTIAL_MARKER}{path.suffix}"


def is_partial(name: Union[str, PurePath]) -> bool:
    path = PurePath(name)
    return (
        path.name.startswith('.')
        and path.stem.endswith(PARTIAL_MARKER)
        and path.suffix.lower() in VIDEO_EXTENSIONS
    )


def is_reserved(name: Union[str, PurePath]) -> bool:
    """Names the pipeline owns: never treated as content."""
    return is_sentinel(name) or is_partial(name)
