from pathlib import Path
from typing import Tuple

from PIL import Image, ImageSequence

# Modes WebP and PNG can store directly
_DIRECT_MODES = {'RGB', 'RGBA'}


def target_size(width: int, height: int, max_width: int) -> Tuple[int, int]:
    """Downscale to max_width keeping the aspect ratio; never upscale."""
    if width <= max_width:
        return width, height
    new_height = max(1, round(height * max_width / width))
    return max_width, new_height


def _normalize_mode(img: Image.Image) -> Image.Image:
    if img.mode in _DIRECT_MODES:
        return img
    has_alpha = img.mode in ('LA', 'PA') or (img.mode == 'P' and 'transparency' in img.info)
    return img.convert('RGBA' if has_alpha else 'RGB')


def _encode_animated_webp(img: Image.Image, destination: Path, new_size: Tuple[int, int], quality: int) -> None:
    frames = []
    durations = []
    for frame in ImageSequence.Iterator(img):
        durations.append(frame.info.get('duration', img.info.get('duration', 100)))
        out = frame.convert('RGBA')
        if out.size != new_size:
            out = out.resize(new_size, Image.Resampling.LANCZOS)
        frames.append(out)

    frames[0].save(
        destination,
        format='WEBP',
        save_all=True,
        append_images=frames[1:],
        duration=durations,
        loop=img.info.get('loop', 0),
        quality=quality,
        method=6,
    )


def encode_image(
    source: Path,
    destination: Path,
    target_format: str,
    quality: int,
    max_width: int,
) -> Tuple[int, int]:
    """
    Decode source, shrink it to max_width if wider and write it as target_format.
    Animated sources keep every frame when the target is WebP; PNG gets the first frame.
    Returns the encoded (width, height). Pillow errors propagate to the caller.
    """
    with Image.open(source) as img:
        width, height = img.size
        new_size = target_size(width, height, max_width)

        if target_format == 'webp' and getattr(img, "is_animated", False):
            _encode_animated_webp(img, destination, new_size, quality)
            return new_size

        out = _normalize_mode(img)
        if new_size != (width, height):
            out = out.resize(new_size, Image.Resampling.LANCZOS)

        if target_format == 'webp':
            out.save(destination, format='WEBP', quality=quality, method=6)
        elif target_format == 'png':
            out.save(destination, format='PNG', optimize=True)
        else:
            raise ValueError(f"Unsupported target format: {target_format}")

    return new_size
