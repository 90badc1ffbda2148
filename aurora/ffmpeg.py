import logging
import re
import shutil
import subprocess
import threading
from pathlib import Path
from typing import Callable, List, Optional, Union

from .errors import CancelledError, EncoderNotFoundError, TranscodeError

logger = logging.getLogger("aurora.ffmpeg")

TIME_PATTERN = re.compile(r"time=(\d+:\d{2}:\d{2}\.\d+)")

# Lines of encoder output kept for error reports
ERROR_TAIL = 20

AUDIO_BITRATE = "128k"

# =============================================================================
# Binary Discovery
# =============================================================================

def find_ffmpeg(explicit: Optional[Union[str, Path]] = None) -> str:
    """Locate the encoder binary, preferring an explicit override."""
    if explicit:
        explicit = Path(explicit)
        if explicit.is_file():
            return str(explicit)
        found = shutil.which(str(explicit))
        if found:
            return found
        raise EncoderNotFoundError(str(explicit))

    found = shutil.which("ffmpeg")
    if not found:
        raise EncoderNotFoundError()
    return found

# =============================================================================
# FFmpeg Command Building
# =============================================================================

def build_ffmpeg_command(
    ffmpeg: str,
    input_file: Path,
    output_file: Path,
    crf: int,
    preset: str,
) -> List[str]:
    """H.264 video, AAC audio, moov atom up front for streaming."""
    return [
        ffmpeg, "-y", "-hide_banner",
        "-i", str(input_file),
        "-c:v", "libx264",
        "-crf", str(crf),
        "-preset", preset,
        "-c:a", "aac",
        "-b:a", AUDIO_BITRATE,
        "-movflags", "+faststart",
        str(output_file),
    ]


def parse_elapsed(line: str) -> Optional[str]:
    """Extract the time=HH:MM:SS.ff marker from an encoder stats line."""
    match = TIME_PATTERN.search(line)
    return match.group(1) if match else None

# =============================================================================
# Process Execution
# =============================================================================

def run_encoder(
    cmd: List[str],
    input_file: Path,
    on_time: Optional[Callable[[str], None]] = None,
    cancel_event: Optional[threading.Event] = None,
) -> None:
    """
    Run the encoder to completion, feeding elapsed-time markers to on_time.
    Raises TranscodeError on spawn failure or nonzero exit, CancelledError if cancelled.
    The stderr text is only used for status messages, never to decide success.
    """
    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        process = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            universal_newlines=True,
            encoding="utf-8",
            errors="replace"
        )
    except OSError as e:
        raise TranscodeError(input_file, f"failed to start encoder: {e}") from e

    error_log: List[str] = []
    cancelled = False

    while True:
        if cancel_event is not None and cancel_event.is_set():
            process.terminate()
            cancelled = True
            break

        line = process.stderr.readline()
        if not line and process.poll() is not None:
            break

        if line:
            error_log.append(line.rstrip())
            if len(error_log) > ERROR_TAIL:
                error_log.pop(0)

            elapsed = parse_elapsed(line)
            if elapsed and on_time is not None:
                on_time(elapsed)

    return_code = process.wait()
    if process.stderr is not None:
        process.stderr.close()

    if cancelled:
        raise CancelledError(f"Stopped {input_file.name}")
    if return_code != 0:
        raise TranscodeError(
            input_file,
            f"encoder exited with code {return_code}",
            return_code=return_code,
            output_tail=error_log,
        )
