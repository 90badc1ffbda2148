import logging
from pathlib import Path
from typing import Optional

from .classify import MediaKind, classify_video, partial_name
from .config import VideoConfig
from .engine import BatchEngine
from .errors import EncoderNotFoundError, InputMissingError, TranscodeError
from .ffmpeg import build_ffmpeg_command, find_ffmpeg, run_encoder
from .outdir import clean_partial_files
from .progress import ProgressReporter
from .stats import calculate_saving, format_bytes
from .walker import FileEntry, mirror_output_path

logger = logging.getLogger("aurora.video")


def partial_path(out_file: Path) -> Path:
    """Temp file the encoder writes to, renamed to out_file on success."""
    return out_file.with_name(partial_name(out_file.name))


class VideoCompressionEngine(BatchEngine):
    """
    Compresses a video tree with ffmpeg (H.264 + AAC) and copies every other file.

    A failed video is counted and reported but, unlike the image engine, not
    copied to the output.
    """

    noun = "videos"
    include_preferred = False

    def __init__(self, config: VideoConfig, reporter: Optional[ProgressReporter] = None):
        super().__init__(config, reporter)
        self.ffmpeg: Optional[str] = None

    @property
    def compressed_videos(self) -> int:
        return self.stats.converted

    # -------------------------------------------------------------------------
    # Run hooks
    # -------------------------------------------------------------------------

    def _preflight(self) -> None:
        if not self.input_dir.is_dir():
            self.reporter.error(f"Input directory does not exist: {self.input_dir}")
            raise InputMissingError(self.input_dir)
        try:
            self.ffmpeg = find_ffmpeg(self.config.ffmpeg_path)
        except EncoderNotFoundError as e:
            self.reporter.error(str(e))
            raise
        self.config.check_paths()

        self.reporter.info("Starting video compression")
        self.reporter.info(f"Input Directory: {self.input_dir}")
        self.reporter.info(f"Output Directory: {self.output_dir}")
        self.reporter.info(f"Compression Settings: CRF {self.config.crf}, Preset: {self.config.preset}")

    def _after_clear(self) -> None:
        clean_partial_files(self.output_dir)

    def _is_countable(self, entry: FileEntry) -> bool:
        return classify_video(entry.name) is MediaKind.VIDEO

    def _process(self, entry: FileEntry) -> None:
        if classify_video(entry.name) is MediaKind.OTHER:
            self._copy_other(entry)
            return

        try:
            self._compress(entry)
        except TranscodeError as e:
            self._record_failure(entry, f"Failed to compress {entry.relative_path}: {e}")
            for line in e.output_tail:
                logger.debug(line)
        finally:
            self.reporter.advance()

    # -------------------------------------------------------------------------
    # Transcoding
    # -------------------------------------------------------------------------

    def _compress(self, entry: FileEntry) -> None:
        out_file = mirror_output_path(self.input_dir, entry.path, self.output_dir)
        if out_file.exists():
            self.stats.add_skipped()
            self.reporter.info(f"Skipping {entry.relative_path} - output exists")
            return

        self.outdir.ensure_exists(out_file.parent)
        temp_out_file = partial_path(out_file)
        logger.debug(f"Processing video file: {entry.path} -> {out_file}")

        cmd = build_ffmpeg_command(
            self.ffmpeg, entry.path, temp_out_file, self.config.crf, self.config.preset
        )
        label = str(entry.relative_path)

        try:
            run_encoder(
                cmd,
                entry.path,
                on_time=lambda elapsed: self.reporter.status(f"Compressing {label}: {elapsed}"),
                cancel_event=self._cancel_event,
            )
            if not temp_out_file.exists():
                raise TranscodeError(entry.path, "encoder reported success but produced no output")
            temp_out_file.replace(out_file)
            new_size = out_file.stat().st_size
        except OSError as e:
            self._discard(temp_out_file)
            raise TranscodeError(entry.path, str(e)) from e
        except BaseException:
            self._discard(temp_out_file)
            raise

        self.stats.add_converted(entry.size, new_size)
        self.reporter.success(
            f"Compressed: {label} ({format_bytes(entry.size)} → {format_bytes(new_size)}, "
            f"Saved: {calculate_saving(entry.size, new_size)})"
        )

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            if path.exists():
                path.unlink()
        except OSError as e:
            logger.warning(f"Could not remove partial output {path}: {e}")
