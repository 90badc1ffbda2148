import logging
from pathlib import Path
from typing import List, Optional

from .classify import MediaKind, classify_image, classify_image_for_png_mode
from .config import ImageConfig
from .duplicates import DuplicateIndex, key_for
from .engine import BatchEngine, content_files, copy_verbatim
from .errors import CopyError, InputMissingError
from .imaging import encode_image
from .progress import ProgressReporter
from .stats import calculate_saving
from .walker import FileEntry, mirror_output_path

logger = logging.getLogger("aurora.images")


class ImageConversionEngine(BatchEngine):
    """
    Converts an image tree to WebP (or PNG).

    Rasters are transcoded unless a sibling in the target format already exists,
    files already in the target format are copied, everything else is copied
    verbatim. A failed transcode falls back to copying the original.
    """

    noun = "images"
    include_preferred = True

    def __init__(self, config: ImageConfig, reporter: Optional[ProgressReporter] = None):
        super().__init__(config, reporter)
        self.index = DuplicateIndex()
        if config.target_format == 'png':
            self._classify = classify_image_for_png_mode
            self._target_kind = MediaKind.PNG
        else:
            self._classify = classify_image
            self._target_kind = MediaKind.WEBP

    # -------------------------------------------------------------------------
    # Run hooks
    # -------------------------------------------------------------------------

    def _preflight(self) -> None:
        if not self.input_dir.is_dir():
            self.reporter.error(f"Input directory does not exist: {self.input_dir}")
            raise InputMissingError(self.input_dir)
        self.config.check_paths()

        self.reporter.info("Starting image conversion...")
        self.reporter.info(f"Input directory: {self.input_dir}")
        self.reporter.info(f"Output directory: {self.output_dir}")
        self.reporter.info(
            f"Quality: {self.config.quality}, Max width: {self.config.max_width}, "
            f"Format: {self.config.target_format}"
        )

    def _prepare(self, files: List[FileEntry]) -> None:
        self.index = DuplicateIndex(files)

    def _is_countable(self, entry: FileEntry) -> bool:
        return self._classify(entry.name) is not MediaKind.OTHER

    def _process(self, entry: FileEntry) -> None:
        kind = self._classify(entry.name)
        if kind is MediaKind.OTHER:
            self._copy_other(entry)
            return

        if kind is self._target_kind:
            self._copy_existing_target(entry)
        else:
            sibling = self.index.lookup_variant(key_for(entry), self.config.target_extension)
            if sibling is not None and sibling.path != entry.path:
                self.stats.add_preferred()
                self.reporter.info(
                    f"Skipping {entry.relative_path} - {sibling.name} already exists"
                )
                self._dispatch(sibling)
            else:
                self._transcode(entry)

        self.reporter.advance()

    # -------------------------------------------------------------------------
    # Outcomes
    # -------------------------------------------------------------------------

    def _copy_existing_target(self, entry: FileEntry) -> None:
        destination = mirror_output_path(self.input_dir, entry.path, self.output_dir)
        if destination.exists():
            self.stats.add_skipped()
            self.reporter.info(f"Skipping {entry.relative_path} - output exists")
            return
        try:
            copy_verbatim(entry.path, destination)
        except CopyError as e:
            self._record_failure(entry, str(e))
            return
        self.stats.add_copied(entry.size)
        self.reporter.info(f"Copied existing {self.config.target_format}: {entry.relative_path}")

    def _transcode(self, entry: FileEntry) -> None:
        out_dir = self.mirror_dir(entry)
        out_file = out_dir / (entry.stem + self.config.target_extension)

        if out_file.exists():
            self.stats.add_skipped()
            self.reporter.info(f"Skipping {entry.relative_path} - {out_file.name} already written")
            return

        try:
            self.outdir.ensure_exists(out_dir)
            width, height = encode_image(
                entry.path, out_file, self.config.target_format,
                self.config.quality, self.config.max_width,
            )
            new_size = out_file.stat().st_size
        except Exception as e:
            self._transcode_failed(entry, out_file, e)
            return

        self.stats.add_converted(entry.size, new_size)
        logger.debug(f"{entry.relative_path}: encoded at {width}x{height}")
        self.reporter.success(
            f"Converted {entry.relative_path} to {self.config.target_format} "
            f"(Saved: {calculate_saving(entry.size, new_size)})"
        )

    def _transcode_failed(self, entry: FileEntry, out_file: Path, error: Exception) -> None:
        self._record_failure(entry, f"Error converting {entry.relative_path}: {error}")
        if out_file.exists():
            try:
                out_file.unlink()
            except OSError as e:
                logger.warning(f"Could not remove partial output {out_file}: {e}")

        destination = mirror_output_path(self.input_dir, entry.path, self.output_dir)
        try:
            copy_verbatim(entry.path, destination)
        except CopyError as e:
            self.reporter.error(str(e))
            return
        self.stats.add_bytes(entry.size, entry.size)
        self.reporter.warning(f"Kept original {entry.relative_path}")

    # -------------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------------

    def _reconcile(self) -> None:
        """Retry anything the walk missed, then compare input and output file counts."""
        inputs = content_files(self.input_dir)
        missed = [f for f in inputs if f.path not in self.processed]
        for entry in missed:
            self.reporter.warning(f"Retrying unprocessed file: {entry.relative_path}")
            self._dispatch(entry)

        outputs = content_files(self.output_dir)
        expected = len(inputs) - self.stats.existing_target_preferred - self.stats.skipped
        if len(outputs) != expected:
            self.reporter.warning(
                f"Output file count mismatch: expected {expected}, found {len(outputs)} in {self.output_dir}"
            )
