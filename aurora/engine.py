import shutil
import threading
import time
from pathlib import Path
from typing import List, Optional, Set, Tuple

from .classify import is_reserved
from .errors import CancelledError, CopyError
from .outdir import OutputDirectoryManager, ensure_exists
from .progress import ProgressCallback, ProgressReporter
from .stats import RunStatistics, RunSummary, format_bytes
from .walker import FileEntry, WalkEntry, WalkSkip, mirror_output_path, walk_files


def copy_verbatim(source: Path, destination: Path) -> int:
    """Copy a file unchanged, creating the destination directory on demand."""
    try:
        ensure_exists(destination.parent)
        shutil.copy2(source, destination)
        return destination.stat().st_size
    except OSError as e:
        raise CopyError(source, destination, str(e)) from e


def content_files(root: Path) -> List[FileEntry]:
    """
    Non-reserved files under root. Unreadable entries are dropped silently:
    they are reported once, by the dispatch walk.
    """
    return [
        result.entry for result in walk_files(root)
        if isinstance(result, WalkEntry) and not is_reserved(result.entry.name)
    ]


class BatchEngine:
    """
    Shared run loop of the image and video engines.

    One run walks the input tree sequentially and dispatches every file exactly
    once. Subclasses implement _preflight, _is_countable and _process.
    """

    noun = "files"
    include_preferred = False

    def __init__(self, config, reporter: Optional[ProgressReporter] = None):
        self.config = config
        self.reporter = reporter or ProgressReporter()
        self.outdir = OutputDirectoryManager(config.clear_output_dir)
        self.stats = RunStatistics()
        self.processed: Set[Path] = set()
        self.failures: List[Tuple[Path, str]] = []
        self._cancel_event = threading.Event()

    def set_progress_callback(self, callback: Optional[ProgressCallback]) -> None:
        self.reporter.set_subscriber(callback)

    def cancel(self) -> None:
        """Stop after the current file; an in-flight encoder process is terminated."""
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def input_dir(self) -> Path:
        return self.config.input_dir

    @property
    def output_dir(self) -> Path:
        return self.config.output_dir

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------

    def run(self) -> RunSummary:
        """Process the whole input tree. Raises StartupError before touching anything."""
        self._reset()
        self._preflight()

        start_time = time.time()
        files = self._scan()
        self._prepare(files)

        self.outdir.clear(self.output_dir)
        self._after_clear()

        self.reporter.start(sum(1 for f in files if self._is_countable(f)))
        self._walk_and_dispatch()
        if not self.cancelled:
            self._reconcile()

        elapsed = time.time() - start_time
        summary = self.stats.summarize(elapsed, self.include_preferred, self.cancelled)
        self._report_summary(summary)
        return summary

    def _reset(self) -> None:
        self.stats = RunStatistics()
        self.processed = set()
        self.failures = []
        self._cancel_event.clear()
        self.reporter.start(0)

    def _scan(self) -> List[FileEntry]:
        return content_files(self.input_dir)

    def _walk_and_dispatch(self) -> None:
        for result in walk_files(self.input_dir):
            if self.cancelled:
                break
            if isinstance(result, WalkSkip):
                self.reporter.warning(f"Skipping {result.path}: {result.reason}")
                continue
            try:
                self._dispatch(result.entry)
            except CancelledError as e:
                self.reporter.warning(str(e))
                break

    def _dispatch(self, entry: FileEntry) -> None:
        if entry.path in self.processed:
            return
        self.processed.add(entry.path)
        if is_reserved(entry.name):
            return
        self._process(entry)

    # -------------------------------------------------------------------------
    # Hooks
    # -------------------------------------------------------------------------

    def _preflight(self) -> None:
        raise NotImplementedError

    def _prepare(self, files: List[FileEntry]) -> None:
        pass

    def _after_clear(self) -> None:
        pass

    def _is_countable(self, entry: FileEntry) -> bool:
        raise NotImplementedError

    def _process(self, entry: FileEntry) -> None:
        raise NotImplementedError

    def _reconcile(self) -> None:
        pass

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def mirror_dir(self, entry: FileEntry) -> Path:
        return mirror_output_path(self.input_dir, entry.path, self.output_dir).parent

    def _copy_other(self, entry: FileEntry) -> None:
        """Copy a file the engine does not transcode."""
        destination = mirror_output_path(self.input_dir, entry.path, self.output_dir)
        try:
            copy_verbatim(entry.path, destination)
        except CopyError as e:
            self._record_failure(entry, str(e))
            return
        self.stats.add_copied(entry.size)
        self.reporter.info(f"Copied: {entry.relative_path}")

    def _record_failure(self, entry: FileEntry, message: str) -> None:
        self.stats.add_failed()
        self.failures.append((entry.path, message))
        self.reporter.error(message)

    def _report_summary(self, summary: RunSummary) -> None:
        if summary.cancelled:
            self.reporter.warning("Run cancelled before all files were processed")
        if summary.skipped_count > 0:
            self.reporter.warning(f"Skipped {summary.skipped_count} files")
        if summary.error_count > 0:
            self.reporter.error(f"Encountered errors in {summary.error_count} files")
        if summary.original_total_bytes > 0:
            self.reporter.success(
                f"Total size: {format_bytes(summary.original_total_bytes)} → "
                f"{format_bytes(summary.final_total_bytes)} ({summary.saving_percent:.2f}% saved)"
            )
        self.reporter.complete(
            f"Processed {summary.converted_count} {self.noun} in {summary.elapsed_seconds:.2f} seconds"
        )
