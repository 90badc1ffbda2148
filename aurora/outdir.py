import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from .classify import PARTIAL_MARKER, is_partial, is_sentinel

logger = logging.getLogger("aurora.outdir")


@dataclass
class ClearReport:
    removed: int = 0
    failures: List[Tuple[Path, str]] = field(default_factory=list)


def ensure_exists(directory: Path) -> Path:
    """Create directory and its parents if missing."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


class OutputDirectoryManager:
    """Owns the output root lifecycle: optional clearing, then guaranteed existence."""

    def __init__(self, clear_output: bool = False):
        self.clear_output = clear_output

    def ensure_exists(self, directory: Path) -> Path:
        return ensure_exists(directory)

    def clear(self, directory: Path) -> ClearReport:
        """
        Delete everything under directory except sentinel files.
        Per-entry failures are logged and skipped. The directory exists on return.
        """
        directory = Path(directory)
        report = ClearReport()

        if self.clear_output and directory.is_dir():
            self._clear_tree(directory, report)
            logger.info(f"Cleared output directory: {directory}")
            if report.failures:
                logger.warning(
                    f"{len(report.failures)} entries could not be removed from {directory}"
                )

        if not directory.is_dir():
            ensure_exists(directory)
        return report

    def _clear_tree(self, directory: Path, report: ClearReport) -> None:
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            logger.error(f"Cannot list {directory}: {e}")
            report.failures.append((directory, str(e)))
            return

        for item in entries:
            path = Path(item.path)
            try:
                if item.is_dir(follow_symlinks=False):
                    self._clear_tree(path, report)
                    if any(path.iterdir()):
                        # still holds a sentinel or an undeletable entry
                        continue
                    path.rmdir()
                elif is_sentinel(item.name):
                    continue
                else:
                    path.unlink()
                report.removed += 1
            except OSError as e:
                logger.error(f"Failed to delete {path}: {e}")
                report.failures.append((path, str(e)))


def clean_partial_files(directory: Path) -> int:
    """Remove leftover .<stem>.aurora-part<ext> temp files from an interrupted video run."""
    directory = Path(directory)
    if not directory.exists():
        return 0

    part_files = [
        f for f in directory.rglob(f".*{PARTIAL_MARKER}.*")
        if f.is_file() and is_partial(f.name)
    ]
    removed = 0
    if part_files:
        logger.warning(f"Cleaning up {len(part_files)} leftover temporary files...")
    for f in part_files:
        try:
            f.unlink()
            removed += 1
        except OSError as e:
            logger.warning(f"Could not remove {f}: {e}")
    return removed
