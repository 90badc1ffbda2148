import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Union

logger = logging.getLogger("aurora.walker")


@dataclass(frozen=True)
class FileEntry:
    """A regular file found under an input root."""
    path: Path
    relative_dir: Path
    stem: str
    extension: str
    size: int

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def relative_path(self) -> Path:
        return self.relative_dir / self.path.name


@dataclass(frozen=True)
class WalkEntry:
    entry: FileEntry


@dataclass(frozen=True)
class WalkSkip:
    """An entry the walker could not read; traversal of its siblings continues."""
    path: Path
    reason: str


WalkResult = Union[WalkEntry, WalkSkip]


def _make_entry(root: Path, path: Path, size: int) -> FileEntry:
    return FileEntry(
        path=path,
        relative_dir=path.parent.relative_to(root),
        stem=path.stem,
        extension=path.suffix,
        size=size,
    )


def walk_files(root: Path, follow_symlinks: bool = False) -> Iterator[WalkResult]:
    """
    Depth-first walk of root in directory-listing order.
    Yields a WalkEntry per regular file and a WalkSkip per unreadable directory or file.
    """
    root = Path(root)

    def _walk(directory: Path) -> Iterator[WalkResult]:
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            yield WalkSkip(directory, f"cannot list directory: {e.strerror or e}")
            return

        for item in entries:
            path = Path(item.path)
            try:
                if item.is_dir(follow_symlinks=follow_symlinks):
                    yield from _walk(path)
                    continue
                if item.is_symlink() and not follow_symlinks:
                    if path.is_dir():
                        continue
                if not item.is_file():
                    continue
                size = item.stat().st_size
            except OSError as e:
                yield WalkSkip(path, f"cannot stat: {e.strerror or e}")
                continue
            yield WalkEntry(_make_entry(root, path, size))

    yield from _walk(root)


def list_all_files(root: Path, follow_symlinks: bool = False) -> List[FileEntry]:
    """Collect every readable file under root, logging what had to be skipped."""
    files = []
    for result in walk_files(root, follow_symlinks):
        if isinstance(result, WalkSkip):
            logger.warning(f"Skipping {result.path}: {result.reason}")
            continue
        files.append(result.entry)
    return files


def mirror_output_path(root: Path, file: Path, output_root: Path) -> Path:
    """Rewrite file's position relative to root under output_root."""
    return Path(output_root) / Path(file).relative_to(root)
