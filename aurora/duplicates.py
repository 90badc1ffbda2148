from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from .classify import is_sentinel
from .walker import FileEntry, list_all_files

DuplicateKey = Tuple[str, str]


def key_for(entry: FileEntry) -> DuplicateKey:
    """Directory + base name identity shared by format variants of the same asset."""
    return (entry.relative_dir.as_posix().lower(), entry.stem.lower())


class DuplicateIndex:
    """
    Groups input files that differ only by extension, e.g. photo.jpg and photo.webp
    in the same directory. Built once per run and read-only afterwards.
    """

    def __init__(self, entries: Iterable[FileEntry] = ()):
        groups: Dict[DuplicateKey, List[FileEntry]] = defaultdict(list)
        for entry in entries:
            if is_sentinel(entry.name):
                continue
            groups[key_for(entry)].append(entry)
        self._groups = dict(groups)

    @classmethod
    def build(cls, input_root: Path) -> "DuplicateIndex":
        return cls(list_all_files(Path(input_root)))

    def variants(self, key: DuplicateKey) -> Tuple[FileEntry, ...]:
        return tuple(self._groups.get(key, ()))

    def lookup_variant(self, key: DuplicateKey, extension: str) -> Optional[FileEntry]:
        """Find the sibling of key with the given extension (case-insensitive)."""
        extension = extension.lower()
        if not extension.startswith('.'):
            extension = '.' + extension
        for entry in self._groups.get(key, ()):
            if entry.extension.lower() == extension:
                return entry
        return None

    def lookup_webp_variant(self, key: DuplicateKey) -> Optional[FileEntry]:
        return self.lookup_variant(key, '.webp')
