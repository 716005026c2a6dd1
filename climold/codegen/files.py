"""
Registry of the files a backend produces.

A backend describes its whole output tree as FileEntry values. The same
registry drives preview, generate and orphan detection, which is what keeps
preview a faithful prediction of generate.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional

from ..core.files import FileCategory, Overwrite
from .errors import GeneratorError


@dataclass(frozen=True)
class FileEntry:
    """One logical output file.

    ``render`` is called lazily, so building a registry (and computing
    orphans from it) never renders anything.
    """

    path: str
    category: FileCategory
    render: Callable[[], str]
    command: Optional[str] = None
    overwrite: Optional[Overwrite] = None

    @property
    def policy(self) -> Overwrite:
        return self.overwrite or self.category.default_overwrite

    @property
    def is_generate_once(self) -> bool:
        return self.policy is Overwrite.IF_MISSING


class FileRegistry:
    """Ordered table of FileEntry values keyed by relative path."""

    def __init__(self):
        self._entries: Dict[str, FileEntry] = {}

    def register(self, entry: FileEntry) -> FileEntry:
        if entry.path in self._entries:
            raise GeneratorError(f"duplicate output path in file registry: {entry.path}")
        self._entries[entry.path] = entry
        return entry

    def add(
        self,
        path: str,
        category: FileCategory,
        render: Callable[[], str],
        command: Optional[str] = None,
        overwrite: Optional[Overwrite] = None,
    ) -> FileEntry:
        return self.register(FileEntry(path, category, render, command, overwrite))

    def entries(self) -> List[FileEntry]:
        """Entries grouped by category in write order, insertion order within."""
        return sorted(self._entries.values(), key=lambda entry: entry.category.order)

    def __iter__(self) -> Iterator[FileEntry]:
        return iter(self.entries())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: str) -> bool:
        return path in self._entries

    def get(self, path: str) -> Optional[FileEntry]:
        return self._entries.get(path)

    def paths(self) -> List[str]:
        return [entry.path for entry in self.entries()]

    def for_command(self, dotted: str) -> List[FileEntry]:
        return [entry for entry in self.entries() if entry.command == dotted]

    def by_category(self, category: FileCategory) -> List[FileEntry]:
        return [entry for entry in self.entries() if entry.category is category]
