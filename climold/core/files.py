"""
File emission values shared by the generators and the CLI.

Categories and overwrite policies are plain data: the write path looks at
the policy of an entry and never at what kind of file it is.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Overwrite(Enum):
    """When an existing file may be replaced."""

    ALWAYS = "always"
    IF_MISSING = "if_missing"


class FileCategory(Enum):
    """Kinds of generated files, in write order."""

    CONFIG = "config"
    INFRASTRUCTURE = "infrastructure"
    GENERATED = "generated"
    HANDLER = "handler"

    @property
    def default_overwrite(self) -> Overwrite:
        if self is FileCategory.HANDLER:
            return Overwrite.IF_MISSING
        return Overwrite.ALWAYS

    @property
    def order(self) -> int:
        return list(FileCategory).index(self)


class WriteOutcome(Enum):
    CREATED = "created"
    OVERWRITTEN = "overwritten"
    SKIPPED = "skipped"


class PreviewAction(Enum):
    CREATE = "create"
    OVERWRITE = "overwrite"
    SKIP = "skip"


@dataclass(frozen=True)
class GeneratedFile:
    """A rendered file, relative to the output directory."""

    path: str
    content: str
    category: FileCategory
    overwrite: Overwrite


@dataclass(frozen=True)
class PreviewFile:
    """A rendered file plus what generate would do with it."""

    path: str
    content: str
    category: FileCategory
    action: PreviewAction


@dataclass(frozen=True)
class WriteResult:
    path: str
    outcome: WriteOutcome


@dataclass(frozen=True)
class FileError:
    """An I/O failure for one file."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


@dataclass
class GenerateResult:
    """Outcome of one generate run."""

    written: List[WriteResult] = field(default_factory=list)
    errors: List[FileError] = field(default_factory=list)
    orphans: List[str] = field(default_factory=list)
    # Stale files deleted because they shadowed a regenerated file
    removed: List[str] = field(default_factory=list)

    def _paths(self, outcome: WriteOutcome) -> List[str]:
        return [result.path for result in self.written if result.outcome is outcome]

    @property
    def created(self) -> List[str]:
        return self._paths(WriteOutcome.CREATED)

    @property
    def overwritten(self) -> List[str]:
        return self._paths(WriteOutcome.OVERWRITTEN)

    @property
    def skipped(self) -> List[str]:
        return self._paths(WriteOutcome.SKIPPED)

    @property
    def success(self) -> bool:
        return not self.errors

    def outcome_for(self, path: str) -> Optional[WriteOutcome]:
        for result in self.written:
            if result.path == path:
                return result.outcome
        return None


@dataclass
class CleanResult:
    """Outcome of removing orphaned files.

    ``kept`` lists orphaned handlers that were edited by the user and
    therefore left in place.
    """

    deleted: List[str] = field(default_factory=list)
    kept: List[str] = field(default_factory=list)
    errors: List[FileError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors
