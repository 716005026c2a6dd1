"""
Manifest diagnostics and the errors that carry them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from ..core.errors import ClimoldError
from .source import SourceSpan

DEFAULT_MANIFEST_NAME = "climold.toml"


class DiagnosticKind(Enum):
    """What a diagnostic is about. Values are shown to users."""

    # parse
    SYNTAX = "syntax"
    INVALID_STRUCTURE = "invalid-structure"
    # validate
    MISSING_FIELD = "missing-field"
    UNKNOWN_FIELD = "unknown-field"
    INVALID_VALUE = "invalid-value"
    INVALID_IDENTIFIER = "invalid-identifier"
    RESERVED_KEYWORD = "reserved-keyword"
    NAME_COLLISION = "name-collision"
    DUPLICATE_NAME = "duplicate-name"
    DUPLICATE_SHORT = "duplicate-short"
    UNKNOWN_RESOURCE_TYPE = "unknown-resource-type"
    MISSING_CONNECTION = "missing-connection"
    SQLITE_ONLY_OPTION = "sqlite-only-option"
    INVALID_OPTION = "invalid-option"
    INVALID_TYPE = "invalid-type"
    INVALID_DEFAULT = "invalid-default"
    INVALID_VERSION = "invalid-version"
    UNKNOWN_LANGUAGE = "unknown-language"
    # lints
    COMMAND_NAMING = "command-naming"
    EMPTY_DESCRIPTION = "empty-description"


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    """One problem found in a manifest.

    ``field`` is the dotted key path of the offending manifest entry, for
    example ``commands.db.migrate.args.name``.
    """

    kind: DiagnosticKind
    message: str
    field: str = ""
    span: Optional[SourceSpan] = None
    help: Optional[str] = None
    severity: Severity = Severity.ERROR

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def location(self, filename: str) -> str:
        if self.span is not None:
            return f"{filename}:{self.span.line}:{self.span.column}"
        if self.field:
            return f"{filename}: {self.field}"
        return filename

    def format(self, filename: str = DEFAULT_MANIFEST_NAME) -> str:
        return f"{self.location(filename)}: {self.kind.value}: {self.message}"


class ManifestError(ClimoldError):
    """Base class for errors found in a manifest document."""

    def __init__(
        self,
        diagnostics: Iterable[Diagnostic],
        filename: str = DEFAULT_MANIFEST_NAME,
        source: Optional[str] = None,
    ):
        self.diagnostics: List[Diagnostic] = list(diagnostics)
        self.filename = filename
        self.source = source
        super().__init__(
            "\n".join(diagnostic.format(filename) for diagnostic in self.diagnostics)
        )

    @property
    def kinds(self) -> List[DiagnosticKind]:
        return [diagnostic.kind for diagnostic in self.diagnostics]


class ParseError(ManifestError):
    """The manifest text is not well-formed."""

    pass


class ValidationError(ManifestError):
    """The manifest is well-formed but semantically invalid."""

    pass
