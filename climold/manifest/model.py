"""
Manifest value tree.

Values are kept exactly as the document spelled them; checking and
converting them is the validator's job. Every node remembers where its
name and fields appear in the source.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..ir.app import InputKind
from .errors import DEFAULT_MANIFEST_NAME
from .source import KeyPath, SourceMap, SourceSpan


@dataclass
class Node:
    key_path: KeyPath = ()
    span: Optional[SourceSpan] = None
    field_spans: Dict[str, SourceSpan] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def field_path(self) -> str:
        return ".".join(str(part) for part in self.key_path)

    def span_of(self, name: str) -> Optional[SourceSpan]:
        return self.field_spans.get(name, self.span)

    def path_of(self, name: str) -> str:
        return f"{self.field_path}.{name}" if self.key_path else name


@dataclass
class CliSection(Node):
    present: bool = True
    name: Any = None
    version: Any = None
    description: Any = None
    author: Any = None
    language: Any = None


@dataclass
class InputDecl(Node):
    name: Any = None
    kind: InputKind = InputKind.POSITIONAL
    type: Any = None
    required: Any = None
    default: Any = None
    description: Any = None
    choices: Any = None
    short: Any = None


@dataclass
class CommandDecl(Node):
    name: str = ""
    # Command names from the root, independent of how nesting was spelled
    path: Tuple[str, ...] = ()
    description: Any = None
    handler: Any = None
    args: List[InputDecl] = field(default_factory=list)
    flags: List[InputDecl] = field(default_factory=list)
    children: List["CommandDecl"] = field(default_factory=list)

    @property
    def inputs(self) -> List[InputDecl]:
        return self.args + self.flags

    @property
    def dotted_path(self) -> str:
        return ".".join(self.path)


@dataclass
class ResourceDecl(Node):
    name: str = ""
    type: Any = None
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Manifest:
    """Parsed, not yet validated, configuration document."""

    cli: CliSection
    commands: List[CommandDecl] = field(default_factory=list)
    resources: List[ResourceDecl] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)
    source_map: Optional[SourceMap] = None
    filename: str = DEFAULT_MANIFEST_NAME
    source: str = ""

    def walk_commands(self):
        """Yield every command declaration depth-first in declaration order."""
        stack = list(reversed(self.commands))
        while stack:
            command = stack.pop()
            yield command
            stack.extend(reversed(command.children))
