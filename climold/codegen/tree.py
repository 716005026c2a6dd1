"""
Flattened view of the command hierarchy.

Backends iterate a CommandTree instead of recursing over CommandOp
children themselves, so every backend sees commands in the same order:
depth-first, siblings in declaration order.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from ..ir.app import AppIR, CommandOp


@dataclass(frozen=True)
class FlatCommand:
    """One command of the tree together with its position."""

    command: CommandOp
    path: Tuple[str, ...]
    ident_path: Tuple[str, ...]
    depth: int
    index: int
    parent: Optional[str] = None

    @property
    def dotted(self) -> str:
        return ".".join(self.path)

    @property
    def name(self) -> str:
        return self.command.name

    @property
    def ident(self) -> str:
        return self.command.ident

    @property
    def is_leaf(self) -> bool:
        return self.command.is_leaf

    @property
    def is_invocable(self) -> bool:
        return self.command.invocable


class CommandTree:
    """Ordered, flattened list of every command of an application."""

    def __init__(self, commands: List[FlatCommand]):
        self._commands = list(commands)
        self._by_path: Dict[str, FlatCommand] = {}
        for flat in self._commands:
            if flat.dotted in self._by_path:
                raise ValueError(f"duplicate command path '{flat.dotted}'")
            self._by_path[flat.dotted] = flat

    @classmethod
    def from_app(cls, app: AppIR) -> "CommandTree":
        return cls.from_commands(list(app.commands()))

    @classmethod
    def from_commands(cls, roots: List[CommandOp]) -> "CommandTree":
        flat: List[FlatCommand] = []

        def visit(command: CommandOp, index: int, parent: Optional[FlatCommand]):
            path = (parent.path if parent else ()) + (command.name,)
            ident_path = (parent.ident_path if parent else ()) + (command.ident,)
            node = FlatCommand(
                command=command,
                path=path,
                ident_path=ident_path,
                depth=len(path) - 1,
                index=index,
                parent=parent.dotted if parent else None,
            )
            flat.append(node)
            for child_index, child in enumerate(command.children):
                visit(child, child_index, node)

        for index, root in enumerate(roots):
            visit(root, index, None)
        return cls(flat)

    def __iter__(self) -> Iterator[FlatCommand]:
        return iter(self._commands)

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, dotted: str) -> bool:
        return dotted in self._by_path

    def get(self, dotted: str) -> Optional[FlatCommand]:
        return self._by_path.get(dotted)

    def roots(self) -> List[FlatCommand]:
        return [flat for flat in self._commands if flat.parent is None]

    def children(self, dotted: str) -> List[FlatCommand]:
        return [flat for flat in self._commands if flat.parent == dotted]

    def leaves(self) -> List[FlatCommand]:
        return [flat for flat in self._commands if flat.is_leaf]

    def parents(self) -> List[FlatCommand]:
        return [flat for flat in self._commands if not flat.is_leaf]

    def invocable(self) -> List[FlatCommand]:
        return [flat for flat in self._commands if flat.is_invocable]

    @property
    def max_depth(self) -> int:
        return max((flat.depth for flat in self._commands), default=-1)
