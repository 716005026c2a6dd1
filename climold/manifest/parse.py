"""
Parse manifest text into a Manifest value tree.

Only syntax and document shape are checked here: a table where a table is
required, an array or table where inputs are listed. Everything else is
left for validation so that all semantic problems can be reported at once.
"""

import re
import tomllib
from typing import Any, Dict, List, Optional, Tuple

from ..ir.app import InputKind
from ..logging_config import get_logger
from .errors import DEFAULT_MANIFEST_NAME, Diagnostic, DiagnosticKind, ParseError
from .model import CliSection, CommandDecl, InputDecl, Manifest, ResourceDecl
from .source import KeyPath, SourceMap, SourceSpan

logger = get_logger(__name__)

_POSITION = re.compile(r"\s*\(at line (\d+), column (\d+)\)\s*$")
_END_OF_DOCUMENT = re.compile(r"\s*\(at end of document\)\s*$")

CLI_FIELDS = ("name", "version", "description", "author", "language")
INPUT_FIELDS = ("type", "required", "default", "description", "choices", "short")


def parse(source: str, filename: str = DEFAULT_MANIFEST_NAME) -> Manifest:
    """
    Parse manifest text.

    Args:
        source: Manifest text in TOML format
        filename: Name used when reporting locations

    Returns:
        Manifest value tree with source locations

    Raises:
        ParseError: If the text is not valid TOML or has the wrong shape
    """
    try:
        data = tomllib.loads(source)
    except tomllib.TOMLDecodeError as e:
        raise ParseError([_syntax_diagnostic(e, source)], filename, source) from e

    source_map = SourceMap(source)
    builder = _ManifestBuilder(source_map)
    manifest = builder.build(data)

    if builder.diagnostics:
        raise ParseError(builder.diagnostics, filename, source)

    manifest.source_map = source_map
    manifest.filename = filename
    manifest.source = source
    logger.debug(
        "Parsed %s: %d top-level commands, %d resources",
        filename,
        len(manifest.commands),
        len(manifest.resources),
    )
    return manifest


def _syntax_diagnostic(error: tomllib.TOMLDecodeError, source: str) -> Diagnostic:
    text = str(error)
    line = getattr(error, "lineno", None)
    column = getattr(error, "colno", None)
    message = getattr(error, "msg", None)

    match = _POSITION.search(text)
    if line is None and match:
        line, column = int(match.group(1)), int(match.group(2))
    if message is None:
        message = _END_OF_DOCUMENT.sub("", _POSITION.sub("", text))

    if line is None:
        # Errors at the end of the document point at the last line.
        lines = source.splitlines() or [""]
        line, column = len(lines), len(lines[-1]) + 1

    return Diagnostic(
        DiagnosticKind.SYNTAX,
        f"invalid TOML: {message}",
        span=SourceSpan(line, column or 1),
    )


class _ManifestBuilder:
    """Builds the value tree and collects shape errors."""

    def __init__(self, source_map: SourceMap):
        self.source_map = source_map
        self.diagnostics: List[Diagnostic] = []

    def _error(self, message: str, path: KeyPath, span: Optional[SourceSpan] = None):
        self.diagnostics.append(
            Diagnostic(
                DiagnosticKind.INVALID_STRUCTURE,
                message,
                field=".".join(str(part) for part in path),
                span=span or self.source_map.key_span(path),
            )
        )

    def _field_spans(self, path: KeyPath, table: Dict[str, Any]) -> Dict[str, SourceSpan]:
        spans = {}
        for key in table:
            span = self.source_map.value_span(path + (key,))
            if span is not None:
                spans[key] = span
        return spans

    def build(self, data: Dict[str, Any]) -> Manifest:
        cli = self._build_cli(data.get("cli"))
        commands = self._build_commands(data.get("commands"), ("commands",), ())
        resources = self._build_resources(data.get("context"))
        extra = {
            key: value
            for key, value in data.items()
            if key not in ("cli", "commands", "context")
        }
        return Manifest(cli=cli, commands=commands, resources=resources, extra=extra)

    def _build_cli(self, table: Any) -> CliSection:
        if table is None:
            return CliSection(present=False, key_path=("cli",))
        if not isinstance(table, dict):
            self._error("[cli] must be a table", ("cli",))
            return CliSection(present=False, key_path=("cli",))

        section = CliSection(
            key_path=("cli",),
            span=self.source_map.key_span(("cli",)),
            field_spans=self._field_spans(("cli",), table),
        )
        for key, value in table.items():
            if key in CLI_FIELDS:
                setattr(section, key, value)
            else:
                section.extra[key] = value
        return section

    def _build_commands(
        self, table: Any, key_path: KeyPath, parent: Tuple[str, ...]
    ) -> List[CommandDecl]:
        if table is None:
            return []
        if not isinstance(table, dict):
            self._error(f"'{'.'.join(key_path)}' must be a table of commands", key_path)
            return []

        commands = []
        for name, value in table.items():
            path = key_path + (name,)
            if not isinstance(value, dict):
                self._error(f"command '{name}' must be a table", path)
                continue
            commands.append(self._build_command(name, value, path, parent + (name,)))
        return commands

    def _build_command(
        self, name: str, table: Dict[str, Any], key_path: KeyPath, names: Tuple[str, ...]
    ) -> CommandDecl:
        command = CommandDecl(
            name=name,
            path=names,
            key_path=key_path,
            span=self.source_map.key_span(key_path),
            field_spans=self._field_spans(key_path, table),
        )

        for key, value in table.items():
            if key == "description":
                command.description = value
            elif key == "handler":
                command.handler = value
            elif key == "args":
                command.args = self._build_inputs(
                    value, key_path + ("args",), InputKind.POSITIONAL
                )
            elif key == "flags":
                command.flags = self._build_inputs(
                    value, key_path + ("flags",), InputKind.FLAG
                )
            elif key == "commands":
                command.children.extend(
                    self._build_commands(value, key_path + ("commands",), names)
                )
            elif isinstance(value, dict):
                command.children.append(
                    self._build_command(key, value, key_path + (key,), names + (key,))
                )
            else:
                command.extra[key] = value

        return command

    def _build_inputs(self, value: Any, key_path: KeyPath, kind: InputKind) -> List[InputDecl]:
        what = "args" if kind is InputKind.POSITIONAL else "flags"
        inputs: List[InputDecl] = []

        if isinstance(value, list):
            for index, item in enumerate(value):
                if isinstance(item, str):
                    inputs.append(
                        InputDecl(
                            name=item,
                            kind=kind,
                            key_path=key_path + (item,),
                            span=self.source_map.element_span(key_path, item),
                        )
                    )
                elif isinstance(item, dict):
                    item_path = key_path + (index,)
                    name = item.get("name")
                    if not isinstance(name, str):
                        self._error(
                            f"entry {index + 1} of '{what}' needs a string 'name'",
                            item_path,
                        )
                        continue
                    fields = {k: v for k, v in item.items() if k != "name"}
                    decl = self._build_input(name, fields, item_path, kind)
                    decl.key_path = key_path + (name,)
                    decl.span = self.source_map.value_span(item_path + ("name",))
                    inputs.append(decl)
                else:
                    self._error(
                        f"entries of '{what}' must be names or tables", key_path
                    )
        elif isinstance(value, dict):
            for name, item in value.items():
                item_path = key_path + (name,)
                if isinstance(item, str):
                    # `name = "int"` is shorthand for a typed input
                    decl = InputDecl(name=name, kind=kind, type=item, key_path=item_path)
                    decl.span = self.source_map.key_span(item_path)
                    decl.field_spans["type"] = self.source_map.value_span(item_path)
                    inputs.append(decl)
                elif isinstance(item, dict):
                    inputs.append(self._build_input(name, item, item_path, kind))
                else:
                    self._error(
                        f"input '{name}' must be a table or a type name", item_path
                    )
        else:
            self._error(f"'{what}' must be an array or a table", key_path)

        return inputs

    def _build_input(
        self, name: str, table: Dict[str, Any], key_path: KeyPath, kind: InputKind
    ) -> InputDecl:
        decl = InputDecl(
            name=name,
            kind=kind,
            key_path=key_path,
            span=self.source_map.key_span(key_path),
            field_spans=self._field_spans(key_path, table),
        )
        for key, value in table.items():
            if key in INPUT_FIELDS:
                setattr(decl, key, value)
            else:
                decl.extra[key] = value
        return decl

    def _build_resources(self, table: Any) -> List[ResourceDecl]:
        if table is None:
            return []
        if not isinstance(table, dict):
            self._error("[context] must be a table of resources", ("context",))
            return []

        resources = []
        for name, value in table.items():
            path = ("context", name)
            if not isinstance(value, dict):
                self._error(f"resource '{name}' must be a table", path)
                continue
            resources.append(
                ResourceDecl(
                    name=name,
                    type=value.get("type"),
                    options={k: v for k, v in value.items() if k != "type"},
                    key_path=path,
                    span=self.source_map.key_span(path),
                    field_spans=self._field_spans(path, value),
                )
            )
        return resources
