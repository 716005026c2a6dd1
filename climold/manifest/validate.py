"""
Semantic validation of a parsed manifest.

Every rule runs on every entry; problems are collected and raised together
as one ValidationError. Reserved words are checked for one target language
at a time: a manifest valid for one backend may be rejected for another.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from ..core.keywords import (
    DEFAULT_LANGUAGE,
    LANGUAGE_RULES,
    get_language_rules,
    resolve_language,
)
from ..core.naming import convert_case, to_snake_case
from ..core.version import Version
from ..ir.app import DatabaseKind, InputKind, InputType, JournalMode, SynchronousMode
from ..logging_config import get_logger
from .errors import Diagnostic, DiagnosticKind, ValidationError
from .lints import lint
from .model import CommandDecl, InputDecl, Manifest, Node, ResourceDecl
from .source import SourceSpan

logger = get_logger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")
_SHORT_FLAG = re.compile(r"^[A-Za-z]$")

INPUT_TYPE_NAMES = {
    "string": InputType.STRING,
    "str": InputType.STRING,
    "int": InputType.INT,
    "integer": InputType.INT,
    "float": InputType.FLOAT,
    "number": InputType.FLOAT,
    "bool": InputType.BOOL,
    "boolean": InputType.BOOL,
    "path": InputType.PATH,
    "choice": InputType.CHOICE,
    "enum": InputType.CHOICE,
}

RESOURCE_TYPES = ("sqlite", "postgres", "mysql", "http")

POOL_OPTIONS = (
    "max_connections",
    "min_connections",
    "acquire_timeout",
    "idle_timeout",
    "max_lifetime",
)
SQLITE_ONLY_OPTIONS = (
    "path",
    "journal_mode",
    "synchronous",
    "busy_timeout",
    "foreign_keys",
    "create_if_missing",
    "read_only",
)
NETWORK_OPTIONS = ("host", "port", "database", "user", "password_env", "dsn")
HTTP_OPTIONS = ("base_url", "timeout", "headers", "user_agent")


@dataclass(frozen=True)
class ValidatedManifest:
    """A manifest that passed validation for one target language."""

    manifest: Manifest
    language: str
    warnings: Tuple[Diagnostic, ...] = ()


def validate(manifest: Manifest, language: Optional[str] = None) -> ValidatedManifest:
    """
    Validate a parsed manifest.

    Args:
        manifest: Parsed manifest
        language: Target language; defaults to ``cli.language``, then rust

    Returns:
        ValidatedManifest ready for lowering

    Raises:
        ValidationError: With every problem found, if any
    """
    validator = _Validator(manifest)
    target = validator.resolve_target(language)
    validator.run()

    if validator.diagnostics:
        logger.debug(
            "Validation of %s failed with %d errors",
            manifest.filename,
            len(validator.diagnostics),
        )
        raise ValidationError(validator.diagnostics, manifest.filename, manifest.source)

    warnings = tuple(lint(manifest))
    logger.debug("Validated %s for %s (%d warnings)", manifest.filename, target, len(warnings))
    return ValidatedManifest(manifest=manifest, language=target, warnings=warnings)


def input_type_of(decl: InputDecl) -> InputType:
    """Resolve the declared or implied type of an input."""
    if decl.type is None:
        if decl.choices is not None:
            return InputType.CHOICE
        return InputType.BOOL if decl.kind is InputKind.FLAG else InputType.STRING
    return INPUT_TYPE_NAMES[str(decl.type).lower()]


def coerce_default(input_type: InputType, value: Any, choices: Sequence[str] = ()) -> Any:
    """
    Convert a manifest default to the Python value of an input type.

    Raises:
        ValueError: If the value cannot represent the type
    """
    if input_type in (InputType.STRING, InputType.PATH):
        if isinstance(value, str):
            return value
        raise ValueError(f"expected a string, got {value!r}")

    if input_type is InputType.INT:
        if isinstance(value, bool) or isinstance(value, float):
            raise ValueError(f"expected an integer, got {value!r}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                raise ValueError(f"'{value}' is not an integer") from None
        raise ValueError(f"expected an integer, got {value!r}")

    if input_type is InputType.FLOAT:
        if isinstance(value, bool):
            raise ValueError(f"expected a number, got {value!r}")
        if isinstance(value, (int, float)):
            result = float(value)
        elif isinstance(value, str):
            try:
                result = float(value.strip())
            except ValueError:
                raise ValueError(f"'{value}' is not a number") from None
        else:
            raise ValueError(f"expected a number, got {value!r}")
        if not math.isfinite(result):
            raise ValueError(f"'{value}' is not a finite number")
        return result

    if input_type is InputType.BOOL:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        raise ValueError(f"expected true or false, got {value!r}")

    if input_type is InputType.CHOICE:
        if isinstance(value, str) and value in choices:
            return value
        raise ValueError(
            f"{value!r} is not one of the choices ({', '.join(choices)})"
        )

    raise ValueError(f"unsupported input type {input_type.value}")


class _Validator:
    def __init__(self, manifest: Manifest):
        self.manifest = manifest
        self.diagnostics: List[Diagnostic] = []
        self.rules = LANGUAGE_RULES[DEFAULT_LANGUAGE]

    def error(
        self,
        kind: DiagnosticKind,
        message: str,
        field: str = "",
        span: Optional[SourceSpan] = None,
        help: Optional[str] = None,
    ):
        self.diagnostics.append(Diagnostic(kind, message, field, span, help))

    def resolve_target(self, language: Optional[str]) -> str:
        cli = self.manifest.cli
        requested = language
        from_manifest = language is None
        if requested is None and isinstance(cli.language, str):
            requested = cli.language

        if requested is None:
            return self.rules.name

        primary = resolve_language(requested)
        if primary is None:
            self.error(
                DiagnosticKind.UNKNOWN_LANGUAGE,
                f"unsupported language '{requested}'",
                field="cli.language" if from_manifest else "",
                span=cli.span_of("language") if from_manifest else None,
                help=f"supported languages: {', '.join(LANGUAGE_RULES)}",
            )
            return self.rules.name

        self.rules = get_language_rules(primary)
        return primary

    def run(self):
        self._check_cli()
        self._check_commands(self.manifest.commands, "command")
        self._check_resources()
        for key in self.manifest.extra:
            self.error(
                DiagnosticKind.UNKNOWN_FIELD,
                f"unknown top-level section '{key}'",
                field=key,
                span=self._key_span((key,)),
                help="expected [cli], [commands.*] or [context.*]",
            )

    def _key_span(self, path) -> Optional[SourceSpan]:
        if self.manifest.source_map is None:
            return None
        return self.manifest.source_map.key_span(path)

    # Names

    def _check_name(self, name: Any, what: str, field: str, span: Optional[SourceSpan]) -> bool:
        if not isinstance(name, str) or not name:
            self.error(
                DiagnosticKind.INVALID_IDENTIFIER,
                f"{what} name must be a non-empty string",
                field,
                span,
            )
            return False

        problem = None
        if not _IDENTIFIER.match(name):
            problem = "must start with a letter or '_' and contain only letters, digits, '_' and '-'"
        elif "--" in name:
            problem = "must not contain consecutive dashes"
        elif name.endswith("-"):
            problem = "must not end with a dash"
        elif not to_snake_case(name):
            problem = "must contain at least one letter or digit"

        if problem:
            self.error(
                DiagnosticKind.INVALID_IDENTIFIER,
                f"invalid {what} name '{name}': {problem}",
                field,
                span,
            )
            return False

        identifier = self.rules.identifier(name)
        if identifier in self.rules.reserved_words:
            self.error(
                DiagnosticKind.RESERVED_KEYWORD,
                f"{what} name '{name}' collides with the {self.rules.name} "
                f"keyword '{identifier}'",
                field,
                span,
                help=f"rename the {what}; '{identifier}' cannot be used as an identifier in {self.rules.name}",
            )
            return False
        return True

    def _check_siblings(self, entries: Iterable[Tuple[str, Node]], what: str):
        """Report sibling names that are equal or normalize to the same identifier."""
        seen: List[Tuple[str, Node]] = []
        cases = [None] + [case for case in self.rules.name_cases]
        for name, node in entries:
            if not isinstance(name, str) or not to_snake_case(name):
                continue
            for other_name, other in seen:
                if name == other_name:
                    self.error(
                        DiagnosticKind.DUPLICATE_NAME,
                        f"duplicate {what} '{name}'",
                        node.field_path,
                        node.span,
                    )
                    break
                collision = self._normalized_collision(name, other_name, cases)
                if collision is not None:
                    self.error(
                        DiagnosticKind.NAME_COLLISION,
                        f"{what}s '{other_name}' and '{name}' both normalize to '{collision}'",
                        node.field_path,
                        node.span,
                        help="rename one of them so their identifiers differ",
                    )
                    break
            seen.append((name, node))

    @staticmethod
    def _normalized_collision(name: str, other: str, cases) -> Optional[str]:
        for case in cases:
            if case is None:
                left, right = to_snake_case(name), to_snake_case(other)
            else:
                left, right = convert_case(name, case), convert_case(other, case)
            if left == right:
                return left
        return None

    def _check_string(self, node: Node, name: str, value: Any, required: bool = False) -> bool:
        if value is None:
            if required:
                self.error(
                    DiagnosticKind.MISSING_FIELD,
                    f"missing required field '{name}'",
                    node.path_of(name),
                    node.span,
                )
            return False
        if not isinstance(value, str):
            self.error(
                DiagnosticKind.INVALID_VALUE,
                f"'{name}' must be a string",
                node.path_of(name),
                node.span_of(name),
            )
            return False
        return True

    def _check_unknown_fields(self, node: Node, what: str):
        for key in node.extra:
            self.error(
                DiagnosticKind.UNKNOWN_FIELD,
                f"unknown field '{key}' in {what}",
                node.path_of(key),
                node.span_of(key),
            )

    # [cli]

    def _check_cli(self):
        cli = self.manifest.cli
        if not cli.present:
            self.error(
                DiagnosticKind.MISSING_FIELD,
                "missing [cli] section",
                "cli",
                help='add a [cli] table with at least `name = "..."`',
            )
            return

        if cli.name is None:
            self.error(
                DiagnosticKind.MISSING_FIELD,
                "missing required field 'name'",
                "cli.name",
                cli.span,
            )
        else:
            self._check_name(cli.name, "cli", "cli.name", cli.span_of("name"))

        if cli.version is not None:
            if not isinstance(cli.version, str):
                self.error(
                    DiagnosticKind.INVALID_VERSION,
                    "'version' must be a string",
                    "cli.version",
                    cli.span_of("version"),
                )
            else:
                try:
                    Version.parse(cli.version)
                except ValueError as e:
                    self.error(
                        DiagnosticKind.INVALID_VERSION,
                        str(e),
                        "cli.version",
                        cli.span_of("version"),
                        help='use semantic versioning, e.g. "1.2.3" or "1.0.0-beta.1"',
                    )

        self._check_string(cli, "description", cli.description)
        self._check_string(cli, "author", cli.author)
        if cli.language is not None and not isinstance(cli.language, str):
            self.error(
                DiagnosticKind.UNKNOWN_LANGUAGE,
                "'language' must be a string",
                "cli.language",
                cli.span_of("language"),
            )
        self._check_unknown_fields(cli, "[cli]")

    # [commands]

    def _check_commands(self, commands: List[CommandDecl], what: str):
        for command in commands:
            self._check_command(command)
        self._check_siblings(((c.name, c) for c in commands), what)

    def _check_command(self, command: CommandDecl):
        self._check_name(command.name, "command", command.field_path, command.span)

        if command.description is not None:
            self._check_string(command, "description", command.description)
        if command.handler is not None and not isinstance(command.handler, bool):
            self.error(
                DiagnosticKind.INVALID_VALUE,
                "'handler' must be true or false",
                command.path_of("handler"),
                command.span_of("handler"),
            )
        self._check_unknown_fields(command, f"command '{command.dotted_path}'")

        for decl in command.inputs:
            self._check_input(decl)
        self._check_siblings(((i.name, i) for i in command.inputs), "input")
        self._check_positional_order(command.args)
        self._check_short_flags(command.flags)

        self._check_commands(command.children, "subcommand")

    def _check_input(self, decl: InputDecl):
        what = "argument" if decl.kind is InputKind.POSITIONAL else "flag"
        self._check_name(decl.name, what, decl.field_path, decl.span)

        if decl.type is not None and (
            not isinstance(decl.type, str) or decl.type.lower() not in INPUT_TYPE_NAMES
        ):
            self.error(
                DiagnosticKind.INVALID_TYPE,
                f"unknown type {decl.type!r} for {what} '{decl.name}'",
                decl.path_of("type"),
                decl.span_of("type"),
                help="supported types: string, int, float, bool, path, choice",
            )
            return
        input_type = input_type_of(decl)

        choices: List[str] = []
        if decl.choices is not None:
            if (
                not isinstance(decl.choices, list)
                or not decl.choices
                or not all(isinstance(c, str) and c for c in decl.choices)
            ):
                self.error(
                    DiagnosticKind.INVALID_VALUE,
                    "'choices' must be a non-empty array of strings",
                    decl.path_of("choices"),
                    decl.span_of("choices"),
                )
                return
            if input_type is not InputType.CHOICE:
                self.error(
                    DiagnosticKind.INVALID_TYPE,
                    f"'choices' given for {what} '{decl.name}' of type {input_type.value}",
                    decl.path_of("choices"),
                    decl.span_of("choices"),
                    help='use type = "choice" or drop the choices',
                )
            elif len(set(decl.choices)) != len(decl.choices):
                self.error(
                    DiagnosticKind.INVALID_VALUE,
                    "'choices' contains duplicates",
                    decl.path_of("choices"),
                    decl.span_of("choices"),
                )
            choices = list(decl.choices)
        elif input_type is InputType.CHOICE:
            self.error(
                DiagnosticKind.MISSING_FIELD,
                f"{what} '{decl.name}' of type choice needs 'choices'",
                decl.path_of("choices"),
                decl.span,
            )

        if decl.required is not None:
            if not isinstance(decl.required, bool):
                self.error(
                    DiagnosticKind.INVALID_VALUE,
                    "'required' must be true or false",
                    decl.path_of("required"),
                    decl.span_of("required"),
                )
            elif decl.required and decl.kind is InputKind.FLAG:
                self.error(
                    DiagnosticKind.INVALID_VALUE,
                    f"flag '{decl.name}' cannot be required",
                    decl.path_of("required"),
                    decl.span_of("required"),
                    help="make it a positional argument instead",
                )

        if decl.default is not None and (choices or input_type is not InputType.CHOICE):
            try:
                coerce_default(input_type, decl.default, choices)
            except ValueError as e:
                self.error(
                    DiagnosticKind.INVALID_DEFAULT,
                    f"invalid default for {what} '{decl.name}' of type "
                    f"{input_type.value}: {e}",
                    decl.path_of("default"),
                    decl.span_of("default"),
                )

        if decl.short is not None:
            if decl.kind is InputKind.POSITIONAL:
                self.error(
                    DiagnosticKind.INVALID_VALUE,
                    f"argument '{decl.name}' cannot have a short option",
                    decl.path_of("short"),
                    decl.span_of("short"),
                )
            elif not isinstance(decl.short, str) or not _SHORT_FLAG.match(decl.short):
                self.error(
                    DiagnosticKind.DUPLICATE_SHORT,
                    f"short option of flag '{decl.name}' must be a single letter",
                    decl.path_of("short"),
                    decl.span_of("short"),
                )

        self._check_string(decl, "description", decl.description)
        self._check_unknown_fields(decl, f"{what} '{decl.name}'")

    def _check_positional_order(self, args: List[InputDecl]):
        optional_seen: Optional[InputDecl] = None
        for decl in args:
            is_optional = decl.required is False or decl.default is not None
            if is_optional:
                optional_seen = optional_seen or decl
            elif optional_seen is not None:
                self.error(
                    DiagnosticKind.INVALID_VALUE,
                    f"required argument '{decl.name}' follows optional "
                    f"argument '{optional_seen.name}'",
                    decl.field_path,
                    decl.span,
                    help="move optional arguments after required ones",
                )

    def _check_short_flags(self, flags: List[InputDecl]):
        used = {}
        for decl in flags:
            short = decl.short
            if not isinstance(short, str) or not _SHORT_FLAG.match(short):
                continue
            if short in used:
                self.error(
                    DiagnosticKind.DUPLICATE_SHORT,
                    f"short option '-{short}' is used by both '{used[short]}' and '{decl.name}'",
                    decl.path_of("short"),
                    decl.span_of("short"),
                )
            else:
                used[short] = decl.name

    # [context]

    def _check_resources(self):
        for resource in self.manifest.resources:
            self._check_resource(resource)
        self._check_siblings(((r.name, r) for r in self.manifest.resources), "resource")

    def _check_resource(self, resource: ResourceDecl):
        self._check_name(resource.name, "resource", resource.field_path, resource.span)

        if resource.type is None:
            self.error(
                DiagnosticKind.MISSING_FIELD,
                f"resource '{resource.name}' is missing 'type'",
                resource.path_of("type"),
                resource.span,
                help=f"supported types: {', '.join(RESOURCE_TYPES)}",
            )
            return
        if resource.type not in RESOURCE_TYPES:
            self.error(
                DiagnosticKind.UNKNOWN_RESOURCE_TYPE,
                f"unsupported resource type {resource.type!r} for '{resource.name}'; "
                f"expected one of: {', '.join(RESOURCE_TYPES)}",
                resource.path_of("type"),
                resource.span_of("type"),
            )
            return

        if resource.type == "http":
            self._check_http(resource)
        else:
            self._check_database(resource, DatabaseKind(resource.type))

    def _option_error(
        self,
        resource: ResourceDecl,
        key: str,
        message: str,
        kind: DiagnosticKind = DiagnosticKind.INVALID_OPTION,
    ):
        self.error(kind, message, resource.path_of(key), resource.span_of(key))

    def _check_int_option(self, resource: ResourceDecl, key: str, minimum: int = 0):
        value = resource.options.get(key)
        if value is None:
            return
        if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
            self._option_error(
                resource, key, f"'{key}' must be an integer >= {minimum}, got {value!r}"
            )

    def _check_bool_option(self, resource: ResourceDecl, key: str):
        value = resource.options.get(key)
        if value is not None and not isinstance(value, bool):
            self._option_error(resource, key, f"'{key}' must be true or false")

    def _check_str_option(self, resource: ResourceDecl, key: str):
        value = resource.options.get(key)
        if value is not None and not isinstance(value, str):
            self._option_error(resource, key, f"'{key}' must be a string")

    def _check_enum_option(self, resource: ResourceDecl, key: str, enum_cls):
        value = resource.options.get(key)
        if value is None:
            return
        allowed = [member.value for member in enum_cls]
        if not isinstance(value, str) or value.lower() not in allowed:
            self._option_error(
                resource,
                key,
                f"invalid {key} {value!r}; expected one of: {', '.join(allowed)}",
            )

    def _check_database(self, resource: ResourceDecl, kind: DatabaseKind):
        options = resource.options
        allowed = set(POOL_OPTIONS) | {"env"}
        allowed |= set(SQLITE_ONLY_OPTIONS) if kind is DatabaseKind.SQLITE else set(NETWORK_OPTIONS)

        for key in options:
            if key in allowed:
                continue
            if key in SQLITE_ONLY_OPTIONS:
                self._option_error(
                    resource,
                    key,
                    f"'{key}' is only valid for sqlite databases, not {kind.value}",
                    kind=DiagnosticKind.SQLITE_ONLY_OPTION,
                )
            else:
                self._option_error(
                    resource,
                    key,
                    f"unknown option '{key}' for {kind.value} resource '{resource.name}'",
                    kind=DiagnosticKind.UNKNOWN_FIELD,
                )

        self._check_str_option(resource, "env")
        for key in POOL_OPTIONS:
            self._check_int_option(resource, key, minimum=1 if key == "max_connections" else 0)
        low, high = options.get("min_connections"), options.get("max_connections")
        if (
            isinstance(low, int)
            and isinstance(high, int)
            and not isinstance(low, bool)
            and not isinstance(high, bool)
            and low > high
        ):
            self._option_error(
                resource,
                "min_connections",
                f"min_connections ({low}) exceeds max_connections ({high})",
            )

        if kind is DatabaseKind.SQLITE:
            if options.get("path") is None:
                self.error(
                    DiagnosticKind.MISSING_FIELD,
                    f"sqlite resource '{resource.name}' is missing 'path'",
                    resource.path_of("path"),
                    resource.span,
                    help='e.g. path = "app.db"',
                )
            else:
                self._check_str_option(resource, "path")
            self._check_enum_option(resource, "journal_mode", JournalMode)
            self._check_enum_option(resource, "synchronous", SynchronousMode)
            self._check_int_option(resource, "busy_timeout")
            for key in ("foreign_keys", "create_if_missing", "read_only"):
                self._check_bool_option(resource, key)
            return

        for key in ("host", "database", "user", "password_env", "dsn"):
            self._check_str_option(resource, key)
        port = options.get("port")
        if port is not None and (
            isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536
        ):
            self._option_error(resource, "port", f"invalid port {port!r}")

        has_host = options.get("host") is not None
        has_port = port is not None
        if has_host != has_port:
            missing = "port" if has_host else "host"
            self.error(
                DiagnosticKind.MISSING_CONNECTION,
                f"{kind.value} resource '{resource.name}' sets "
                f"{'host' if has_host else 'port'} but not {missing}",
                resource.path_of(missing),
                resource.span,
            )
        elif not has_host and "dsn" not in options and "env" not in options:
            self.error(
                DiagnosticKind.MISSING_CONNECTION,
                f"{kind.value} resource '{resource.name}' needs host and port, "
                "a dsn, or an env variable holding the connection string",
                resource.field_path,
                resource.span,
            )

    def _check_http(self, resource: ResourceDecl):
        options = resource.options
        for key in options:
            if key in HTTP_OPTIONS:
                continue
            if key in SQLITE_ONLY_OPTIONS:
                self._option_error(
                    resource,
                    key,
                    f"'{key}' is only valid for sqlite databases, not http",
                    kind=DiagnosticKind.SQLITE_ONLY_OPTION,
                )
            else:
                self._option_error(
                    resource,
                    key,
                    f"unknown option '{key}' for http resource '{resource.name}'",
                    kind=DiagnosticKind.UNKNOWN_FIELD,
                )

        base_url = options.get("base_url")
        if base_url is not None:
            if not isinstance(base_url, str) or not base_url.startswith(("http://", "https://")):
                self._option_error(
                    resource, "base_url", f"base_url must be an http(s) URL, got {base_url!r}"
                )
        self._check_int_option(resource, "timeout", minimum=1)
        self._check_str_option(resource, "user_agent")

        headers = options.get("headers")
        if headers is not None and (
            not isinstance(headers, dict)
            or not all(isinstance(v, str) for v in headers.values())
        ):
            self._option_error(resource, "headers", "headers must be a table of strings")
