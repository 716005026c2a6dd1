"""
Lower a validated manifest into the intermediate representation.

Names are converted to their canonical snake_case identifier here, once,
and stored on every IR node.
"""

from typing import Any, Dict, Optional

from ..core.naming import to_snake_case
from ..core.version import DEFAULT_VERSION, Version
from ..ir.app import (
    DEFAULT_DATABASE_ENV,
    AppIR,
    AppMeta,
    CommandOp,
    DatabaseKind,
    DatabaseResource,
    HttpClientResource,
    Input,
    InputKind,
    JournalMode,
    NetworkTarget,
    PoolConfig,
    Resource,
    SqliteOptions,
    SynchronousMode,
)
from ..logging_config import get_logger
from .model import CommandDecl, InputDecl, ResourceDecl
from .validate import ValidatedManifest, coerce_default, input_type_of

logger = get_logger(__name__)


def lower(validated: ValidatedManifest) -> AppIR:
    """
    Build the AppIR for a validated manifest.

    Args:
        validated: Result of ``validate``

    Returns:
        Immutable AppIR
    """
    if not isinstance(validated, ValidatedManifest):
        raise TypeError("lower() requires a ValidatedManifest; call validate() first")

    manifest = validated.manifest
    cli = manifest.cli
    meta = AppMeta(
        name=cli.name,
        version=Version.parse(cli.version) if cli.version else DEFAULT_VERSION,
        description=cli.description,
        author=cli.author,
    )
    app = AppIR(
        meta=meta,
        resources=tuple(_lower_resource(r) for r in manifest.resources),
        operations=tuple(_lower_command(c) for c in manifest.commands),
    )
    logger.debug(
        "Lowered %s: %d operations, %d resources",
        meta.name,
        len(app.operations),
        len(app.resources),
    )
    return app


def _lower_command(decl: CommandDecl) -> CommandOp:
    children = tuple(_lower_command(child) for child in decl.children)
    return CommandOp(
        name=decl.name,
        ident=to_snake_case(decl.name),
        path=decl.path,
        description=decl.description or "",
        inputs=tuple(_lower_input(i) for i in decl.inputs),
        children=children,
        invocable=not children or decl.handler is True,
    )


def _lower_input(decl: InputDecl) -> Input:
    input_type = input_type_of(decl)
    choices = tuple(decl.choices or ())
    default = None
    if decl.default is not None:
        default = coerce_default(input_type, decl.default, choices)

    if decl.kind is InputKind.FLAG:
        required = False
    elif decl.required is None:
        required = default is None
    else:
        required = decl.required and default is None

    return Input(
        name=decl.name,
        ident=to_snake_case(decl.name),
        type=input_type,
        kind=decl.kind,
        required=required,
        default=default,
        description=decl.description,
        choices=choices,
        short=decl.short,
    )


def _lower_resource(decl: ResourceDecl) -> Resource:
    options = decl.options
    ident = to_snake_case(decl.name)

    if decl.type == "http":
        headers = options.get("headers") or {}
        return HttpClientResource(
            name=decl.name,
            ident=ident,
            base_url=options.get("base_url"),
            timeout=options.get("timeout"),
            headers=tuple(headers.items()),
            user_agent=options.get("user_agent"),
        )

    kind = DatabaseKind(decl.type)
    pool = PoolConfig(
        max_connections=options.get("max_connections"),
        min_connections=options.get("min_connections"),
        acquire_timeout=options.get("acquire_timeout"),
        idle_timeout=options.get("idle_timeout"),
        max_lifetime=options.get("max_lifetime"),
    )

    sqlite: Optional[SqliteOptions] = None
    network: Optional[NetworkTarget] = None
    if kind is DatabaseKind.SQLITE:
        sqlite = SqliteOptions(
            path=options["path"],
            create_if_missing=options.get("create_if_missing", True),
            read_only=options.get("read_only", False),
            journal_mode=_enum_option(JournalMode, options.get("journal_mode")),
            synchronous=_enum_option(SynchronousMode, options.get("synchronous")),
            busy_timeout=options.get("busy_timeout"),
            foreign_keys=options.get("foreign_keys"),
        )
    else:
        network = NetworkTarget(**_pick(options, NetworkTarget.__dataclass_fields__))

    return DatabaseResource(
        name=decl.name,
        ident=ident,
        kind=kind,
        env=options.get("env", DEFAULT_DATABASE_ENV),
        pool=pool,
        sqlite=sqlite,
        network=network,
    )


def _enum_option(enum_cls, value: Optional[str]):
    return enum_cls(value.lower()) if value is not None else None


def _pick(options: Dict[str, Any], names) -> Dict[str, Any]:
    return {name: options[name] for name in names if name in options}
