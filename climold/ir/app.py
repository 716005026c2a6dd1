"""
Language-agnostic description of a command-line application.

Built by lowering a validated manifest and handed, unchanged, to every
backend. All values are frozen and hold tuples, so a backend cannot mutate
what another backend will read.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional, Tuple, Union

from ..core.version import Version


@dataclass(frozen=True)
class AppMeta:
    name: str
    version: Version
    description: Optional[str] = None
    author: Optional[str] = None


# Resources


class DatabaseKind(Enum):
    SQLITE = "sqlite"
    POSTGRES = "postgres"
    MYSQL = "mysql"

    @property
    def is_network(self) -> bool:
        return self is not DatabaseKind.SQLITE


class JournalMode(Enum):
    WAL = "wal"
    DELETE = "delete"
    TRUNCATE = "truncate"
    PERSIST = "persist"
    MEMORY = "memory"
    OFF = "off"


class SynchronousMode(Enum):
    OFF = "off"
    NORMAL = "normal"
    FULL = "full"
    EXTRA = "extra"


@dataclass(frozen=True)
class PoolConfig:
    """Connection pool limits. Timeouts are in seconds."""

    max_connections: Optional[int] = None
    min_connections: Optional[int] = None
    acquire_timeout: Optional[int] = None
    idle_timeout: Optional[int] = None
    max_lifetime: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.max_connections,
                self.min_connections,
                self.acquire_timeout,
                self.idle_timeout,
                self.max_lifetime,
            )
        )


@dataclass(frozen=True)
class SqliteOptions:
    """SQLite connection options. ``busy_timeout`` is in milliseconds."""

    path: str
    create_if_missing: bool = True
    read_only: bool = False
    journal_mode: Optional[JournalMode] = None
    synchronous: Optional[SynchronousMode] = None
    busy_timeout: Optional[int] = None
    foreign_keys: Optional[bool] = None


@dataclass(frozen=True)
class NetworkTarget:
    host: Optional[str] = None
    port: Optional[int] = None
    database: Optional[str] = None
    user: Optional[str] = None
    password_env: Optional[str] = None
    dsn: Optional[str] = None


DEFAULT_DATABASE_ENV = "DATABASE_URL"


@dataclass(frozen=True)
class DatabaseResource:
    name: str
    ident: str
    kind: DatabaseKind
    env: str = DEFAULT_DATABASE_ENV
    pool: PoolConfig = field(default_factory=PoolConfig)
    sqlite: Optional[SqliteOptions] = None
    network: Optional[NetworkTarget] = None


@dataclass(frozen=True)
class HttpClientResource:
    name: str
    ident: str
    base_url: Optional[str] = None
    timeout: Optional[int] = None
    headers: Tuple[Tuple[str, str], ...] = ()
    user_agent: Optional[str] = None


Resource = Union[DatabaseResource, HttpClientResource]


# Operations


class InputType(Enum):
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    PATH = "path"
    CHOICE = "choice"


class InputKind(Enum):
    POSITIONAL = "positional"
    FLAG = "flag"


@dataclass(frozen=True)
class Input:
    """A positional argument or flag of one command.

    ``default`` already holds the Python value of ``type`` (``int`` for
    INT, ``bool`` for BOOL, ``str`` for STRING, PATH and CHOICE).
    """

    name: str
    ident: str
    type: InputType
    kind: InputKind
    required: bool = False
    default: Any = None
    description: Optional[str] = None
    choices: Tuple[str, ...] = ()
    short: Optional[str] = None

    @property
    def is_flag(self) -> bool:
        return self.kind is InputKind.FLAG

    @property
    def is_positional(self) -> bool:
        return self.kind is InputKind.POSITIONAL

    @property
    def has_default(self) -> bool:
        return self.default is not None


@dataclass(frozen=True)
class CommandOp:
    """A command and, recursively, its subcommands."""

    name: str
    ident: str
    path: Tuple[str, ...]
    description: str = ""
    inputs: Tuple[Input, ...] = ()
    children: Tuple["CommandOp", ...] = ()
    invocable: bool = True

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def dotted_path(self) -> str:
        return ".".join(self.path)

    @property
    def positionals(self) -> Tuple[Input, ...]:
        return tuple(i for i in self.inputs if i.is_positional)

    @property
    def flags(self) -> Tuple[Input, ...]:
        return tuple(i for i in self.inputs if i.is_flag)


Operation = CommandOp


@dataclass(frozen=True)
class AppIR:
    """Root aggregate handed to every backend."""

    meta: AppMeta
    resources: Tuple[Resource, ...] = ()
    operations: Tuple[Operation, ...] = ()

    def commands(self) -> Iterator[CommandOp]:
        for operation in self.operations:
            if isinstance(operation, CommandOp):
                yield operation

    @property
    def has_resources(self) -> bool:
        return bool(self.resources)

    @property
    def databases(self) -> Tuple[DatabaseResource, ...]:
        return tuple(r for r in self.resources if isinstance(r, DatabaseResource))

    @property
    def http_clients(self) -> Tuple[HttpClientResource, ...]:
        return tuple(r for r in self.resources if isinstance(r, HttpClientResource))

    @property
    def is_async(self) -> bool:
        """Whether generated handlers need an async runtime."""
        return bool(self.resources)
