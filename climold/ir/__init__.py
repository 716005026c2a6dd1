"""
Intermediate representation shared by all backends.
"""

from .app import (
    DEFAULT_DATABASE_ENV,
    AppIR,
    AppMeta,
    CommandOp,
    DatabaseKind,
    DatabaseResource,
    HttpClientResource,
    Input,
    InputKind,
    InputType,
    JournalMode,
    NetworkTarget,
    Operation,
    PoolConfig,
    Resource,
    SqliteOptions,
    SynchronousMode,
)

__all__ = [
    "DEFAULT_DATABASE_ENV",
    "AppIR",
    "AppMeta",
    "CommandOp",
    "DatabaseKind",
    "DatabaseResource",
    "HttpClientResource",
    "Input",
    "InputKind",
    "InputType",
    "JournalMode",
    "NetworkTarget",
    "Operation",
    "PoolConfig",
    "Resource",
    "SqliteOptions",
    "SynchronousMode",
]
