"""
Core primitives shared by every other climold package.
"""

from .errors import ClimoldError
from .files import (
    CleanResult,
    FileCategory,
    FileError,
    GeneratedFile,
    GenerateResult,
    Overwrite,
    PreviewAction,
    PreviewFile,
    WriteOutcome,
    WriteResult,
)
from .keywords import (
    DEFAULT_LANGUAGE,
    LANGUAGE_RULES,
    LanguageRules,
    get_language_rules,
    resolve_language,
)
from .naming import (
    NamingCase,
    convert_case,
    is_kebab_case,
    to_camel_case,
    to_kebab_case,
    to_pascal_case,
    to_screaming_snake_case,
    to_snake_case,
)
from .version import DEFAULT_VERSION, Version

__all__ = [
    "ClimoldError",
    "CleanResult",
    "FileCategory",
    "FileError",
    "GeneratedFile",
    "GenerateResult",
    "Overwrite",
    "PreviewAction",
    "PreviewFile",
    "WriteOutcome",
    "WriteResult",
    "DEFAULT_LANGUAGE",
    "LANGUAGE_RULES",
    "LanguageRules",
    "get_language_rules",
    "resolve_language",
    "NamingCase",
    "convert_case",
    "is_kebab_case",
    "to_camel_case",
    "to_kebab_case",
    "to_pascal_case",
    "to_screaming_snake_case",
    "to_snake_case",
    "DEFAULT_VERSION",
    "Version",
]
