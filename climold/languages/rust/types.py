"""
Rust type mapping for command inputs.

Maps IR input types to the Rust types clap parses them into and spells
default values as clap ``default_value`` strings.
"""

import re
from dataclasses import dataclass
from typing import Dict, Optional

from ...codegen.errors import RenderError
from ...core.keywords import RUST_RESERVED_WORDS
from ...core.naming import to_pascal_case
from ...ir.app import Input, InputType

I64_MIN = -(2**63)
I64_MAX = 2**63 - 1

# Keywords that cannot be written as raw identifiers
NON_RAW_KEYWORDS = frozenset({"crate", "self", "super", "Self"})

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

SCALAR_TYPES: Dict[InputType, str] = {
    InputType.STRING: "String",
    InputType.INT: "i64",
    InputType.FLOAT: "f64",
    InputType.BOOL: "bool",
}


@dataclass(frozen=True)
class RustField:
    """One clap field of an ``Args`` struct."""

    name: str
    type: str
    attr: Optional[str] = None
    doc: Optional[str] = None


def field_name(ident: str, path: str) -> str:
    """Spell an input identifier as a struct field, using ``r#`` for keywords."""
    if ident in NON_RAW_KEYWORDS:
        raise RenderError(f"'{ident}' cannot be used as a Rust field name", path)
    if ident in RUST_RESERVED_WORDS:
        return f"r#{ident}"
    return ident


def choice_variant(value: str, path: str) -> str:
    """PascalCase enum variant for a choice value."""
    variant = to_pascal_case(value)
    if not variant or not _IDENTIFIER.match(variant):
        raise RenderError(f"choice '{value}' cannot be spelled as a Rust enum variant", path)
    if variant in NON_RAW_KEYWORDS:
        raise RenderError(f"choice '{value}' maps to the Rust keyword '{variant}'", path)
    return variant


def default_value(item: Input, path: str) -> str:
    """
    Spell a default as the string clap parses at runtime.

    Raises:
        RenderError: If the value does not fit the Rust type
    """
    value = item.default
    if item.type is InputType.BOOL:
        return "true" if value else "false"
    if item.type is InputType.INT:
        if not I64_MIN <= value <= I64_MAX:
            raise RenderError(f"default {value} does not fit in i64", path)
        return str(value)
    if item.type is InputType.FLOAT:
        return repr(float(value))
    return str(value)
