"""
Rust code generator module.

Generates a clap-based Cargo project from an AppIR.
"""

from .generator import RustGenerator
from .types import SCALAR_TYPES, RustField, choice_variant, default_value, field_name

__all__ = [
    "RustField",
    "RustGenerator",
    "SCALAR_TYPES",
    "choice_variant",
    "default_value",
    "field_name",
]
