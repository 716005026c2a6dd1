"""
TypeScript code generator module.

Generates a boune CLI for the Bun runtime from an AppIR.
"""

from .generator import SHEBANG, TypeScriptGenerator
from .types import BOUNE_TYPES, literal

__all__ = ["BOUNE_TYPES", "SHEBANG", "TypeScriptGenerator", "literal"]
