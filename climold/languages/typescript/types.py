"""
TypeScript type mapping for command inputs.

Maps IR input types to boune schema types and spells default values as
JavaScript literals.
"""

from typing import Dict

from ...codegen.errors import RenderError
from ...codegen.templates import quote_string
from ...ir.app import Input, InputType

MAX_SAFE_INTEGER = 2**53 - 1

BOUNE_TYPES: Dict[InputType, str] = {
    InputType.STRING: "string",
    InputType.INT: "number",
    InputType.FLOAT: "number",
    InputType.BOOL: "boolean",
    InputType.PATH: "string",
    InputType.CHOICE: "string",
}


def literal(item: Input, path: str) -> str:
    """
    Spell an input default as a JavaScript literal.

    Raises:
        RenderError: If an integer default cannot be represented exactly
    """
    value = item.default
    if item.type is InputType.BOOL:
        return "true" if value else "false"
    if item.type is InputType.INT:
        if abs(value) > MAX_SAFE_INTEGER:
            raise RenderError(
                f"default {value} is outside the JavaScript safe integer range", path
            )
        return str(value)
    if item.type is InputType.FLOAT:
        return repr(float(value))
    return quote_string(value)


def template_literal(text: str) -> str:
    """Escape text for use inside a JavaScript template literal."""
    return text.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")
