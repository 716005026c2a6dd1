"""
Python type mapping for command inputs.

Maps IR input types to annotations and click parameter types, and spells
default values as Python literals.
"""

from typing import Any, Dict

from ...codegen.builder import CodeFile
from ...codegen.templates import quote_string
from ...ir.app import Input, InputType

ANNOTATIONS: Dict[InputType, str] = {
    InputType.STRING: "str",
    InputType.INT: "int",
    InputType.FLOAT: "float",
    InputType.BOOL: "bool",
    InputType.CHOICE: "str",
}


def annotation(item: Input, f: CodeFile) -> str:
    """Annotation of the dataclass field holding ``item``."""
    if item.type is InputType.PATH:
        base = f.use("pathlib", "Path")
    else:
        base = ANNOTATIONS[item.type]
    if not item.required and not item.has_default and item.type is not InputType.BOOL:
        return f"{f.use('typing', 'Optional')}[{base}]"
    return base


def click_type(item: Input, f: CodeFile) -> str:
    """Expression for the ``type=`` argument of a click parameter."""
    click = f.use("click")
    if item.type is InputType.PATH:
        return f"{click}.Path(path_type={f.use('pathlib', 'Path')})"
    if item.type is InputType.CHOICE:
        values = ", ".join(quote_string(choice) for choice in item.choices)
        return f"{click}.Choice([{values}])"
    return ANNOTATIONS[item.type]


def literal(value: Any) -> str:
    """Spell a default value as a Python literal."""
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, (int, float)):
        return repr(value)
    if value is None:
        return "None"
    return quote_string(value)
