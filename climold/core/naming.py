"""
Identifier case conversion.

Every name that flows from a manifest into generated code passes through
these functions, so all backends agree on how a manifest name is split into
words and re-joined.
"""

import re
from enum import Enum
from functools import lru_cache


class NamingCase(Enum):
    """Different naming case styles."""

    SNAKE_CASE = "snake"  # user_name
    CAMEL_CASE = "camel"  # userName
    PASCAL_CASE = "pascal"  # UserName
    KEBAB_CASE = "kebab"  # user-name
    SCREAMING_SNAKE = "screaming_snake"  # USER_NAME


_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_SEPARATORS = re.compile(r"[-\s]+")
_REPEATED_UNDERSCORES = re.compile(r"_+")


@lru_cache(maxsize=2048)
def to_snake_case(name: str) -> str:
    """Convert to snake_case.

    Hyphens and whitespace become underscores, case transitions become word
    boundaries (``HTTPServer`` -> ``http_server``), runs of underscores
    collapse and leading/trailing underscores are dropped.
    """
    name = _SEPARATORS.sub("_", name)
    name = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    name = _WORD_BOUNDARY.sub(r"\1_\2", name)
    name = _REPEATED_UNDERSCORES.sub("_", name.lower())
    return name.strip("_")


def to_camel_case(name: str) -> str:
    """Convert to camelCase."""
    parts = [part for part in to_snake_case(name).split("_") if part]
    if not parts:
        return ""
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


def to_pascal_case(name: str) -> str:
    """Convert to PascalCase."""
    return "".join(part.capitalize() for part in to_snake_case(name).split("_") if part)


def to_kebab_case(name: str) -> str:
    """Convert to kebab-case."""
    return to_snake_case(name).replace("_", "-")


def to_screaming_snake_case(name: str) -> str:
    """Convert to SCREAMING_SNAKE_CASE."""
    return to_snake_case(name).upper()


_CONVERTERS = {
    NamingCase.SNAKE_CASE: to_snake_case,
    NamingCase.CAMEL_CASE: to_camel_case,
    NamingCase.PASCAL_CASE: to_pascal_case,
    NamingCase.KEBAB_CASE: to_kebab_case,
    NamingCase.SCREAMING_SNAKE: to_screaming_snake_case,
}


def convert_case(name: str, target_case: NamingCase) -> str:
    """
    Convert a name to the given case style.

    Args:
        name: Manifest name or canonical identifier
        target_case: Desired case style

    Returns:
        Converted name
    """
    return _CONVERTERS[target_case](name)


def is_kebab_case(name: str) -> bool:
    """Check that a name is lowercase words joined by single hyphens."""
    return re.fullmatch(r"[a-z][a-z0-9]*(-[a-z0-9]+)*", name) is not None
