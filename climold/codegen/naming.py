"""
Per-backend naming conventions.

A NamingConvention maps a canonical IR identifier to the case a backend
uses for each kind of symbol, so render code never picks a case by hand.
"""

from dataclasses import dataclass
from typing import Iterable

from ..core.naming import NamingCase, convert_case


@dataclass(frozen=True)
class NamingConvention:
    """Case styles a backend uses for each kind of name."""

    type_case: NamingCase = NamingCase.PASCAL_CASE
    function_case: NamingCase = NamingCase.SNAKE_CASE
    variable_case: NamingCase = NamingCase.SNAKE_CASE
    module_case: NamingCase = NamingCase.SNAKE_CASE
    file_case: NamingCase = NamingCase.SNAKE_CASE
    constant_case: NamingCase = NamingCase.SCREAMING_SNAKE
    # Command and option names as typed on the generated CLI
    cli_case: NamingCase = NamingCase.KEBAB_CASE

    def type_name(self, ident: str, suffix: str = "") -> str:
        return convert_case(ident, self.type_case) + suffix

    def function_name(self, ident: str) -> str:
        return convert_case(ident, self.function_case)

    def variable_name(self, ident: str) -> str:
        return convert_case(ident, self.variable_case)

    def module_name(self, ident: str) -> str:
        return convert_case(ident, self.module_case)

    def file_name(self, ident: str) -> str:
        return convert_case(ident, self.file_case)

    def constant_name(self, ident: str) -> str:
        return convert_case(ident, self.constant_case)

    def cli_name(self, ident: str) -> str:
        return convert_case(ident, self.cli_case)

    def file_path(self, idents: Iterable[str], extension: str = "") -> str:
        """Join identifiers as directories, converting each to the file case."""
        return "/".join(self.file_name(ident) for ident in idents) + extension


RUST_NAMING = NamingConvention()

TYPESCRIPT_NAMING = NamingConvention(
    function_case=NamingCase.CAMEL_CASE,
    variable_case=NamingCase.CAMEL_CASE,
    module_case=NamingCase.KEBAB_CASE,
    file_case=NamingCase.KEBAB_CASE,
)

PYTHON_NAMING = NamingConvention()
