"""
Reserved words and identifier rules of the supported target languages.

Validation and the backend generators both read these tables, so a name
accepted by ``check`` is one the matching backend can emit unchanged.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Tuple

from .naming import NamingCase, convert_case

RUST_RESERVED_WORDS = frozenset(
    {
        # strict
        "as", "async", "await", "break", "const", "continue", "crate", "dyn",
        "else", "enum", "extern", "false", "fn", "for", "if", "impl", "in",
        "let", "loop", "match", "mod", "move", "mut", "pub", "ref", "return",
        "self", "static", "struct", "super", "trait", "true", "type", "unsafe",
        "use", "where", "while",
        # reserved for future use
        "abstract", "become", "box", "do", "final", "gen", "macro", "override",
        "priv", "try", "typeof", "unsized", "virtual", "yield",
    }
)

TYPESCRIPT_RESERVED_WORDS = frozenset(
    {
        "break", "case", "catch", "class", "const", "continue", "debugger",
        "default", "delete", "do", "else", "enum", "export", "extends",
        "false", "finally", "for", "function", "if", "import", "in",
        "instanceof", "new", "null", "return", "super", "switch", "this",
        "throw", "true", "try", "typeof", "var", "void", "while", "with",
        # strict mode
        "implements", "interface", "let", "package", "private", "protected",
        "public", "static", "yield", "await",
    }
)

PYTHON_RESERVED_WORDS = frozenset(
    {
        "False", "None", "True", "and", "as", "assert", "async", "await",
        "break", "class", "continue", "def", "del", "elif", "else", "except",
        "finally", "for", "from", "global", "if", "import", "in", "is",
        "lambda", "nonlocal", "not", "or", "pass", "raise", "return", "try",
        "while", "with", "yield",
        # soft
        "_", "case", "match", "type",
    }
)


@dataclass(frozen=True)
class LanguageRules:
    """Naming rules one target language imposes on manifest names."""

    name: str
    reserved_words: FrozenSet[str]
    # Case used for bare identifiers (fields, variables, modules)
    identifier_case: NamingCase
    # Every case style the backend derives symbols or files from
    name_cases: Tuple[NamingCase, ...]
    aliases: Tuple[str, ...] = ()

    def identifier(self, name: str) -> str:
        return convert_case(name, self.identifier_case)

    def is_reserved(self, name: str) -> bool:
        return self.identifier(name) in self.reserved_words


LANGUAGE_RULES: Dict[str, LanguageRules] = {
    "rust": LanguageRules(
        name="rust",
        reserved_words=RUST_RESERVED_WORDS,
        identifier_case=NamingCase.SNAKE_CASE,
        name_cases=(NamingCase.SNAKE_CASE, NamingCase.PASCAL_CASE),
        aliases=("rs",),
    ),
    "typescript": LanguageRules(
        name="typescript",
        reserved_words=TYPESCRIPT_RESERVED_WORDS,
        identifier_case=NamingCase.CAMEL_CASE,
        name_cases=(
            NamingCase.CAMEL_CASE,
            NamingCase.PASCAL_CASE,
            NamingCase.KEBAB_CASE,
        ),
        aliases=("ts",),
    ),
    "python": LanguageRules(
        name="python",
        reserved_words=PYTHON_RESERVED_WORDS,
        identifier_case=NamingCase.SNAKE_CASE,
        name_cases=(NamingCase.SNAKE_CASE, NamingCase.PASCAL_CASE),
        aliases=("py",),
    ),
}

DEFAULT_LANGUAGE = "rust"


def resolve_language(language: str) -> Optional[str]:
    """Map a language name or alias to its primary name, or None."""
    key = language.lower()
    if key in LANGUAGE_RULES:
        return key
    for rules in LANGUAGE_RULES.values():
        if key in rules.aliases:
            return rules.name
    return None


def get_language_rules(language: str) -> LanguageRules:
    """
    Get naming rules for a language.

    Raises:
        KeyError: If the language is not supported
    """
    primary = resolve_language(language)
    if primary is None:
        raise KeyError(language)
    return LANGUAGE_RULES[primary]
