"""
Manifest model, parser, validator and lowering to the IR.

Typical usage::

    manifest = parse(text, "climold.toml")
    validated = validate(manifest, language="rust")
    app = lower(validated)
"""

from .errors import (
    DEFAULT_MANIFEST_NAME,
    Diagnostic,
    DiagnosticKind,
    ManifestError,
    ParseError,
    Severity,
    ValidationError,
)
from .lints import lint
from .lower import lower
from .model import CliSection, CommandDecl, InputDecl, Manifest, ResourceDecl
from .parse import parse
from .render import render_diagnostic, render_diagnostics, render_error
from .source import SourceMap, SourceSpan
from .validate import ValidatedManifest, coerce_default, validate

__all__ = [
    "DEFAULT_MANIFEST_NAME",
    "Diagnostic",
    "DiagnosticKind",
    "ManifestError",
    "ParseError",
    "Severity",
    "ValidationError",
    "lint",
    "lower",
    "CliSection",
    "CommandDecl",
    "InputDecl",
    "Manifest",
    "ResourceDecl",
    "parse",
    "render_diagnostic",
    "render_diagnostics",
    "render_error",
    "SourceMap",
    "SourceSpan",
    "ValidatedManifest",
    "coerce_default",
    "validate",
]
