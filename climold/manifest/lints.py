"""
Style checks that produce warnings but never fail validation.
"""

from typing import List

from ..core.naming import is_kebab_case
from .errors import Diagnostic, DiagnosticKind, Severity
from .model import Manifest


def lint(manifest: Manifest) -> List[Diagnostic]:
    """Return style warnings for a manifest, in declaration order."""
    warnings = []

    for command in manifest.walk_commands():
        if isinstance(command.name, str) and not is_kebab_case(command.name):
            warnings.append(
                Diagnostic(
                    DiagnosticKind.COMMAND_NAMING,
                    f"command '{command.name}' should use kebab-case "
                    "(e.g. 'my-command' rather than 'my_command' or 'myCommand')",
                    command.field_path,
                    command.span,
                    severity=Severity.WARNING,
                )
            )
        if not command.description or not str(command.description).strip():
            warnings.append(
                Diagnostic(
                    DiagnosticKind.EMPTY_DESCRIPTION,
                    f"command '{command.dotted_path}' has no description",
                    command.field_path,
                    command.span,
                    help="descriptions become the help text of the generated CLI",
                    severity=Severity.WARNING,
                )
            )

    return warnings
