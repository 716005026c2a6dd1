"""
Terminal rendering of manifest diagnostics.

Each diagnostic is printed with the offending source line, two lines of
context before it and a caret underline beneath the span.
"""

from typing import Iterable, Optional

from rich.console import Console
from rich.text import Text

from .errors import DEFAULT_MANIFEST_NAME, Diagnostic, ManifestError

CONTEXT_LINES = 2


def render_diagnostic(
    diagnostic: Diagnostic,
    console: Console,
    source: Optional[str] = None,
    filename: str = DEFAULT_MANIFEST_NAME,
):
    """
    Print one diagnostic.

    Args:
        diagnostic: Diagnostic to print
        console: Rich console to print to
        source: Manifest text used for the excerpt, if available
        filename: Name shown in the location line
    """
    style = "bold red" if diagnostic.is_error else "bold yellow"
    label = "error" if diagnostic.is_error else "warning"

    console.print(
        Text.assemble(
            (f"{label}[{diagnostic.kind.value}]", style),
            (": ", "bold"),
            (diagnostic.message, "bold"),
        )
    )

    span = diagnostic.span
    if span is None or not source:
        where = f"{filename}: {diagnostic.field}" if diagnostic.field else filename
        console.print(Text(f"  --> {where}", style="blue"))
    else:
        lines = source.splitlines()
        gutter = len(str(span.line))
        pad = " " * gutter
        console.print(
            Text(f"{pad}--> {filename}:{span.line}:{span.column}", style="blue")
        )
        console.print(Text(f"{pad} |", style="blue"))
        for number in range(max(1, span.line - CONTEXT_LINES), span.line + 1):
            line = lines[number - 1] if number <= len(lines) else ""
            console.print(
                Text.assemble((f"{number:>{gutter}} | ", "blue"), line.expandtabs(4))
            )
        underline = " " * (span.column - 1) + "^" * max(1, span.length)
        console.print(Text.assemble((f"{pad} | ", "blue"), (underline, style)))

    if diagnostic.help:
        console.print(Text.assemble(("  = help: ", "bold cyan"), diagnostic.help))
    console.print()


def render_diagnostics(
    diagnostics: Iterable[Diagnostic],
    console: Console,
    source: Optional[str] = None,
    filename: str = DEFAULT_MANIFEST_NAME,
):
    for diagnostic in diagnostics:
        render_diagnostic(diagnostic, console, source, filename)


def render_error(error: ManifestError, console: Console):
    """Print every diagnostic of a parse or validation error plus a summary."""
    render_diagnostics(error.diagnostics, console, error.source, error.filename)
    count = len(error.diagnostics)
    console.print(
        f"[red]✗ {error.filename}: {count} error{'s' if count != 1 else ''}[/red]"
    )
