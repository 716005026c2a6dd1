"""
Command handlers of the climold tool.

Each public method of CLIHandler implements one subcommand, prints its
results with rich and returns the process exit code.
"""

from argparse import Namespace
from pathlib import Path
from typing import Dict, List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

from .codegen import (
    CodeGenerator,
    get_generator,
    list_all_language_info,
    load_config,
)
from .codegen.tree import CommandTree, FlatCommand
from .core.files import CleanResult, PreviewAction, PreviewFile
from .ir.app import AppIR, DatabaseResource, HttpClientResource, Input
from .logging_config import get_logger
from .manifest import render_diagnostics
from .utils import find_manifest, load_app, write_starter_manifest

logger = get_logger(__name__)

ACTION_STYLES: Dict[PreviewAction, str] = {
    PreviewAction.CREATE: "green",
    PreviewAction.OVERWRITE: "yellow",
    PreviewAction.SKIP: "dim",
}


class CLIHandler:
    """Handle the climold subcommands."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()
        logger.debug("CLIHandler initialized")

    # Manifest

    def init(self, args: Namespace) -> int:
        """Write a starter manifest."""
        path = write_starter_manifest(args.directory, args.name, args.language, args.force)
        self.console.print(f"[green]✓[/green] Created [cyan]{path}[/cyan]")
        self.console.print(f"[dim]Next: climold bake -m {path}[/dim]")
        return 0

    def check(self, args: Namespace) -> int:
        """Validate the manifest and print its warnings."""
        path = find_manifest(args.manifest)
        validated, app = load_app(path, args.language)
        manifest = validated.manifest

        if validated.warnings:
            render_diagnostics(validated.warnings, self.console, manifest.source, manifest.filename)

        count = len(validated.warnings)
        suffix = f", {count} warning{'s' if count != 1 else ''}" if count else ""
        self.console.print(
            f"[green]✓[/green] {path} is valid for [bold]{validated.language}[/bold]"
            f" ({len(CommandTree.from_app(app))} commands{suffix})"
        )
        return 0

    def list_commands(self, args: Namespace) -> int:
        """Print the command tree and the declared resources."""
        path = find_manifest(args.manifest)
        _, app = load_app(path, getattr(args, "language", None))

        tree = CommandTree.from_app(app)
        root = Tree(f"[bold cyan]{app.meta.name}[/bold cyan] [dim]{app.meta.version}[/dim]")
        nodes = {}
        for flat in tree:
            parent = nodes[flat.path[:-1]] if flat.depth > 0 else root
            nodes[flat.path] = parent.add(self._command_label(flat))
        self.console.print(root)

        if app.resources:
            self.console.print()
            self.console.print(self._resource_table(app))
        return 0

    def info(self, args: Namespace) -> int:
        """Print a summary of the manifest."""
        path = find_manifest(args.manifest)
        validated, app = load_app(path, getattr(args, "language", None))
        meta = app.meta
        tree = CommandTree.from_app(app)

        lines = [
            f"[bold]Name:[/bold] {meta.name}",
            f"[bold]Version:[/bold] {meta.version}",
            f"[bold]Language:[/bold] {validated.language}",
        ]
        if meta.description:
            lines.append(f"[bold]Description:[/bold] {meta.description}")
        if meta.author:
            lines.append(f"[bold]Author:[/bold] {meta.author}")
        lines.extend(
            [
                f"[bold]Commands:[/bold] {len(tree)} ({len(tree.invocable())} with handlers)",
                f"[bold]Max depth:[/bold] {tree.max_depth}",
                f"[bold]Databases:[/bold] {len(app.databases)}",
                f"[bold]HTTP clients:[/bold] {len(app.http_clients)}",
            ]
        )
        self.console.print(Panel("\n".join(lines), title=f"📋 {path}", border_style="green"))
        return 0

    # Generation

    def bake(self, args: Namespace) -> int:
        """Generate the project, or preview it with ``--dry-run``."""
        path = find_manifest(args.manifest)
        generator = self._generator(path, args)
        output_dir = self._output_dir(path, args)

        for warning in generator.validate_app():
            self.console.print(f"[yellow]⚠️  {warning}[/yellow]")

        if args.dry_run:
            previews = generator.preview(output_dir)
            self._print_preview(previews, output_dir)
            orphans = generator.orphans(output_dir)
            if orphans:
                self._print_orphans(orphans, removing=args.clean)
            if getattr(args, "show", None):
                self._print_file(previews, args.show, generator)
            return 0

        result = generator.generate(output_dir)
        self.console.print(
            f"[green]✓[/green] Generated {generator.language_name} project in "
            f"[cyan]{output_dir}[/cyan]: {len(result.created)} created, "
            f"{len(result.overwritten)} updated, {len(result.skipped)} kept"
        )
        for removed in result.removed:
            self.console.print(f"[green]✓[/green] Removed stale {removed}")
        for error in result.errors:
            self.console.print(f"[red]✗ Error:[/red] {escape(str(error))}")

        if result.orphans:
            if args.clean:
                cleaned = generator.clean(output_dir)
                self._print_clean(cleaned, dry_run=False)
                if not cleaned.success:
                    return 1
            else:
                self._print_orphans(result.orphans, removing=False)

        return 0 if result.success else 1

    def clean(self, args: Namespace) -> int:
        """Remove orphaned files from the output directory."""
        path = find_manifest(args.manifest)
        generator = self._generator(path, args)
        output_dir = self._output_dir(path, args)

        result = generator.clean(output_dir, dry_run=args.dry_run)
        self._print_clean(result, dry_run=args.dry_run)
        return 0 if result.success else 1

    def languages(self, args: Namespace) -> int:
        """List supported target languages."""
        language_info = list_all_language_info()

        table = Table(title="📋 Supported Languages", box=box.ROUNDED, title_style="bold cyan")
        table.add_column("Language", style="bold green", no_wrap=True)
        table.add_column("Extension", style="cyan")
        table.add_column("Entry file")
        table.add_column("Generator Class", style="dim")
        table.add_column("Aliases", style="blue")

        for name, info in sorted(language_info.items()):
            aliases = ", ".join(info["aliases"]) if info["aliases"] else "[dim]none[/dim]"
            table.add_row(f"🔧 {name}", info["file_extension"], info["entry_file"], info["class"], aliases)

        self.console.print()
        self.console.print(table)
        self.console.print()
        self.console.print(
            Panel(
                "[bold]Usage:[/bold] climold bake [dim]-m climold.toml[/dim] --language [cyan]LANGUAGE[/cyan]",
                title="💡 Quick Start",
                border_style="blue",
            )
        )
        return 0

    # Helpers

    def _generator(self, path: Path, args: Namespace) -> CodeGenerator:
        validated, app = load_app(path, args.language)
        config = load_config(validated.language, config_file=getattr(args, "config", None))
        return get_generator(validated.language, app, config)

    @staticmethod
    def _output_dir(manifest_path: Path, args: Namespace) -> Path:
        if getattr(args, "output", None):
            return Path(args.output)
        return manifest_path.parent

    @staticmethod
    def _command_label(flat: FlatCommand) -> str:
        command = flat.command
        label = f"[bold green]{escape(flat.name)}[/bold green]"
        if command.description:
            label += f" [dim]{escape(command.description)}[/dim]"
        if not flat.is_leaf and flat.is_invocable:
            label += " [magenta](handler)[/magenta]"
        inputs = [_describe_input(item) for item in command.inputs]
        if inputs:
            label += "\n" + " ".join(inputs)
        return label

    @staticmethod
    def _resource_table(app: AppIR) -> Table:
        table = Table(title="Resources", box=box.SIMPLE, header_style="bold cyan")
        table.add_column("Name", style="bold")
        table.add_column("Type", style="green")
        table.add_column("Details")
        for resource in app.resources:
            if isinstance(resource, DatabaseResource):
                if resource.sqlite is not None:
                    details = resource.sqlite.path
                elif resource.network is not None and resource.network.dsn:
                    details = resource.network.dsn
                elif resource.network is not None and resource.network.host:
                    details = resource.network.host
                else:
                    details = ""
                details = f"{details} [dim](env {resource.env})[/dim]".strip()
                table.add_row(resource.name, resource.kind.value, details)
            elif isinstance(resource, HttpClientResource):
                table.add_row(resource.name, "http", resource.base_url or "")
        return table

    def _print_preview(self, previews: List[PreviewFile], output_dir: Path):
        table = Table(title=f"Dry run: {output_dir}", box=box.SIMPLE, header_style="bold cyan")
        table.add_column("Action")
        table.add_column("Path", style="cyan")
        table.add_column("Category", style="dim")
        for preview in previews:
            style = ACTION_STYLES[preview.action]
            table.add_row(f"[{style}]{preview.action.value}[/{style}]", preview.path, preview.category.value)
        self.console.print(table)

    def _print_file(self, previews: List[PreviewFile], path: str, generator: CodeGenerator):
        for preview in previews:
            if preview.path == path:
                lexer = Syntax.guess_lexer(preview.path, preview.content)
                self.console.print(Syntax(preview.content, lexer, theme="monokai"))
                return
        self.console.print(f"[yellow]⚠️  {path} is not generated for {generator.language_name}[/yellow]")

    def _print_orphans(self, orphans: List[str], removing: bool):
        verb = "will be removed" if removing else "no longer generated"
        self.console.print(f"\n[yellow]⚠️  {len(orphans)} orphaned file(s) ({verb}):[/yellow]")
        for orphan in orphans:
            self.console.print(f"  [yellow]•[/yellow] {orphan}")
        if not removing:
            self.console.print("[dim]Run 'climold clean' to remove them[/dim]")

    def _print_clean(self, result: CleanResult, dry_run: bool):
        verb = "Would remove" if dry_run else "Removed"
        if not result.deleted and not result.kept and not result.errors:
            self.console.print("[green]✓[/green] No orphaned files")
            return
        for path in result.deleted:
            self.console.print(f"[green]✓[/green] {verb} {path}")
        for path in result.kept:
            self.console.print(f"[yellow]⚠️  Kept edited handler {path}[/yellow]")
        for error in result.errors:
            self.console.print(f"[red]✗ Error:[/red] {escape(str(error))}")


def _describe_input(item: Input) -> str:
    if item.is_positional:
        text = f"<{item.name}>" if item.required else f"[{item.name}]"
    else:
        text = f"--{item.name}"
        if item.short:
            text = f"-{item.short}/" + text
    text += f":{item.type.value}"
    if item.has_default:
        text += f"={item.default}"
    return f"[blue]{escape(text)}[/blue]"
