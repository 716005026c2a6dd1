"""
Command-line entry point for climold.

Parses arguments, configures logging and dispatches to CLIHandler. Errors
raised by the library are reported here and turned into exit status 1.
"""

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from . import __version__
from .cli import CLIHandler
from .core.errors import ClimoldError
from .core.keywords import DEFAULT_LANGUAGE
from .logging_config import configure_logging, get_logger
from .manifest import ManifestError, render_error

logger = get_logger(__name__)


def _add_manifest_arg(parser: argparse.ArgumentParser):
    parser.add_argument(
        "-m",
        "--manifest",
        metavar="FILE",
        help="Manifest file or directory (default: ./climold.toml)",
    )


def _add_language_arg(parser: argparse.ArgumentParser, default: Optional[str] = None):
    parser.add_argument(
        "--language",
        "-l",
        default=default,
        help="Target language (default: cli.language of the manifest, then rust)",
    )


def _add_output_arg(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--output",
        "-o",
        metavar="DIR",
        help="Output directory (default: the manifest's directory)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subparser per command."""
    parser = argparse.ArgumentParser(
        prog="climold",
        description="Generate command-line application scaffolding from a TOML manifest",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  climold init myapp --language rust
  climold check -m myapp/climold.toml
  climold bake -m myapp --dry-run
  climold bake -m myapp -o build/myapp --clean
  climold languages
        """.strip(),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug logging and tracebacks"
    )
    verbosity.add_argument("--quiet", action="store_true", help="Only log errors")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    init_parser = subparsers.add_parser("init", help="Create a starter climold.toml")
    init_parser.add_argument("directory", nargs="?", default=".", help="Project directory")
    init_parser.add_argument("--name", help="Application name (default: directory name)")
    _add_language_arg(init_parser, default=DEFAULT_LANGUAGE)
    init_parser.add_argument(
        "--force", action="store_true", help="Replace an existing manifest"
    )
    init_parser.set_defaults(handler="init")

    check_parser = subparsers.add_parser("check", help="Validate the manifest")
    _add_manifest_arg(check_parser)
    _add_language_arg(check_parser)
    check_parser.set_defaults(handler="check")

    list_parser = subparsers.add_parser("list", help="Show the command tree and resources")
    _add_manifest_arg(list_parser)
    _add_language_arg(list_parser)
    list_parser.set_defaults(handler="list_commands")

    bake_parser = subparsers.add_parser("bake", help="Generate the project")
    _add_manifest_arg(bake_parser)
    _add_output_arg(bake_parser)
    _add_language_arg(bake_parser)
    bake_parser.add_argument("--config", metavar="FILE", help="JSON generator configuration")
    bake_parser.add_argument(
        "--dry-run", action="store_true", help="Show what would be written without writing"
    )
    bake_parser.add_argument(
        "--show", metavar="PATH", help="With --dry-run, print one rendered file"
    )
    bake_parser.add_argument(
        "--clean", action="store_true", help="Remove orphaned files after generating"
    )
    bake_parser.set_defaults(handler="bake")

    clean_parser = subparsers.add_parser("clean", help="Remove files no longer generated")
    _add_manifest_arg(clean_parser)
    _add_output_arg(clean_parser)
    _add_language_arg(clean_parser)
    clean_parser.add_argument("--config", metavar="FILE", help="JSON generator configuration")
    clean_parser.add_argument(
        "--dry-run", action="store_true", help="Show what would be removed"
    )
    clean_parser.set_defaults(handler="clean")

    info_parser = subparsers.add_parser("info", help="Summarize the manifest")
    _add_manifest_arg(info_parser)
    _add_language_arg(info_parser)
    info_parser.set_defaults(handler="info")

    languages_parser = subparsers.add_parser("languages", help="List supported languages")
    languages_parser.set_defaults(handler="languages")

    return parser


def main(argv: Optional[List[str]] = None, console: Optional[Console] = None) -> int:
    """
    Run the climold command line.

    Args:
        argv: Arguments without the program name; ``sys.argv`` when omitted
        console: Console for command output

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    configure_logging(level, show_path=args.verbose)

    if not getattr(args, "handler", None):
        parser.print_help()
        return 1

    handler = CLIHandler(console)
    logger.debug("Running command %s", args.command)
    try:
        return getattr(handler, args.handler)(args)
    except ManifestError as e:
        logger.debug("Manifest error", exc_info=True)
        render_error(e, handler.console)
        return 1
    except ClimoldError as e:
        logger.debug("Command failed", exc_info=True)
        handler.console.print(f"[red]✗ Error:[/red] {escape(str(e))}")
        return 1
    except KeyboardInterrupt:
        handler.console.print("\n[yellow]Interrupted[/yellow]")
        return 130
    except Exception as e:
        if args.verbose:
            raise
        logger.error("Unexpected error: %s", e)
        handler.console.print(f"[red]✗ Unexpected error:[/red] {escape(str(e))}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
