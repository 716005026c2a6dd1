"""Utility functions for locating, loading and creating manifests.

The loaders turn a manifest file into a validated AppIR with proper error
handling; the CLI and the public API both go through them.
"""

from pathlib import Path
from typing import Optional, Tuple, Union

from .core.errors import ClimoldError
from .core.keywords import DEFAULT_LANGUAGE, resolve_language
from .core.naming import to_kebab_case
from .ir.app import AppIR
from .logging_config import get_logger
from .manifest import DEFAULT_MANIFEST_NAME, Manifest, ValidatedManifest, lower, parse, validate

logger = get_logger(__name__)


class ManifestLoaderError(ClimoldError):
    """A manifest file could not be found, read or written."""

    pass


def find_manifest(path: Optional[Union[str, Path]] = None, cwd: Optional[Path] = None) -> Path:
    """Locate the manifest to work on.

    Args:
        path: Explicit manifest file, or a directory containing one.
        cwd: Directory searched when ``path`` is omitted.

    Returns:
        Path of an existing manifest file.

    Raises:
        ManifestLoaderError: If no manifest exists at the resolved location.
    """
    if path is None:
        candidate = (cwd or Path.cwd()) / DEFAULT_MANIFEST_NAME
    else:
        candidate = Path(path)
        if candidate.is_dir():
            candidate = candidate / DEFAULT_MANIFEST_NAME

    if not candidate.is_file():
        logger.debug("No manifest at %s", candidate)
        raise ManifestLoaderError(
            f"Manifest not found: {candidate} (run 'climold init' to create one)"
        )
    return candidate


def load_manifest(path: Union[str, Path]) -> Manifest:
    """Read and parse a manifest file.

    Raises:
        ManifestLoaderError: If the file cannot be read.
        ParseError: If the text is not a well-formed manifest.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Error reading manifest %s: %s", path, e)
        raise ManifestLoaderError(f"Error reading manifest {path}: {e}") from e

    logger.debug("Parsing manifest %s", path)
    return parse(text, str(path))


def load_app(
    path: Union[str, Path], language: Optional[str] = None
) -> Tuple[ValidatedManifest, AppIR]:
    """Parse, validate and lower a manifest file.

    Args:
        path: Manifest file.
        language: Target language overriding ``cli.language``.

    Returns:
        Tuple of (validated manifest, application IR).
    """
    validated = validate(load_manifest(path), language)
    app = lower(validated)
    logger.info("Loaded %s (%s, %d commands)", path, validated.language, len(app.operations))
    return validated, app


STARTER_MANIFEST = """\
[cli]
name = "{name}"
version = "0.1.0"
description = "A command-line application"
language = "{language}"

[commands.hello]
description = "Say hello"

[commands.hello.args.name]
type = "string"
required = false
default = "world"
description = "Who to greet"

[commands.hello.flags.loud]
short = "l"
description = "Shout the greeting"
"""


def starter_manifest(name: str, language: str = DEFAULT_LANGUAGE) -> str:
    """Text of a minimal manifest with one ``hello`` command."""
    return STARTER_MANIFEST.format(name=to_kebab_case(name) or "myapp", language=language)


def write_starter_manifest(
    directory: Union[str, Path],
    name: Optional[str] = None,
    language: str = DEFAULT_LANGUAGE,
    force: bool = False,
) -> Path:
    """Create ``climold.toml`` in ``directory``.

    Args:
        directory: Project directory, created when missing.
        name: Application name; defaults to the directory name.
        language: Target language or alias.
        force: Replace an existing manifest.

    Returns:
        Path of the written manifest.

    Raises:
        ManifestLoaderError: If the language is unknown, the manifest
            already exists and ``force`` is false, or writing fails.
    """
    primary = resolve_language(language)
    if primary is None:
        raise ManifestLoaderError(f"Unsupported language '{language}'")

    directory = Path(directory)
    target = directory / DEFAULT_MANIFEST_NAME
    if target.exists() and not force:
        raise ManifestLoaderError(f"{target} already exists (use --force to replace it)")

    app_name = name or directory.resolve().name
    try:
        directory.mkdir(parents=True, exist_ok=True)
        target.write_text(starter_manifest(app_name, primary), encoding="utf-8")
    except OSError as e:
        logger.error("Error writing %s: %s", target, e)
        raise ManifestLoaderError(f"Error writing {target}: {e}") from e

    logger.info("Wrote starter manifest %s", target)
    return target
