"""
climold: generate command-line application scaffolding from a TOML manifest.

Example:
    >>> from climold import build_app, generate_project
    >>> app = build_app(text, language="rust")
    >>> result = generate_project(app, "out/", language="rust")
"""

from pathlib import Path
from typing import Optional, Union

from .codegen import (
    CodeGenerator,
    GeneratorConfig,
    GeneratorError,
    RenderError,
    get_generator,
    list_supported_languages,
)
from .core import ClimoldError, CleanResult, GenerateResult, PreviewFile
from .ir import AppIR
from .manifest import (
    DEFAULT_MANIFEST_NAME,
    Manifest,
    ManifestError,
    ParseError,
    ValidatedManifest,
    ValidationError,
    lower,
    parse,
    validate,
)

__version__ = "0.1.0"


def build_app(
    source: str,
    language: Optional[str] = None,
    filename: str = DEFAULT_MANIFEST_NAME,
) -> AppIR:
    """
    Parse, validate and lower manifest text in one step.

    Args:
        source: Manifest text
        language: Target language overriding ``cli.language``
        filename: Name used in diagnostics

    Returns:
        Application IR

    Raises:
        ParseError: If the text is malformed
        ValidationError: If the manifest is invalid for the target
    """
    return lower(validate(parse(source, filename), language))


def generate_project(
    app: AppIR,
    output_dir: Union[str, Path],
    language: str = "rust",
    config: Optional[Union[GeneratorConfig, dict, str, Path]] = None,
) -> GenerateResult:
    """Generate the project for ``app`` into ``output_dir``."""
    return get_generator(language, app, config).generate(output_dir)


__all__ = [
    "__version__",
    "AppIR",
    "ClimoldError",
    "CleanResult",
    "CodeGenerator",
    "GenerateResult",
    "GeneratorConfig",
    "GeneratorError",
    "Manifest",
    "ManifestError",
    "ParseError",
    "PreviewFile",
    "RenderError",
    "ValidatedManifest",
    "ValidationError",
    "build_app",
    "generate_project",
    "get_generator",
    "list_supported_languages",
    "lower",
    "parse",
    "validate",
]
