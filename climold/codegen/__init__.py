"""
Code generation framework.

Backends implement CodeGenerator; the registry maps language names to them.

Example:
    >>> from climold.codegen import get_generator
    >>> generator = get_generator("rust", app)
    >>> result = generator.generate("out/")
"""

from .builder import CodeFile
from .config import ConfigError, ConfigManager, GeneratorConfig, load_config
from .errors import GeneratorError, RenderError
from .files import FileEntry, FileRegistry
from .generator import CodeGenerator
from .imports import Dependency, DependencySet, ImportCollector, ModuleImport
from .naming import PYTHON_NAMING, RUST_NAMING, TYPESCRIPT_NAMING, NamingConvention
from .registry import (
    GeneratorRegistry,
    RegistryError,
    get_generator,
    get_language_info,
    get_registry,
    is_language_supported,
    list_all_language_info,
    list_supported_languages,
)
from .templates import TemplateEngine, TemplateError, create_template_engine
from .tree import CommandTree, FlatCommand

__all__ = [
    "CodeFile",
    "CodeGenerator",
    "CommandTree",
    "ConfigError",
    "ConfigManager",
    "Dependency",
    "DependencySet",
    "FileEntry",
    "FileRegistry",
    "FlatCommand",
    "GeneratorConfig",
    "GeneratorError",
    "GeneratorRegistry",
    "ImportCollector",
    "ModuleImport",
    "NamingConvention",
    "PYTHON_NAMING",
    "RUST_NAMING",
    "RegistryError",
    "RenderError",
    "TYPESCRIPT_NAMING",
    "TemplateEngine",
    "TemplateError",
    "create_template_engine",
    "get_generator",
    "get_language_info",
    "get_registry",
    "is_language_supported",
    "list_all_language_info",
    "list_supported_languages",
    "load_config",
]
