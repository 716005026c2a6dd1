"""
Generator registry system for managing available code generators.

Maps language names and aliases to backend classes and creates configured
generator instances for an application.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Type, Union

from ..core.version import DEFAULT_VERSION
from ..ir.app import AppIR, AppMeta
from .config import GeneratorConfig, load_config
from .errors import GeneratorError
from .generator import CodeGenerator

ConfigLike = Optional[Union[GeneratorConfig, Dict[str, Any], str, Path]]


class RegistryError(GeneratorError):
    """Exception raised for registry-related errors."""

    pass


class GeneratorRegistry:
    """Registry for managing available code generators."""

    def __init__(self):
        """Initialize empty registry."""
        self._generators: Dict[str, Type[CodeGenerator]] = {}
        self._aliases: Dict[str, str] = {}

    def register(
        self,
        language: str,
        generator_class: Type[CodeGenerator],
        aliases: Optional[List[str]] = None,
        replace: bool = False,
    ):
        """
        Register a generator for a language.

        Args:
            language: Primary language name (e.g., 'rust', 'python')
            generator_class: Generator class implementing CodeGenerator
            aliases: Alternative names for this language
            replace: If True, replace existing registration. If False, skip if exists.

        Raises:
            RegistryError: If generator class is invalid or conflicts exist
        """
        if not isinstance(generator_class, type) or not issubclass(
            generator_class, CodeGenerator
        ):
            raise RegistryError("Generator class must inherit from CodeGenerator")

        language_key = language.lower()

        if language_key in self._generators and not replace:
            return

        self._generators[language_key] = generator_class

        for alias in aliases or []:
            alias_key = alias.lower()
            if alias_key == language_key:
                continue

            if not replace:
                if alias_key in self._generators:
                    raise RegistryError(
                        f"Alias '{alias}' conflicts with existing primary language"
                    )
                if alias_key in self._aliases and self._aliases[alias_key] != language_key:
                    raise RegistryError(
                        f"Alias '{alias}' already points to '{self._aliases[alias_key]}'"
                    )

            self._aliases[alias_key] = language_key

    def unregister(self, language: str):
        """Unregister a generator and its aliases."""
        language_key = language.lower()
        self._generators.pop(language_key, None)
        for alias in [a for a, target in self._aliases.items() if target == language_key]:
            del self._aliases[alias]

    def resolve(self, language: str) -> str:
        """
        Resolve a language name or alias to its primary name.

        Raises:
            RegistryError: If language not found
        """
        language_key = language.lower()
        if language_key in self._generators:
            return language_key
        if language_key in self._aliases:
            return self._aliases[language_key]

        available = self.list_languages()
        raise RegistryError(
            f"No generator registered for language: {language}. "
            f"Available: {', '.join(available)}"
        )

    def get_generator_class(self, language: str) -> Type[CodeGenerator]:
        """
        Get generator class for language.

        Args:
            language: Language name or alias

        Returns:
            Generator class

        Raises:
            RegistryError: If language not found
        """
        return self._generators[self.resolve(language)]

    def create_generator(
        self, language: str, app: AppIR, config: ConfigLike = None
    ) -> CodeGenerator:
        """
        Create generator instance for language.

        Args:
            language: Language name
            app: Application to generate
            config: Configuration as GeneratorConfig, dict, or JSON file path

        Returns:
            Configured generator instance

        Raises:
            RegistryError: If the language is unknown or the config type is invalid
        """
        primary = self.resolve(language)
        generator_class = self._generators[primary]

        if isinstance(config, GeneratorConfig):
            final_config = config
        elif isinstance(config, (str, Path)):
            final_config = load_config(primary, config_file=config)
        elif isinstance(config, dict):
            final_config = load_config(primary, custom_config=config)
        elif config is None:
            final_config = load_config(primary)
        else:
            raise RegistryError(f"Invalid config type: {type(config)}")

        return generator_class(app, final_config)

    def list_languages(self) -> List[str]:
        """Get list of registered primary language names."""
        return sorted(self._generators.keys())

    def get_aliases_for_language(self, language: str) -> List[str]:
        """Get all aliases for a specific language."""
        language_key = language.lower()
        return sorted(alias for alias, target in self._aliases.items() if target == language_key)

    def list_all_names(self) -> Dict[str, List[str]]:
        """
        Get all registered names including aliases.

        Returns:
            Dict mapping primary language to list of all names (including aliases)
        """
        return {
            language: [language] + self.get_aliases_for_language(language)
            for language in self._generators
        }

    def is_supported(self, language: str) -> bool:
        """Check if language is supported."""
        language_key = language.lower()
        return language_key in self._generators or language_key in self._aliases

    def get_language_info(self, language: str) -> Dict[str, Any]:
        """
        Get information about a registered language.

        Args:
            language: Language name

        Returns:
            Dict with language information

        Raises:
            RegistryError: If language not found
        """
        primary = self.resolve(language)
        generator_class = self._generators[primary]

        # Instance for an empty app, used only to read capabilities
        sample = generator_class(_empty_app(), load_config(primary))

        return {
            "name": sample.language_name,
            "class": generator_class.__name__,
            "file_extension": sample.file_extension,
            "aliases": self.get_aliases_for_language(primary),
            "entry_file": sample.entry_file,
            "entry_marker": sample.entry_marker,
            "managed_dirs": list(sample.managed_dirs),
            "module": generator_class.__module__,
        }


def _empty_app() -> AppIR:
    return AppIR(meta=AppMeta(name="app", version=DEFAULT_VERSION))


# Global registry instance - created once
_global_registry: Optional[GeneratorRegistry] = None


def get_registry() -> GeneratorRegistry:
    """Get the global generator registry, initializing if needed."""
    global _global_registry
    if _global_registry is None:
        _global_registry = GeneratorRegistry()
        _register_builtin_generators(_global_registry)
    return _global_registry


def _register_builtin_generators(registry: GeneratorRegistry):
    """Register the built-in backends with their aliases."""
    from ..languages.python import PythonGenerator
    from ..languages.rust import RustGenerator
    from ..languages.typescript import TypeScriptGenerator

    registry.register("rust", RustGenerator, aliases=["rs"])
    registry.register("typescript", TypeScriptGenerator, aliases=["ts"])
    registry.register("python", PythonGenerator, aliases=["py"])


# Public API functions using the global registry


def get_generator(language: str, app: AppIR, config: ConfigLike = None) -> CodeGenerator:
    """
    Get generator instance from global registry.

    Args:
        language: Language name
        app: Application to generate
        config: Configuration

    Returns:
        Generator instance
    """
    return get_registry().create_generator(language, app, config)


def list_supported_languages() -> List[str]:
    """List all supported languages from global registry."""
    return get_registry().list_languages()


def is_language_supported(language: str) -> bool:
    """Check if language is supported by global registry."""
    return get_registry().is_supported(language)


def get_language_info(language: str) -> Dict[str, Any]:
    """Get information about a supported language."""
    return get_registry().get_language_info(language)


def list_all_language_info() -> Dict[str, Dict[str, Any]]:
    """Get information about all supported languages."""
    return {language: get_language_info(language) for language in list_supported_languages()}
