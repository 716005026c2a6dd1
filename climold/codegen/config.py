"""
Configuration management for code generation.

Handles loading and merging generator settings from JSON files, providing
per-language defaults and validation.
"""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..core.errors import ClimoldError
from ..core.keywords import resolve_language

DEFAULT_HEADER = "Generated by climold. Do not edit; changes are overwritten."


class ConfigError(ClimoldError):
    """Exception raised for configuration-related errors."""

    pass


@dataclass
class GeneratorConfig:
    """Base configuration for code generators."""

    # Code style settings
    indent_size: int = 4

    # Header comment on always-regenerated files
    add_comments: bool = True
    generated_header: str = DEFAULT_HEADER

    # Custom settings (language-specific)
    custom: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.custom.get(key, default)


class ConfigManager:
    """Manages configuration loading and merging."""

    def __init__(self):
        """Initialize configuration manager."""
        self._configs: Dict[str, Dict[str, Any]] = {}
        self._load_defaults()

    def _load_defaults(self):
        """Load default configurations for supported languages."""
        self._configs["rust"] = {
            "indent_size": 4,
            "custom": {
                "edition": "2024",
                "clap_version": "4",
                "eyre_version": "0.6",
                "tokio_version": "1",
                "sqlx_version": "0.8",
                "reqwest_version": "0.12",
            },
        }

        self._configs["typescript"] = {
            "indent_size": 2,
            "custom": {
                "boune_version": "^0.2.0",
                "typescript_version": "^5.0.0",
                "bun_types_version": "latest",
            },
        }

        self._configs["python"] = {
            "indent_size": 4,
            "custom": {
                "python_requires": ">=3.10",
                "click_version": ">=8.1",
                "httpx_version": ">=0.27",
                "psycopg_version": ">=3.1",
                "pymysql_version": ">=1.1",
            },
        }

    def get_config(
        self,
        language: Optional[str] = None,
        custom_config: Optional[Dict[str, Any]] = None,
        config_file: Optional[Union[str, Path]] = None,
    ) -> GeneratorConfig:
        """
        Get complete configuration for a language.

        Args:
            language: Target language name or alias
            custom_config: Custom configuration overrides
            config_file: Path to JSON configuration file

        Returns:
            Merged configuration for the language
        """
        primary = resolve_language(language) if language else None
        defaults = self._configs.get(primary, {})
        base_config = dict(defaults)
        base_config["custom"] = dict(defaults.get("custom", {}))

        # Load from file if provided
        if config_file:
            self._merge(base_config, self._load_config_file(config_file))

        # Apply custom overrides
        if custom_config:
            self._merge(base_config, custom_config)

        return self._dict_to_config(base_config)

    @staticmethod
    def _merge(base: Dict[str, Any], overrides: Dict[str, Any]):
        for key, value in overrides.items():
            if key == "custom" and isinstance(value, dict):
                base["custom"].update(value)
            else:
                base[key] = value

    def _load_config_file(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        """Load configuration from JSON file."""
        path = Path(config_path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        if not path.suffix.lower() == ".json":
            raise ConfigError(f"Configuration file must be JSON: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in configuration file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to load configuration file {path}: {e}") from e

        if not isinstance(config, dict):
            raise ConfigError(f"Configuration file must contain a JSON object: {path}")

        return config

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> GeneratorConfig:
        """Convert dictionary to GeneratorConfig instance."""
        # Extract known fields
        known_fields = set(GeneratorConfig.__dataclass_fields__)

        config_args = {}
        custom_args = {}

        for key, value in config_dict.items():
            if key in known_fields:
                config_args[key] = value
            else:
                custom_args[key] = value

        # Unknown keys are language-specific settings
        if custom_args:
            existing_custom = dict(config_args.get("custom", {}))
            existing_custom.update(custom_args)
            config_args["custom"] = existing_custom

        return GeneratorConfig(**config_args)

    def save_config(self, config: GeneratorConfig, output_path: Union[str, Path]):
        """Save configuration to JSON file."""
        path = Path(output_path)
        config_dict = asdict(config)
        custom = config_dict.pop("custom")
        config_dict.update(custom)

        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(config_dict, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise ConfigError(f"Failed to save configuration to {path}: {e}") from e

    def list_languages(self) -> List[str]:
        """Get list of languages with default settings."""
        return list(self._configs.keys())

    def validate_config(self, config: GeneratorConfig, language: str) -> List[str]:
        """
        Validate configuration for a language.

        Returns:
            List of validation warnings
        """
        warnings = []

        if not isinstance(config.indent_size, int) or not 1 <= config.indent_size <= 8:
            warnings.append(f"Invalid indent_size: {config.indent_size}")

        if not isinstance(config.generated_header, str):
            warnings.append("generated_header must be a string")

        primary = resolve_language(language)
        if primary == "rust":
            edition = config.get("edition")
            if edition not in ("2018", "2021", "2024"):
                warnings.append(f"Unknown Rust edition: {edition}")
        elif primary == "python":
            requires = config.get("python_requires", "")
            if not str(requires).startswith((">=", "==", "~=")):
                warnings.append(f"Unusual python_requires: {requires}")

        return warnings


# Global configuration manager instance
_config_manager = None


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def load_config(
    language: Optional[str] = None,
    custom_config: Optional[Dict[str, Any]] = None,
    config_file: Optional[Union[str, Path]] = None,
) -> GeneratorConfig:
    """
    Convenience function to load configuration.

    Args:
        language: Target language name
        custom_config: Custom configuration overrides
        config_file: Path to JSON configuration file

    Returns:
        Merged configuration for the language
    """
    manager = get_config_manager()
    return manager.get_config(language, custom_config, config_file)
