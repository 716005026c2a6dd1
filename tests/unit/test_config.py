"""Tests for generator configuration loading and merging."""

import json

import pytest

from climold.codegen.config import ConfigError, ConfigManager, GeneratorConfig


class TestConfigManager:
    """Test per-language defaults, overrides and config files."""

    def setup_method(self):
        self.manager = ConfigManager()

    def test_language_defaults(self):
        assert self.manager.get_config("rust").get("edition") == "2024"
        assert self.manager.get_config("typescript").indent_size == 2
        assert self.manager.get_config("py").get("click_version") == ">=8.1"

    def test_unknown_language_gets_base_config(self):
        config = self.manager.get_config(None)
        assert config == GeneratorConfig()

    def test_custom_overrides_merge_into_custom(self):
        config = self.manager.get_config("rust", {"edition": "2021", "add_comments": False})
        assert config.get("edition") == "2021"
        assert config.get("clap_version") == "4"
        assert config.add_comments is False

    def test_defaults_not_mutated(self):
        self.manager.get_config("rust", {"custom": {"edition": "2018"}})
        assert self.manager.get_config("rust").get("edition") == "2024"

    def test_config_file(self, tmp_path):
        path = tmp_path / "climold.json"
        path.write_text(json.dumps({"generated_header": "custom", "eyre_version": "0.7"}))
        config = self.manager.get_config("rust", config_file=path)
        assert config.generated_header == "custom"
        assert config.get("eyre_version") == "0.7"

    def test_config_file_must_be_json(self, tmp_path):
        path = tmp_path / "climold.yaml"
        path.write_text("indent_size: 2\n")
        with pytest.raises(ConfigError, match="must be JSON"):
            self.manager.get_config("rust", config_file=path)

    def test_config_file_missing(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            self.manager.get_config("rust", config_file=tmp_path / "nope.json")

    def test_config_file_invalid(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigError, match="JSON object"):
            self.manager.get_config("rust", config_file=path)

    def test_save_and_reload(self, tmp_path):
        path = tmp_path / "saved.json"
        config = self.manager.get_config("python", {"python_requires": ">=3.12"})
        self.manager.save_config(config, path)
        assert self.manager.get_config("python", config_file=path) == config

    def test_validate_config(self):
        config = self.manager.get_config("rust", {"edition": "2015", "indent_size": 0})
        warnings = self.manager.validate_config(config, "rust")
        assert "Invalid indent_size: 0" in warnings
        assert "Unknown Rust edition: 2015" in warnings
        assert self.manager.validate_config(self.manager.get_config("rust"), "rust") == []
