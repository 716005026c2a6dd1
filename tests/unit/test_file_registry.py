"""Tests for the file registry and file categories."""

import pytest

from climold.codegen.errors import GeneratorError
from climold.codegen.files import FileRegistry
from climold.core.files import FileCategory, Overwrite


def _render():
    return ""


class TestFileCategory:
    """Overwrite policy is data attached to the category."""

    def test_default_policies(self):
        assert FileCategory.HANDLER.default_overwrite is Overwrite.IF_MISSING
        for category in (FileCategory.CONFIG, FileCategory.INFRASTRUCTURE, FileCategory.GENERATED):
            assert category.default_overwrite is Overwrite.ALWAYS


class TestFileRegistry:
    """Test registration, lookup and ordering."""

    def test_entries_in_category_order(self):
        registry = FileRegistry()
        registry.add("src/handlers/a.rs", FileCategory.HANDLER, _render, command="a")
        registry.add("src/generated/cli.rs", FileCategory.GENERATED, _render)
        registry.add("Cargo.toml", FileCategory.CONFIG, _render)
        registry.add("src/main.rs", FileCategory.INFRASTRUCTURE, _render)
        assert registry.paths() == [
            "Cargo.toml",
            "src/main.rs",
            "src/generated/cli.rs",
            "src/handlers/a.rs",
        ]

    def test_duplicate_path_rejected(self):
        registry = FileRegistry()
        registry.add("a.rs", FileCategory.GENERATED, _render)
        with pytest.raises(GeneratorError):
            registry.add("a.rs", FileCategory.HANDLER, _render)

    def test_policy_override(self):
        registry = FileRegistry()
        entry = registry.add(".gitignore", FileCategory.CONFIG, _render, overwrite=Overwrite.IF_MISSING)
        assert entry.is_generate_once
        assert not registry.add("Cargo.toml", FileCategory.CONFIG, _render).is_generate_once

    def test_lookup(self):
        registry = FileRegistry()
        registry.add("src/commands/a.ts", FileCategory.GENERATED, _render, command="a")
        registry.add("src/handlers/a.ts", FileCategory.HANDLER, _render, command="a")
        registry.add("src/commands/b.ts", FileCategory.GENERATED, _render, command="b")
        assert [e.path for e in registry.for_command("a")] == [
            "src/commands/a.ts",
            "src/handlers/a.ts",
        ]
        assert registry.get("src/commands/b.ts").command == "b"
        assert registry.get("missing") is None
        assert "src/handlers/a.ts" in registry
        assert len(registry.by_category(FileCategory.HANDLER)) == 1

    def test_render_is_lazy(self):
        calls = []
        registry = FileRegistry()
        registry.add("a.rs", FileCategory.GENERATED, lambda: calls.append(1) or "")
        registry.paths()
        assert calls == []
