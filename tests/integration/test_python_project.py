"""
Integration tests that import and run generated Python projects.

Each test generates a project, puts its ``src`` directory on ``sys.path``
and invokes the click application with ``CliRunner``. Handler stubs raise
NotImplementedError, so reaching one proves the command was wired up.
"""

import importlib
import sys

import pytest
from click.testing import CliRunner

from climold import build_app
from climold.codegen import get_generator

PARENT_MANIFEST = """\
[cli]
name = "shapeapp"

[commands.db]
description = "Database tasks"

[commands.db.migrate]
description = "Run migrations"
"""

LEAF_MANIFEST = """\
[cli]
name = "shapeapp"

[commands.db]
description = "Database tasks"
"""


@pytest.fixture
def import_generated(monkeypatch):
    """Return a loader importing a module of a generated package."""
    monkeypatch.setattr(sys, "dont_write_bytecode", True)
    loaded = []

    def _forget(package):
        for name in [m for m in sys.modules if m == package or m.startswith(package + ".")]:
            del sys.modules[name]

    def load(root, package, module="cli"):
        monkeypatch.syspath_prepend(str(root / "src"))
        _forget(package)
        importlib.invalidate_caches()
        loaded.append(package)
        return importlib.import_module(f"{package}.{module}")

    yield load

    for package in loaded:
        _forget(package)


def _generate(text, root):
    result = get_generator("python", build_app(text, language="python")).generate(root)
    assert result.success, result.errors
    return result


def _invoke(cli, args):
    return CliRunner().invoke(cli, args)


def _assert_reached(result, dotted):
    assert isinstance(result.exception, NotImplementedError), result.output
    assert str(result.exception) == f"implement {dotted} command"


class TestGeneratedCommands:
    """Generated click callbacks reach their handler stubs."""

    def test_hello(self, hello_manifest, tmp_path, import_generated):
        _generate(hello_manifest, tmp_path)
        cli = import_generated(tmp_path, "myapp").cli
        _assert_reached(_invoke(cli, ["hello", "world", "--loud"]), "hello")

    def test_nested_commands(self, tmp_path, import_generated):
        _generate(PARENT_MANIFEST, tmp_path)
        cli = import_generated(tmp_path, "shapeapp").cli
        _assert_reached(_invoke(cli, ["db", "migrate"]), "db.migrate")

    def test_input_named_like_the_handler(self, tmp_path, import_generated):
        text = '[cli]\nname = "deployer"\n\n[commands.deploy]\ndescription = "Deploy"\nargs = ["run"]\n'
        _generate(text, tmp_path)
        cli = import_generated(tmp_path, "deployer").cli
        _assert_reached(_invoke(cli, ["deploy", "x"]), "deploy")

    def test_input_named_like_the_click_context(self, tmp_path, import_generated):
        text = (
            '[cli]\nname = "dbtool"\n\n'
            '[commands.db]\ndescription = "Database tasks"\nhandler = true\nflags = ["click_ctx"]\n\n'
            '[commands.db.migrate]\ndescription = "Run migrations"\n'
        )
        _generate(text, tmp_path)
        cli = import_generated(tmp_path, "dbtool").cli
        _assert_reached(_invoke(cli, ["db", "--click-ctx"]), "db")
        _assert_reached(_invoke(cli, ["db", "migrate"]), "db.migrate")


class TestParentBecomesLeaf:
    """Regenerating after a group loses its children runs the new leaf."""

    def test_stale_packages_removed(self, tmp_path, import_generated):
        _generate(PARENT_MANIFEST, tmp_path)
        result = _generate(LEAF_MANIFEST, tmp_path)

        assert result.removed == [
            "src/shapeapp/commands/db/__init__.py",
            "src/shapeapp/handlers/db/__init__.py",
        ]
        assert (tmp_path / "src/shapeapp/commands/db.py").is_file()
        assert not (tmp_path / "src/shapeapp/commands/db/__init__.py").exists()
        assert "src/shapeapp/commands/db/migrate.py" in result.orphans

        cli = import_generated(tmp_path, "shapeapp").cli
        _assert_reached(_invoke(cli, ["db"]), "db")

    def test_edited_parent_handler_reported(self, tmp_path):
        text = PARENT_MANIFEST.replace('description = "Database tasks"\n', 'description = "Database tasks"\nhandler = true\n')
        _generate(text, tmp_path)
        edited = tmp_path / "src/shapeapp/handlers/db/__init__.py"
        edited.write_text("def run(args):\n    print('mine')\n", encoding="utf-8")

        result = get_generator("python", build_app(LEAF_MANIFEST, language="python")).generate(tmp_path)

        assert not result.success
        assert [error.path for error in result.errors] == ["src/shapeapp/handlers/db/__init__.py"]
        assert result.removed == ["src/shapeapp/commands/db/__init__.py"]
        assert edited.read_text(encoding="utf-8") == "def run(args):\n    print('mine')\n"


class TestGeneratedContext:
    def test_sqlite_url_scheme_stripped(self, tmp_path, import_generated, monkeypatch):
        text = '[cli]\nname = "store"\n\n[commands.stats]\ndescription = "Show stats"\n\n[context.db]\ntype = "sqlite"\npath = "store.db"\n'
        _generate(text, tmp_path / "project")
        database = tmp_path / "data.db"
        monkeypatch.setenv("DATABASE_URL", f"sqlite://{database.as_posix()}")

        context = import_generated(tmp_path / "project", "store", "context").create_context()
        context.close()

        assert database.is_file()
