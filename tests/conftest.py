"""
Pytest configuration and shared fixtures for climold tests.

Provides manifest texts, parsed applications and helpers for building a
generator for every supported backend.
"""

from pathlib import Path
from typing import Dict

import pytest

from climold import build_app
from climold.codegen import get_generator

LANGUAGES = ["rust", "typescript", "python"]

HELLO_MANIFEST = """\
[cli]
name = "myapp"
version = "0.1.0"
description = "My app"

[commands.hello]
description = "Say hello"
args = ["name"]
flags = ["loud"]
"""

FULL_MANIFEST = """\
[cli]
name = "toolbox"
version = "1.2.0"
description = "Tools for the shop"
author = "Jane Doe <jane@example.org>"

[commands.greet]
description = "Greet someone"

[commands.greet.args.name]
type = "string"
required = false
default = "world"
description = "Who to greet"

[commands.greet.flags.times]
type = "int"
short = "t"
default = 1
description = "How many times"

[commands.greet.flags.style]
choices = ["plain", "fancy"]
default = "plain"

[commands.greet.flags.verbose]
short = "v"

[commands.db]
description = "Database tasks"

[commands.db.migrate]
description = "Run migrations"

[commands.db.migrate.flags.dry-run]
description = "Only print the plan"

[commands.db.commands.seed]
description = "Seed the database"

[commands.db.commands.seed.args.file]
type = "path"

[context.database]
type = "sqlite"
path = "app.db"
journal_mode = "wal"
foreign_keys = true
max_connections = 5

[context.api]
type = "http"
base_url = "https://api.example.com"
timeout = 30
user_agent = "toolbox/1.2"
headers = { Accept = "application/json" }
"""

ABC_MANIFEST = """\
[cli]
name = "abc"

[commands.a]
description = "A"

[commands.b]
description = "B"

[commands.c]
description = "C"
"""

AC_MANIFEST = """\
[cli]
name = "abc"

[commands.a]
description = "A"

[commands.c]
description = "C"
"""


@pytest.fixture
def hello_manifest() -> str:
    return HELLO_MANIFEST


@pytest.fixture
def full_manifest() -> str:
    return FULL_MANIFEST


@pytest.fixture
def hello_app():
    return build_app(HELLO_MANIFEST)


@pytest.fixture
def full_app():
    return build_app(FULL_MANIFEST)


@pytest.fixture(params=LANGUAGES)
def language(request) -> str:
    return request.param


@pytest.fixture
def output_dir(tmp_path) -> Path:
    path = tmp_path / "out"
    path.mkdir()
    return path


@pytest.fixture
def manifest_file(tmp_path):
    """Write a manifest into a fresh project directory and return its path."""

    def write(text: str = HELLO_MANIFEST, name: str = "climold.toml") -> Path:
        path = tmp_path / "project" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return write


@pytest.fixture
def abc_manifest() -> str:
    return ABC_MANIFEST


@pytest.fixture
def ac_manifest() -> str:
    return AC_MANIFEST


def _make_generator(text: str, language: str):
    return get_generator(language, build_app(text, language=language))


def _read_tree(root: Path) -> Dict[str, str]:
    return {
        path.relative_to(root).as_posix(): path.read_text(encoding="utf-8")
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


@pytest.fixture
def make_generator():
    """Build the generator of a language for manifest text."""
    return _make_generator


@pytest.fixture
def read_tree():
    """Read every file under a directory, keyed by posix relative path."""
    return _read_tree
