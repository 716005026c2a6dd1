"""
Integration tests for generating, previewing and cleaning projects.

Every test runs against all backends and writes real files into a
temporary directory.
"""

import pytest

from climold import build_app
from climold.codegen import GeneratorError, RenderError, get_generator
from climold.core.files import FileCategory, PreviewAction


# Files of command "b" in the abc manifest, per backend
B_FILES = {
    "rust": ["src/generated/commands/b.rs", "src/handlers/b.rs"],
    "typescript": ["src/commands/b.ts", "src/handlers/b.ts"],
    "python": ["src/abc/commands/b.py", "src/abc/handlers/b.py"],
}

HELLO_LAYOUT = {
    "rust": {
        "entry": "src/main.rs",
        "commands": ["src/generated/commands/hello.rs"],
        "handlers": ["src/handlers/hello.rs"],
        "project": "Cargo.toml",
        "context": "src/context.rs",
    },
    "typescript": {
        "entry": "src/index.ts",
        "commands": ["src/commands/hello.ts"],
        "handlers": ["src/handlers/hello.ts"],
        "project": "package.json",
        "context": "src/context.ts",
    },
    "python": {
        "entry": "src/myapp/__main__.py",
        "commands": ["src/myapp/commands/hello.py"],
        "handlers": ["src/myapp/handlers/hello.py"],
        "project": "pyproject.toml",
        "context": "src/myapp/context.py",
    },
}


def _without_db(manifest):
    """Drop the db command group from the full manifest."""
    head = manifest.split("[commands.db]")[0]
    return head + "[context.database]" + manifest.split("[context.database]")[1]


DB_DIRS = {
    "rust": ["src/generated/commands/db", "src/handlers/db"],
    "typescript": ["src/commands/db", "src/handlers/db"],
    "python": ["src/toolbox/commands/db", "src/toolbox/handlers/db"],
}


def _handler_path(generator, dotted):
    for entry in generator.build_registry().by_category(FileCategory.HANDLER):
        if entry.command == dotted:
            return entry.path
    raise AssertionError(f"no handler for {dotted}")


class TestHelloProject:
    """Test the smallest useful project end to end."""

    def test_layout(self, language, make_generator, hello_manifest, output_dir, read_tree):
        layout = HELLO_LAYOUT[language]
        generator = make_generator(hello_manifest, language)
        result = generator.generate(output_dir)
        assert result.success
        assert result.orphans == []

        files = read_tree(output_dir)
        assert layout["entry"] in files
        assert layout["project"] in files
        assert layout["context"] not in files
        for path in layout["commands"] + layout["handlers"]:
            assert path in files
        handlers = [
            path for path in files if path.startswith(generator.handlers_dir + "/")
            and generator.stub_marker_pattern() in files[path]
        ]
        assert handlers == layout["handlers"]

        marker = generator.entry_marker
        if marker is not None:
            assert files[layout["entry"]].splitlines()[0] == marker

    def test_preview_on_empty_directory(self, language, make_generator, hello_manifest, output_dir):
        previews = make_generator(hello_manifest, language).preview(output_dir)
        assert previews
        assert {p.action for p in previews} == {PreviewAction.CREATE}

    def test_context_file_with_resources(self, language, make_generator, full_manifest, output_dir, read_tree):
        make_generator(full_manifest, language).generate(output_dir)
        context = HELLO_LAYOUT[language]["context"].replace("myapp", "toolbox")
        assert context in read_tree(output_dir)


class TestRegeneration:
    """Test repeated generation over an existing tree."""

    def test_idempotent(self, language, make_generator, full_manifest, output_dir, read_tree):
        generator = make_generator(full_manifest, language)
        first = generator.generate(output_dir)
        before = read_tree(output_dir)
        second = generator.generate(output_dir)

        assert read_tree(output_dir) == before
        assert second.created == []
        assert sorted(second.overwritten + second.skipped) == sorted(first.created)

    def test_deterministic(self, language, make_generator, full_manifest, tmp_path, read_tree):
        make_generator(full_manifest, language).generate(tmp_path / "one")
        make_generator(full_manifest, language).generate(tmp_path / "two")
        assert read_tree(tmp_path / "one") == read_tree(tmp_path / "two")

    def test_preview_matches_generate(self, language, make_generator, full_manifest, output_dir, read_tree):
        generator = make_generator(full_manifest, language)
        previews = generator.preview(None)
        generator.generate(output_dir)
        assert {p.path: p.content for p in previews} == read_tree(output_dir)

    def test_edited_handler_preserved(self, language, make_generator, hello_manifest, output_dir):
        generator = make_generator(hello_manifest, language)
        generator.generate(output_dir)
        handler = output_dir / _handler_path(generator, "hello")
        handler.write_text("user code\n", encoding="utf-8")

        command = output_dir / HELLO_LAYOUT[language]["commands"][0]
        command.write_text("stale\n", encoding="utf-8")

        result = generator.generate(output_dir)
        assert handler.read_text(encoding="utf-8") == "user code\n"
        assert command.read_text(encoding="utf-8") != "stale\n"
        assert _handler_path(generator, "hello") in result.skipped

    def test_preview_skips_existing_handlers(self, language, make_generator, hello_manifest, output_dir):
        generator = make_generator(hello_manifest, language)
        generator.generate(output_dir)
        actions = {p.path: p.action for p in generator.preview(output_dir)}
        assert actions[_handler_path(generator, "hello")] is PreviewAction.SKIP
        assert actions[".gitignore"] is PreviewAction.SKIP
        assert actions[HELLO_LAYOUT[language]["entry"]] is PreviewAction.OVERWRITE

    def test_preview_accepts_path_snapshot(self, language, make_generator, hello_manifest):
        generator = make_generator(hello_manifest, language)
        entry = HELLO_LAYOUT[language]["entry"]
        actions = {p.path: p.action for p in generator.preview({entry})}
        assert actions[entry] is PreviewAction.OVERWRITE
        assert actions[HELLO_LAYOUT[language]["project"]] is PreviewAction.CREATE

    def test_render_error_writes_nothing(self, language, output_dir):
        app = build_app(
            '[cli]\nname = "app"\n\n[commands.big.flags.n]\ntype = "int"\n'
            'default = "9223372036854775808"\n'
        )
        generator = get_generator(language, app)
        if language == "python":
            generator.generate(output_dir)
            return
        with pytest.raises(RenderError):
            generator.generate(output_dir)
        assert list(output_dir.iterdir()) == []

    def test_output_path_is_a_file(self, language, make_generator, hello_manifest, tmp_path):
        target = tmp_path / "file"
        target.write_text("", encoding="utf-8")
        with pytest.raises(GeneratorError):
            make_generator(hello_manifest, language).generate(target)


class TestOrphans:
    """Test orphan detection and clean after commands are removed."""

    def test_removed_command_is_orphaned(self, language, make_generator, abc_manifest, ac_manifest, output_dir):
        make_generator(abc_manifest, language).generate(output_dir)
        generator = make_generator(ac_manifest, language)
        assert generator.orphans(output_dir) == B_FILES[language]
        assert generator.generate(output_dir).orphans == B_FILES[language]

    def test_orphans_ignore_unmanaged_files(self, language, make_generator, hello_manifest, output_dir):
        generator = make_generator(hello_manifest, language)
        generator.generate(output_dir)
        extra = output_dir / "src" / ("notes" + generator.file_extension)
        extra.write_text("", encoding="utf-8")
        assert generator.orphans(output_dir) == []

    def test_clean_removes_stubs(self, language, make_generator, abc_manifest, ac_manifest, output_dir):
        make_generator(abc_manifest, language).generate(output_dir)
        generator = make_generator(ac_manifest, language)

        dry = generator.clean(output_dir, dry_run=True)
        assert dry.deleted == B_FILES[language]
        assert all((output_dir / path).exists() for path in B_FILES[language])

        result = generator.clean(output_dir)
        assert result.success
        assert result.deleted == B_FILES[language]
        assert result.kept == []
        assert generator.orphans(output_dir) == []

    def test_clean_keeps_edited_handlers(self, language, make_generator, abc_manifest, ac_manifest, output_dir):
        make_generator(abc_manifest, language).generate(output_dir)
        command_file, handler_file = B_FILES[language]
        (output_dir / handler_file).write_text("user code\n", encoding="utf-8")

        result = make_generator(ac_manifest, language).clean(output_dir)
        assert result.deleted == [command_file]
        assert result.kept == [handler_file]
        assert (output_dir / handler_file).read_text(encoding="utf-8") == "user code\n"

    def test_clean_prunes_empty_directories(self, language, make_generator, full_manifest, output_dir):
        make_generator(full_manifest, language).generate(output_dir)
        generator = make_generator(_without_db(full_manifest), language)
        result = generator.clean(output_dir)

        assert result.success
        assert result.kept == []
        for directory in DB_DIRS[language]:
            assert not (output_dir / directory).exists()
        for managed in generator.managed_dirs:
            assert (output_dir / managed).is_dir()

    def test_clean_without_orphans(self, language, make_generator, hello_manifest, output_dir):
        generator = make_generator(hello_manifest, language)
        generator.generate(output_dir)
        result = generator.clean(output_dir)
        assert result.deleted == [] and result.kept == []
