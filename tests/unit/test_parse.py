"""Tests for manifest parsing and source locations."""

import pytest

from climold.ir.app import InputKind
from climold.manifest import DiagnosticKind, ParseError, parse


class TestParse:
    """Test building the manifest value tree."""

    def test_parse_cli_section(self, full_manifest):
        manifest = parse(full_manifest)
        assert manifest.cli.name == "toolbox"
        assert manifest.cli.version == "1.2.0"
        assert manifest.cli.author == "Jane Doe <jane@example.org>"

    def test_commands_keep_declaration_order(self, full_manifest):
        manifest = parse(full_manifest)
        assert [c.name for c in manifest.commands] == ["greet", "db"]
        db = manifest.commands[1]
        assert [c.name for c in db.children] == ["migrate", "seed"]
        assert db.children[1].path == ("db", "seed")

    def test_shorthand_inputs(self, hello_manifest):
        hello = parse(hello_manifest).commands[0]
        assert [(i.name, i.kind) for i in hello.inputs] == [
            ("name", InputKind.POSITIONAL),
            ("loud", InputKind.FLAG),
        ]

    def test_detailed_inputs(self, full_manifest):
        greet = parse(full_manifest).commands[0]
        names = [i.name for i in greet.flags]
        assert names == ["times", "style", "verbose"]
        assert greet.flags[0].type == "int"
        assert greet.flags[0].short == "t"

    def test_array_of_tables_inputs(self):
        text = """\
[cli]
name = "app"

[commands.copy]
description = "Copy"

[[commands.copy.args]]
name = "source"
type = "path"

[[commands.copy.args]]
name = "target"
type = "path"
"""
        copy = parse(text).commands[0]
        assert [a.name for a in copy.args] == ["source", "target"]
        assert copy.args[1].key_path == ("commands", "copy", "args", "target")

    def test_type_name_shorthand(self):
        text = '[cli]\nname = "app"\n[commands.run]\nflags = { jobs = "int" }\n'
        run = parse(text).commands[0]
        assert run.flags[0].name == "jobs"
        assert run.flags[0].type == "int"

    def test_resources(self, full_manifest):
        resources = parse(full_manifest).resources
        assert [r.name for r in resources] == ["database", "api"]
        assert resources[0].type == "sqlite"
        assert resources[0].options["journal_mode"] == "wal"
        assert "type" not in resources[0].options

    def test_unknown_scalar_kept_for_validation(self):
        text = '[cli]\nname = "app"\n[commands.run]\ncolour = "red"\n'
        run = parse(text).commands[0]
        assert run.extra == {"colour": "red"}


class TestParseErrors:
    """Test syntax and shape errors."""

    def test_syntax_error_has_location(self):
        text = '[cli]\nname = "app"\nversion = \n'
        with pytest.raises(ParseError) as exc_info:
            parse(text, "bad.toml")
        diagnostic = exc_info.value.diagnostics[0]
        assert diagnostic.kind is DiagnosticKind.SYNTAX
        assert diagnostic.span is not None
        assert diagnostic.span.line == 3
        assert exc_info.value.filename == "bad.toml"

    def test_command_must_be_table(self):
        text = '[cli]\nname = "app"\n[commands]\nhello = "world"\n'
        with pytest.raises(ParseError) as exc_info:
            parse(text)
        assert exc_info.value.kinds == [DiagnosticKind.INVALID_STRUCTURE]
        assert exc_info.value.diagnostics[0].field == "commands.hello"

    def test_inputs_must_be_array_or_table(self):
        text = '[cli]\nname = "app"\n[commands.run]\nargs = 3\n'
        with pytest.raises(ParseError):
            parse(text)


class TestSourceSpans:
    """Test that manifest entries carry their positions."""

    def test_command_span_points_at_header(self, hello_manifest):
        hello = parse(hello_manifest).commands[0]
        assert hello.span.line == 6
        assert hello.span.column == 11

    def test_shorthand_input_span_points_at_element(self, hello_manifest):
        flag = parse(hello_manifest).commands[0].flags[0]
        assert flag.span.line == 9
        assert flag.span.column == 11
        assert flag.span.length == len("loud")

    def test_field_span(self, full_manifest):
        times = parse(full_manifest).commands[0].flags[0]
        span = times.span_of("default")
        assert span is not None
        assert full_manifest.splitlines()[span.line - 1].startswith("default = 1")
