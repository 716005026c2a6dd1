"""Tests for manifest validation and lints."""

import pytest

from climold.manifest import DiagnosticKind, Severity, ValidationError, parse, validate


def _errors(text: str, language=None):
    with pytest.raises(ValidationError) as exc_info:
        validate(parse(text), language)
    return exc_info.value


def _manifest(body: str, cli: str = '[cli]\nname = "app"\n') -> str:
    return cli + "\n" + body


class TestValidManifests:
    """Manifests that pass validation."""

    def test_full_manifest(self, full_manifest):
        validated = validate(parse(full_manifest))
        assert validated.language == "rust"
        assert validated.warnings == ()

    def test_language_from_manifest(self):
        text = '[cli]\nname = "app"\nlanguage = "ts"\n'
        assert validate(parse(text)).language == "typescript"

    def test_explicit_language_wins(self):
        text = '[cli]\nname = "app"\nlanguage = "typescript"\n'
        assert validate(parse(text), "py").language == "python"

    def test_float_and_string_defaults_are_coerced(self):
        text = _manifest('[commands.run.flags.ratio]\ntype = "float"\ndefault = "0.5"\n')
        validate(parse(text))


class TestValidationErrors:
    """Every semantic problem is reported."""

    def test_missing_cli(self):
        error = _errors('[commands.run]\ndescription = "Run"\n')
        assert DiagnosticKind.MISSING_FIELD in error.kinds

    def test_collects_several_errors_in_one_pass(self):
        text = """\
[cli]
name = "app"
version = "one"

[commands.run]
description = "Run"
colour = "red"

[commands.run.flags.jobs]
type = "int"
default = "many"
"""
        error = _errors(text)
        assert set(error.kinds) >= {
            DiagnosticKind.INVALID_VERSION,
            DiagnosticKind.UNKNOWN_FIELD,
            DiagnosticKind.INVALID_DEFAULT,
        }
        assert len(error.diagnostics) == 3

    def test_unparseable_default(self):
        error = _errors(_manifest('[commands.run.flags.jobs]\ntype = "int"\ndefault = 1.5\n'))
        diagnostic = error.diagnostics[0]
        assert diagnostic.kind is DiagnosticKind.INVALID_DEFAULT
        assert diagnostic.field == "commands.run.flags.jobs.default"
        assert diagnostic.span is not None

    def test_non_finite_float_default(self):
        error = _errors(_manifest('[commands.run.flags.ratio]\ntype = "float"\ndefault = "inf"\n'))
        assert error.kinds == [DiagnosticKind.INVALID_DEFAULT]

    def test_choice_default_must_be_a_choice(self):
        text = _manifest('[commands.run.flags.mode]\nchoices = ["a", "b"]\ndefault = "c"\n')
        assert _errors(text).kinds == [DiagnosticKind.INVALID_DEFAULT]

    def test_unknown_type(self):
        text = _manifest('[commands.run.args.when]\ntype = "date"\n')
        assert _errors(text).kinds == [DiagnosticKind.INVALID_TYPE]

    def test_name_collision_after_normalization(self):
        text = _manifest('[commands.dry-run]\ndescription = "A"\n[commands.dry_run]\ndescription = "B"\n')
        error = _errors(text)
        assert error.kinds == [DiagnosticKind.NAME_COLLISION]
        assert "dry_run" in error.diagnostics[0].message

    def test_input_collision_across_args_and_flags(self):
        text = _manifest('[commands.run]\nargs = ["target"]\nflags = ["Target"]\n')
        assert DiagnosticKind.NAME_COLLISION in _errors(text).kinds

    def test_duplicate_short(self):
        text = _manifest(
            '[commands.run.flags.all]\nshort = "a"\n[commands.run.flags.any]\nshort = "a"\n'
        )
        assert _errors(text).kinds == [DiagnosticKind.DUPLICATE_SHORT]

    def test_required_after_optional_positional(self):
        text = _manifest(
            '[commands.run.args.first]\nrequired = false\n[commands.run.args.second]\ntype = "string"\n'
        )
        assert _errors(text).kinds == [DiagnosticKind.INVALID_VALUE]

    def test_required_flag(self):
        text = _manifest('[commands.run.flags.force]\nrequired = true\n')
        assert _errors(text).kinds == [DiagnosticKind.INVALID_VALUE]

    def test_unknown_language(self):
        text = '[cli]\nname = "app"\nlanguage = "cobol"\n'
        error = _errors(text)
        assert error.kinds == [DiagnosticKind.UNKNOWN_LANGUAGE]
        assert error.diagnostics[0].field == "cli.language"

    def test_unknown_top_level_section(self):
        assert _errors(_manifest("[server]\nport = 1\n")).kinds == [DiagnosticKind.UNKNOWN_FIELD]


class TestResourceValidation:
    """Test [context] resource rules."""

    def test_unknown_resource_type(self):
        text = _manifest('[context.cache]\ntype = "redis"\n')
        assert _errors(text).kinds == [DiagnosticKind.UNKNOWN_RESOURCE_TYPE]

    def test_sqlite_only_option_on_postgres(self):
        text = _manifest(
            '[context.db]\ntype = "postgres"\nhost = "localhost"\nport = 5432\njournal_mode = "wal"\n'
        )
        error = _errors(text)
        assert error.kinds == [DiagnosticKind.SQLITE_ONLY_OPTION]
        assert error.diagnostics[0].field == "context.db.journal_mode"

    def test_sqlite_requires_path(self):
        text = _manifest('[context.db]\ntype = "sqlite"\n')
        assert _errors(text).kinds == [DiagnosticKind.MISSING_FIELD]

    def test_host_without_port(self):
        text = _manifest('[context.db]\ntype = "mysql"\nhost = "localhost"\n')
        assert _errors(text).kinds == [DiagnosticKind.MISSING_CONNECTION]

    def test_network_database_from_env(self):
        text = _manifest('[context.db]\ntype = "postgres"\nenv = "PG_URL"\n')
        validate(parse(text))

    def test_pool_bounds(self):
        text = _manifest(
            '[context.db]\ntype = "sqlite"\npath = "a.db"\nmin_connections = 5\nmax_connections = 2\n'
        )
        assert _errors(text).kinds == [DiagnosticKind.INVALID_OPTION]

    def test_invalid_journal_mode(self):
        text = _manifest('[context.db]\ntype = "sqlite"\npath = "a.db"\njournal_mode = "fast"\n')
        assert _errors(text).kinds == [DiagnosticKind.INVALID_OPTION]

    def test_http_base_url(self):
        text = _manifest('[context.api]\ntype = "http"\nbase_url = "ftp://example.com"\n')
        assert _errors(text).kinds == [DiagnosticKind.INVALID_OPTION]


class TestReservedKeywords:
    """Reserved words are checked against the target language only."""

    @pytest.mark.parametrize(
        "name, language",
        [
            ("match", "rust"),
            ("type", "rust"),
            ("class", "typescript"),
            ("class", "python"),
            ("lambda", "python"),
            ("match", "python"),
            ("type", "python"),
            ("case", "python"),
            ("delete", "typescript"),
        ],
    )
    def test_command_keyword_rejected(self, name, language):
        text = _manifest(f'[commands.{name}]\ndescription = "x"\n')
        error = _errors(text, language)
        assert error.kinds == [DiagnosticKind.RESERVED_KEYWORD]
        assert name in error.diagnostics[0].message
        assert language in error.diagnostics[0].message

    @pytest.mark.parametrize("language", ["rust", "typescript", "python"])
    def test_input_keyword_rejected(self, language):
        text = _manifest('[commands.run]\ndescription = "x"\nargs = ["if"]\n')
        assert _errors(text, language).kinds == [DiagnosticKind.RESERVED_KEYWORD]

    def test_keyword_of_another_language_is_accepted(self):
        text = _manifest('[commands.match]\ndescription = "x"\n')
        assert validate(parse(text), "typescript").language == "typescript"
        text = _manifest('[commands.delete]\ndescription = "x"\n')
        assert validate(parse(text), "python").language == "python"

    def test_camel_case_identifier_checked_for_typescript(self):
        # "instance-of" becomes the TypeScript identifier "instanceOf", not a keyword
        text = _manifest('[commands.instance-of]\ndescription = "x"\n')
        validate(parse(text), "typescript")


class TestLints:
    """Lints are warnings and never fail validation."""

    def test_command_naming_and_empty_description(self):
        text = _manifest("[commands.runAll]\n")
        warnings = validate(parse(text)).warnings
        kinds = [w.kind for w in warnings]
        assert kinds == [DiagnosticKind.COMMAND_NAMING, DiagnosticKind.EMPTY_DESCRIPTION]
        assert all(w.severity is Severity.WARNING for w in warnings)
