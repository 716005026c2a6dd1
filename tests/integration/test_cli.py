"""Integration tests for the climold command line."""

import io

import pytest
from rich.console import Console

from climold.main import create_parser, main


@pytest.fixture
def run():
    """Run the command line and return (exit code, captured output)."""

    def invoke(*argv):
        buffer = io.StringIO()
        console = Console(file=buffer, width=200, color_system=None)
        code = main([str(arg) for arg in argv], console=console)
        return code, buffer.getvalue()

    return invoke


@pytest.fixture
def project(tmp_path, run):
    directory = tmp_path / "demo"
    code, _ = run("init", directory, "--language", "python")
    assert code == 0
    return directory


class TestParser:
    def test_subcommands(self):
        parser = create_parser()
        args = parser.parse_args(["bake", "-m", "x.toml", "--dry-run", "-l", "ts"])
        assert args.handler == "bake"
        assert args.manifest == "x.toml"
        assert args.dry_run
        assert args.language == "ts"

    def test_no_command_prints_help(self, run, capsys):
        code, _ = run()
        assert code == 1
        assert "usage: climold" in capsys.readouterr().out


class TestInit:
    def test_writes_starter_manifest(self, project):
        text = (project / "climold.toml").read_text(encoding="utf-8")
        assert 'name = "demo"' in text
        assert 'language = "python"' in text

    def test_refuses_to_overwrite(self, project, run):
        code, output = run("init", project)
        assert code == 1
        assert "already exists" in output
        assert run("init", project, "--force")[0] == 0

    def test_unknown_language(self, tmp_path, run):
        code, output = run("init", tmp_path, "--language", "cobol")
        assert code == 1
        assert "Unsupported language 'cobol'" in output


class TestInspect:
    def test_check(self, project, run):
        code, output = run("check", "-m", project)
        assert code == 0
        assert "is valid for python" in output
        assert "(1 commands)" in output

    def test_check_reports_diagnostics(self, tmp_path, run):
        manifest = tmp_path / "climold.toml"
        manifest.write_text('[cli]\nname = "app"\n\n[commands.go.flags.n]\ntype = "number"\n', encoding="utf-8")
        code, output = run("check", "-m", manifest)
        assert code == 1
        assert "error[" in output
        assert "1 error" in output

    def test_check_missing_manifest(self, tmp_path, run):
        code, output = run("check", "-m", tmp_path)
        assert code == 1
        assert "Manifest not found" in output

    def test_list(self, project, run):
        code, output = run("list", "-m", project)
        assert code == 0
        assert "demo" in output
        assert "hello" in output
        assert "-l/--loud:bool" in output

    def test_info(self, project, run):
        code, output = run("info", "-m", project, "--language", "rust")
        assert code == 0
        assert "Language: rust" in output
        assert "Commands: 1 (1 with handlers)" in output

    def test_languages(self, run):
        code, output = run("languages")
        assert code == 0
        for name in ("python", "rust", "typescript"):
            assert name in output


class TestBake:
    def test_bake_into_manifest_directory(self, project, run):
        code, output = run("bake", "-m", project)
        assert code == 0
        assert "Generated python project" in output
        assert (project / "src" / "demo" / "__main__.py").is_file()
        assert (project / "src" / "demo" / "handlers" / "hello.py").is_file()

    def test_dry_run_writes_nothing(self, project, tmp_path, run):
        out = tmp_path / "out"
        code, output = run("bake", "-m", project, "-o", out, "--dry-run", "--show", "pyproject.toml")
        assert code == 0
        assert "create" in output
        assert "src/demo/cli.py" in output
        assert 'name = "demo"' in output
        assert not out.exists()

    def test_language_override(self, project, tmp_path, run):
        out = tmp_path / "rust"
        assert run("bake", "-m", project, "-o", out, "--language", "rs")[0] == 0
        assert (out / "Cargo.toml").is_file()

    def test_config_must_be_json(self, project, tmp_path, run):
        config = tmp_path / "config.yaml"
        config.write_text("indent_size: 2\n", encoding="utf-8")
        code, output = run("bake", "-m", project, "--config", config)
        assert code == 1
        assert "must be JSON" in output

    def test_bake_clean_and_clean(self, project, tmp_path, run):
        out = tmp_path / "out"
        assert run("bake", "-m", project, "-o", out)[0] == 0
        manifest = project / "climold.toml"
        text = manifest.read_text(encoding="utf-8").replace("[commands.hello", "[commands.greet")
        manifest.write_text(text, encoding="utf-8")

        code, output = run("clean", "-m", project, "-o", out, "--dry-run")
        assert code == 0
        assert "Would remove src/demo/commands/hello.py" in output
        assert (out / "src" / "demo" / "commands" / "hello.py").exists()

        code, output = run("bake", "-m", project, "-o", out, "--clean")
        assert code == 0
        assert "Removed src/demo/handlers/hello.py" in output
        assert not (out / "src" / "demo" / "commands" / "hello.py").exists()

        code, output = run("clean", "-m", project, "-o", out)
        assert code == 0
        assert "No orphaned files" in output
