"""Tests for the TypeScript backend."""

import pytest

from climold import build_app
from climold.codegen import ImportCollector, RenderError, get_generator


def _files(generator):
    return {f.path: f.content for f in generator.render_all()}


class TestTypeScriptLayout:
    """Test the file tree of generated TypeScript projects."""

    def test_hello_paths(self, hello_app):
        assert get_generator("typescript", hello_app).build_registry().paths() == [
            "package.json",
            "tsconfig.json",
            ".gitignore",
            "src/index.ts",
            "src/cli.ts",
            "src/commands/hello.ts",
            "src/handlers/hello.ts",
        ]

    def test_kebab_case_files(self, full_app):
        paths = get_generator("ts", full_app).build_registry().paths()
        assert "src/context.ts" in paths
        assert "src/commands/db/migrate.ts" in paths
        assert "src/handlers/db/seed.ts" in paths
        assert "src/handlers/db.ts" not in paths

    def test_entry_shebang_first(self, hello_app):
        index = _files(get_generator("typescript", hello_app))["src/index.ts"]
        lines = index.splitlines()
        assert lines[0] == "#!/usr/bin/env bun"
        assert lines[1].startswith("// Generated by climold")
        assert 'import { app } from "./cli.ts";' in index
        assert index.endswith("app.run();\n")


class TestTypeScriptRender:
    """Test rendered TypeScript sources."""

    def test_hello_command(self, hello_app):
        command = _files(get_generator("typescript", hello_app))["src/commands/hello.ts"]
        assert 'import { defineCommand, type InferArgs, type InferOpts } from "boune";' in command
        assert 'import { run } from "../handlers/hello.ts";' in command
        assert '  name: { type: "string", required: true },' in command
        assert '  loud: { type: "boolean" },' in command
        assert "export type HelloArgs = InferArgs<typeof args>;" in command
        assert "await run(args, options);" in command

    def test_hello_handler(self, hello_app):
        handler = _files(get_generator("typescript", hello_app))["src/handlers/hello.ts"]
        assert handler.startswith(
            'import type { HelloArgs, HelloOptions } from "../commands/hello.ts";\n'
        )
        assert "export async function run(_args: HelloArgs, _options: HelloOptions): Promise<void> {" in handler
        assert "// TODO: implement hello command" in handler

    def test_camel_case_option_keys(self, full_app):
        migrate = _files(get_generator("typescript", full_app))["src/commands/db/migrate.ts"]
        assert "  dryRun: { type: \"boolean\", description: \"Only print the plan\" }," in migrate
        assert 'import { run } from "../../handlers/db/migrate.ts";' in migrate
        assert 'import { createContext } from "../../context.ts";' in migrate

    def test_greet_schema(self, full_app):
        greet = _files(get_generator("typescript", full_app))["src/commands/greet.ts"]
        assert '  times: { type: "number", short: "t", default: 1, description: "How many times" },' in greet
        assert 'choices: ["plain", "fancy"] as const' in greet

    def test_parent_without_handler(self, full_app):
        db = _files(get_generator("typescript", full_app))["src/commands/db.ts"]
        assert '"migrate": dbMigrateCommand,' in db
        assert 'import { dbMigrateCommand } from "./db/migrate.ts";' in db
        assert "action:" not in db

    def test_context(self, full_app):
        context = _files(get_generator("typescript", full_app))["src/context.ts"]
        assert 'import { Database } from "bun:sqlite";' in context
        assert (
            'const database = new Database((process.env["DATABASE_URL"] ?? "app.db").replace(/^sqlite:(\\/\\/)?/, ""), '
            "{ create: true });"
        ) in context
        assert 'database.run("PRAGMA journal_mode = WAL;");' in context
        assert 'createHttpClient("https://api.example.com", ' in context
        assert "timeoutMs: 30000" in context
        assert "  return { database, api };" in context

    def test_package_json(self, full_app):
        package = _files(get_generator("typescript", full_app))["package.json"]
        assert '"boune": "^0.2.0"' in package
        assert '"typescript": "^5.0.0"' in package
        assert '"toolbox": "src/index.ts"' in package


class TestTypeScriptRenderErrors:
    def test_unsafe_integer_default(self):
        app = build_app(
            '[cli]\nname = "app"\n\n[commands.big.flags.n]\ntype = "int"\ndefault = 9007199254740993\n'
        )
        with pytest.raises(RenderError, match="safe integer range"):
            get_generator("typescript", app).render_all()
        get_generator("rust", app).render_all()

    def test_reserved_option_key(self):
        app = build_app('[cli]\nname = "app"\n\n[commands.rm.flags.delete]\n', language="rust")
        with pytest.raises(RenderError) as excinfo:
            get_generator("typescript", app).render_all()
        assert excinfo.value.path == "rm.delete"


class TestTypeScriptImports:
    def test_packages_before_relative(self, hello_app):
        imports = ImportCollector()
        imports.add("./cli.ts", "app")
        imports.add_type("boune", "InferArgs")
        imports.add("bun:sqlite", "Database")
        text = get_generator("typescript", hello_app).format_imports(imports)
        assert text == (
            'import type { InferArgs } from "boune";\n'
            'import { Database } from "bun:sqlite";\n\n'
            'import { app } from "./cli.ts";'
        )
