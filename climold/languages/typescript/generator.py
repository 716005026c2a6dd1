"""
TypeScript code generator implementation.

Generates a Bun project using boune's declarative command schemas.
Resources become a ``Context`` built from bun:sqlite, Bun SQL and fetch.
"""

from functools import partial
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ...codegen.builder import CodeFile
from ...codegen.files import FileRegistry
from ...codegen.generator import CodeGenerator
from ...codegen.imports import DependencySet, ImportCollector
from ...codegen.naming import TYPESCRIPT_NAMING, NamingConvention
from ...codegen.templates import quote_string
from ...codegen.tree import FlatCommand
from ...core.files import FileCategory, Overwrite
from ...ir.app import DatabaseKind, DatabaseResource, HttpClientResource, Input
from .types import BOUNE_TYPES, literal, template_literal

SHEBANG = "#!/usr/bin/env bun"

_URL_SCHEMES = {DatabaseKind.POSTGRES: "postgres", DatabaseKind.MYSQL: "mysql"}


class TypeScriptGenerator(CodeGenerator):
    """Code generator for TypeScript CLIs built on boune."""

    @property
    def language_name(self) -> str:
        return "typescript"

    @property
    def file_extension(self) -> str:
        return ".ts"

    @property
    def naming(self) -> NamingConvention:
        return TYPESCRIPT_NAMING

    @property
    def managed_dirs(self) -> Tuple[str, ...]:
        return ("src/commands", "src/handlers")

    @property
    def handlers_dir(self) -> str:
        return "src/handlers"

    @property
    def entry_file(self) -> str:
        return "src/index.ts"

    @property
    def entry_marker(self) -> Optional[str]:
        return SHEBANG

    def get_template_directory(self) -> Path:
        """Return the TypeScript templates directory."""
        return Path(__file__).parent / "templates"

    def stub_marker(self, command: FlatCommand) -> str:
        return f"// TODO: implement {command.dotted} command"

    def stub_marker_pattern(self) -> str:
        return "// TODO: implement "

    # File tree

    def build_registry(self) -> FileRegistry:
        registry = FileRegistry()
        registry.add("package.json", FileCategory.CONFIG, self._render_package_json)
        registry.add("tsconfig.json", FileCategory.CONFIG, self._render_tsconfig)
        registry.add(
            ".gitignore",
            FileCategory.CONFIG,
            self._render_gitignore,
            overwrite=Overwrite.IF_MISSING,
        )
        registry.add(self.entry_file, FileCategory.INFRASTRUCTURE, self._render_index)
        if self.app.has_resources:
            registry.add("src/context.ts", FileCategory.INFRASTRUCTURE, self._render_context)
        registry.add("src/cli.ts", FileCategory.GENERATED, self._render_cli)

        for flat in self.tree:
            registry.add(
                "src/commands/" + self.naming.file_path(flat.ident_path, ".ts"),
                FileCategory.GENERATED,
                partial(self._render_command, flat),
                command=flat.dotted,
            )
        for flat in self.tree.invocable():
            registry.add(
                "src/handlers/" + self.naming.file_path(flat.ident_path, ".ts"),
                FileCategory.HANDLER,
                partial(self._render_handler, flat),
                command=flat.dotted,
            )
        return registry

    # Names

    def _joined(self, flat: FlatCommand) -> str:
        return "_".join(flat.ident_path)

    def _command_const(self, flat: FlatCommand) -> str:
        return self.naming.variable_name(self._joined(flat)) + "Command"

    def _args_type(self, flat: FlatCommand) -> str:
        return self.naming.type_name(self._joined(flat), "Args")

    def _options_type(self, flat: FlatCommand) -> str:
        return self.naming.type_name(self._joined(flat), "Options")

    @staticmethod
    def _up(flat: FlatCommand) -> str:
        """Relative prefix from a command or handler file back to ``src/``."""
        return "../" * len(flat.ident_path)

    # Config files

    def dependencies(self) -> DependencySet:
        """npm dependencies of the generated project."""
        deps = DependencySet()
        deps.add("boune", self.config.get("boune_version", "^0.2.0"))
        deps.add("@types/bun", self.config.get("bun_types_version", "latest"), dev=True)
        deps.add("typescript", self.config.get("typescript_version", "^5.0.0"), dev=True)
        return deps

    def _render_package_json(self) -> str:
        meta = self.app.meta
        deps = self.dependencies()
        context = {
            "name": meta.name,
            "version": str(meta.version),
            "description": meta.description,
            "author": meta.author,
            "dependencies": deps.runtime(),
            "dev_dependencies": deps.dev(),
        }
        return self.render_template("package.json.j2", context)

    def _render_tsconfig(self) -> str:
        return self.render_template("tsconfig.json.j2", {})

    def _render_gitignore(self) -> str:
        return self.render_template("gitignore.j2", {})

    # Entry, cli and context

    def _render_index(self) -> str:
        f = self.code_file(marker=SHEBANG)
        return f.render("index.ts.j2", {}).build()

    def _render_cli(self) -> str:
        meta = self.app.meta
        f = self.code_file()
        context = {
            "name": meta.name,
            "version": str(meta.version),
            "description": meta.description,
            "commands": [
                {
                    "name": flat.name,
                    "const": self._command_const(flat),
                    "module": "./commands/" + self.naming.file_path(flat.ident_path, ".ts"),
                }
                for flat in self.tree.roots()
            ],
        }
        return f.render("cli.ts.j2", context).build()

    def _render_context(self) -> str:
        f = self.code_file()
        resources = []
        for resource in self.app.resources:
            path = f"context.{resource.name}"
            name = self.check_identifier(self.naming.variable_name(resource.ident), path)
            if isinstance(resource, DatabaseResource):
                resources.append(self._database_entry(f, name, resource))
            elif isinstance(resource, HttpClientResource):
                resources.append(self._http_entry(name, resource))
        context = {
            "resources": resources,
            "has_http": bool(self.app.http_clients),
        }
        return f.render("context.ts.j2", context).build()

    def _database_entry(self, f: CodeFile, name: str, resource: DatabaseResource) -> Dict[str, Any]:
        env = f"process.env[{quote_string(resource.env)}]"
        if resource.kind is DatabaseKind.SQLITE:
            sqlite = resource.sqlite
            if sqlite.read_only:
                open_options = "{ readonly: true }"
            else:
                open_options = f"{{ create: {_bool(sqlite.create_if_missing)} }}"
            pragmas = []
            if sqlite.journal_mode is not None:
                pragmas.append(f"journal_mode = {sqlite.journal_mode.name}")
            if sqlite.synchronous is not None:
                pragmas.append(f"synchronous = {sqlite.synchronous.name}")
            if sqlite.busy_timeout is not None:
                pragmas.append(f"busy_timeout = {sqlite.busy_timeout}")
            if sqlite.foreign_keys is not None:
                pragmas.append(f"foreign_keys = {'ON' if sqlite.foreign_keys else 'OFF'}")
            return {
                "kind": "sqlite",
                "field": name,
                "type": f.use("bun:sqlite", "Database"),
                "source": f"({env} ?? {quote_string(sqlite.path)}).replace(/^sqlite:(\\/\\/)?/, \"\")",
                "open_options": open_options,
                "pragmas": [quote_string(f"PRAGMA {pragma};") for pragma in pragmas],
            }

        pool = resource.pool
        options = [f"url: {self._network_url(env, resource)}"]
        if pool.max_connections is not None:
            options.append(f"max: {pool.max_connections}")
        if pool.idle_timeout is not None:
            options.append(f"idleTimeout: {pool.idle_timeout}")
        if pool.max_lifetime is not None:
            options.append(f"maxLifetime: {pool.max_lifetime}")
        if pool.acquire_timeout is not None:
            options.append(f"connectionTimeout: {pool.acquire_timeout}")
        return {
            "kind": "sql",
            "field": name,
            "type": f.use("bun", "SQL"),
            "options": options,
        }

    @staticmethod
    def _network_url(env: str, resource: DatabaseResource) -> str:
        target = resource.network
        if target is None or not (target.dsn or target.host):
            return f"{env} ?? \"\""
        if target.dsn:
            return f"{env} ?? {quote_string(target.dsn)}"

        scheme = _URL_SCHEMES[resource.kind]
        location = template_literal(target.host)
        if target.port:
            location += f":{target.port}"
        if target.database:
            location += "/" + template_literal(target.database)
        user = template_literal(target.user or "")
        if target.password_env:
            password = f"${{process.env[{quote_string(target.password_env)}] ?? \"\"}}"
            return f"{env} ?? `{scheme}://{user}:{password}@{location}`"
        credentials = f"{user}@" if user else ""
        return f"{env} ?? `{scheme}://{credentials}{location}`"

    @staticmethod
    def _http_entry(name: str, resource: HttpClientResource) -> Dict[str, Any]:
        defaults = []
        if resource.headers or resource.user_agent:
            headers = [f"{quote_string(k)}: {quote_string(v)}" for k, v in resource.headers]
            if resource.user_agent:
                headers.append(f"\"User-Agent\": {quote_string(resource.user_agent)}")
            defaults.append("headers: { " + ", ".join(headers) + " }")
        if resource.timeout is not None:
            defaults.append(f"timeoutMs: {resource.timeout * 1000}")
        return {
            "kind": "http",
            "field": name,
            "type": "HttpClient",
            "base_url": quote_string(resource.base_url) if resource.base_url else "undefined",
            "defaults": "{ " + ", ".join(defaults) + " }" if defaults else "{}",
        }

    # Commands

    def _render_command(self, flat: FlatCommand) -> str:
        f = self.code_file()
        command = flat.command
        children = self.tree.children(flat.dotted)
        up = self._up(flat)
        context = {
            "name": flat.name,
            "description": command.description,
            "const": self._command_const(flat),
            "args_type": self._args_type(flat),
            "options_type": self._options_type(flat),
            "args": [self._schema(item, flat) for item in command.positionals],
            "options": [self._schema(item, flat) for item in command.flags],
            "invocable": flat.is_invocable,
            "has_context": self.app.has_resources,
            "handler_module": up + "handlers/" + self.naming.file_path(flat.ident_path, ".ts"),
            "context_module": up + "context.ts",
            "children": [
                {
                    "name": child.name,
                    "const": self._command_const(child),
                    "module": "./"
                    + self.naming.file_name(flat.ident)
                    + "/"
                    + self.naming.file_name(child.ident)
                    + ".ts",
                }
                for child in children
            ],
        }
        return f.render("command.ts.j2", context).build()

    def _schema(self, item: Input, flat: FlatCommand) -> Dict[str, Any]:
        path = f"{flat.dotted}.{item.name}"
        key = self.check_identifier(self.naming.variable_name(item.ident), path)
        parts = [f"type: {quote_string(BOUNE_TYPES[item.type])}"]
        if item.is_positional and item.required:
            parts.append("required: true")
        if item.short:
            parts.append(f"short: {quote_string(item.short)}")
        if item.has_default:
            parts.append(f"default: {literal(item, path)}")
        if item.description:
            parts.append(f"description: {quote_string(item.description)}")
        if item.choices:
            values = ", ".join(quote_string(choice) for choice in item.choices)
            parts.append(f"choices: [{values}] as const")
        return {"key": key, "schema": "{ " + ", ".join(parts) + " }"}

    # Handlers

    def _render_handler(self, flat: FlatCommand) -> str:
        f = self.code_file(header=False)
        command = flat.command
        up = self._up(flat)
        context = {
            "description": command.description,
            "has_context": self.app.has_resources,
            "has_args": bool(command.positionals),
            "has_options": bool(command.flags),
            "args_type": self._args_type(flat),
            "options_type": self._options_type(flat),
            "command_module": up + "commands/" + self.naming.file_path(flat.ident_path, ".ts"),
            "context_module": up + "context.ts",
            "stub": self.stub_marker(flat),
        }
        return f.render("handler.ts.j2", context).build()

    # Imports

    def format_imports(self, imports: ImportCollector) -> str:
        """Format ES module imports: packages first, then relative modules."""
        packages: List[str] = []
        relative: List[str] = []
        for module in imports.modules():
            group = relative if module.module.startswith(".") else packages
            source = quote_string(module.module)
            if module.whole:
                group.append(f"import {source};")
            if module.is_type_only:
                group.append(f"import type {{ {', '.join(module.type_symbols)} }} from {source};")
            elif module.symbols:
                names = module.symbols + [f"type {name}" for name in module.type_symbols]
                group.append(f"import {{ {', '.join(names)} }} from {source};")
        return "\n\n".join("\n".join(group) for group in (packages, relative) if group)


def _bool(value: bool) -> str:
    return "true" if value else "false"
