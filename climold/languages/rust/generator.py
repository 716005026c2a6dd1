"""
Rust code generator implementation.

Generates a Cargo project using clap (derive) for argument parsing and eyre
for errors. Applications with resources get a tokio runtime, sqlx pools and
reqwest clients in ``src/context.rs``.
"""

from functools import partial
from pathlib import Path
from typing import Any, Dict, List, Tuple

from ...codegen.builder import CodeFile
from ...codegen.errors import RenderError
from ...codegen.files import FileRegistry
from ...codegen.generator import CodeGenerator
from ...codegen.imports import DependencySet, ImportCollector
from ...codegen.naming import RUST_NAMING, NamingConvention
from ...codegen.templates import quote_string
from ...codegen.tree import FlatCommand
from ...core.files import FileCategory, Overwrite
from ...ir.app import (
    DatabaseKind,
    DatabaseResource,
    HttpClientResource,
    Input,
    InputType,
)
from .types import SCALAR_TYPES, RustField, choice_variant, default_value, field_name

SUBCOMMAND_FIELD = "command"

_POOL_TYPES = {
    DatabaseKind.SQLITE: ("sqlx::sqlite", "SqlitePool", "SqlitePoolOptions"),
    DatabaseKind.POSTGRES: ("sqlx::postgres", "PgPool", "PgPoolOptions"),
    DatabaseKind.MYSQL: ("sqlx::mysql", "MySqlPool", "MySqlPoolOptions"),
}

_URL_SCHEMES = {DatabaseKind.POSTGRES: "postgres", DatabaseKind.MYSQL: "mysql"}


class RustGenerator(CodeGenerator):
    """Code generator for Rust CLIs built on clap."""

    @property
    def language_name(self) -> str:
        return "rust"

    @property
    def file_extension(self) -> str:
        return ".rs"

    @property
    def naming(self) -> NamingConvention:
        return RUST_NAMING

    @property
    def managed_dirs(self) -> Tuple[str, ...]:
        return ("src/generated", "src/handlers")

    @property
    def handlers_dir(self) -> str:
        return "src/handlers"

    @property
    def entry_file(self) -> str:
        return "src/main.rs"

    def get_template_directory(self) -> Path:
        """Return the Rust templates directory."""
        return Path(__file__).parent / "templates"

    def stub_marker(self, command: FlatCommand) -> str:
        return f'todo!("implement {command.dotted} command")'

    def stub_marker_pattern(self) -> str:
        return 'todo!("implement '

    # File tree

    def build_registry(self) -> FileRegistry:
        registry = FileRegistry()
        registry.add("Cargo.toml", FileCategory.CONFIG, self._render_cargo_toml)
        registry.add(
            ".gitignore",
            FileCategory.CONFIG,
            self._render_gitignore,
            overwrite=Overwrite.IF_MISSING,
        )
        registry.add(self.entry_file, FileCategory.INFRASTRUCTURE, self._render_main)
        if self.app.has_resources:
            registry.add("src/context.rs", FileCategory.INFRASTRUCTURE, self._render_context)

        registry.add("src/generated/mod.rs", FileCategory.GENERATED, self._render_generated_mod)
        registry.add("src/generated/cli.rs", FileCategory.GENERATED, self._render_cli)
        registry.add(
            "src/generated/commands/mod.rs",
            FileCategory.GENERATED,
            self._render_commands_mod,
        )
        for flat in self.tree:
            registry.add(
                "src/generated/commands/" + self.naming.file_path(flat.ident_path, ".rs"),
                FileCategory.GENERATED,
                partial(self._render_command, flat),
                command=flat.dotted,
            )

        registry.add("src/handlers/mod.rs", FileCategory.GENERATED, self._render_handlers_mod)
        for flat in self.tree.invocable():
            registry.add(
                "src/handlers/" + self.naming.file_path(flat.ident_path, ".rs"),
                FileCategory.HANDLER,
                partial(self._render_handler, flat),
                command=flat.dotted,
            )
        return registry

    # Names

    def _module(self, flat: FlatCommand) -> str:
        return self.check_identifier(self.naming.module_name(flat.ident), flat.dotted)

    def _module_path(self, root: str, flat: FlatCommand) -> str:
        modules = [self.naming.module_name(ident) for ident in flat.ident_path]
        return "::".join([root] + modules)

    def _args_type(self, flat: FlatCommand) -> str:
        return self.naming.type_name("_".join(flat.ident_path), "Args")

    def _subcommand_type(self, flat: FlatCommand) -> str:
        return self.naming.type_name("_".join(flat.ident_path), "Command")

    def _child_entries(self, children: List[FlatCommand]) -> List[Dict[str, Any]]:
        return [
            {
                "name": child.name,
                "module": self._module(child),
                "variant": self.naming.type_name(child.ident),
                "args_type": self._args_type(child),
                "about": child.command.description,
            }
            for child in children
        ]

    def _base_context(self) -> Dict[str, Any]:
        return {
            "has_context": self.app.has_resources,
            "is_async": self.app.is_async,
        }

    # Config files

    def dependencies(self) -> DependencySet:
        """Cargo dependencies implied by the application."""
        config = self.config
        deps = DependencySet()
        deps.add("clap", config.get("clap_version", "4"), ("derive",))
        deps.add("eyre", config.get("eyre_version", "0.6"))
        if self.app.is_async:
            deps.add("tokio", config.get("tokio_version", "1"), ("macros", "rt-multi-thread"))
        for database in self.app.databases:
            deps.add(
                "sqlx",
                config.get("sqlx_version", "0.8"),
                ("runtime-tokio", database.kind.value),
            )
        if self.app.http_clients:
            deps.add("reqwest", config.get("reqwest_version", "0.12"))
        return deps

    def _render_cargo_toml(self) -> str:
        meta = self.app.meta
        context = {
            "header": self.config.generated_header if self.config.add_comments else None,
            "name": meta.name,
            "version": str(meta.version),
            "edition": self.config.get("edition", "2024"),
            "description": meta.description,
            "author": meta.author,
            "dependencies": self.dependencies().runtime(),
        }
        return self.render_template("Cargo.toml.j2", context)

    def _render_gitignore(self) -> str:
        return self.render_template("gitignore.j2", {})

    # Entry and context

    def _render_main(self) -> str:
        f = self.code_file()
        context = self._base_context()
        context["has_commands"] = len(self.tree) > 0
        return f.render("main.rs.j2", context).build()

    def _render_context(self) -> str:
        f = self.code_file()
        resources = []
        for resource in self.app.resources:
            path = f"context.{resource.name}"
            name = self.check_identifier(self.naming.variable_name(resource.ident), path)
            if isinstance(resource, DatabaseResource):
                module, pool_type, options_type = _POOL_TYPES[resource.kind]
                resources.append(
                    {
                        "kind": "database",
                        "field": name,
                        "type": f.use(module, pool_type),
                        "init": self._database_init(f, resource, module, options_type),
                    }
                )
            elif isinstance(resource, HttpClientResource):
                resources.append(
                    {
                        "kind": "http",
                        "field": name,
                        "type": "HttpClient",
                        "init": self._http_init(f, resource),
                    }
                )
        context = {
            "resources": resources,
            "has_http": bool(self.app.http_clients),
            "has_sqlite": any(database.kind is DatabaseKind.SQLITE for database in self.app.databases),
        }
        return f.render("context.rs.j2", context).build()

    def _database_init(
        self, f: CodeFile, resource: DatabaseResource, module: str, options_type: str
    ) -> Dict[str, Any]:
        pool = resource.pool
        pool_calls = []
        if pool.max_connections is not None:
            pool_calls.append(f".max_connections({pool.max_connections})")
        if pool.min_connections is not None:
            pool_calls.append(f".min_connections({pool.min_connections})")
        for option in ("acquire_timeout", "idle_timeout", "max_lifetime"):
            seconds = getattr(pool, option)
            if seconds is not None:
                duration = f.use("std::time", "Duration")
                pool_calls.append(f".{option}({duration}::from_secs({seconds}))")

        init = {
            "env": quote_string(resource.env),
            "options_type": f.use(module, options_type),
            "pool_calls": pool_calls,
            "sqlite": None,
            "url": None,
        }

        if resource.kind is DatabaseKind.SQLITE:
            sqlite = resource.sqlite
            calls = [
                f".create_if_missing({_bool(sqlite.create_if_missing)})",
                f".read_only({_bool(sqlite.read_only)})",
            ]
            if sqlite.journal_mode is not None:
                mode = f.use(module, "SqliteJournalMode")
                calls.append(f".journal_mode({mode}::{sqlite.journal_mode.name.capitalize()})")
            if sqlite.synchronous is not None:
                sync = f.use(module, "SqliteSynchronous")
                calls.append(f".synchronous({sync}::{sqlite.synchronous.name.capitalize()})")
            if sqlite.busy_timeout is not None:
                duration = f.use("std::time", "Duration")
                calls.append(f".busy_timeout({duration}::from_millis({sqlite.busy_timeout}))")
            if sqlite.foreign_keys is not None:
                calls.append(f".foreign_keys({_bool(sqlite.foreign_keys)})")
            init["sqlite"] = {
                "connect_options": f.use(module, "SqliteConnectOptions"),
                "path": quote_string(sqlite.path),
                "calls": calls,
            }
        else:
            init["url"] = self._network_url(resource)
        return init

    @staticmethod
    def _network_url(resource: DatabaseResource) -> Dict[str, Any]:
        target = resource.network
        if target is None:
            return {"fallback": None, "password_env": None}
        if target.dsn:
            return {"fallback": quote_string(target.dsn), "password_env": None}
        if not target.host:
            return {"fallback": None, "password_env": None}

        scheme = _URL_SCHEMES[resource.kind]
        user = target.user or ""
        location = target.host + (f":{target.port}" if target.port else "")
        if target.database:
            location += f"/{target.database}"
        if target.password_env:
            # Format string; the password is read at startup
            url = f"{scheme}://{_escape_format(user)}:{{}}@{_escape_format(location)}"
            return {
                "fallback": quote_string(url),
                "password_env": quote_string(target.password_env),
            }
        credentials = f"{user}@" if user else ""
        url = f"{scheme}://{credentials}{location}"
        return {"fallback": quote_string(url), "password_env": None}

    def _http_init(self, f: CodeFile, resource: HttpClientResource) -> Dict[str, Any]:
        calls = []
        if resource.timeout is not None:
            duration = f.use("std::time", "Duration")
            calls.append(f".timeout({duration}::from_secs({resource.timeout}))")
        if resource.user_agent:
            calls.append(f".user_agent({quote_string(resource.user_agent)})")
        headers = []
        if resource.headers:
            f.use("reqwest::header", "HeaderMap")
            f.use("reqwest::header", "HeaderName")
            f.use("reqwest::header", "HeaderValue")
            headers = [(quote_string(k), quote_string(v)) for k, v in resource.headers]
            calls.append(".default_headers(headers)")
        return {
            "base_url": quote_string(resource.base_url) if resource.base_url else None,
            "calls": calls,
            "headers": headers,
        }

    # Generated modules

    def _render_generated_mod(self) -> str:
        f = self.code_file()
        return f.render("generated_mod.rs.j2", {}).build()

    def _render_cli(self) -> str:
        meta = self.app.meta
        f = self.code_file()
        context = {
            "name": meta.name,
            "version": str(meta.version),
            "about": meta.description,
            "author": meta.author,
            "has_commands": len(self.tree) > 0,
        }
        return f.render("cli.rs.j2", context).build()

    def _render_commands_mod(self) -> str:
        f = self.code_file()
        context = self._base_context()
        context["children"] = self._child_entries(self.tree.roots())
        return f.render("commands_mod.rs.j2", context).build()

    def _render_command(self, flat: FlatCommand) -> str:
        f = self.code_file()
        children = self.tree.children(flat.dotted)
        fields, choices = self._fields(f, flat)
        if children and any(field.name == SUBCOMMAND_FIELD for field in fields):
            raise RenderError(
                f"input '{SUBCOMMAND_FIELD}' clashes with the subcommand field",
                flat.dotted,
            )

        context = self._base_context()
        context.update(
            {
                "about": flat.command.description,
                "args_type": self._args_type(flat),
                "subcommand_type": self._subcommand_type(flat),
                "subcommand_field": SUBCOMMAND_FIELD,
                "fields": fields,
                "choices": choices,
                "children": self._child_entries(children),
                "invocable": flat.is_invocable,
                "handler_path": self._module_path("crate::handlers", flat),
            }
        )
        return f.render("command.rs.j2", context).build()

    def _fields(self, f: CodeFile, flat: FlatCommand) -> Tuple[List[RustField], List[Dict[str, Any]]]:
        fields = []
        choices = []
        for item in flat.command.inputs:
            path = f"{flat.dotted}.{item.name}"
            if item.type is InputType.CHOICE:
                type_name = self.naming.type_name(
                    "_".join(flat.ident_path + (item.ident,)), "Choice"
                )
                choices.append({"type_name": type_name, "variants": self._variants(item, path)})
            elif item.type is InputType.PATH:
                type_name = f.use("std::path", "PathBuf")
            else:
                type_name = SCALAR_TYPES[item.type]

            optional = not item.required and not item.has_default and item.type is not InputType.BOOL
            fields.append(
                RustField(
                    name=field_name(item.ident, path),
                    type=f"Option<{type_name}>" if optional else type_name,
                    attr=self._arg_attr(item, path),
                    doc=item.description,
                )
            )
        return fields, choices

    @staticmethod
    def _variants(item: Input, path: str) -> List[Dict[str, str]]:
        variants = []
        seen: Dict[str, str] = {}
        for value in item.choices:
            variant = choice_variant(value, path)
            if variant in seen:
                raise RenderError(
                    f"choices '{seen[variant]}' and '{value}' both map to variant {variant}",
                    path,
                )
            seen[variant] = value
            variants.append({"name": variant, "value": quote_string(value)})
        return variants

    @staticmethod
    def _arg_attr(item: Input, path: str):
        parts = []
        if item.is_flag:
            parts.append("long")
            if item.short:
                parts.append(f"short = '{item.short}'")
        if item.type is InputType.CHOICE:
            parts.append("value_enum")
        if item.type is InputType.BOOL:
            # A flag defaulting to true, or a positional bool, takes an explicit value
            if item.is_positional or item.default is True:
                parts.append("action = clap::ArgAction::Set")
            if item.default is True:
                parts.append('default_value = "true"')
        elif item.has_default:
            parts.append(f"default_value = {quote_string(default_value(item, path))}")
        if not parts:
            return None
        return "arg(" + ", ".join(parts) + ")"

    # Handlers

    def _render_handlers_mod(self) -> str:
        f = self.code_file()
        return f.render("handlers_mod.rs.j2", {"modules": self._handler_tree(self.tree.roots())}).build()

    def _handler_tree(self, nodes: List[FlatCommand]) -> List[Dict[str, Any]]:
        entries = []
        for flat in nodes:
            children = self.tree.children(flat.dotted)
            include = None
            if children and flat.is_invocable:
                # Relative to src/handlers/mod.rs
                include = self.naming.file_path(flat.ident_path, ".rs")
            entries.append(
                {
                    "module": self._module(flat),
                    "include": include,
                    "children": self._handler_tree(children),
                }
            )
        return entries

    def _render_handler(self, flat: FlatCommand) -> str:
        f = self.code_file(header=False)
        context = self._base_context()
        context.update(
            {
                "about": flat.command.description,
                "args_module": self._module_path("crate::generated::commands", flat),
                "args_type": self._args_type(flat),
                "stub": self.stub_marker(flat),
            }
        )
        return f.render("handler.rs.j2", context).build()

    # Imports

    def format_imports(self, imports: ImportCollector) -> str:
        """Format ``use`` declarations grouped as std, external crates, then crate-local."""
        groups: List[List[str]] = [[], [], []]
        for module in imports.modules():
            root = module.module.split("::")[0]
            if root in ("std", "core", "alloc"):
                group = groups[0]
            elif root in ("crate", "super", "self"):
                group = groups[2]
            else:
                group = groups[1]

            if module.whole:
                group.append(f"use {module.module};")
            names = sorted(set(module.symbols) | set(module.type_symbols))
            if len(names) == 1:
                group.append(f"use {module.module}::{names[0]};")
            elif names:
                group.append(f"use {module.module}::{{{', '.join(names)}}};")

        return "\n\n".join("\n".join(group) for group in groups if group)


def _bool(value: bool) -> str:
    return "true" if value else "false"


def _escape_format(text: str) -> str:
    """Escape braces for use inside a Rust ``format!`` string."""
    return text.replace("{", "{{").replace("}", "}}")
