"""
Python code generator implementation.

Generates a src-layout Python package using click. Each command gets a
frozen dataclass holding its parsed inputs; handlers receive that dataclass
(and the shared ``Context`` when the application declares resources).
"""

import re
import sys
from functools import partial
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ...codegen.builder import CodeFile
from ...codegen.files import FileRegistry
from ...codegen.generator import CodeGenerator
from ...codegen.imports import DependencySet, ImportCollector
from ...codegen.naming import PYTHON_NAMING, NamingConvention
from ...codegen.templates import quote_string
from ...codegen.tree import FlatCommand
from ...core.files import FileCategory, Overwrite
from ...ir.app import DatabaseKind, DatabaseResource, HttpClientResource, Input, InputType
from .types import annotation, click_type, literal

SHEBANG = "#!/usr/bin/env python3"

# Names bound inside generated click callbacks. Inputs become snake_case
# parameters, which never start with an underscore, so these cannot collide.
CONTEXT_PARAM = "_ctx"
CLICK_CONTEXT_PARAM = "_click_ctx"
HANDLER_ALIAS = "_run_handler"

_AUTHOR = re.compile(r"^\s*(?P<name>[^<]*?)\s*(?:<(?P<email>[^>]+)>)?\s*$")

_CONNECTION_TYPES = {
    DatabaseKind.SQLITE: ("sqlite3", "Connection"),
    DatabaseKind.POSTGRES: ("psycopg", "Connection"),
    DatabaseKind.MYSQL: ("pymysql.connections", "Connection"),
}


class PythonGenerator(CodeGenerator):
    """Code generator for Python CLIs built on click."""

    @property
    def language_name(self) -> str:
        return "python"

    @property
    def file_extension(self) -> str:
        return ".py"

    @property
    def naming(self) -> NamingConvention:
        return PYTHON_NAMING

    @property
    def comment_prefix(self) -> str:
        return "#"

    @property
    def package(self) -> str:
        """Import name of the generated package."""
        name = self.naming.module_name(self.app.meta.name)
        return self.check_identifier(name, "cli.name")

    @property
    def package_dir(self) -> str:
        return f"src/{self.package}"

    @property
    def managed_dirs(self) -> Tuple[str, ...]:
        return (f"{self.package_dir}/commands", f"{self.package_dir}/handlers")

    @property
    def handlers_dir(self) -> str:
        return f"{self.package_dir}/handlers"

    @property
    def entry_file(self) -> str:
        return f"{self.package_dir}/__main__.py"

    @property
    def entry_marker(self) -> Optional[str]:
        return SHEBANG

    def get_template_directory(self) -> Path:
        """Return the Python templates directory."""
        return Path(__file__).parent / "templates"

    def stub_marker(self, command: FlatCommand) -> str:
        return f'raise NotImplementedError("implement {command.dotted} command")'

    def stub_marker_pattern(self) -> str:
        return 'raise NotImplementedError("implement '

    def is_unmodified_stub(self, content: str) -> bool:
        """Stubs, and the docstring-only package markers of handler groups."""
        if super().is_unmodified_stub(content):
            return True
        lines = [line for line in content.splitlines() if line.strip() and not line.startswith("#")]
        return len(lines) == 1 and lines[0].startswith('"""') and lines[0].endswith('"""')

    def shadowed_paths(self, paths: List[str]) -> List[str]:
        """Package ``__init__.py`` files left behind when a parent command became a leaf.

        Python imports a package in preference to a module of the same name.
        """
        expected = set(paths)
        shadows = []
        for path in paths:
            if not path.endswith(".py") or path.endswith("/__init__.py"):
                continue
            if not any(path.startswith(d + "/") for d in self.managed_dirs):
                continue
            package_init = path[: -len(".py")] + "/__init__.py"
            if package_init not in expected:
                shadows.append(package_init)
        return shadows

    # File tree

    def build_registry(self) -> FileRegistry:
        base = self.package_dir
        registry = FileRegistry()
        registry.add("pyproject.toml", FileCategory.CONFIG, self._render_pyproject)
        registry.add(
            ".gitignore",
            FileCategory.CONFIG,
            self._render_gitignore,
            overwrite=Overwrite.IF_MISSING,
        )
        registry.add(self.entry_file, FileCategory.INFRASTRUCTURE, self._render_main)
        registry.add(f"{base}/__init__.py", FileCategory.INFRASTRUCTURE, self._render_package_init)
        if self.app.has_resources:
            registry.add(f"{base}/context.py", FileCategory.INFRASTRUCTURE, self._render_context)
        registry.add(f"{base}/cli.py", FileCategory.GENERATED, self._render_cli)

        registry.add(
            f"{base}/commands/__init__.py",
            FileCategory.GENERATED,
            partial(self._render_package_marker, "Generated click commands."),
        )
        for flat in self.tree:
            registry.add(
                f"{base}/commands/{self._module_file(flat)}",
                FileCategory.GENERATED,
                partial(self._render_command, flat),
                command=flat.dotted,
            )

        registry.add(
            f"{base}/handlers/__init__.py",
            FileCategory.GENERATED,
            partial(self._render_package_marker, "Command handlers."),
        )
        for flat in self.tree:
            path = f"{base}/handlers/{self._module_file(flat)}"
            if flat.is_invocable:
                registry.add(
                    path,
                    FileCategory.HANDLER,
                    partial(self._render_handler, flat),
                    command=flat.dotted,
                )
            else:
                registry.add(
                    path,
                    FileCategory.GENERATED,
                    partial(self._render_package_marker, f"Handlers of the {flat.dotted} commands."),
                    command=flat.dotted,
                )
        return registry

    # Names

    def _is_package(self, flat: FlatCommand) -> bool:
        return not flat.is_leaf

    def _module_file(self, flat: FlatCommand) -> str:
        if self._is_package(flat):
            return self.naming.file_path(flat.ident_path) + "/__init__.py"
        return self.naming.file_path(flat.ident_path, ".py")

    def _module(self, flat: FlatCommand) -> str:
        return self.check_identifier(self.naming.module_name(flat.ident), flat.dotted)

    def _to_package_root(self, flat: FlatCommand) -> str:
        """Relative import prefix from a command or handler module to the package root."""
        return "." * (flat.depth + 2 + (1 if self._is_package(flat) else 0))

    def _dotted_module(self, flat: FlatCommand) -> str:
        return ".".join(self._module(node) for node in self._ancestors(flat))

    def _ancestors(self, flat: FlatCommand) -> List[FlatCommand]:
        chain = [flat]
        while chain[0].parent is not None:
            chain.insert(0, self.tree.get(chain[0].parent))
        return chain

    def _args_type(self, flat: FlatCommand) -> str:
        return self.naming.type_name("_".join(flat.ident_path), "Args")

    # Config files

    def dependencies(self) -> DependencySet:
        """Distribution requirements of the generated package."""
        config = self.config
        deps = DependencySet()
        deps.add("click", config.get("click_version", ">=8.1"))
        kinds = {database.kind for database in self.app.databases}
        if DatabaseKind.POSTGRES in kinds:
            deps.add("psycopg", config.get("psycopg_version", ">=3.1"), ("binary",))
        if DatabaseKind.MYSQL in kinds:
            deps.add("PyMySQL", config.get("pymysql_version", ">=1.1"))
        if self.app.http_clients:
            deps.add("httpx", config.get("httpx_version", ">=0.27"))
        return deps

    def _render_pyproject(self) -> str:
        meta = self.app.meta
        requirements = []
        for dep in self.dependencies().runtime():
            extras = f"[{','.join(dep.features)}]" if dep.features else ""
            requirements.append(f"{dep.name}{extras}{dep.version}")

        author = None
        if meta.author:
            match = _AUTHOR.match(meta.author)
            if match:
                author = {"name": match.group("name"), "email": match.group("email")}
            else:
                author = {"name": meta.author, "email": None}

        context = {
            "header": self.config.generated_header if self.config.add_comments else None,
            "name": meta.name,
            "package": self.package,
            "version": str(meta.version),
            "description": meta.description,
            "author": author,
            "python_requires": self.config.get("python_requires", ">=3.10"),
            "requirements": requirements,
        }
        return self.render_template("pyproject.toml.j2", context)

    def _render_gitignore(self) -> str:
        return self.render_template("gitignore.j2", {})

    # Package files

    def _render_main(self) -> str:
        f = self.code_file(marker=SHEBANG)
        return f.render("main.py.j2", {"package": self.package}).build()

    def _render_package_init(self) -> str:
        f = self.code_file()
        meta = self.app.meta
        context = {"description": _docstring(meta.description or meta.name), "version": str(meta.version)}
        return f.render("package_init.py.j2", context).build()

    def _render_package_marker(self, docstring: str) -> str:
        f = self.code_file()
        return f.add(f'"""{docstring}"""').build()

    def _render_cli(self) -> str:
        meta = self.app.meta
        f = self.code_file()
        context = {
            "name": meta.name,
            "version": str(meta.version),
            "description": meta.description,
            "has_context": self.app.has_resources,
            "commands": [
                {"module": ".commands." + self._module(flat), "alias": f"{self._module(flat)}_command"}
                for flat in self.tree.roots()
            ],
        }
        return f.render("cli.py.j2", context).build()

    def _render_context(self) -> str:
        f = self.code_file()
        fields = []
        setup = []
        for resource in self.app.resources:
            path = f"context.{resource.name}"
            name = self.check_identifier(self.naming.variable_name(resource.ident), path)
            if isinstance(resource, DatabaseResource):
                module, type_name = _CONNECTION_TYPES[resource.kind]
                fields.append({"name": name, "type": f"{f.use(module)}.{type_name}"})
                setup.append(self._database_setup(f, name, resource))
            elif isinstance(resource, HttpClientResource):
                fields.append({"name": name, "type": f"{f.use('httpx')}.Client"})
                setup.append(self._http_setup(name, resource))
        f.use("dataclasses", "dataclass")
        context = {
            "fields": fields,
            "setup": setup,
            "needs_mysql_url": any(
                database.kind is DatabaseKind.MYSQL for database in self.app.databases
            ),
        }
        if context["needs_mysql_url"]:
            f.use("urllib.parse", "unquote")
            f.use("urllib.parse", "urlsplit")
        return f.render("context.py.j2", context).build()

    def _database_setup(self, f: CodeFile, name: str, resource: DatabaseResource) -> List[str]:
        os_module = f.use("os")
        env = quote_string(resource.env)
        if resource.kind is DatabaseKind.SQLITE:
            sqlite = resource.sqlite
            re_module = f.use("re")
            lines = [
                f'{name}_path = {re_module}.sub(r"^sqlite:(//)?", "", '
                f"{os_module}.environ.get({env}, {quote_string(sqlite.path)}))"
            ]
            if sqlite.read_only or not sqlite.create_if_missing:
                mode = "ro" if sqlite.read_only else "rw"
                lines.append(
                    f'{name} = sqlite3.connect(f"file:{{{name}_path}}?mode={mode}", uri=True)'
                )
            else:
                lines.append(f"{name} = sqlite3.connect({name}_path)")
            if sqlite.journal_mode is not None:
                lines.append(f'{name}.execute("PRAGMA journal_mode = {sqlite.journal_mode.name}")')
            if sqlite.synchronous is not None:
                lines.append(f'{name}.execute("PRAGMA synchronous = {sqlite.synchronous.name}")')
            if sqlite.busy_timeout is not None:
                lines.append(f'{name}.execute("PRAGMA busy_timeout = {sqlite.busy_timeout}")')
            if sqlite.foreign_keys is not None:
                state = "ON" if sqlite.foreign_keys else "OFF"
                lines.append(f'{name}.execute("PRAGMA foreign_keys = {state}")')
            return lines

        target = resource.network
        if resource.kind is DatabaseKind.POSTGRES:
            connect = "psycopg.connect"
            from_url = f"{connect}({name}_url)"
            keywords = {"database": "dbname"}
        else:
            connect = f"{f.use('pymysql')}.connect"
            from_url = f"{connect}(**_mysql_kwargs({name}_url))"
            keywords = {"database": "database"}

        fallback = None
        if target is not None and target.dsn:
            if resource.kind is DatabaseKind.POSTGRES:
                fallback = f"{connect}({quote_string(target.dsn)})"
            else:
                fallback = f"{connect}(**_mysql_kwargs({quote_string(target.dsn)}))"
        elif target is not None and target.host:
            kwargs = [f"host={quote_string(target.host)}"]
            if target.port:
                kwargs.append(f"port={target.port}")
            if target.database:
                kwargs.append(f"{keywords['database']}={quote_string(target.database)}")
            if target.user:
                kwargs.append(f"user={quote_string(target.user)}")
            if target.password_env:
                kwargs.append(f"password={os_module}.environ.get({quote_string(target.password_env)})")
            fallback = f"{connect}({', '.join(kwargs)})"

        if fallback is None:
            return [f"{name}_url = {os_module}.environ[{env}]", f"{name} = {from_url}"]
        return [
            f"{name}_url = {os_module}.environ.get({env})",
            f"{name} = {from_url} if {name}_url else {fallback}",
        ]

    @staticmethod
    def _http_setup(name: str, resource: HttpClientResource) -> List[str]:
        kwargs = []
        if resource.base_url:
            kwargs.append(f"base_url={quote_string(resource.base_url)}")
        if resource.timeout is not None:
            kwargs.append(f"timeout={resource.timeout}")
        headers = [f"{quote_string(k)}: {quote_string(v)}" for k, v in resource.headers]
        if resource.user_agent:
            headers.append(f'"User-Agent": {quote_string(resource.user_agent)}')
        if headers:
            kwargs.append("headers={" + ", ".join(headers) + "}")
        return [f"{name} = httpx.Client({', '.join(kwargs)})"]

    # Commands

    def _render_command(self, flat: FlatCommand) -> str:
        f = self.code_file()
        command = flat.command
        children = self.tree.children(flat.dotted)
        root = self._to_package_root(flat)
        params = [self._param(item, flat, f) for item in command.inputs]

        context = {
            "name": flat.name,
            "description": command.description,
            "args_type": self._args_type(flat),
            "params": params,
            "call_args": ", ".join(f"{p['name']}={p['name']}" for p in params),
            "is_group": bool(children),
            "invocable": flat.is_invocable,
            "has_context": self.app.has_resources,
            "context_param": CONTEXT_PARAM,
            "click_ctx": CLICK_CONTEXT_PARAM,
            "handler": HANDLER_ALIAS,
            "handler_module": f"{root}handlers.{self._dotted_module(flat)}",
            "context_module": f"{root}context",
            "children": [
                {"module": "." + self._module(child), "alias": f"{self._module(child)}_command"}
                for child in children
            ],
        }
        return f.render("command.py.j2", context).build()

    def _param(self, item: Input, flat: FlatCommand, f: CodeFile) -> Dict[str, Any]:
        path = f"{flat.dotted}.{item.name}"
        name = self.check_identifier(self.naming.variable_name(item.ident), path)
        click = f.use("click")

        if item.is_positional:
            kwargs = [f"type={click_type(item, f)}"]
            if not item.required:
                kwargs.append("required=False")
            if item.has_default:
                kwargs.append(f"default={literal(item.default)}")
            decorator = f"{click}.argument({quote_string(name)}, {', '.join(kwargs)})"
        else:
            flag = "--" + self.naming.cli_name(item.ident)
            decls = []
            kwargs = []
            if item.type is InputType.BOOL and item.default is True:
                decls.append(quote_string(f"{flag}/--no-{self.naming.cli_name(item.ident)}"))
                kwargs.append("default=True")
            else:
                decls.append(quote_string(flag))
            if item.short:
                decls.append(quote_string("-" + item.short))
            decls.append(quote_string(name))
            if item.type is InputType.BOOL:
                if item.default is not True:
                    kwargs.append("is_flag=True")
                    kwargs.append("default=False")
            else:
                kwargs.append(f"type={click_type(item, f)}")
                if item.has_default:
                    kwargs.append(f"default={literal(item.default)}")
                    kwargs.append("show_default=True")
            if item.description:
                kwargs.append(f"help={quote_string(item.description)}")
            decorator = f"{click}.option({', '.join(decls + kwargs)})"

        field_default = None
        if item.has_default:
            field_default = literal(item.default)
            if item.type is InputType.PATH:
                field_default = f"{f.use('pathlib', 'Path')}({field_default})"
        elif item.type is InputType.BOOL:
            field_default = "False"
        elif not item.required:
            field_default = "None"

        return {
            "name": name,
            "annotation": annotation(item, f),
            "decorator": decorator,
            "default": field_default,
        }

    # Handlers

    def _render_handler(self, flat: FlatCommand) -> str:
        f = self.code_file(header=False)
        root = self._to_package_root(flat)
        context = {
            "description": _docstring(flat.command.description or f"Run the {flat.dotted} command."),
            "has_context": self.app.has_resources,
            "args_type": self._args_type(flat),
            "command_module": f"{root}commands.{self._dotted_module(flat)}",
            "context_module": f"{root}context",
            "stub": self.stub_marker(flat),
        }
        return f.render("handler.py.j2", context).build()

    # Imports

    def format_imports(self, imports: ImportCollector) -> str:
        """Format imports in isort sections, with type-only imports under TYPE_CHECKING."""
        future: List[str] = []
        stdlib: List[Tuple[str, str]] = []
        third_party: List[Tuple[str, str]] = []
        local: List[Tuple[str, str]] = []
        type_only: List[str] = []

        if any(module.is_type_only for module in imports.modules()):
            guarded = ImportCollector()
            guarded.merge(imports)
            guarded.add("typing", "TYPE_CHECKING")
            imports = guarded

        for module in imports.modules():
            name = module.module
            if name.startswith("."):
                section = local
            elif name.split(".")[0] in sys.stdlib_module_names:
                section = stdlib
            else:
                section = third_party

            if module.whole:
                section.append((name, f"import {name}"))
            if module.symbols:
                line = f"from {name} import {', '.join(sorted(module.symbols + module.type_symbols))}"
                if name == "__future__":
                    future.append(line)
                else:
                    section.append((name, line))
            if module.is_type_only:
                type_only.append(f"from {name} import {', '.join(module.type_symbols)}")

        blocks = [future] + [
            [line for _, line in sorted(section, key=lambda entry: entry[0].lstrip("."))]
            for section in (stdlib, third_party, local)
        ]
        text = "\n\n".join("\n".join(block) for block in blocks if block)
        if type_only:
            guarded = "\n".join("    " + line for line in type_only)
            text = (text + "\n\n" if text else "") + f"if TYPE_CHECKING:\n{guarded}"
        return text


def _docstring(text: str) -> str:
    """Make ``text`` safe inside a triple-quoted docstring."""
    text = text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    return text + " " if text.endswith('"') else text
