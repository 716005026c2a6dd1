"""Tests for import collection, dependency sets and body-first file assembly."""

from climold.codegen.builder import CodeFile
from climold.codegen.imports import DependencySet, ImportCollector
from climold.codegen.templates import TemplateEngine, quote_string


def _format(imports: ImportCollector) -> str:
    lines = []
    for module in imports.modules():
        if module.whole:
            lines.append(f"import {module.module}")
        if module.symbols:
            lines.append(f"from {module.module} import {', '.join(module.symbols)}")
    return "\n".join(lines)


class TestImportCollector:
    """Test recording of modules and symbols."""

    def test_first_use_order_and_sorted_symbols(self):
        imports = ImportCollector()
        imports.add("b", "z")
        imports.add("a")
        imports.add("b", "y")
        imports.add("b", "z")
        modules = imports.modules()
        assert [m.module for m in modules] == ["b", "a"]
        assert modules[0].symbols == ["y", "z"]
        assert modules[1].whole

    def test_type_symbol_promoted_by_runtime_use(self):
        imports = ImportCollector()
        imports.add_type("m", "T")
        assert imports.modules()[0].is_type_only
        imports.add("m", "T")
        module = imports.modules()[0]
        assert module.symbols == ["T"]
        assert module.type_symbols == []

    def test_merge(self):
        first, second = ImportCollector(), ImportCollector()
        first.add("a", "x")
        second.add_type("b", "T")
        first.merge(second)
        assert "b" in first
        assert first.modules()[1].type_symbols == ["T"]


class TestDependencySet:
    """Test dependency de-duplication."""

    def test_features_merge(self):
        deps = DependencySet()
        deps.add("sqlx", "0.8", ("runtime-tokio", "sqlite"))
        deps.add("sqlx", "0.9", ("runtime-tokio", "postgres"))
        (sqlx,) = list(deps)
        assert sqlx.version == "0.8"
        assert sqlx.features == ("runtime-tokio", "sqlite", "postgres")

    def test_runtime_and_dev(self):
        deps = DependencySet()
        deps.add("boune", "^0.2.0")
        deps.add("typescript", "^5.0.0", dev=True)
        assert [d.name for d in deps.runtime()] == ["boune"]
        assert [d.name for d in deps.dev()] == ["typescript"]
        assert "typescript" in deps
        assert len(deps) == 2


class TestCodeFile:
    """Imports are formatted after the body and prepended."""

    def setup_method(self):
        self.engine = TemplateEngine()
        self.engine.add_template("body.j2", "value = {{ use('json') }}.dumps({{ arg | quote }})\n")

    def test_imports_follow_body(self):
        f = CodeFile(self.engine, _format, header="# header")
        f.render("body.j2", {"arg": "x"})
        assert f.build() == '# header\n\nimport json\n\nvalue = json.dumps("x")\n'

    def test_marker_goes_first(self):
        f = CodeFile(self.engine, _format, header="# header", marker="#!/usr/bin/env python3")
        f.add("pass")
        assert f.build().splitlines()[:2] == ["#!/usr/bin/env python3", "# header"]

    def test_no_imports(self):
        f = CodeFile(self.engine, _format)
        f.add("\n\npass\n\n")
        assert f.build() == "pass\n"


class TestQuoteString:
    def test_escapes(self):
        assert quote_string('say "hi"\n') == '"say \\"hi\\"\\n"'
