"""
Body-first assembly of one generated source file.

The body is rendered first. Templates call ``use(module, symbol)`` (or
``use_type``) wherever they refer to something from another module; the
call records the import and returns the symbol. Only after the body is
complete is the import block formatted and prepended, so a file imports
exactly what its body uses.
"""

from typing import Any, Callable, Dict, List, Optional

from .imports import ImportCollector
from .templates import TemplateEngine

ImportFormatter = Callable[[ImportCollector], str]


class CodeFile:
    """A source file under construction."""

    def __init__(
        self,
        engine: TemplateEngine,
        format_imports: ImportFormatter,
        header: Optional[str] = None,
        marker: Optional[str] = None,
    ):
        """
        Args:
            engine: Template engine of the backend
            format_imports: Backend function turning collected imports into text
            header: Comment placed above the imports
            marker: Line that must come first in the file (e.g. a shebang)
        """
        self.engine = engine
        self.format_imports = format_imports
        self.header = header
        self.marker = marker
        self.imports = ImportCollector()
        self._sections: List[str] = []

    def use(self, module: str, symbol: Optional[str] = None) -> str:
        return self.imports.add(module, symbol)

    def use_type(self, module: str, symbol: str) -> str:
        return self.imports.add_type(module, symbol)

    def render(self, template_name: str, context: Dict[str, Any]) -> "CodeFile":
        """Render a template into the body, recording the imports it uses."""
        context = dict(context, use=self.use, use_type=self.use_type)
        self.add(self.engine.render_template(template_name, context))
        return self

    def add(self, text: str) -> "CodeFile":
        text = text.strip("\n")
        if text:
            self._sections.append(text)
        return self

    def build(self) -> str:
        parts = []
        if self.header:
            parts.append(self.header.rstrip("\n"))
        import_block = self.format_imports(self.imports).strip("\n")
        if import_block:
            parts.append(import_block)
        parts.extend(self._sections)

        text = "\n\n".join(parts) + "\n"
        if self.marker:
            text = self.marker.rstrip("\n") + "\n" + text
        return text
