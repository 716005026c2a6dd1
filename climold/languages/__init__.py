"""
Language-specific code generators.

Each subpackage implements CodeGenerator for one target and ships its own
Jinja templates.
"""

from .python import PythonGenerator
from .rust import RustGenerator
from .typescript import TypeScriptGenerator

__all__ = ["PythonGenerator", "RustGenerator", "TypeScriptGenerator"]
