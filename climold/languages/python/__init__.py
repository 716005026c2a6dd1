"""Python backend: click CLIs in a src-layout package."""

from .generator import SHEBANG, PythonGenerator
from .types import annotation, click_type, literal

__all__ = ["PythonGenerator", "SHEBANG", "annotation", "click_type", "literal"]
