"""
Exceptions raised by the code generation framework.
"""

from typing import Optional

from ..core.errors import ClimoldError


class GeneratorError(ClimoldError):
    """Base exception for code generation errors."""

    pass


class RenderError(GeneratorError):
    """The IR cannot be expressed by a backend.

    ``path`` is the dotted command or input path that could not be rendered.
    """

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)
