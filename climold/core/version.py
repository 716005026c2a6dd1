"""
Semantic version values.
"""

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Optional, Tuple

_SEMVER = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*))*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


@total_ordering
@dataclass(frozen=True)
class Version:
    """A semantic version: ``major.minor.patch[-pre][+build]``."""

    major: int
    minor: int
    patch: int
    pre: Optional[str] = None
    build: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "Version":
        """
        Parse a semantic version string.

        Args:
            text: Version text such as ``1.2.3`` or ``1.0.0-rc.1+build.5``

        Returns:
            Parsed Version

        Raises:
            ValueError: If the text is not a valid semantic version
        """
        match = _SEMVER.match(text.strip())
        if not match:
            raise ValueError(
                f"invalid version '{text}': expected MAJOR.MINOR.PATCH "
                "with optional -prerelease and +build"
            )
        major, minor, patch, pre, build = match.groups()
        return cls(int(major), int(minor), int(patch), pre, build)

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre:
            text += f"-{self.pre}"
        if self.build:
            text += f"+{self.build}"
        return text

    def _precedence(self) -> Tuple:
        # A release sorts after all of its pre-releases.
        if self.pre is None:
            pre_key: Tuple = ((1,),)
        else:
            pre_key = tuple(
                (0, int(part), "") if part.isdigit() else (1, 0, part)
                for part in self.pre.split(".")
            )
            pre_key = ((0,),) + pre_key
        return (self.major, self.minor, self.patch, pre_key)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence() < other._precedence()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence() == other._precedence()

    def __hash__(self) -> int:
        return hash(self._precedence())


DEFAULT_VERSION = Version(0, 1, 0)
