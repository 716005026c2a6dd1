"""
Source locations for manifest fields.

``tomllib`` returns plain values without positions, so the manifest text is
scanned once more to find where every table header and every key sits.
Locations are keyed by the dotted key path of the document, with integer
components for entries of arrays of tables.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple, Union

KeyPath = Tuple[Union[str, int], ...]

_KEY_PART = re.compile(r'"(?:[^"\\]|\\.)*"|\'[^\']*\'|[A-Za-z0-9_-]+')
_HEADER = re.compile(r"^\s*(\[\[|\[)([^\[\]]*)(\]\]|\])")


@dataclass(frozen=True)
class SourceSpan:
    """A range of manifest text. Lines and columns are 1-based."""

    line: int
    column: int
    length: int = 1
    offset: int = 0


def _split_key(text: str, start: int) -> List[Tuple[str, int, int]]:
    """Split a dotted TOML key into (name, start, end) parts.

    Positions are relative to the beginning of the line; ``start`` is where
    ``text`` begins within it.
    """
    parts = []
    pos = 0
    while pos < len(text):
        char = text[pos]
        if char in " \t.":
            pos += 1
            continue
        match = _KEY_PART.match(text, pos)
        if not match:
            break
        raw = match.group(0)
        name = raw[1:-1] if raw[0] in "\"'" else raw
        parts.append((name, start + match.start(), start + match.end()))
        pos = match.end()
    return parts


class SourceMap:
    """Maps document key paths to spans of the manifest text."""

    def __init__(self, source: str):
        self.source = source
        self._keys: Dict[KeyPath, SourceSpan] = {}
        self._values: Dict[KeyPath, SourceSpan] = {}
        self._scan()

    def _scan(self):
        table: KeyPath = ()
        array_counts: Dict[KeyPath, int] = {}
        in_multiline = None
        offset = 0

        for line_no, line in enumerate(self.source.splitlines(keepends=True), 1):
            text = line.rstrip("\r\n")
            line_offset = offset
            offset += len(line)

            if in_multiline:
                if text.count(in_multiline) % 2 == 1:
                    in_multiline = None
                continue

            stripped = text.lstrip()
            if not stripped or stripped.startswith("#"):
                continue

            header = _HEADER.match(text)
            if header:
                parts = _split_key(header.group(2), header.start(2))
                if not parts:
                    continue
                path: KeyPath = tuple(name for name, _, _ in parts)
                if header.group(1) == "[[":
                    index = array_counts.get(path, 0)
                    array_counts[path] = index + 1
                    path = path + (index,)
                name, start, end = parts[-1]
                self._keys.setdefault(
                    path,
                    SourceSpan(line_no, start + 1, end - start, line_offset + start),
                )
                table = path
                continue

            eq = self._find_assignment(text)
            if eq is None:
                continue
            parts = _split_key(text[:eq], 0)
            if not parts:
                continue
            path = table + tuple(name for name, _, _ in parts)
            name, start, end = parts[-1]
            self._keys.setdefault(
                path, SourceSpan(line_no, start + 1, end - start, line_offset + start)
            )

            value_start = eq + 1
            while value_start < len(text) and text[value_start] in " \t":
                value_start += 1
            value_end = self._value_end(text, value_start)
            self._values.setdefault(
                path,
                SourceSpan(
                    line_no,
                    value_start + 1,
                    max(1, value_end - value_start),
                    line_offset + value_start,
                ),
            )

            value_text = text[value_start:]
            for quote in ('"""', "'''"):
                if value_text.startswith(quote) and value_text.count(quote) == 1:
                    in_multiline = quote

    @staticmethod
    def _find_assignment(text: str) -> Optional[int]:
        quote = None
        for index, char in enumerate(text):
            if quote:
                if char == quote:
                    quote = None
            elif char in "\"'":
                quote = char
            elif char == "=":
                return index
            elif char == "#":
                return None
        return None

    @staticmethod
    def _value_end(text: str, start: int) -> int:
        quote = None
        end = len(text)
        for index in range(start, len(text)):
            char = text[index]
            if quote:
                if char == quote:
                    quote = None
            elif char in "\"'":
                quote = char
            elif char == "#":
                end = index
                break
        return len(text[:end].rstrip())

    def key_span(self, path: KeyPath) -> Optional[SourceSpan]:
        """Span of the key or table header at ``path``, or of its nearest ancestor."""
        for candidate in self._ancestors(path):
            if candidate in self._keys:
                return self._keys[candidate]
        return None

    def value_span(self, path: KeyPath) -> Optional[SourceSpan]:
        """Span of the value assigned at ``path``, falling back to its key."""
        if path in self._values:
            return self._values[path]
        return self.key_span(path)

    def element_span(self, path: KeyPath, element: str) -> Optional[SourceSpan]:
        """Span of a quoted string element inside the array assigned at ``path``."""
        anchor = self.value_span(path)
        if anchor is None:
            return None
        for quoted in (f'"{element}"', f"'{element}'"):
            index = self.source.find(quoted, anchor.offset)
            if index != -1:
                return self.span_at(index + 1, len(element))
        return anchor

    def span_at(self, offset: int, length: int = 1) -> SourceSpan:
        line = self.source.count("\n", 0, offset) + 1
        line_start = self.source.rfind("\n", 0, offset) + 1
        return SourceSpan(line, offset - line_start + 1, length, offset)

    @staticmethod
    def _ancestors(path: KeyPath) -> Iterator[KeyPath]:
        for end in range(len(path), 0, -1):
            yield path[:end]
