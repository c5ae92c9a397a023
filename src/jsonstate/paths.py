"""
Path addressing for tree documents.

A Path is a tuple of segments: ``str`` for an object key, ``int >= 0`` for an
array index. The empty tuple addresses the document root.

Canonical text encoding (dot-and-bracket notation)::

    ()                        ""
    ("a", "b", 2, "c")        "a.b[2].c"
    (0, "name")               "[0].name"
    ("a.b", "", "x y")        '["a.b"][""]["x y"]'

Keys that look like identifiers are written bare and dot-separated; array
indexes are bracketed integers; every other key is a bracketed JSON string
literal. encode_path/decode_path are inverse functions for every Path.
"""

import json
import re
from typing import Iterable, Tuple, Union

from jsonstate.errors import PathSyntaxError, RootMutationDenied

Segment = Union[str, int]
Path = Tuple[Segment, ...]

ROOT: Path = ()

_IDENTIFIER = re.compile(r'[A-Za-z_$][A-Za-z0-9_$]*')
_INDEX = re.compile(r'(0|[1-9][0-9]*)\]')
_STRING_DECODER = json.JSONDecoder()


class _AppendSentinel:
    """Array-insert key meaning "after the last element"."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "APPEND"

    def __reduce__(self):
        return (_AppendSentinel, ())


APPEND = _AppendSentinel()


def is_index(segment) -> bool:
    return isinstance(segment, int) and not isinstance(segment, bool) and segment >= 0


def is_segment(segment) -> bool:
    return isinstance(segment, str) or is_index(segment)


def normalize_path(path: Union[str, Iterable[Segment]]) -> Path:
    """Accept an encoded string, a list or a tuple of segments; return a Path."""
    if isinstance(path, str):
        return decode_path(path)
    segments = tuple(path)
    for segment in segments:
        if not is_segment(segment):
            raise TypeError(f"Invalid path segment {segment!r}: expected str or non-negative int")
    return segments


def encode_path(path: Iterable[Segment]) -> str:
    """Encode a Path into canonical dot-and-bracket text."""
    parts = []
    for segment in normalize_path(path):
        if isinstance(segment, str):
            if _IDENTIFIER.fullmatch(segment):
                parts.append(f".{segment}" if parts else segment)
            else:
                parts.append(f"[{json.dumps(segment, ensure_ascii=False)}]")
        else:
            parts.append(f"[{segment}]")
    return "".join(parts)


def decode_path(text: str) -> Path:
    """Decode canonical dot-and-bracket text into a Path.

    Also accepts bracketed string literals for identifier keys (``["a"]``),
    which decode to the same Path as ``a``.

    Raises:
        PathSyntaxError: if the text is not a well-formed path.
    """
    segments = []
    position = 0
    length = len(text)

    while position < length:
        char = text[position]
        if char == '[':
            if text.startswith('"', position + 1):
                try:
                    key, end = _STRING_DECODER.raw_decode(text, position + 1)
                except json.JSONDecodeError:
                    raise PathSyntaxError("Unterminated or invalid quoted key", text, position) from None
                if not text.startswith(']', end):
                    raise PathSyntaxError("Expected ']' after quoted key", text, end)
                segments.append(key)
                position = end + 1
            else:
                match = _INDEX.match(text, position + 1)
                if match is None:
                    raise PathSyntaxError("Expected array index or quoted key", text, position + 1)
                segments.append(int(match.group(1)))
                position = match.end()
        else:
            if char == '.':
                if not segments:
                    raise PathSyntaxError("Path cannot start with '.'", text, position)
                position += 1
            elif segments:
                raise PathSyntaxError("Expected '.' or '['", text, position)
            match = _IDENTIFIER.match(text, position)
            if match is None:
                raise PathSyntaxError("Expected identifier", text, position)
            segments.append(match.group(0))
            position = match.end()

    return tuple(segments)


def parent_path(path: Path) -> Path:
    if not path:
        raise RootMutationDenied("The root has no parent", path)
    return path[:-1]


def last_segment(path: Path) -> Segment:
    if not path:
        raise RootMutationDenied("The root has no segment", path)
    return path[-1]


def child_path(path: Path, segment: Segment) -> Path:
    return tuple(path) + (segment,)


def ancestors(path: Path) -> Tuple[Path, ...]:
    """Strict ancestors of ``path``, root first."""
    return tuple(path[:depth] for depth in range(len(path)))


def is_ancestor(ancestor: Path, path: Path) -> bool:
    """True if ``ancestor`` is a strict prefix of ``path``."""
    return len(ancestor) < len(path) and tuple(path[:len(ancestor)]) == tuple(ancestor)
