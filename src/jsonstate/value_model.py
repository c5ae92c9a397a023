"""
Immutable tree values for JSON-shaped documents.

A document value is one of three frozen node types:

- Scalar: str, int, float, bool or None
- ObjectNode: ordered (key, Value) pairs, insertion order significant
- ArrayNode: ordered tuple of Value

Design Philosophy: Correct by Construction
- Nodes are frozen dataclasses; "modifying" a node returns a new node that
  shares every untouched child by reference
- Equality and hashing are structural and deep (object key order included),
  computed without recursion
- Booleans never compare equal to numbers, unlike plain Python
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
import math
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from jsonstate.errors import CyclicValueError, ParseError

ScalarType = Union[str, int, float, bool, None]


@dataclass(frozen=True, eq=False)
class Scalar:
    """Leaf value: string, number, boolean or null."""
    value: ScalarType = None

    def __post_init__(self):
        value = self.value
        if value is not None and not isinstance(value, (str, bool, int, float)):
            raise TypeError(f"Scalar cannot hold {type(value).__name__}")
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError(f"Scalar cannot hold non-finite number {value!r}")

    @property
    def kind(self) -> str:
        value = self.value
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "boolean"
        if isinstance(value, str):
            return "string"
        return "number"

    def text(self) -> str:
        """Canonical textual form (what a search query is matched against)."""
        value = self.value
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, str):
            return value
        return repr(value)

    def __eq__(self, other):
        if not isinstance(other, Scalar):
            return NotImplemented
        return self.kind == other.kind and self.value == other.value

    def __hash__(self):
        return hash((self.kind, self.value))


@dataclass(frozen=True, eq=False)
class ObjectNode:
    """Ordered mapping of string keys to child values."""
    entries: Tuple[Tuple[str, 'Value'], ...] = ()
    _index: Dict[str, int] = field(init=False, repr=False, compare=False, hash=False)

    def __post_init__(self):
        index: Dict[str, int] = {}
        for position, (key, child) in enumerate(self.entries):
            if not isinstance(key, str):
                raise TypeError(f"Object keys must be strings, got {type(key).__name__}")
            if not is_value(child):
                raise TypeError(f"Object child {key!r} is not a Value: {type(child).__name__}")
            if key in index:
                raise ValueError(f"Duplicate object key {key!r}")
            index[key] = position
        object.__setattr__(self, '_index', index)

    @classmethod
    def from_pairs(cls, pairs) -> 'ObjectNode':
        return cls(tuple((key, child) for key, child in pairs))

    def __eq__(self, other):
        if not isinstance(other, ObjectNode):
            return NotImplemented
        return _trees_equal(self, other)

    def __hash__(self):
        return _tree_hash(self)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, key) -> bool:
        return key in self._index

    def keys(self) -> Tuple[str, ...]:
        return tuple(key for key, _ in self.entries)

    def values(self) -> Tuple['Value', ...]:
        return tuple(child for _, child in self.entries)

    def items(self) -> Tuple[Tuple[str, 'Value'], ...]:
        return self.entries

    def position(self, key: str) -> Optional[int]:
        return self._index.get(key)

    def lookup(self, key: str) -> Optional['Value']:
        position = self._index.get(key)
        return None if position is None else self.entries[position][1]

    def with_child(self, key: str, child: 'Value') -> 'ObjectNode':
        """Replace ``key`` in place, or append it when absent."""
        position = self._index.get(key)
        if position is None:
            return ObjectNode(self.entries + ((key, child),))
        entries = list(self.entries)
        entries[position] = (key, child)
        return ObjectNode(tuple(entries))

    def without_child(self, key: str) -> 'ObjectNode':
        position = self._index[key]
        return ObjectNode(self.entries[:position] + self.entries[position + 1:])

    def with_renamed(self, old_key: str, new_key: str) -> 'ObjectNode':
        position = self._index[old_key]
        entries = list(self.entries)
        entries[position] = (new_key, entries[position][1])
        return ObjectNode(tuple(entries))


@dataclass(frozen=True, eq=False)
class ArrayNode:
    """Ordered sequence of child values."""
    items: Tuple['Value', ...] = ()

    def __post_init__(self):
        for index, child in enumerate(self.items):
            if not is_value(child):
                raise TypeError(f"Array item {index} is not a Value: {type(child).__name__}")

    def __eq__(self, other):
        if not isinstance(other, ArrayNode):
            return NotImplemented
        return _trees_equal(self, other)

    def __hash__(self):
        return _tree_hash(self)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> 'Value':
        return self.items[index]

    def with_item(self, index: int, child: 'Value') -> 'ArrayNode':
        return ArrayNode(self.items[:index] + (child,) + self.items[index + 1:])

    def without_item(self, index: int) -> 'ArrayNode':
        return ArrayNode(self.items[:index] + self.items[index + 1:])

    def inserted(self, index: int, child: 'Value') -> 'ArrayNode':
        return ArrayNode(self.items[:index] + (child,) + self.items[index:])


Value = Union[Scalar, ObjectNode, ArrayNode]

_NODE_TYPES = (Scalar, ObjectNode, ArrayNode)


def _trees_equal(left: Value, right: Value) -> bool:
    # Iterative; shared subtrees short-circuit on identity
    stack = [(left, right)]
    while stack:
        a, b = stack.pop()
        if a is b:
            continue
        if type(a) is not type(b):
            return False
        if isinstance(a, Scalar):
            if a != b:
                return False
        elif isinstance(a, ObjectNode):
            if len(a.entries) != len(b.entries):
                return False
            for (key_a, child_a), (key_b, child_b) in zip(a.entries, b.entries):
                if key_a != key_b:
                    return False
                stack.append((child_a, child_b))
        else:
            if len(a.items) != len(b.items):
                return False
            stack.extend(zip(a.items, b.items))
    return True


def _tree_hash(value: Value) -> int:
    # Pre-order tokens with container sizes identify the tree unambiguously
    tokens = []
    stack = [value]
    while stack:
        node = stack.pop()
        if isinstance(node, ObjectNode):
            tokens.append(("object", len(node.entries)))
            for key, child in reversed(node.entries):
                stack.append(child)
                stack.append(key)
        elif isinstance(node, ArrayNode):
            tokens.append(("array", len(node.items)))
            stack.extend(reversed(node.items))
        else:
            tokens.append(node)
    return hash(tuple(tokens))


def is_value(obj: Any) -> bool:
    return isinstance(obj, _NODE_TYPES)


def is_container(obj: Any) -> bool:
    return isinstance(obj, (ObjectNode, ArrayNode))


def node_kind(value: Value) -> str:
    """Display kind: object, array, string, number, boolean or null."""
    if isinstance(value, ObjectNode):
        return "object"
    if isinstance(value, ArrayNode):
        return "array"
    return value.kind


def as_value(obj: Any) -> Value:
    """Convert plain Python data (or an existing Value) into a Value tree.

    Accepts dicts/Mappings with string keys, lists, tuples and JSON scalars.
    Value nodes inside the input are reused as-is.

    Raises:
        CyclicValueError: if a container contains itself.
        TypeError: for unsupported types or non-string keys.
        ValueError: for NaN or infinite floats.
    """
    return _convert(obj, set())


def _convert(obj: Any, active: set) -> Value:
    if isinstance(obj, _NODE_TYPES):
        return obj
    if obj is None or isinstance(obj, (str, bool, int, float)):
        return Scalar(obj)

    if not isinstance(obj, (Mapping, list, tuple)):
        raise TypeError(f"Cannot convert {type(obj).__name__} to a tree value")

    marker = id(obj)
    if marker in active:
        raise CyclicValueError(f"Cyclic reference to {type(obj).__name__} (cycles are unsupported)")
    active.add(marker)
    try:
        if isinstance(obj, Mapping):
            pairs = []
            for key, child in obj.items():
                if not isinstance(key, str):
                    raise TypeError(f"Object keys must be strings, got {type(key).__name__}")
                pairs.append((key, _convert(child, active)))
            return ObjectNode(tuple(pairs))
        return ArrayNode(tuple(_convert(child, active) for child in obj))
    finally:
        active.discard(marker)


def to_python(value: Value) -> Any:
    """Convert a Value tree back to dicts, lists and scalars (order preserved)."""
    if isinstance(value, Scalar):
        return value.value

    def empty(node):
        return {} if isinstance(node, ObjectNode) else []

    root = empty(value)
    stack = [(value, root)]
    while stack:
        node, out = stack.pop()
        for segment, child in iter_children(node):
            converted = child.value if isinstance(child, Scalar) else empty(child)
            if isinstance(out, dict):
                out[segment] = converted
            else:
                out.append(converted)
            if not isinstance(child, Scalar):
                stack.append((child, converted))
    return root


def parse_scalar(text: str, kind: str) -> Scalar:
    """Parse edited text into a Scalar of the given kind.

    ``kind`` is one of "string", "number", "boolean" or "null" (see
    Scalar.kind). Booleans and null are matched case-insensitively; numbers
    keep int-ness when the text is an integer literal.

    Raises:
        ParseError: the text is not a valid literal of ``kind``.
        ValueError: unknown ``kind``.
    """
    if kind == "string":
        return Scalar(text)
    if kind == "number":
        try:
            return Scalar(int(text))
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            raise ParseError(f"Invalid number format: {text!r}") from None
        if not math.isfinite(number):
            raise ParseError(f"Number {text!r} is out of range")
        return Scalar(number)
    if kind == "boolean":
        lowered = text.strip().lower()
        if lowered in ("true", "false"):
            return Scalar(lowered == "true")
        raise ParseError(f'Invalid boolean value {text!r}; must be "true" or "false"')
    if kind == "null":
        if text.strip().lower() == "null":
            return Scalar(None)
        raise ParseError(f'Invalid null value {text!r}; must be "null"')
    raise ValueError(f"Unknown scalar kind {kind!r}")


def iter_children(value: Value) -> Iterator[Tuple[Union[str, int], Value]]:
    """Yield (segment, child) pairs of a container; nothing for a Scalar."""
    if isinstance(value, ObjectNode):
        yield from value.entries
    elif isinstance(value, ArrayNode):
        yield from enumerate(value.items)
