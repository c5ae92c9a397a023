"""
Copy-on-write mutation engine.

Every operation is a pure function ``(Value, Path, ...) -> Value``. The input
value is never modified: the returned root shallow-copies each container on
the addressed path and shares every other subtree by reference, so keeping
old roots around (e.g. in history) costs memory proportional to the edits,
not to the document size.

Failures raise a MutationError subclass before anything is built, so an
operation either fully applies or leaves the caller with the old value.
"""

from typing import Any, Iterator, List, Optional, Tuple, Union

from jsonstate.errors import (
    IndexOutOfBounds,
    KeyCollision,
    MutationError,
    PathNotFound,
    RootMutationDenied,
    TypeMismatch,
)
from jsonstate.paths import (
    APPEND,
    Path,
    Segment,
    encode_path,
    is_index,
    last_segment,
    normalize_path,
    parent_path,
)
from jsonstate.value_model import ArrayNode, ObjectNode, Scalar, Value, as_value, iter_children


def _describe(path: Path) -> str:
    return repr(encode_path(path)) if path else "<root>"


def _step(node: Value, segment: Segment, path: Path, depth: int) -> Value:
    """Descend one segment; ``path[:depth]`` addresses ``node``."""
    here = path[:depth]
    if isinstance(node, ObjectNode):
        if not isinstance(segment, str):
            raise TypeMismatch(f"Index [{segment}] used on object at {_describe(here)}", path)
        child = node.lookup(segment)
        if child is None:
            raise PathNotFound(f"No key {segment!r} in object at {_describe(here)}", path)
        return child
    if isinstance(node, ArrayNode):
        if not is_index(segment):
            raise TypeMismatch(f"Key {segment!r} used on array at {_describe(here)}", path)
        if segment >= len(node):
            raise PathNotFound(
                f"Index {segment} outside array of length {len(node)} at {_describe(here)}", path
            )
        return node[segment]
    raise TypeMismatch(f"Cannot descend into {node.kind} at {_describe(here)}", path)


def _walk(value: Value, path: Path) -> List[Value]:
    """Return the nodes along ``path``: [root, ..., node at path]."""
    nodes = [value]
    for depth, segment in enumerate(path):
        nodes.append(_step(nodes[-1], segment, path, depth))
    return nodes


def _replace_child(container: Value, segment: Segment, child: Value) -> Value:
    if isinstance(container, ObjectNode):
        return container.with_child(segment, child)
    return container.with_item(segment, child)


def _rebuild(nodes: List[Value], prefix: Path, replacement: Value) -> Value:
    """Copy every container above ``prefix`` with ``replacement`` spliced in.

    ``nodes`` must come from ``_walk`` over (at least) ``prefix``.
    """
    for depth in reversed(range(len(prefix))):
        replacement = _replace_child(nodes[depth], prefix[depth], replacement)
    return replacement


def _coerce(value: Any) -> Value:
    return as_value(value)


def get(value: Value, path: Union[Path, str]) -> Value:
    """Return the node addressed by ``path``.

    Raises:
        PathNotFound: a key is absent or an index is out of range.
        TypeMismatch: a Scalar is descended into, or the segment kind does
            not fit the container.
    """
    path = normalize_path(path)
    return _walk(_coerce(value), path)[-1]


def resolves(value: Value, path: Union[Path, str]) -> bool:
    """True if ``path`` addresses an existing node of ``value``."""
    try:
        get(value, path)
    except MutationError:
        return False
    return True


def set(value: Value, path: Union[Path, str], new_value: Any) -> Value:
    """Replace the existing node at ``path``; return the new root.

    The root itself cannot be set; use replace_root for a whole-document swap.
    """
    path = normalize_path(path)
    if not path:
        raise RootMutationDenied("Cannot set the root; use replace_root", path)
    nodes = _walk(_coerce(value), path)
    return _rebuild(nodes, path, _coerce(new_value))


def replace_root(value: Value, new_value: Any) -> Value:
    """Swap the whole document for ``new_value``."""
    return _coerce(new_value)


def delete(value: Value, path: Union[Path, str]) -> Value:
    """Remove the node at ``path`` from its parent; return the new root.

    Array elements after the removed index shift left by one.
    """
    path = normalize_path(path)
    if not path:
        raise RootMutationDenied("Cannot delete the root", path)
    prefix, segment = parent_path(path), last_segment(path)
    nodes = _walk(_coerce(value), prefix)
    parent = nodes[-1]

    if isinstance(parent, ObjectNode):
        if not isinstance(segment, str):
            raise TypeMismatch(f"Index [{segment}] used on object at {_describe(prefix)}", path)
        if segment not in parent:
            raise PathNotFound(f"No key {segment!r} in object at {_describe(prefix)}", path)
        new_parent = parent.without_child(segment)
    elif isinstance(parent, ArrayNode):
        if not is_index(segment):
            raise TypeMismatch(f"Key {segment!r} used on array at {_describe(prefix)}", path)
        if segment >= len(parent):
            raise IndexOutOfBounds(
                f"Index {segment} outside array of length {len(parent)} at {_describe(prefix)}", path
            )
        new_parent = parent.without_item(segment)
    else:
        raise TypeMismatch(f"Cannot delete from {parent.kind} at {_describe(prefix)}", path)

    return _rebuild(nodes, prefix, new_parent)


def insert(value: Value, parent_path: Union[Path, str], key: Any, new_value: Any) -> Value:
    """Insert ``new_value`` under the container at ``parent_path``.

    Objects: ``key`` is a string; an existing key is overwritten in its
    original position. Arrays: ``key`` is APPEND or an index
    ``0 <= key <= len``; elements at and after ``key`` shift right.
    """
    parent_path = normalize_path(parent_path)
    nodes = _walk(_coerce(value), parent_path)
    parent = nodes[-1]
    child = _coerce(new_value)
    target = parent_path + (key,)

    if isinstance(parent, ObjectNode):
        if not isinstance(key, str):
            raise TypeMismatch(f"Object at {_describe(parent_path)} needs a string key, got {key!r}", target)
        new_parent = parent.with_child(key, child)
    elif isinstance(parent, ArrayNode):
        if key is APPEND:
            index = len(parent)
        elif isinstance(key, int) and not isinstance(key, bool):
            if key < 0 or key > len(parent):
                raise IndexOutOfBounds(
                    f"Insert index {key} outside [0, {len(parent)}] at {_describe(parent_path)}", target
                )
            index = key
        else:
            raise TypeMismatch(f"Array at {_describe(parent_path)} needs an index or APPEND, got {key!r}", target)
        new_parent = parent.inserted(index, child)
    else:
        raise TypeMismatch(f"Cannot insert into {parent.kind} at {_describe(parent_path)}", target)

    return _rebuild(nodes, parent_path, new_parent)


def rename_key(value: Value, path: Union[Path, str], new_key: str) -> Value:
    """Rename the object key addressed by ``path``, keeping its position.

    Raises:
        KeyCollision: ``new_key`` already names another member of the object.
    """
    path = normalize_path(path)
    if not path:
        raise RootMutationDenied("The root has no key to rename", path)
    if not isinstance(new_key, str):
        raise TypeMismatch(f"New key must be a string, got {new_key!r}", path)
    prefix, old_key = parent_path(path), last_segment(path)
    nodes = _walk(_coerce(value), prefix)
    parent = nodes[-1]

    if not isinstance(parent, ObjectNode) or not isinstance(old_key, str):
        raise TypeMismatch(f"Only object keys can be renamed; {_describe(path)} is not one", path)
    if old_key not in parent:
        raise PathNotFound(f"No key {old_key!r} in object at {_describe(prefix)}", path)
    if new_key == old_key:
        return nodes[0]
    if new_key in parent:
        raise KeyCollision(f"Key {new_key!r} already exists in object at {_describe(prefix)}", path)

    return _rebuild(nodes, prefix, parent.with_renamed(old_key, new_key))


def add_sibling(value: Value, path: Union[Path, str], new_value: Any, key: Optional[str] = None) -> Value:
    """Add a new node next to the one at ``path``.

    Array parent: inserted right after the addressed index. Object parent:
    added under ``key``, which must not already exist.
    """
    path = normalize_path(path)
    if not path:
        raise RootMutationDenied("The root has no siblings", path)
    prefix, segment = parent_path(path), last_segment(path)
    root = _coerce(value)
    parent = get(root, prefix)
    get(root, path)

    if isinstance(parent, ArrayNode):
        return insert(root, prefix, segment + 1, new_value)
    if not isinstance(key, str):
        raise TypeMismatch(f"A sibling in object at {_describe(prefix)} needs a string key", path)
    if key in parent:
        raise KeyCollision(f"Key {key!r} already exists in object at {_describe(prefix)}", prefix + (key,))
    return insert(root, prefix, key, new_value)


def iter_nodes(value: Value) -> Iterator[Tuple[Path, Value]]:
    """Depth-first pre-order traversal yielding (path, node) in document order."""
    stack: List[Tuple[Path, Value]] = [((), _coerce(value))]
    while stack:
        path, node = stack.pop()
        yield path, node
        if isinstance(node, Scalar):
            continue
        children = [(path + (segment,), child) for segment, child in iter_children(node)]
        stack.extend(reversed(children))
