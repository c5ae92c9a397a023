"""
Substring search over a document value.

match() is stateless and recomputed on demand; documents in this domain are
small enough that no index is kept.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Tuple

from jsonstate.mutation import iter_nodes
from jsonstate.paths import Path, ancestors, normalize_path
from jsonstate.value_model import Scalar, Value


@dataclass(frozen=True)
class SearchResult:
    """Leaf matches plus the ancestors that lead to them.

    ``matches`` is in document order. ``ancestors`` holds every strict
    ancestor of every match, used to force-expand the chain down to each hit.
    """
    query: str
    matches: Tuple[Path, ...] = ()
    ancestors: FrozenSet[Path] = field(default_factory=frozenset)

    def __len__(self) -> int:
        return len(self.matches)

    def __bool__(self) -> bool:
        return bool(self.matches)

    def is_match(self, path) -> bool:
        return normalize_path(path) in self.matches

    def is_ancestor(self, path) -> bool:
        return normalize_path(path) in self.ancestors


def _scalar_matches(path: Path, node: Scalar, needle: str) -> bool:
    if path and isinstance(path[-1], str) and needle in path[-1].lower():
        return True
    return needle in node.text().lower()


def match(value: Value, query: str) -> SearchResult:
    """Find scalars whose key or text contains ``query`` (case-insensitive).

    Container nodes are never matches themselves. An empty query yields
    an empty result; whitespace is matched literally.
    """
    if not query:
        return SearchResult(query=query or "")
    needle = query.lower()

    matches = []
    ancestor_set = set()
    for path, node in iter_nodes(value):
        if isinstance(node, Scalar) and _scalar_matches(path, node, needle):
            matches.append(path)
            ancestor_set.update(ancestors(path))

    return SearchResult(query=query, matches=tuple(matches), ancestors=frozenset(ancestor_set))
