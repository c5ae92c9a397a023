"""
View-state overlay: UI-only per-node flags kept apart from document data.

Expansion and bookmarks are keyed by canonical path text and never touch the
document value or its history, so toggling them is invisible to undo/redo.

Staleness policy: deleting a subtree does not purge its overlay entries.
They become unreachable because no traversal of the current value visits
those paths. sweep() drops them on request but is never needed for
correctness.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from jsonstate.mutation import iter_nodes, resolves
from jsonstate.paths import Path, Segment, ancestors, decode_path, encode_path, normalize_path
from jsonstate.value_model import Value, is_container

logger = logging.getLogger(__name__)

PathLike = Union[str, Iterable[Segment]]


def path_key(path: PathLike) -> str:
    """Canonical overlay key for ``path`` (accepts Paths or encoded text)."""
    return encode_path(normalize_path(path))


class ViewStateOverlay:
    """Expansion flags and bookmarks for one document."""

    def __init__(self, default_depth: int = 2):
        """
        Args:
            default_depth: Nodes at depth <= default_depth are expanded unless
                an explicit entry overrides them. The root is always
                default-expanded.
        """
        self._default_depth = default_depth
        self._expansion: Dict[str, bool] = {}
        # Insertion-ordered set (dict keys)
        self._bookmarks: Dict[str, None] = {}

    @property
    def default_depth(self) -> int:
        return self._default_depth

    # ========== EXPANSION ==========

    def set_expanded(self, path: PathLike, expanded: bool) -> None:
        self._expansion[path_key(path)] = bool(expanded)

    def is_expanded(self, path: PathLike) -> bool:
        path = normalize_path(path)
        explicit = self._expansion.get(encode_path(path))
        if explicit is not None:
            return explicit
        return len(path) == 0 or len(path) <= self._default_depth

    def toggle_expanded(self, path: PathLike) -> bool:
        """Flip the effective expansion state; return the new state."""
        expanded = not self.is_expanded(path)
        self.set_expanded(path, expanded)
        return expanded

    def clear_expanded(self, path: PathLike) -> None:
        """Drop the explicit entry so the default policy applies again."""
        self._expansion.pop(path_key(path), None)

    def expansion_overrides(self) -> Dict[str, bool]:
        return dict(self._expansion)

    def expand_to(self, path: PathLike) -> None:
        """Force-expand every strict ancestor of ``path``."""
        for ancestor in ancestors(normalize_path(path)):
            self._expansion[encode_path(ancestor)] = True

    def expand_all(self, value: Value, max_depth: Optional[int] = None) -> int:
        """Explicitly expand every container down to ``max_depth``.

        Returns:
            Number of containers marked expanded.
        """
        count = 0
        for path, node in iter_nodes(value):
            if not is_container(node):
                continue
            if max_depth is not None and len(path) > max_depth:
                continue
            self._expansion[encode_path(path)] = True
            count += 1
        logger.debug(f"OVERLAY: Expanded {count} containers (max_depth={max_depth})")
        return count

    def collapse_all(self, value: Value) -> int:
        """Explicitly collapse every container except the root.

        Returns:
            Number of containers marked collapsed.
        """
        self._expansion.clear()
        count = 0
        for path, node in iter_nodes(value):
            if not is_container(node):
                continue
            if path:
                self._expansion[encode_path(path)] = False
                count += 1
            else:
                self._expansion[encode_path(path)] = True
        logger.debug(f"OVERLAY: Collapsed {count} containers")
        return count

    # ========== BOOKMARKS ==========

    def toggle_bookmark(self, path: PathLike) -> bool:
        """Add or remove a bookmark; return True if ``path`` is now bookmarked."""
        key = path_key(path)
        if key in self._bookmarks:
            del self._bookmarks[key]
            logger.debug(f"OVERLAY: Unbookmarked {key!r}")
            return False
        self._bookmarks[key] = None
        logger.debug(f"OVERLAY: Bookmarked {key!r}")
        return True

    def is_bookmarked(self, path: PathLike) -> bool:
        return path_key(path) in self._bookmarks

    def list_bookmarks(self) -> List[str]:
        """Bookmarked path keys in insertion order."""
        return list(self._bookmarks)

    def bookmark_paths(self) -> List[Path]:
        return [decode_path(key) for key in self._bookmarks]

    # ========== MAINTENANCE ==========

    def sweep(self, value: Value) -> int:
        """Drop entries whose path no longer resolves in ``value``.

        Optional housekeeping; stale entries are inert either way.

        Returns:
            Number of entries removed.
        """
        stale_expansion = [key for key in self._expansion if not resolves(value, decode_path(key))]
        stale_bookmarks = [key for key in self._bookmarks if not resolves(value, decode_path(key))]
        for key in stale_expansion:
            del self._expansion[key]
        for key in stale_bookmarks:
            del self._bookmarks[key]
        removed = len(stale_expansion) + len(stale_bookmarks)
        if removed:
            logger.debug(f"OVERLAY: Swept {removed} stale entries")
        return removed

    def to_dict(self) -> Dict[str, Any]:
        """Export to JSON-serializable dict."""
        return {
            'default_depth': self._default_depth,
            'expansion': [[key, expanded] for key, expanded in self._expansion.items()],
            'bookmarks': list(self._bookmarks),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ViewStateOverlay':
        """Import from dict produced by to_dict()."""
        overlay = cls(default_depth=data.get('default_depth', 2))
        for key, expanded in data.get('expansion', []):
            overlay.set_expanded(key, expanded)
        for key in data.get('bookmarks', []):
            overlay._bookmarks[path_key(key)] = None
        return overlay
