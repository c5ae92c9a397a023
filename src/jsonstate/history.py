"""
Chronos: linear undo/redo history for one document.

HistoryManager keeps an ordered list of immutable value snapshots and a
cursor pointing at the current one. Committing after an undo prunes the redo
branch; there is no branching history.

Invariants:
- 0 <= cursor < len(entries)
- entries[0] is the initial load snapshot and is never removed
- committing a value equal to the current one never grows the history

Values are immutable trees, so entries hold them by reference; snapshots
cost no copying.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
import logging
import time
from typing import Any, Callable, Dict, Generator, List, Optional, Tuple
import uuid

from jsonstate.value_model import Value, as_value, to_python

logger = logging.getLogger(__name__)

_NOTHING = object()


class Boundary(Enum):
    """Why undo/redo did not move. Boundaries are signals, not errors."""
    AT_BEGINNING = "AtBeginning"
    AT_END = "AtEnd"


@dataclass(frozen=True)
class HistoryEntry:
    """Immutable history snapshot - analogous to a commit."""
    id: str  # UUID string
    timestamp: float
    label: str
    value: Value

    @classmethod
    def create(cls, value: Value, label: str) -> 'HistoryEntry':
        """Create a new entry with auto-generated ID and timestamp."""
        return cls(
            id=str(uuid.uuid4()),
            timestamp=time.time(),
            label=label,
            value=value,
        )

    def to_dict(self) -> Dict:
        """Export to JSON-serializable dict."""
        return {
            'id': self.id,
            'timestamp': self.timestamp,
            'label': self.label,
            'value': to_python(self.value),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'HistoryEntry':
        """Import from dict (e.g., loaded from JSON)."""
        return cls(
            id=data['id'],
            timestamp=data['timestamp'],
            label=data['label'],
            value=as_value(data['value']),
        )


@dataclass(frozen=True)
class HistoryStep:
    """Outcome of undo/redo/jump_to.

    ``value`` is always the current value after the call. ``boundary`` is set
    only when the cursor could not move.
    """
    value: Value
    moved: bool
    boundary: Optional[Boundary] = None


class HistoryManager:
    """Linear commit/undo/redo stack over document values.

    Thread safety: Not thread-safe. Callers serialize commit/undo/redo for a
    given document.
    """

    def __init__(self, initial_value: Any, label: str = "Initial Load", max_entries: int = 1000):
        """
        Args:
            initial_value: Value (or plain Python data) of entries[0]
            label: Label of the initial entry
            max_entries: Cap on the entry count; the oldest entry after
                entries[0] is dropped when exceeded
        """
        if max_entries < 2:
            raise ValueError(f"max_entries must be at least 2, got {max_entries}")
        self._entries: List[HistoryEntry] = [HistoryEntry.create(as_value(initial_value), label)]
        self._cursor = 0
        self._max_entries = max_entries
        # Bumped on every commit or cursor move; used to detect stale tokens
        self._revision = 0

        # Atomic operation state - when >0, commits are deferred until the block exits
        self._atomic_depth = 0
        self._atomic_label: Optional[str] = None
        self._atomic_pending: Any = _NOTHING

        self._on_changed_callbacks: List[Callable[[], None]] = []

    # ========== STATE ==========

    @property
    def current(self) -> Value:
        """Current value (the pending value while inside an atomic block)."""
        if self._atomic_pending is not _NOTHING:
            return self._atomic_pending
        return self._entries[self._cursor].value

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def entries(self) -> Tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def max_entries(self) -> int:
        return self._max_entries

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    @property
    def in_atomic(self) -> bool:
        return self._atomic_depth > 0

    def __len__(self) -> int:
        return len(self._entries)

    # ========== CALLBACKS ==========

    def add_changed_callback(self, callback: Callable[[], None]) -> None:
        """Subscribe to history change events (commit or cursor move)."""
        if callback not in self._on_changed_callbacks:
            self._on_changed_callbacks.append(callback)

    def remove_changed_callback(self, callback: Callable[[], None]) -> None:
        """Unsubscribe from history change events."""
        if callback in self._on_changed_callbacks:
            self._on_changed_callbacks.remove(callback)

    def _fire_changed_callbacks(self) -> None:
        for callback in self._on_changed_callbacks:
            try:
                callback()
            except Exception as e:
                logger.warning(f"Error in history changed callback: {e}")

    # ========== COMMIT ==========

    def commit(self, new_value: Any, label: str = "Update") -> bool:
        """Record ``new_value`` as the newest entry.

        No-op if it equals the current value. Entries after the cursor (the
        redo branch) are discarded.

        Returns:
            True if the value was accepted (recorded, or deferred inside an
            atomic block), False for a no-op.
        """
        value = as_value(new_value)

        # ATOMIC OPERATIONS: Defer recording until the outermost block exits
        if self._atomic_depth > 0:
            if value == self.current:
                return False
            self._atomic_pending = value
            logger.debug(f"HISTORY: Deferring '{label}' (depth={self._atomic_depth})")
            return True

        return self._record(value, label)

    def _record(self, value: Value, label: str) -> bool:
        if value == self._entries[self._cursor].value:
            logger.debug(f"HISTORY: Skipped no-op commit '{label}'")
            return False

        discarded = len(self._entries) - 1 - self._cursor
        del self._entries[self._cursor + 1:]
        self._entries.append(HistoryEntry.create(value, label))
        self._cursor = len(self._entries) - 1

        # Enforce cap: drop the oldest entry after the initial snapshot
        while len(self._entries) > self._max_entries:
            del self._entries[1]
            self._cursor -= 1

        self._revision += 1
        if discarded:
            logger.debug(f"HISTORY: Pruned {discarded} redo entr{'y' if discarded == 1 else 'ies'}")
        logger.debug(f"HISTORY: Recorded '{label}' (cursor={self._cursor})")
        self._fire_changed_callbacks()
        return True

    @contextmanager
    def atomic(self, label: str) -> Generator[None, None, None]:
        """Context manager for edits that should be a single undo step.

        All commits within the block are coalesced into one entry recorded
        when the outermost block exits. If the block raises, the pending
        value is discarded and history is left untouched.

        Example:
            with history.atomic("move item"):
                history.commit(delete(value, path))
                history.commit(insert(history.current, target, APPEND, item))
            # Single entry recorded here with label "move item"
        """
        self._atomic_depth += 1
        if self._atomic_depth == 1:
            self._atomic_label = label

        completed = False
        try:
            yield
            completed = True
        finally:
            self._atomic_depth -= 1
            if self._atomic_depth == 0:
                pending = self._atomic_pending
                final_label = self._atomic_label or label
                self._atomic_pending = _NOTHING
                self._atomic_label = None
                if not completed:
                    logger.debug(f"HISTORY: Discarded atomic block '{final_label}'")
                elif pending is not _NOTHING:
                    self._record(pending, final_label)

    # ========== CURSOR MOVES ==========

    def _ensure_not_atomic(self, operation: str) -> None:
        if self._atomic_depth > 0:
            raise RuntimeError(f"Cannot {operation} inside an atomic block")

    def _move_to(self, index: int) -> HistoryStep:
        self._cursor = index
        self._revision += 1
        logger.debug(f"HISTORY: Moved to '{self._entries[index].label}' (cursor={index})")
        self._fire_changed_callbacks()
        return HistoryStep(value=self.current, moved=True)

    def undo(self) -> HistoryStep:
        """Step back one entry, or report Boundary.AT_BEGINNING."""
        self._ensure_not_atomic("undo")
        if self._cursor == 0:
            return HistoryStep(value=self.current, moved=False, boundary=Boundary.AT_BEGINNING)
        return self._move_to(self._cursor - 1)

    def redo(self) -> HistoryStep:
        """Step forward one entry, or report Boundary.AT_END."""
        self._ensure_not_atomic("redo")
        if self._cursor == len(self._entries) - 1:
            return HistoryStep(value=self.current, moved=False, boundary=Boundary.AT_END)
        return self._move_to(self._cursor + 1)

    def jump_to(self, index: int) -> HistoryStep:
        """Move the cursor straight to ``index`` (negative counts from the end).

        Convenience method for UI timeline sliders.

        Raises:
            IndexError: if ``index`` is out of range.
        """
        self._ensure_not_atomic("jump")
        if index < 0:
            index = len(self._entries) + index
        if index < 0 or index >= len(self._entries):
            raise IndexError(f"History index out of range [0, {len(self._entries) - 1}]")
        if index == self._cursor:
            return HistoryStep(value=self.current, moved=False)
        return self._move_to(index)

    # ========== EXPORT ==========

    def describe(self) -> List[Dict[str, Any]]:
        """Human-readable history for UI display, oldest first."""
        return [
            {
                'index': i,
                'label': entry.label,
                'timestamp': entry.timestamp,
                'is_current': i == self._cursor,
            }
            for i, entry in enumerate(self._entries)
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Export history to a JSON-serializable dict."""
        return {
            'cursor': self._cursor,
            'max_entries': self._max_entries,
            'entries': [entry.to_dict() for entry in self._entries],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HistoryManager':
        """Import history from a dict produced by to_dict()."""
        entries = [HistoryEntry.from_dict(item) for item in data['entries']]
        if not entries:
            raise ValueError("History needs at least the initial entry")
        cursor = data['cursor']
        if not 0 <= cursor < len(entries):
            raise ValueError(f"History cursor {cursor} out of range [0, {len(entries) - 1}]")

        history = cls(entries[0].value, entries[0].label, data.get('max_entries', 1000))
        history._entries = entries
        history._cursor = cursor
        logger.debug(f"HISTORY: Imported {len(entries)} entries (cursor={cursor})")
        return history
