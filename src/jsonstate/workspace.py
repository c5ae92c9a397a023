"""
Workspace: the set of open documents plus which one is active.

Document bundles one value with its own HistoryManager and ViewStateOverlay.
Edits go through the copy-on-write engine and are committed into that
document's history in the same call, so an edit is either fully recorded or
leaves every piece of state untouched.

WorkspaceManager owns the documents. Each document's history and overlay are
private to it; no operation on one document can observe or change another.

Thread safety: Not thread-safe (all operations expected on one thread).
Results of asynchronous work (cloud loads, suggestions) must re-enter through
the same synchronous edit methods.
"""

from dataclasses import dataclass
import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple
import uuid

from jsonstate import mutation
from jsonstate.codec import Codec, JsonCodec
from jsonstate.config import DEFAULT_CONFIG, EditorConfig
from jsonstate.errors import DirtyCloseRequiresConfirmation, TypeMismatch, WorkspaceConflict
from jsonstate.history import HistoryManager, HistoryStep
from jsonstate.overlay import ViewStateOverlay
from jsonstate.paths import Path, encode_path, normalize_path
from jsonstate.search import SearchResult, match
from jsonstate.value_model import ObjectNode, Scalar, Value, as_value, parse_scalar, to_python

logger = logging.getLogger(__name__)


def _label_path(path: Path) -> str:
    return encode_path(path) if path else "<root>"


@dataclass(frozen=True)
class CloseToken:
    """Confirmation that unsaved changes of a document may be discarded.

    Valid only for the same document at the same history revision; any
    further edit, undo or redo makes it stale.
    """
    document_id: str
    revision: int


class Document:
    """One open document: value, saved baseline, history and overlay.

    Everything else is derived:
    - value → history.current
    - is_dirty → value != last_saved_value
    """

    def __init__(
        self,
        document_id: str,
        name: str,
        initial_value: Any,
        config: EditorConfig = DEFAULT_CONFIG,
    ):
        self.id = document_id
        self.name = name
        self.history = HistoryManager(
            as_value(initial_value),
            label=config.initial_label,
            max_entries=config.max_history_size,
        )
        self.overlay = ViewStateOverlay(default_depth=config.default_expansion_depth)
        self._last_saved_value: Value = self.history.current

    def __repr__(self):
        return f"Document(id={self.id!r}, name={self.name!r}, dirty={self.is_dirty})"

    @property
    def value(self) -> Value:
        return self.history.current

    @property
    def last_saved_value(self) -> Value:
        return self._last_saved_value

    @property
    def is_dirty(self) -> bool:
        return self.value != self._last_saved_value

    def mark_saved(self) -> None:
        """Make the current value the saved baseline."""
        self._last_saved_value = self.value
        logger.debug(f"WORKSPACE: Marked {self.id} saved")

    # ========== EDITS (engine + commit) ==========

    def get(self, path) -> Value:
        return mutation.get(self.value, path)

    def commit(self, new_value: Any, label: str = "Update") -> bool:
        """Commit an externally computed value (e.g. an async result)."""
        return self.history.commit(new_value, label)

    def set(self, path, new_value: Any, label: Optional[str] = None) -> bool:
        path = normalize_path(path)
        result = mutation.set(self.value, path, new_value)
        return self.history.commit(result, label or f"Update node at {_label_path(path)}")

    def set_from_text(self, path, text: str, label: Optional[str] = None) -> bool:
        """Replace a scalar with edited text parsed as the scalar's current kind.

        Raises:
            TypeMismatch: the node at ``path`` is a container.
            ParseError: ``text`` is not a valid literal of that kind.
        """
        path = normalize_path(path)
        node = self.get(path)
        if not isinstance(node, Scalar):
            raise TypeMismatch(f"Only scalars can be edited as text; {_label_path(path)} is a container", path)
        return self.set(path, parse_scalar(text, node.kind), label)

    def replace_root(self, new_value: Any, label: str = "Replace document") -> bool:
        return self.history.commit(mutation.replace_root(self.value, new_value), label)

    def delete(self, path, label: Optional[str] = None) -> bool:
        path = normalize_path(path)
        result = mutation.delete(self.value, path)
        return self.history.commit(result, label or f"Delete node at {_label_path(path)}")

    def insert(self, parent_path, key: Any, new_value: Any, label: Optional[str] = None) -> bool:
        parent_path = normalize_path(parent_path)
        result = mutation.insert(self.value, parent_path, key, new_value)
        return self.history.commit(result, label or f"Add node at {_label_path(parent_path)} with key {key!r}")

    def rename_key(self, path, new_key: str, label: Optional[str] = None) -> bool:
        path = normalize_path(path)
        result = mutation.rename_key(self.value, path, new_key)
        return self.history.commit(result, label or f"Rename {_label_path(path)} to {new_key!r}")

    def add_sibling(self, path, new_value: Any, key: Optional[str] = None, label: Optional[str] = None) -> bool:
        path = normalize_path(path)
        result = mutation.add_sibling(self.value, path, new_value, key=key)
        return self.history.commit(result, label or f"Add sibling of {_label_path(path)}")

    def atomic(self, label: str):
        """Coalesce the edits made inside the block into one undo step."""
        return self.history.atomic(label)

    # ========== HISTORY ==========

    def undo(self) -> HistoryStep:
        return self.history.undo()

    def redo(self) -> HistoryStep:
        return self.history.redo()

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    # ========== VIEW ==========

    def search(self, query: str) -> SearchResult:
        return match(self.value, query)

    def reveal_matches(self, query: str) -> SearchResult:
        """Search and force-expand the ancestors of every hit."""
        result = self.search(query)
        for path in result.ancestors:
            self.overlay.set_expanded(path, True)
        return result

    # ========== EXPORT ==========

    def to_dict(self) -> Dict[str, Any]:
        """Export the full document state to a JSON-serializable dict."""
        return {
            'id': self.id,
            'name': self.name,
            'last_saved_value': to_python(self._last_saved_value),
            'history': self.history.to_dict(),
            'overlay': self.overlay.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], config: EditorConfig = DEFAULT_CONFIG) -> 'Document':
        """Import a document from a dict produced by to_dict()."""
        history = HistoryManager.from_dict(data['history'])
        document = cls(data['id'], data['name'], history.entries[0].value, config)
        document.history = history
        document.overlay = ViewStateOverlay.from_dict(data['overlay'])
        document._last_saved_value = as_value(data['last_saved_value'])
        return document


class WorkspaceManager:
    """Owns the open documents and tracks the active one.

    Invariant: whenever documents exist, active_id names one of them. The
    last remaining document cannot be closed.
    """

    def __init__(self, config: Optional[EditorConfig] = None, codec: Optional[Codec] = None):
        """
        Args:
            config: Editor tunables handed to every document
            codec: Serialization collaborator; defaults to JsonCodec
        """
        self._config = config or DEFAULT_CONFIG
        self._codec = codec or JsonCodec(indent=self._config.serialize_indent)
        self._documents: Dict[str, Document] = {}
        self._active_id: Optional[str] = None
        self._untitled_counter = 0

        # Lifecycle callbacks receive (event, document_id), event in
        # {"created", "closed", "switched", "saved"}
        self._on_changed_callbacks: List[Callable[[str, str], None]] = []

    # ========== CALLBACKS ==========

    def add_changed_callback(self, callback: Callable[[str, str], None]) -> None:
        """Subscribe to document lifecycle events."""
        if callback not in self._on_changed_callbacks:
            self._on_changed_callbacks.append(callback)

    def remove_changed_callback(self, callback: Callable[[str, str], None]) -> None:
        if callback in self._on_changed_callbacks:
            self._on_changed_callbacks.remove(callback)

    def _fire_changed_callbacks(self, event: str, document_id: str) -> None:
        for callback in self._on_changed_callbacks:
            try:
                callback(event, document_id)
            except Exception as e:
                logger.warning(f"Error in workspace {event} callback: {e}")

    # ========== LOOKUP ==========

    @property
    def config(self) -> EditorConfig:
        return self._config

    @property
    def active_id(self) -> Optional[str]:
        return self._active_id

    @property
    def active_document(self) -> Optional[Document]:
        return self._documents.get(self._active_id) if self._active_id else None

    @property
    def documents(self) -> Tuple[Document, ...]:
        return tuple(self._documents.values())

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, document_id) -> bool:
        return document_id in self._documents

    def __iter__(self) -> Iterator[Document]:
        return iter(tuple(self._documents.values()))

    def get_document(self, document_id: str) -> Document:
        """Return the document, or raise WorkspaceConflict for an unknown id."""
        document = self._documents.get(document_id)
        if document is None:
            raise WorkspaceConflict(f"Unknown document {document_id!r}", document_id)
        return document

    def dirty_documents(self) -> List[Document]:
        return [document for document in self._documents.values() if document.is_dirty]

    # ========== LIFECYCLE ==========

    def create_document(self, initial_value: Any = None, name: Optional[str] = None) -> str:
        """Open a new document and make it active.

        Args:
            initial_value: Starting value (plain data or Value); an empty
                object when omitted
            name: Display name; "Untitled-N" when omitted

        Returns:
            The new document id.
        """
        value = ObjectNode() if initial_value is None else as_value(initial_value)
        if name is None:
            self._untitled_counter += 1
            name = f"{self._config.untitled_prefix}-{self._untitled_counter}"

        document_id = str(uuid.uuid4())
        self._documents[document_id] = Document(document_id, name, value, self._config)
        self._active_id = document_id

        logger.info(f"WORKSPACE: Created {name!r} ({document_id[:8]})")
        self._fire_changed_callbacks("created", document_id)
        return document_id

    def confirmation_token(self, document_id: str) -> CloseToken:
        """Issue a token confirming the discard of unsaved changes."""
        document = self.get_document(document_id)
        return CloseToken(document_id=document_id, revision=document.history.revision)

    def close_document(self, document_id: str, confirmation: Optional[CloseToken] = None) -> None:
        """Close a document, destroying its history and overlay.

        Raises:
            WorkspaceConflict: unknown id, or the last remaining document.
            DirtyCloseRequiresConfirmation: the document has unsaved changes
                and ``confirmation`` is not a current token for it.
        """
        document = self.get_document(document_id)
        if len(self._documents) == 1:
            raise WorkspaceConflict("Cannot close the last document", document_id)

        if document.is_dirty:
            expected = self.confirmation_token(document_id)
            if confirmation != expected:
                raise DirtyCloseRequiresConfirmation(
                    f"Document {document.name!r} has unsaved changes", document_id, expected
                )
            logger.info(f"WORKSPACE: Discarding unsaved changes of {document.name!r}")

        del self._documents[document_id]
        if self._active_id == document_id:
            self._active_id = next(iter(self._documents))

        logger.info(f"WORKSPACE: Closed {document.name!r} ({document_id[:8]})")
        self._fire_changed_callbacks("closed", document_id)

    def switch_active(self, document_id: str) -> Document:
        document = self.get_document(document_id)
        if self._active_id != document_id:
            self._active_id = document_id
            logger.debug(f"WORKSPACE: Switched to {document.name!r}")
            self._fire_changed_callbacks("switched", document_id)
        return document

    def rename_document(self, document_id: str, name: str) -> None:
        if not name:
            raise ValueError("Document name cannot be empty")
        self.get_document(document_id).name = name

    def mark_saved(self, document_id: str) -> None:
        """Acknowledge that the document's current value was persisted."""
        self.get_document(document_id).mark_saved()
        self._fire_changed_callbacks("saved", document_id)

    # ========== CODEC ==========

    def serialize_document(self, document_id: str) -> str:
        return self._codec.serialize(self.get_document(document_id).value)

    def load_text(self, document_id: str, text: str, label: str = "Input Change") -> bool:
        """Parse ``text`` and commit it as the document's new value.

        Raises:
            ParseError: the text could not be parsed; nothing changes.
        """
        document = self.get_document(document_id)
        return document.replace_root(self._codec.deserialize(text), label)

    def save_document(self, document_id: str, sink: Callable[[str, str], Any]) -> str:
        """Serialize the document, hand it to ``sink``, then mark it saved.

        ``sink(document_id, text)`` is the persistence collaborator. If it
        raises, the document stays dirty and the error propagates.

        Returns:
            The serialized text.
        """
        text = self.serialize_document(document_id)
        sink(document_id, text)
        self.mark_saved(document_id)
        return text

    # ========== EXPORT ==========

    def export_document(self, document_id: str) -> Dict[str, Any]:
        return self.get_document(document_id).to_dict()

    def import_document(self, data: Dict[str, Any], activate: bool = True) -> str:
        """Reopen a document exported with export_document().

        Raises:
            WorkspaceConflict: a document with the same id is already open.
        """
        if data['id'] in self._documents:
            raise WorkspaceConflict(f"Document {data['id']!r} is already open", data['id'])
        document = Document.from_dict(data, self._config)
        self._documents[document.id] = document
        if activate or self._active_id is None:
            self._active_id = document.id

        logger.info(f"WORKSPACE: Imported {document.name!r} ({document.id[:8]})")
        self._fire_changed_callbacks("created", document.id)
        return document.id
