"""
Tree-document editing engine for JSON-shaped values.

This package provides the editing core of a JSON navigator: path-addressed
copy-on-write mutations, per-document undo/redo history, a view-state overlay
kept apart from the data, substring search, and a multi-document workspace.

Key Features:
- Immutable Value trees (Scalar / ObjectNode / ArrayNode) with structural sharing
- get/set/delete/insert/rename_key addressed by Path or "a.b[2].c" text
- Linear commit/undo/redo history with atomic (coalesced) edits
- Expansion and bookmarks that never show up in undo/redo
- Workspace with dirty tracking and confirmed close of unsaved documents

Quick Start:
    >>> from jsonstate import WorkspaceManager
    >>>
    >>> workspace = WorkspaceManager()
    >>> doc_id = workspace.create_document({"a": 1, "b": [10, 20]}, name="demo")
    >>> doc = workspace.get_document(doc_id)
    >>>
    >>> doc.set("b[0]", 99)
    True
    >>> doc.undo().value == doc.history.entries[0].value
    True

Architecture:
    UI event → mutation (pure, copy-on-write) → Document commit → HistoryManager
    Undo/redo only move the history cursor; the overlay and search read the
    current value and never write to it.

Modules:
    - value_model: Immutable tree node types and conversion from/to Python data
    - paths: Path type, canonical text encoding, path arithmetic
    - mutation: Copy-on-write operations
    - history: HistoryManager ("Chronos")
    - overlay: ViewStateOverlay (expansion, bookmarks)
    - search: Substring matcher with ancestor propagation
    - codec: Serialization collaborator (JSON)
    - workspace: Document and WorkspaceManager
    - config: EditorConfig tunables
    - errors: Error taxonomy
"""

# Values
from jsonstate.value_model import (
    Scalar,
    ObjectNode,
    ArrayNode,
    Value,
    as_value,
    to_python,
    parse_scalar,
    is_container,
    iter_children,
    node_kind,
)

# Paths
from jsonstate.paths import (
    APPEND,
    ROOT,
    Path,
    Segment,
    encode_path,
    decode_path,
    normalize_path,
    parent_path,
    last_segment,
    child_path,
    ancestors,
    is_ancestor,
)

# Mutation engine
from jsonstate.mutation import (
    get,
    set,
    replace_root,
    delete,
    insert,
    rename_key,
    add_sibling,
    resolves,
    iter_nodes,
)

# History
from jsonstate.history import Boundary, HistoryEntry, HistoryManager, HistoryStep

# Overlay
from jsonstate.overlay import ViewStateOverlay, path_key

# Search
from jsonstate.search import SearchResult, match

# Codec
from jsonstate.codec import Codec, JsonCodec, serialize, deserialize

# Workspace
from jsonstate.workspace import CloseToken, Document, WorkspaceManager

# Configuration
from jsonstate.config import DEFAULT_CONFIG, EditorConfig

# Errors
from jsonstate.errors import (
    ErrorCode,
    JsonStateError,
    MutationError,
    PathNotFound,
    IndexOutOfBounds,
    TypeMismatch,
    RootMutationDenied,
    KeyCollision,
    WorkspaceConflict,
    DirtyCloseRequiresConfirmation,
    PathSyntaxError,
    ParseError,
    CyclicValueError,
)

__all__ = [
    # Values
    'Scalar',
    'ObjectNode',
    'ArrayNode',
    'Value',
    'as_value',
    'to_python',
    'parse_scalar',
    'is_container',
    'iter_children',
    'node_kind',
    # Paths
    'APPEND',
    'ROOT',
    'Path',
    'Segment',
    'encode_path',
    'decode_path',
    'normalize_path',
    'parent_path',
    'last_segment',
    'child_path',
    'ancestors',
    'is_ancestor',
    # Mutation engine
    'get',
    'set',
    'replace_root',
    'delete',
    'insert',
    'rename_key',
    'add_sibling',
    'resolves',
    'iter_nodes',
    # History
    'Boundary',
    'HistoryEntry',
    'HistoryManager',
    'HistoryStep',
    # Overlay
    'ViewStateOverlay',
    'path_key',
    # Search
    'SearchResult',
    'match',
    # Codec
    'Codec',
    'JsonCodec',
    'serialize',
    'deserialize',
    # Workspace
    'CloseToken',
    'Document',
    'WorkspaceManager',
    # Configuration
    'DEFAULT_CONFIG',
    'EditorConfig',
    # Errors
    'ErrorCode',
    'JsonStateError',
    'MutationError',
    'PathNotFound',
    'IndexOutOfBounds',
    'TypeMismatch',
    'RootMutationDenied',
    'KeyCollision',
    'WorkspaceConflict',
    'DirtyCloseRequiresConfirmation',
    'PathSyntaxError',
    'ParseError',
    'CyclicValueError',
]

__version__ = "0.1.0"
