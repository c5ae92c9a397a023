"""
Error taxonomy for tree-document editing.

Every failure is a catchable exception carrying an ErrorCode, so callers can
branch on ``exc.code`` or on the class hierarchy, whichever reads better:

    MutationError         - engine failures (value left untouched)
      PathNotFound
        IndexOutOfBounds  - array index outside the allowed range
      TypeMismatch
      RootMutationDenied
      KeyCollision
    WorkspaceConflict
    DirtyCloseRequiresConfirmation
    PathSyntaxError       - malformed canonical path text
    ParseError            - codec could not read the text
    CyclicValueError      - Python input that refers back to itself

History boundaries (nothing left to undo/redo) are NOT errors; see
``jsonstate.history.Boundary``.
"""

from enum import Enum
from typing import Any, Optional, Tuple


class ErrorCode(Enum):
    PATH_NOT_FOUND = "PathNotFound"
    TYPE_MISMATCH = "TypeMismatch"
    INDEX_OUT_OF_BOUNDS = "IndexOutOfBounds"
    ROOT_MUTATION_DENIED = "RootMutationDenied"
    KEY_COLLISION = "KeyCollision"
    WORKSPACE_CONFLICT = "WorkspaceConflict"
    DIRTY_CLOSE_REQUIRES_CONFIRMATION = "DirtyCloseRequiresConfirmation"
    PATH_SYNTAX = "PathSyntax"
    PARSE_ERROR = "ParseError"
    CYCLIC_VALUE = "CyclicValue"


class JsonStateError(Exception):
    """Base class for all jsonstate errors."""
    code: ErrorCode = None  # set by subclasses


class MutationError(JsonStateError):
    """A path-addressed operation could not be applied.

    Attributes:
        path: The path (tuple of segments) the operation was addressing.
    """

    def __init__(self, message: str, path: Tuple[Any, ...] = ()):
        super().__init__(message)
        self.path = tuple(path)


class PathNotFound(MutationError):
    code = ErrorCode.PATH_NOT_FOUND


class IndexOutOfBounds(PathNotFound):
    code = ErrorCode.INDEX_OUT_OF_BOUNDS


class TypeMismatch(MutationError):
    code = ErrorCode.TYPE_MISMATCH


class RootMutationDenied(MutationError):
    code = ErrorCode.ROOT_MUTATION_DENIED


class KeyCollision(MutationError):
    code = ErrorCode.KEY_COLLISION


class WorkspaceConflict(JsonStateError):
    code = ErrorCode.WORKSPACE_CONFLICT

    def __init__(self, message: str, document_id: Optional[str] = None):
        super().__init__(message)
        self.document_id = document_id


class DirtyCloseRequiresConfirmation(JsonStateError):
    """Closing a document with unsaved changes needs an explicit token.

    The exception carries a freshly issued ``token``; passing it back to
    ``WorkspaceManager.close_document`` confirms the discard.
    """
    code = ErrorCode.DIRTY_CLOSE_REQUIRES_CONFIRMATION

    def __init__(self, message: str, document_id: str, token: Any):
        super().__init__(message)
        self.document_id = document_id
        self.token = token


class PathSyntaxError(JsonStateError, ValueError):
    code = ErrorCode.PATH_SYNTAX

    def __init__(self, message: str, text: str, position: int):
        super().__init__(f"{message} at position {position} in {text!r}")
        self.text = text
        self.position = position


class ParseError(JsonStateError, ValueError):
    code = ErrorCode.PARSE_ERROR

    def __init__(self, message: str, line: int = 0, column: int = 0):
        super().__init__(message)
        self.line = line
        self.column = column


class CyclicValueError(JsonStateError, ValueError):
    code = ErrorCode.CYCLIC_VALUE
