"""
Editor configuration.

EditorConfig gathers the tunables of the editing core. It is passed
explicitly to the objects that need it (WorkspaceManager hands it down to
each document's history and overlay); there is no ambient global copy.

    >>> config = EditorConfig().with_overrides(default_expansion_depth=1)
    >>> workspace = WorkspaceManager(config=config)
"""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class EditorConfig:
    """Tunables for history, overlay and workspace behaviour."""
    # Nodes at depth <= this are expanded unless an explicit entry says otherwise
    default_expansion_depth: int = 2
    # Max history entries per document (entries[0] is always kept)
    max_history_size: int = 1000
    # Label of the first history entry of every document
    initial_label: str = "Initial Load"
    # New documents are named f"{untitled_prefix}-{n}"
    untitled_prefix: str = "Untitled"
    # Indent used by the default JSON codec (None = compact)
    serialize_indent: int = 2

    def __post_init__(self):
        if self.max_history_size < 2:
            raise ValueError(f"max_history_size must be at least 2, got {self.max_history_size}")

    def with_overrides(self, **changes) -> 'EditorConfig':
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


DEFAULT_CONFIG = EditorConfig()
