"""Tests for the view-state overlay."""
from jsonstate import ViewStateOverlay, as_value, delete


class TestExpansion:
    """Default depth policy and explicit overrides."""

    def test_default_depth_policy(self):
        overlay = ViewStateOverlay(default_depth=1)
        assert overlay.is_expanded(())
        assert overlay.is_expanded(("a",))
        assert not overlay.is_expanded(("a", "b"))

    def test_root_always_default_expanded(self):
        overlay = ViewStateOverlay(default_depth=-1)
        assert overlay.is_expanded(())
        assert not overlay.is_expanded(("a",))

    def test_explicit_entry_wins(self):
        overlay = ViewStateOverlay(default_depth=1)
        overlay.set_expanded(("a",), False)
        overlay.set_expanded(("a", "b", 0), True)
        assert not overlay.is_expanded(("a",))
        assert overlay.is_expanded("a.b[0]")

    def test_toggle_and_clear(self):
        overlay = ViewStateOverlay(default_depth=0)
        assert overlay.toggle_expanded(("x",)) is True
        assert overlay.toggle_expanded(("x",)) is False
        overlay.clear_expanded(("x",))
        assert overlay.expansion_overrides() == {}

    def test_text_and_tuple_paths_share_entries(self):
        overlay = ViewStateOverlay(default_depth=0)
        overlay.set_expanded("a.b", True)
        assert overlay.is_expanded(("a", "b"))

    def test_expand_to(self):
        overlay = ViewStateOverlay(default_depth=0)
        overlay.expand_to(("a", 0, "b"))
        assert overlay.is_expanded(("a",))
        assert overlay.is_expanded(("a", 0))
        assert not overlay.is_expanded(("a", 0, "b"))

    def test_expand_all_respects_max_depth(self, sample_value):
        overlay = ViewStateOverlay(default_depth=0)
        count = overlay.expand_all(sample_value, max_depth=1)
        # root, features, config (metadata sits at depth 2)
        assert count == 3
        assert overlay.is_expanded(("config",))
        assert not overlay.is_expanded(("config", "metadata"))

    def test_expand_all_unlimited(self, sample_value):
        overlay = ViewStateOverlay(default_depth=0)
        assert overlay.expand_all(sample_value) == 4
        assert overlay.is_expanded(("config", "metadata"))

    def test_collapse_all_keeps_root_open(self, sample_value):
        overlay = ViewStateOverlay(default_depth=5)
        overlay.collapse_all(sample_value)
        assert overlay.is_expanded(())
        assert not overlay.is_expanded(("config",))
        assert not overlay.is_expanded(("features",))


class TestBookmarks:
    """Insertion-ordered bookmarks."""

    def test_toggle_and_order(self):
        overlay = ViewStateOverlay()
        assert overlay.toggle_bookmark(("b",)) is True
        assert overlay.toggle_bookmark(("a", 0)) is True
        assert overlay.toggle_bookmark(()) is True
        assert overlay.list_bookmarks() == ["b", "a[0]", ""]
        assert overlay.toggle_bookmark(("b",)) is False
        assert overlay.list_bookmarks() == ["a[0]", ""]
        assert overlay.bookmark_paths() == [("a", 0), ()]

    def test_is_bookmarked(self):
        overlay = ViewStateOverlay()
        overlay.toggle_bookmark('["odd key"]')
        assert overlay.is_bookmarked(("odd key",))


class TestStaleness:
    """Entries for deleted paths are inert and optionally swept."""

    def test_stale_entries_kept_until_sweep(self):
        value = as_value({"a": {"b": 1}, "c": 2})
        overlay = ViewStateOverlay(default_depth=0)
        overlay.set_expanded(("a",), True)
        overlay.toggle_bookmark(("a", "b"))
        overlay.toggle_bookmark(("c",))

        value = delete(value, ("a",))
        assert overlay.list_bookmarks() == ["a.b", "c"]

        assert overlay.sweep(value) == 2
        assert overlay.list_bookmarks() == ["c"]
        assert overlay.expansion_overrides() == {}

    def test_sweep_keeps_root(self):
        overlay = ViewStateOverlay()
        overlay.set_expanded((), False)
        assert overlay.sweep(as_value(1)) == 0


def test_export_import_round_trip():
    overlay = ViewStateOverlay(default_depth=3)
    overlay.set_expanded(("a",), False)
    overlay.toggle_bookmark(("x", 1))
    overlay.toggle_bookmark(("a.b",))

    restored = ViewStateOverlay.from_dict(overlay.to_dict())
    assert restored.default_depth == 3
    assert restored.expansion_overrides() == {"a": False}
    assert restored.list_bookmarks() == ["x[1]", '["a.b"]']
