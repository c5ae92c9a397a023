"""Tests for the linear undo/redo history."""
import logging

import pytest

from jsonstate import Boundary, HistoryManager, as_value


def v(data):
    return as_value(data)


class TestCommitUndoRedo:
    """Core cursor behaviour."""

    def test_initial_state(self):
        history = HistoryManager(v({"a": 1}), label="Initial Load")
        assert len(history) == 1
        assert history.cursor == 0
        assert history.current == v({"a": 1})
        assert history.entries[0].label == "Initial Load"
        assert not history.can_undo
        assert not history.can_redo

    def test_undo_redo_are_inverses(self):
        history = HistoryManager(v(0))
        history.commit(v(1))
        history.commit(v(2))
        assert history.undo().value == v(1)
        assert history.redo().value == v(2)

    def test_scenario_d(self):
        """A -> B -> C, undo twice to A, redo twice to C."""
        history = HistoryManager(v("A"))
        history.commit(v("B"), "to B")
        history.commit(v("C"), "to C")
        history.undo()
        assert history.undo().value == v("A")
        history.redo()
        assert history.redo().value == v("C")

    def test_commit_prunes_redo_branch(self):
        history = HistoryManager(v(0))
        history.commit(v(1))
        history.commit(v(2))
        history.undo()
        history.commit(v(3))
        step = history.redo()
        assert not step.moved
        assert step.boundary is Boundary.AT_END
        assert [entry.value for entry in history.entries] == [v(0), v(1), v(3)]

    def test_idempotent_commit(self):
        history = HistoryManager(v({"a": [1]}))
        assert history.commit(v({"a": [1]})) is False
        assert len(history) == 1
        history.commit(v({"a": [2]}))
        assert history.commit(v({"a": [2]})) is False
        assert len(history) == 2

    def test_no_op_commit_keeps_redo_branch(self):
        history = HistoryManager(v(0))
        history.commit(v(1))
        history.undo()
        history.commit(v(0))
        assert history.can_redo

    def test_boundaries_are_signals(self):
        history = HistoryManager(v(0))
        step = history.undo()
        assert step.value == v(0)
        assert not step.moved
        assert step.boundary is Boundary.AT_BEGINNING
        assert history.redo().boundary is Boundary.AT_END

    def test_plain_python_commit(self):
        history = HistoryManager({"a": 1})
        history.commit({"a": 2})
        assert history.current == v({"a": 2})

    def test_revision_counts_changes(self):
        history = HistoryManager(v(0))
        history.commit(v(1))
        history.undo()
        history.undo()
        assert history.revision == 2


class TestHistoryCap:
    """max_entries keeps the initial snapshot."""

    def test_oldest_after_initial_dropped(self):
        history = HistoryManager(v(0), max_entries=3)
        for i in range(1, 4):
            history.commit(v(i))
        assert [entry.value for entry in history.entries] == [v(0), v(2), v(3)]
        assert history.cursor == 2

    def test_cap_validated(self):
        with pytest.raises(ValueError):
            HistoryManager(v(0), max_entries=1)


class TestAtomic:
    """Coalescing several commits into one entry."""

    def test_coalesces_into_one_entry(self):
        history = HistoryManager(v([]))
        with history.atomic("batch"):
            history.commit(v([1]))
            history.commit(v([1, 2]))
            assert history.current == v([1, 2])
            assert len(history) == 1
        assert len(history) == 2
        assert history.entries[-1].label == "batch"
        assert history.undo().value == v([])

    def test_nested_blocks_record_once(self):
        history = HistoryManager(v(0))
        with history.atomic("outer"):
            with history.atomic("inner"):
                history.commit(v(1))
            assert len(history) == 1
            history.commit(v(2))
        assert len(history) == 2
        assert history.entries[-1].label == "outer"

    def test_exception_discards_pending(self):
        history = HistoryManager(v(0))
        with pytest.raises(KeyError):
            with history.atomic("broken"):
                history.commit(v(1))
                raise KeyError("boom")
        assert len(history) == 1
        assert history.current == v(0)

    def test_empty_block_records_nothing(self):
        history = HistoryManager(v(0))
        with history.atomic("nothing"):
            pass
        assert len(history) == 1

    def test_undo_inside_block_rejected(self):
        history = HistoryManager(v(0))
        with pytest.raises(RuntimeError):
            with history.atomic("x"):
                history.undo()


class TestNavigation:
    """jump_to and describe."""

    def test_jump_to(self):
        history = HistoryManager(v(0))
        history.commit(v(1))
        history.commit(v(2))
        assert history.jump_to(0).value == v(0)
        assert history.jump_to(-1).value == v(2)
        assert not history.jump_to(2).moved

    def test_jump_out_of_range(self):
        history = HistoryManager(v(0))
        with pytest.raises(IndexError):
            history.jump_to(5)

    def test_describe(self):
        history = HistoryManager(v(0), label="Initial Load")
        history.commit(v(1), "edit")
        info = history.describe()
        assert [item['label'] for item in info] == ["Initial Load", "edit"]
        assert [item['is_current'] for item in info] == [False, True]


class TestCallbacks:
    """History change listeners."""

    def test_fired_on_commit_and_moves(self):
        history = HistoryManager(v(0))
        calls = []
        history.add_changed_callback(lambda: calls.append(history.cursor))
        history.commit(v(1))
        history.undo()
        history.undo()
        assert calls == [1, 0]

    def test_removed_callback_not_fired(self):
        history = HistoryManager(v(0))
        calls = []
        callback = lambda: calls.append(1)
        history.add_changed_callback(callback)
        history.remove_changed_callback(callback)
        history.commit(v(1))
        assert calls == []

    def test_failing_callback_logged(self, caplog):
        history = HistoryManager(v(0))

        def broken():
            raise RuntimeError("listener failed")

        history.add_changed_callback(broken)
        with caplog.at_level(logging.WARNING, logger="jsonstate.history"):
            assert history.commit(v(1))
        assert "listener failed" in caplog.text
        assert history.current == v(1)


def test_export_import_round_trip():
    """to_dict/from_dict preserve entries, labels and cursor."""
    history = HistoryManager(v({"a": 1}), label="Initial Load", max_entries=10)
    history.commit(v({"a": 2}), "set a")
    history.commit(v({"a": 2, "b": []}), "add b")
    history.undo()

    restored = HistoryManager.from_dict(history.to_dict())
    assert restored.cursor == 1
    assert restored.max_entries == 10
    assert [entry.value for entry in restored.entries] == [entry.value for entry in history.entries]
    assert [entry.label for entry in restored.entries] == ["Initial Load", "set a", "add b"]
    assert restored.redo().value == v({"a": 2, "b": []})


def test_import_rejects_bad_cursor():
    data = HistoryManager(v(0)).to_dict()
    data['cursor'] = 3
    with pytest.raises(ValueError):
        HistoryManager.from_dict(data)
