"""
Change Notification Tests

Verifies that listeners hear exactly one change per operation that altered
the mirror, and nothing for operations that did not.
"""

from unittest.mock import Mock

import pytest

from conftest import Note
from starstorage import ChangeAction, ChangeSignal, EntityStorage, MemoryContext, ModelContext, StorageChange


@pytest.fixture
def changes(notes):
    received = []
    notes.subscribe(received.append)
    return received


class TestStorageNotifications:
    """Notifications emitted by EntityStorage"""

    def test_fetch_notifies(self):
        storage = EntityStorage(Note)
        received = []
        storage.subscribe(received.append)
        record = Note(text="seed")

        storage.fetch(MemoryContext([record]))

        assert len(received) == 1
        assert received[0].action == ChangeAction.FETCH
        assert received[0].items == (record,)

    def test_append_notifies_with_snapshot(self, notes, changes):
        note = Note(text="a")

        notes.append(note)

        assert len(changes) == 1
        assert changes[0].action == ChangeAction.APPEND
        assert changes[0].inserted == (note,)
        assert changes[0].items == (note,)

    def test_batch_append_notifies_once(self, notes, changes):
        notes.append([Note(), Note(), Note()])

        assert len(changes) == 1
        assert len(changes[0].inserted) == 3

    def test_duplicate_append_is_silent(self, notes, changes):
        notes.append(Note(id="x"))
        changes.clear()

        notes.append(Note(id="x"))

        assert changes == []

    def test_remove_notifies_with_removed_records(self, notes, changes):
        note = Note(text="gone")
        notes.append(note)
        changes.clear()

        notes.remove(note)

        assert [c.action for c in changes] == [ChangeAction.REMOVE]
        assert changes[0].removed == (note,)
        assert changes[0].items == ()

    def test_remove_of_absent_record_is_silent(self, notes, changes):
        notes.remove(Note())

        assert changes == []

    def test_remove_all_notifies(self, notes, changes):
        notes.append([Note(), Note()])
        changes.clear()

        notes.remove_all()

        assert [c.action for c in changes] == [ChangeAction.REMOVE_ALL]
        assert len(changes[0].removed) == 2

    def test_replace_notifies_once(self, notes, changes):
        old = Note(id="1", text="A")
        notes.append(old)
        changes.clear()
        new = Note(id="1", text="B")

        notes.replace([new])

        assert len(changes) == 1
        change = changes[0]
        assert change.action == ChangeAction.REPLACE
        assert change.removed == (old,)
        assert change.inserted == (new,)
        assert change.items == (new,)

    def test_unbound_noop_is_silent(self):
        storage = EntityStorage(Note)
        received = []
        storage.subscribe(received.append)

        storage.append(Note())

        assert received == []

    def test_unsubscribe(self, notes, changes):
        notes.unsubscribe(changes.append)

        notes.append(Note())

        assert changes == []

    def _bind_failing(self, notes, records=(), **side_effects):
        context = Mock(spec=ModelContext)
        context.fetch.return_value = list(records)
        for name, effect in side_effects.items():
            getattr(context, name).side_effect = effect
        notes.fetch(context)
        received = []
        notes.subscribe(received.append)
        return received

    def test_partial_batch_append_still_notifies(self, notes):
        received = self._bind_failing(notes, insert=[None, RuntimeError("disk full")])
        first, second = Note(id="a"), Note(id="b")

        with pytest.raises(RuntimeError):
            notes.append([first, second])

        assert [n.id for n in notes] == ["a"]
        assert len(received) == 1
        assert received[0].action == ChangeAction.APPEND
        assert received[0].inserted == (first,)
        assert received[0].items == (first,)

    def test_partial_batch_remove_still_notifies(self, notes):
        first, second = Note(id="a"), Note(id="b")
        received = self._bind_failing(
            notes, [first, second], delete=[None, RuntimeError("locked")]
        )

        with pytest.raises(RuntimeError):
            notes.remove([first, second])

        assert [n.id for n in notes] == ["b"]
        assert len(received) == 1
        assert received[0].removed == (first,)

    def test_replace_failing_insert_notifies_applied_delete(self, notes):
        old = Note(id="1")
        received = self._bind_failing(notes, [old], insert=RuntimeError("disk full"))

        with pytest.raises(RuntimeError):
            notes.replace([Note(id="2")])

        assert notes.current_items() == []
        assert len(received) == 1
        assert received[0].action == ChangeAction.REPLACE
        assert received[0].removed == (old,)
        assert received[0].inserted == ()

    def test_failure_before_any_change_is_silent(self, notes):
        received = self._bind_failing(notes, insert=RuntimeError("disk full"))

        with pytest.raises(RuntimeError):
            notes.append([Note(), Note()])

        assert received == []

    def test_failing_listener_does_not_break_operation(self, notes, context, caplog):
        after = []
        notes.subscribe(Mock(side_effect=RuntimeError("render failed")))
        notes.subscribe(after.append)

        notes.append(Note(text="still stored"))

        assert len(notes) == 1
        assert len(context.records) == 1
        assert len(after) == 1
        assert "render failed" in caplog.text


class TestChangeSignal:
    """ChangeSignal listener list"""

    def test_subscribe_is_idempotent(self):
        signal = ChangeSignal()
        listener = Mock()

        signal.subscribe(listener)
        signal.subscribe(listener)

        assert signal.listener_count == 1

    def test_subscribe_as_decorator(self):
        signal = ChangeSignal()
        received = []

        @signal.subscribe
        def on_change(change):
            received.append(change.action)

        signal.emit(StorageChange(action=ChangeAction.APPEND, items=()))

        assert received == [ChangeAction.APPEND]
        assert on_change is not None

    def test_emit_in_subscription_order(self):
        signal = ChangeSignal()
        order = []
        signal.subscribe(lambda change: order.append("first"))
        signal.subscribe(lambda change: order.append("second"))

        signal.emit(StorageChange(action=ChangeAction.FETCH, items=()))

        assert order == ["first", "second"]

    def test_clear(self):
        signal = ChangeSignal()
        signal.subscribe(Mock())

        signal.clear()

        assert signal.listener_count == 0
