"""Unit tests for the message store."""

import pytest

from webmail.exceptions import DuplicateMessageError, ValidationError
from webmail.mailbox.store import MessageStore, apply_patch
from webmail.models import SystemFolder


class TestMessageStore:
    """Test suite for MessageStore."""

    def test_insert_prepends(self, make_message) -> None:
        store = MessageStore([make_message("m1")])

        store.insert(make_message("m2"))

        assert [m.id for m in store.get()] == ["m2", "m1"]

    def test_duplicate_insert_leaves_store_unchanged(self, make_message) -> None:
        store = MessageStore([make_message("m1")])
        before = store.get()

        with pytest.raises(DuplicateMessageError):
            store.insert(make_message("m1", subject="again"))

        assert store.get() is before
        assert store.version == 0

    def test_update_where_counts_and_revalidates(self, make_message) -> None:
        store = MessageStore([make_message("m1"), make_message("m2")])

        changed = store.update_where(lambda m: m.id == "m1", {"is_read": True})

        assert changed == 1
        assert store.find("m1").is_read is True
        assert store.find("m2").is_read is False

    def test_update_with_callable_patch(self, make_message) -> None:
        store = MessageStore([make_message("m1", is_starred=True)])

        store.update_where(lambda m: True, lambda m: {"is_starred": not m.is_starred})

        assert store.find("m1").is_starred is False

    def test_leaving_scheduled_clears_send_time(self, make_message) -> None:
        """Any move out of Scheduled drops the send time."""
        message = make_message(
            "m1",
            folder=SystemFolder.SCHEDULED,
            scheduled_send_time=make_message("x").timestamp,
        )
        store = MessageStore([message])

        store.update_where(lambda m: True, {"folder": SystemFolder.DRAFTS.value})

        assert store.find("m1").scheduled_send_time is None

    def test_invalid_patch_is_rejected(self, make_message) -> None:
        store = MessageStore([make_message("m1")])

        with pytest.raises(ValidationError):
            store.update_where(lambda m: True, {"timestamp": "not a date"})

        assert store.version == 0

    def test_remove_where(self, make_message) -> None:
        store = MessageStore([make_message("m1"), make_message("m2")])

        assert store.remove_where(lambda m: m.id == "m2") == 1
        assert [m.id for m in store.get()] == ["m1"]

    def test_no_op_does_not_notify(self, make_message) -> None:
        store = MessageStore([make_message("m1")])
        calls = []
        store.subscribe(calls.append)

        store.update_where(lambda m: False, {"is_read": True})
        store.remove_where(lambda m: False)

        assert calls == []

    def test_patch_that_changes_nothing_is_not_committed(self, make_message) -> None:
        store = MessageStore([make_message("m1", is_read=True), make_message("m2")])
        calls = []
        store.subscribe(calls.append)

        changed = store.update_where(lambda m: m.id == "m1", {"is_read": True})

        assert changed == 0
        assert store.version == 0
        assert calls == []

    def test_transaction_commits_once(self, make_message) -> None:
        store = MessageStore([make_message("m1")])
        calls = []
        store.subscribe(calls.append)

        with store.transaction():
            store.insert(make_message("m2"))
            store.update_where(lambda m: m.id == "m1", {"is_read": True})
            assert len(calls) == 0

        assert len(calls) == 1
        assert store.version == 1
        assert {m.id for m in calls[0]} == {"m1", "m2"}

    def test_transaction_rolls_back_on_error(self, make_message) -> None:
        store = MessageStore([make_message("m1")])
        before = store.get()

        with pytest.raises(DuplicateMessageError):
            with store.transaction():
                store.insert(make_message("m2"))
                store.insert(make_message("m2"))

        assert store.get() is before

    def test_listener_mutation_is_rejected(self, make_message) -> None:
        """Mutating the store from a listener is reentrant and refused."""
        store = MessageStore()
        errors = []

        def listener(messages) -> None:
            try:
                store.insert(make_message("m-nested"))
            except RuntimeError as exc:
                errors.append(exc)

        store.subscribe(listener)
        store.insert(make_message("m1"))

        assert len(errors) == 1
        assert store.find("m-nested") is None

    def test_unsubscribe(self, make_message) -> None:
        store = MessageStore()
        calls = []
        unsubscribe = store.subscribe(calls.append)

        unsubscribe()
        store.insert(make_message("m1"))

        assert calls == []


def test_apply_patch_returns_new_record(make_message) -> None:
    message = make_message("m1")

    patched = apply_patch(message, {"is_starred": True})

    assert patched is not message
    assert message.is_starred is False
    assert patched.is_starred is True
