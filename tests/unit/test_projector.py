"""Unit tests for conversation projection."""

from webmail.mailbox.projector import NO_SUBJECT, ConversationProjector, project
from webmail.models import Attachment, SystemFolder


class TestProject:
    """Test suite for project()."""

    def test_groups_by_conversation_id(self, make_message) -> None:
        messages = [
            make_message("a1", conversation_id="A", minutes=1),
            make_message("b1", conversation_id="B", minutes=2),
            make_message("a2", conversation_id="A", minutes=3),
        ]

        conversations = project(messages)

        assert [c.id for c in conversations] == ["A", "B"]
        assert [e.id for e in conversations[0].emails] == ["a1", "a2"]

    def test_aggregate_state(self, make_message) -> None:
        """Read means all read; starred means any starred; folder follows the latest."""
        messages = [
            make_message("a1", conversation_id="A", minutes=1, is_read=True, is_starred=True),
            make_message(
                "a2",
                conversation_id="A",
                minutes=2,
                is_read=False,
                folder=SystemFolder.SPAM,
                attachments=[Attachment(file_name="x.txt", file_size=3)],
            ),
        ]

        (conversation,) = project(messages)

        assert conversation.is_read is False
        assert conversation.is_starred is True
        assert conversation.folder == "Spam"
        assert conversation.has_attachments is True
        assert conversation.last_timestamp == messages[1].timestamp
        assert conversation.subject == "Subject a2"

    def test_participants_distinct_in_first_seen_order(self, make_message) -> None:
        messages = [
            make_message("a1", conversation_id="A", minutes=1),
            make_message(
                "a2", conversation_id="A", minutes=2, sender_name="Bob", sender_email="bob@x.com"
            ),
            make_message("a3", conversation_id="A", minutes=3),
        ]

        (conversation,) = project(messages)

        assert [(p.name, p.email) for p in conversation.participants] == [
            ("Alice Example", "alice@example.com"),
            ("Bob", "bob@x.com"),
        ]

    def test_empty_subject_placeholder(self, make_message) -> None:
        (conversation,) = project([make_message("m1", subject="")])

        assert conversation.subject == NO_SUBJECT

    def test_equal_timestamps_keep_store_order(self, make_message) -> None:
        messages = [make_message("x"), make_message("y")]

        assert [c.id for c in project(messages)] == ["x", "y"]
        (thread,) = project([make_message("x", conversation_id="T"), make_message("y", conversation_id="T")])
        assert [e.id for e in thread.emails] == ["x", "y"]

    def test_idempotent_over_flattened_output(self, make_message) -> None:
        messages = [
            make_message("a1", conversation_id="A", minutes=5),
            make_message("b1", conversation_id="B", minutes=1),
            make_message("a2", conversation_id="A", minutes=2),
        ]

        first = project(messages)
        second = project([e for c in first for e in c.emails])

        assert first == second

    def test_empty_input(self) -> None:
        assert project([]) == []


class TestConversationProjector:
    """Test suite for the cached projector."""

    def test_same_snapshot_reuses_result(self, make_message) -> None:
        projector = ConversationProjector()
        snapshot = (make_message("m1"),)

        assert projector(snapshot) is projector(snapshot)

    def test_new_snapshot_recomputes(self, make_message) -> None:
        projector = ConversationProjector()

        first = projector((make_message("m1"),))
        second = projector((make_message("m1"), make_message("m2")))

        assert first is not second
        assert len(second) == 2
