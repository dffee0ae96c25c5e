"""Unit tests for the displayed-list filter and search."""

import pytest

from webmail.mailbox.projector import project
from webmail.mailbox.views import display, parse_query
from webmail.models import Attachment, SystemFolder


@pytest.fixture
def conversations(make_message):
    return project(
        [
            make_message("inbox-1", minutes=1, subject="Quarterly report"),
            make_message("inbox-2", minutes=5, is_starred=True, is_read=True),
            make_message("trash-1", minutes=3, folder=SystemFolder.TRASH, is_starred=True,
                         subject="Old report"),
            make_message("spam-1", minutes=2, folder=SystemFolder.SPAM, body="<p>cheap report</p>"),
            make_message("proj-1", minutes=4, folder="Projects", sender_name="Carol",
                         sender_email="carol@corp.com",
                         attachments=[Attachment(file_name="plan.pdf", file_size=1)]),
        ]
    )


class TestDisplay:
    """Test suite for display()."""

    def test_folder_filter_sorted_newest_first(self, conversations) -> None:
        result = display(conversations, SystemFolder.INBOX)

        assert [c.id for c in result] == ["inbox-2", "inbox-1"]

    def test_user_folder(self, conversations) -> None:
        assert [c.id for c in display(conversations, "Projects")] == ["proj-1"]

    def test_starred_view_excludes_trash(self, conversations) -> None:
        assert [c.id for c in display(conversations, SystemFolder.STARRED)] == ["inbox-2"]

    def test_search_is_global(self, conversations) -> None:
        """A query ignores the folder and finds Trash and Spam too."""
        result = display(conversations, SystemFolder.INBOX, "REPORT")

        assert [c.id for c in result] == ["trash-1", "spam-1", "inbox-1"]

    def test_search_matches_sender_name(self, conversations) -> None:
        assert [c.id for c in display(conversations, SystemFolder.SENT, "carol")] == ["proj-1"]

    def test_blank_query_uses_folder(self, conversations) -> None:
        assert [c.id for c in display(conversations, SystemFolder.SPAM, "   ")] == ["spam-1"]

    def test_unknown_folder_is_empty(self, conversations) -> None:
        assert display(conversations, "Deleted Folder") == []

    def test_operators(self, conversations) -> None:
        assert [c.id for c in display(conversations, SystemFolder.INBOX, "from:carol")] == ["proj-1"]
        assert [c.id for c in display(conversations, SystemFolder.INBOX, "has:attachment")] == [
            "proj-1"
        ]
        assert [c.id for c in display(conversations, SystemFolder.INBOX, "is:starred report")] == [
            "trash-1"
        ]

    def test_is_unread_operator(self, conversations) -> None:
        result = display(conversations, SystemFolder.INBOX, "is:unread subject:report")

        assert [c.id for c in result] == ["trash-1", "inbox-1"]


def test_parse_query_splits_operators_from_text() -> None:
    filters, text = parse_query("From:Alice quarterly  is:unread numbers")

    assert [(f.operator, f.value) for f in filters] == [("from", "alice"), ("is", "unread")]
    assert text == "quarterly numbers"
