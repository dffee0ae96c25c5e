"""Unit tests for notifications."""

from webmail.mailbox.notifications import Notifier


def test_info_and_error_levels() -> None:
    notifier = Notifier()

    notifier.info("Sending...", action_label="Undo")
    notifier.error("Could not send.")

    first, second = notifier.pending()
    assert (first.level, first.action_label) == ("info", "Undo")
    assert second.level == "error"


def test_drain_empties_queue() -> None:
    notifier = Notifier()
    notifier.info("one")

    assert [n.message for n in notifier.drain()] == ["one"]
    assert notifier.pending() == []


def test_queue_is_bounded() -> None:
    notifier = Notifier(max_pending=2)
    for n in range(3):
        notifier.info(f"n{n}")

    assert [n.message for n in notifier.pending()] == ["n1", "n2"]


def test_subscribers_see_each_notification() -> None:
    notifier = Notifier()
    seen = []
    unsubscribe = notifier.subscribe(seen.append)

    notifier.info("one")
    unsubscribe()
    notifier.info("two")

    assert [n.message for n in seen] == ["one"]
