"""Seed mail for development sessions."""

from __future__ import annotations

from datetime import datetime, timedelta

from webmail.models import Attachment, Identity, Message, SystemFolder


def demo_messages(identity: Identity, now: datetime) -> list[Message]:
    """A small, believable mailbox addressed to ``identity``."""

    me_name, me = identity.display_name, identity.email_address

    def ago(**delta: float) -> datetime:
        return now - timedelta(**delta)

    return [
        Message(
            id="demo-1",
            conversation_id="demo-thread-roadmap",
            sender_name="Priya Raman",
            sender_email="priya.raman@example.com",
            recipient_email=me,
            subject="Q3 roadmap review",
            body=(
                "<p>Hi,</p><p>I've put the Q3 roadmap draft in the shared drive. "
                "Could you go over the <b>integration</b> items before Thursday?</p>"
                "<p>Thanks,<br>Priya</p>"
            ),
            timestamp=ago(days=1, hours=3),
            is_read=True,
            folder=SystemFolder.INBOX,
            attachments=[Attachment(file_name="roadmap-q3.pdf", file_size=482_113)],
        ),
        Message(
            id="demo-2",
            conversation_id="demo-thread-roadmap",
            sender_name=me_name,
            sender_email=me,
            recipient_email="priya.raman@example.com",
            subject="Re: Q3 roadmap review",
            body="<p>Looks good overall. Two questions about the sync service, see inline.</p>",
            timestamp=ago(days=1, hours=1),
            is_read=True,
            folder=SystemFolder.INBOX,
        ),
        Message(
            id="demo-3",
            conversation_id="demo-thread-roadmap",
            sender_name="Priya Raman",
            sender_email="priya.raman@example.com",
            recipient_email=me,
            subject="Re: Q3 roadmap review",
            body="<p>Answered both. Let's lock it on Thursday's call.</p>",
            timestamp=ago(hours=5),
            folder=SystemFolder.INBOX,
        ),
        Message(
            id="demo-4",
            sender_name="Build Bot",
            sender_email="ci@builds.example.com",
            recipient_email=me,
            subject="Nightly build failed on main",
            body="<p>Job <code>integration-tests</code> failed after 14m 02s.</p>",
            timestamp=ago(hours=2),
            folder=SystemFolder.INBOX,
        ),
        Message(
            id="demo-5",
            sender_name="Marco Bellini",
            sender_email="marco@example.org",
            recipient_email=me,
            cc="team@example.org",
            subject="Team lunch on Friday",
            body="<p>Trying the new ramen place at 12:30. Reply if you're in!</p>",
            timestamp=ago(minutes=40),
            is_starred=True,
            folder=SystemFolder.INBOX,
        ),
        Message(
            id="demo-6",
            sender_name=me_name,
            sender_email=me,
            recipient_email="landlord@example.net",
            subject="Heating in flat 3B",
            body="<p>Hello, the radiator in the bedroom is still cold. Could someone take a look?</p>",
            timestamp=ago(days=3),
            is_read=True,
            folder=SystemFolder.SENT,
        ),
        Message(
            id="demo-7",
            sender_name=me_name,
            sender_email=me,
            recipient_email="",
            subject="Conference talk outline",
            body="<p>1. Why offline-first<br>2. Conflict handling<br>3. Demo</p>",
            timestamp=ago(days=2),
            is_read=True,
            folder=SystemFolder.DRAFTS,
        ),
        Message(
            id="demo-8",
            sender_name="Mega Prizes",
            sender_email="winner@prizes.example.biz",
            recipient_email=me,
            subject="You have WON!!!",
            body="<p>Claim your prize now by sending your bank details.</p>",
            timestamp=ago(days=4),
            folder=SystemFolder.SPAM,
        ),
        Message(
            id="demo-9",
            sender_name="Weekly Digest",
            sender_email="newsletter@digest.example.com",
            recipient_email=me,
            subject="This week in open source",
            body="<p>Ten projects worth watching this week.</p>",
            timestamp=ago(days=6),
            is_read=True,
            folder=SystemFolder.TRASH,
        ),
    ]
