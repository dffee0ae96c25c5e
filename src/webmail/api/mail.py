"""Conversations, selection, incoming mail and notifications."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from webmail.api.deps import get_mailbox
from webmail.api.models import (
    ActionResponse,
    ConversationIdsRequest,
    ConversationListResponse,
    IncomingMessageRequest,
    MoveRequest,
    SelectionRequest,
    SelectionResponse,
    StarRequest,
    StarResponse,
    SummaryResponse,
)
from webmail.mailbox import Mailbox, Notification
from webmail.models import Conversation, Message, SystemFolder
from webmail.utils import new_id, utcnow

router = APIRouter(prefix="/api", tags=["mail"])


def _selection(mailbox: Mailbox) -> SelectionResponse:
    return SelectionResponse(selected=sorted(mailbox.selected_conversation_ids))


@router.get("/conversations", response_model=ConversationListResponse)
async def list_conversations(
    folder: str | None = None,
    q: str | None = None,
    mailbox: Mailbox = Depends(get_mailbox),
) -> ConversationListResponse:
    if folder is not None and folder != mailbox.current_folder:
        mailbox.set_current_folder(folder)
    if q is not None:
        mailbox.set_search_query(q)
    return ConversationListResponse(
        folder=mailbox.current_folder,
        search_query=mailbox.search_query,
        conversations=mailbox.displayed_conversations,
        unread_counts=mailbox.unread_counts(),
    )


@router.get("/conversations/{conversation_id}", response_model=Conversation)
async def get_conversation(
    conversation_id: str, mailbox: Mailbox = Depends(get_mailbox)
) -> Conversation:
    return mailbox.require_conversation(conversation_id)


@router.post("/conversations/{conversation_id}/open", response_model=Conversation | None)
async def open_conversation(
    conversation_id: str, mailbox: Mailbox = Depends(get_mailbox)
) -> Conversation | None:
    return mailbox.open_conversation(conversation_id)


@router.post("/conversations/{conversation_id}/star", response_model=StarResponse)
async def toggle_star(
    conversation_id: str,
    body: StarRequest | None = None,
    mailbox: Mailbox = Depends(get_mailbox),
) -> StarResponse:
    email_id = body.email_id if body else None
    return StarResponse(starred=mailbox.toggle_star(conversation_id, email_id))


@router.post("/conversations/{conversation_id}/read", response_model=ActionResponse)
async def mark_read(conversation_id: str, mailbox: Mailbox = Depends(get_mailbox)) -> ActionResponse:
    applied = mailbox.get_conversation(conversation_id) is not None
    mailbox.mark_read(conversation_id)
    return ActionResponse(applied=applied, count=int(applied))


@router.post("/conversations/{conversation_id}/unread", response_model=ActionResponse)
async def mark_unread(
    conversation_id: str, mailbox: Mailbox = Depends(get_mailbox)
) -> ActionResponse:
    applied = mailbox.get_conversation(conversation_id) is not None
    mailbox.mark_unread(conversation_id)
    return ActionResponse(applied=applied, count=int(applied))


@router.delete("/conversations/{conversation_id}", response_model=ActionResponse)
async def delete_conversation(
    conversation_id: str, mailbox: Mailbox = Depends(get_mailbox)
) -> ActionResponse:
    applied = mailbox.get_conversation(conversation_id) is not None
    mailbox.delete_conversation(conversation_id)
    return ActionResponse(applied=applied, count=int(applied))


@router.post("/conversations/move", response_model=ActionResponse)
async def move_conversations(body: MoveRequest, mailbox: Mailbox = Depends(get_mailbox)) -> ActionResponse:
    moved = mailbox.move_conversations(body.conversation_ids, body.target_folder) or 0
    return ActionResponse(applied=moved > 0, count=moved)


@router.post("/conversations/spam", response_model=ActionResponse)
async def mark_as_spam(
    body: ConversationIdsRequest, mailbox: Mailbox = Depends(get_mailbox)
) -> ActionResponse:
    moved = mailbox.mark_as_spam(body.conversation_ids) or 0
    return ActionResponse(applied=moved > 0, count=moved)


@router.post("/conversations/not-spam", response_model=ActionResponse)
async def mark_as_not_spam(
    body: ConversationIdsRequest, mailbox: Mailbox = Depends(get_mailbox)
) -> ActionResponse:
    moved = mailbox.mark_as_not_spam(body.conversation_ids) or 0
    return ActionResponse(applied=moved > 0, count=moved)


@router.post("/conversations/{conversation_id}/summary", response_model=SummaryResponse)
async def summarize(conversation_id: str, mailbox: Mailbox = Depends(get_mailbox)) -> SummaryResponse:
    summary = await mailbox.summarize_conversation(conversation_id)
    return SummaryResponse(conversation_id=conversation_id, summary=summary)


@router.delete("/messages/{message_id}", response_model=ActionResponse)
async def delete_message(
    message_id: str, discard: bool = False, mailbox: Mailbox = Depends(get_mailbox)
) -> ActionResponse:
    applied = mailbox.store.find(message_id) is not None
    mailbox.delete_email(message_id, discard=discard)
    return ActionResponse(applied=applied, count=int(applied))


@router.get("/selection", response_model=SelectionResponse)
async def get_selection(mailbox: Mailbox = Depends(get_mailbox)) -> SelectionResponse:
    return _selection(mailbox)


@router.post("/selection/toggle/{conversation_id}", response_model=SelectionResponse)
async def toggle_selection(
    conversation_id: str, mailbox: Mailbox = Depends(get_mailbox)
) -> SelectionResponse:
    mailbox.toggle_selection(conversation_id)
    return _selection(mailbox)


@router.post("/selection/all", response_model=SelectionResponse)
async def select_all(
    body: SelectionRequest | None = None, mailbox: Mailbox = Depends(get_mailbox)
) -> SelectionResponse:
    mailbox.select_all(body.conversation_ids if body else None)
    return _selection(mailbox)


@router.delete("/selection", response_model=SelectionResponse)
async def deselect_all(mailbox: Mailbox = Depends(get_mailbox)) -> SelectionResponse:
    mailbox.deselect_all()
    return _selection(mailbox)


@router.post("/selection/spam", response_model=ActionResponse)
async def bulk_spam(mailbox: Mailbox = Depends(get_mailbox)) -> ActionResponse:
    count = mailbox.bulk_mark_as_spam()
    return ActionResponse(applied=count > 0, count=count)


@router.post("/selection/delete", response_model=ActionResponse)
async def bulk_delete(mailbox: Mailbox = Depends(get_mailbox)) -> ActionResponse:
    count = mailbox.bulk_delete()
    return ActionResponse(applied=count > 0, count=count)


@router.post("/selection/read", response_model=ActionResponse)
async def bulk_read(mailbox: Mailbox = Depends(get_mailbox)) -> ActionResponse:
    count = mailbox.bulk_mark_as_read()
    return ActionResponse(applied=count > 0, count=count)


@router.post("/selection/unread", response_model=ActionResponse)
async def bulk_unread(mailbox: Mailbox = Depends(get_mailbox)) -> ActionResponse:
    count = mailbox.bulk_mark_as_unread()
    return ActionResponse(applied=count > 0, count=count)


@router.post("/incoming", response_model=Message)
async def receive(body: IncomingMessageRequest, mailbox: Mailbox = Depends(get_mailbox)) -> Message:
    message_id = body.id or new_id("email")
    message = Message(
        id=message_id,
        conversation_id=body.conversation_id or message_id,
        sender_name=body.sender_name,
        sender_email=body.sender_email,
        recipient_email=body.recipient_email or mailbox.identity.email_address,
        cc=body.cc,
        subject=body.subject,
        body=body.body,
        attachments=body.attachments,
        timestamp=body.timestamp or utcnow(),
        folder=SystemFolder.INBOX,
    )
    return mailbox.receive(message)


@router.get("/notifications", response_model=list[Notification])
async def drain_notifications(mailbox: Mailbox = Depends(get_mailbox)) -> list[Notification]:
    return mailbox.notifier.drain()
