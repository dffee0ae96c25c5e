"""Compose, drafts, sending with undo, and scheduled sends."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from webmail.api.deps import get_mailbox
from webmail.api.models import (
    ActionResponse,
    AutosaveRequest,
    DraftRequest,
    DraftResponse,
    OpenComposeRequest,
    ScheduleRequest,
    SendRequest,
    SendResponse,
    UndoResponse,
)
from webmail.mailbox import Mailbox
from webmail.models import ComposeState

router = APIRouter(prefix="/api/compose", tags=["compose"])


@router.post("/open", response_model=ComposeState)
async def open_compose(
    body: OpenComposeRequest, mailbox: Mailbox = Depends(get_mailbox)
) -> ComposeState:
    state = mailbox.open_compose(body.action, body.email_id)
    if state is None:
        raise HTTPException(status_code=404, detail=f"Unknown message: {body.email_id}")
    return state


@router.post("/close", response_model=ActionResponse)
async def close_compose(
    compose_key: str | None = None, mailbox: Mailbox = Depends(get_mailbox)
) -> ActionResponse:
    mailbox.close_compose(compose_key)
    return ActionResponse(applied=True)


@router.post("/drafts", response_model=DraftResponse)
async def save_draft(body: DraftRequest, mailbox: Mailbox = Depends(get_mailbox)) -> DraftResponse:
    draft_id = mailbox.save_draft(body.payload, body.draft_id, body.conversation_id)
    return DraftResponse(draft_id=draft_id)


@router.post("/autosave", response_model=DraftResponse, status_code=202)
async def autosave_draft(
    body: AutosaveRequest, mailbox: Mailbox = Depends(get_mailbox)
) -> DraftResponse:
    mailbox.autosave_draft(body.compose_key, body.payload, body.draft_id, body.conversation_id)
    return DraftResponse(draft_id=mailbox.autosaved_draft_id(body.compose_key))


@router.delete("/autosave/{compose_key}", response_model=ActionResponse)
async def cancel_autosave(compose_key: str, mailbox: Mailbox = Depends(get_mailbox)) -> ActionResponse:
    return ActionResponse(applied=bool(mailbox.cancel_autosave(compose_key)))


@router.post("/send", response_model=SendResponse)
async def send_email(body: SendRequest, mailbox: Mailbox = Depends(get_mailbox)) -> SendResponse:
    message_id = mailbox.send_email(
        body.payload, body.draft_id, body.conversation_id, body.compose_key
    )
    pending = mailbox.pending_send
    if pending is not None and pending.email.id == message_id:
        return SendResponse(message_id=message_id, pending=True, due_at=pending.due_at)
    return SendResponse(message_id=message_id)


@router.post("/undo", response_model=UndoResponse)
async def undo_send(mailbox: Mailbox = Depends(get_mailbox)) -> UndoResponse:
    state = mailbox.undo_send()
    return UndoResponse(undone=state is not None, compose=state)


@router.post("/flush", response_model=ActionResponse)
async def flush_pending_send(mailbox: Mailbox = Depends(get_mailbox)) -> ActionResponse:
    flushed = bool(mailbox.flush_pending_send())
    return ActionResponse(applied=flushed, count=int(flushed))


@router.post("/schedule", response_model=SendResponse)
async def schedule_email(
    body: ScheduleRequest, mailbox: Mailbox = Depends(get_mailbox)
) -> SendResponse:
    message_id = mailbox.schedule_email(
        body.payload, body.send_at, body.draft_id, body.conversation_id, body.compose_key
    )
    action = mailbox.scheduler.get(message_id) if message_id else None
    return SendResponse(
        message_id=message_id,
        pending=action is not None,
        due_at=action.due_at if action else None,
    )


@router.post("/scheduled/{message_id}/edit", response_model=ComposeState)
async def edit_scheduled(message_id: str, mailbox: Mailbox = Depends(get_mailbox)) -> ComposeState:
    state = mailbox.edit_scheduled(message_id)
    if state is None:
        raise HTTPException(status_code=404, detail=f"Unknown message: {message_id}")
    return state
