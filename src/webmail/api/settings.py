"""Mailbox settings, rules and user folders."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from webmail.api.deps import get_mailbox
from webmail.api.models import ActionResponse, FolderRequest, FoldersResponse, RuleRequest
from webmail.mailbox import Mailbox
from webmail.models import (
    STORAGE_FOLDERS,
    AppSettings,
    AutoResponder,
    Rule,
    SendDelay,
    Signature,
    SystemFolder,
    UserFolder,
)

router = APIRouter(prefix="/api", tags=["settings"])


@router.get("/settings", response_model=AppSettings)
async def get_app_settings(mailbox: Mailbox = Depends(get_mailbox)) -> AppSettings:
    return mailbox.app_settings


@router.put("/settings/signature", response_model=AppSettings)
async def update_signature(
    body: Signature, mailbox: Mailbox = Depends(get_mailbox)
) -> AppSettings:
    return mailbox.update_signature(body)


@router.put("/settings/auto-responder", response_model=AppSettings)
async def update_auto_responder(
    body: AutoResponder, mailbox: Mailbox = Depends(get_mailbox)
) -> AppSettings:
    return mailbox.update_auto_responder(body)


@router.put("/settings/send-delay", response_model=AppSettings)
async def update_send_delay(body: SendDelay, mailbox: Mailbox = Depends(get_mailbox)) -> AppSettings:
    return mailbox.update_send_delay(body)


@router.post("/settings/rules", response_model=Rule)
async def add_rule(body: RuleRequest, mailbox: Mailbox = Depends(get_mailbox)) -> Rule:
    return mailbox.add_rule(body.condition, body.action)


@router.delete("/settings/rules/{rule_id}", response_model=ActionResponse)
async def delete_rule(rule_id: str, mailbox: Mailbox = Depends(get_mailbox)) -> ActionResponse:
    applied = any(r.id == rule_id for r in mailbox.app_settings.rules)
    mailbox.delete_rule(rule_id)
    return ActionResponse(applied=applied, count=int(applied))


@router.get("/folders", response_model=FoldersResponse)
async def list_folders(mailbox: Mailbox = Depends(get_mailbox)) -> FoldersResponse:
    system = [SystemFolder.INBOX.value, SystemFolder.STARRED.value]
    system += [name for name in STORAGE_FOLDERS if name != SystemFolder.INBOX.value]
    return FoldersResponse(
        system=system,
        user=mailbox.user_folders,
        unread_counts=mailbox.unread_counts(),
    )


@router.post("/folders", response_model=UserFolder)
async def create_folder(body: FolderRequest, mailbox: Mailbox = Depends(get_mailbox)) -> UserFolder:
    return mailbox.create_folder(body.name)


@router.patch("/folders/{folder_id}", response_model=UserFolder | None)
async def rename_folder(
    folder_id: str, body: FolderRequest, mailbox: Mailbox = Depends(get_mailbox)
) -> UserFolder | None:
    return mailbox.rename_folder(folder_id, body.name)


@router.delete("/folders/{folder_id}", response_model=ActionResponse)
async def delete_folder(folder_id: str, mailbox: Mailbox = Depends(get_mailbox)) -> ActionResponse:
    moved = mailbox.delete_folder(folder_id)
    return ActionResponse(applied=moved is not None, count=moved or 0)
