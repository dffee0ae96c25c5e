"""Request dependencies: the session registry and the caller's session."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from webmail.mailbox import Mailbox
from webmail.session import MailSession, SessionRegistry


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def get_session(
    request: Request, registry: SessionRegistry = Depends(get_registry)
) -> MailSession:
    token = request.cookies.get(registry.settings.session_cookie_name)
    session = registry.get(token)
    if session is None:
        raise HTTPException(status_code=401, detail="Not signed in")
    return session


def get_mailbox(session: MailSession = Depends(get_session)) -> Mailbox:
    return session.mailbox
