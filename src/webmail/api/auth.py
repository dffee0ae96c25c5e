"""Login, logout and the current user."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from webmail.api.deps import get_registry, get_session
from webmail.api.models import LoginRequest, SessionResponse
from webmail.session import MailSession, SessionRegistry

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=SessionResponse)
async def login(
    body: LoginRequest, response: Response, registry: SessionRegistry = Depends(get_registry)
) -> SessionResponse:
    session = await registry.login(body.email, body.password)
    response.set_cookie(
        registry.settings.session_cookie_name,
        session.token,
        httponly=True,
        samesite="lax",
    )
    return SessionResponse(
        email_address=session.identity.email_address,
        display_name=session.identity.display_name,
    )


@router.post("/logout")
async def logout(
    request: Request, response: Response, registry: SessionRegistry = Depends(get_registry)
) -> dict:
    cookie = registry.settings.session_cookie_name
    token = request.cookies.get(cookie)
    ended = await registry.logout(token) if token else False
    response.delete_cookie(cookie)
    return {"loggedOut": ended}


@router.get("/me", response_model=SessionResponse)
async def me(session: MailSession = Depends(get_session)) -> SessionResponse:
    return SessionResponse(
        email_address=session.identity.email_address,
        display_name=session.identity.display_name,
    )
