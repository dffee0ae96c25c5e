"""Authenticated user identity."""

from __future__ import annotations

from webmail.models.message import CamelModel


class Identity(CamelModel):
    """Who a session belongs to; the sender of everything it sends."""

    email_address: str
    display_name: str
