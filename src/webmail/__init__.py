"""Webmail - mailbox state engine and HTTP backend for a browser mail client.

This package provides a threaded, searchable, optimistically mutable mailbox
view with undoable and scheduled sends, rule routing and auto-replies, served
over a FastAPI application.
"""

__version__ = "0.1.0"
__author__ = "Trickl"

from webmail.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__", "__author__"]
