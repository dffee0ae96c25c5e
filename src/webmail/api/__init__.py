"""HTTP API of the webmail backend."""

from .app import create_app

__all__ = ["create_app"]
