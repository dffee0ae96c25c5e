"""Mailbox state: store, threading, views, timers and the mutation engine."""

from .engine import Mailbox, PendingSend
from .notifications import Notification, Notifier
from .projector import ConversationProjector, project
from .scheduler import DeferredActionScheduler, DeferredKind, DeferredState
from .store import MessageStore, apply_patch
from .summary import OllamaSummarizer, Summarizer
from .views import display, matches_query, parse_query

__all__ = [
    "ConversationProjector",
    "DeferredActionScheduler",
    "DeferredKind",
    "DeferredState",
    "Mailbox",
    "MessageStore",
    "Notification",
    "Notifier",
    "OllamaSummarizer",
    "PendingSend",
    "Summarizer",
    "apply_patch",
    "display",
    "matches_query",
    "parse_query",
    "project",
]
