"""Persistence backends."""

from .sqlite import SqliteConversationStore

__all__ = ["SqliteConversationStore"]
