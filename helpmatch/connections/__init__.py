"""Messaging on accepted matches."""

from .service import ConnectionService, make_message_id

__all__ = ["ConnectionService", "make_message_id"]
