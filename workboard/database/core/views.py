"""
Caller-facing representations of stored rows.

Rows travel through the DAO as plain dicts shaped like the table
(``{"id", "type", "data", "created_at", "updated_at"}``). The functions and
models here turn them into what callers see:

- ``flatten_entity``: the flattened view used by the record store and the
  change feed.
- ``unflatten_entity``: the inverse, recovering a payload from a flattened view.
- ``MessageView`` / ``ConversationSummary``: the messaging subsystem's shapes.
- ``ChangeEvent``: what subscribers receive.
"""

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

RESERVED_KEYS = ("id", "type", "created_at", "updated_at")
"""Row-level keys. Callers must not use them as payload field names."""

RAW_KEY = "_raw"


def flatten_entity(row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Merge a row's payload into its top level.

    Keys are written in the order ``id``, ``type``, payload keys,
    ``created_at``, ``updated_at``, so a payload key named ``id`` or ``type``
    overwrites the row value while the timestamps always win. The raw row is
    kept under ``_raw``.

    Parameters
    ----------
    row : dict | None
        Row as returned by the DAO.

    Returns
    -------
    dict | None
        Flattened view, or None when ``row`` is None.
    """
    if row is None:
        return None
    flat = {"id": row.get("id"), "type": row.get("type")}
    flat.update(row.get("data") or {})
    flat["created_at"] = row.get("created_at")
    flat["updated_at"] = row.get("updated_at")
    flat[RAW_KEY] = row
    return flat


def unflatten_entity(flat: Dict[str, Any]) -> Dict[str, Any]:
    """Return the payload part of a flattened view."""
    return {k: v for k, v in flat.items() if k not in RESERVED_KEYS and k != RAW_KEY}


class MessageView(BaseModel):
    """
    A private message between two members.
    """
    id: str
    """Identifier of the message entity."""
    sender_id: Optional[str] = None
    """Member who wrote the message."""
    recipient_id: Optional[str] = None
    """Member the message is addressed to."""
    content: Optional[str] = None
    """Trimmed message text."""
    read: bool = False
    """Whether the recipient has read it. Only ever flips from False to True."""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "MessageView":
        data = row.get("data") or {}
        return cls(
            id=str(row["id"]),
            sender_id=data.get("sender_id"),
            recipient_id=data.get("recipient_id"),
            content=data.get("content"),
            read=bool(data.get("read")),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


class ConversationSummary(BaseModel):
    """
    Derived pairing of a member with one counterpart. Never persisted.
    """
    other_member_id: Optional[str]
    """The counterpart's member id."""
    last_message: MessageView
    """Most recent message exchanged with the counterpart."""
    unread_count: int = 0
    """Messages from the counterpart to the member that are still unread."""


class ChangeEvent(BaseModel):
    """
    One row change delivered to a change-feed subscriber.
    """
    event_type: Literal["INSERT", "UPDATE", "DELETE"]
    data: Optional[Dict[str, Any]] = Field(None, description="Flattened row after the change. None for DELETE.")
    old_data: Optional[Dict[str, Any]] = Field(None, description="Flattened row before the change. None for INSERT.")
