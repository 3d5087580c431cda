"""
Pydantic models used for request/response validation and API data contracts.

Entity payloads are schema-less and travel as plain JSON objects; the models
below cover the fixed-shape requests and responses.
"""

from typing import List

from pydantic import BaseModel, Field


class NewMessage(BaseModel):
    """
    Represents a private message to be sent between two members.
    """
    sender_id: str = Field(..., description="Member id of the author.", example="6f1c0f5e-0c1e-4c59-9a5b-0d7d1f0c8a11")
    recipient_id: str = Field(..., description="Member id of the addressee.", example="b3f8e2a4-5d0a-4c43-8f4e-4a0d9b2c7e55")
    content: str = Field(..., description="Message text. Trimmed before storing; must not be blank.", example="¿Revisamos el presupuesto mañana?")


class EntityIds(BaseModel):
    """
    Identifier set for a batch lookup.
    """
    ids: List[str]
    """Entity ids to fetch. Unknown ids are skipped."""


class UnreadCount(BaseModel):
    """
    Unread message counter of a member.
    """
    member_id: str
    """The member the counter belongs to."""
    unread_count: int
    """Unread messages addressed to the member (0 when it could not be computed)."""


class MarkedAsRead(BaseModel):
    """
    Result of marking a whole conversation as read.
    """
    marked: int
    """Number of messages that were unread and got marked."""
