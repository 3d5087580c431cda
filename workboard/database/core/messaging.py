"""
Messaging — private messages between members
============================================

Private messages are entities of type ``"mensaje"`` whose payload is::

    {"sender_id": str, "recipient_id": str, "content": str, "read": bool}

``MessagingService`` derives inboxes, sent folders, two-party conversations,
unread counters and per-counterpart conversation summaries from them. Nothing
derived is cached or stored; every call queries again.

Table
-----
The physical table is passed in (``table_name``), falling back to
``settings.ENTITIES_TABLE``. The service only relies on the table holding
entities queryable by type and payload equality.

Result caps
-----------
- Inbox, sent, unread count and bulk mark-as-read read at most ``INBOX_LIMIT``
  (500) rows. There is no paging past the cap; older messages are simply not
  seen, so ``get_unread_count`` is approximate beyond it.
- ``get_conversation`` reads at most ``CONVERSATION_LIMIT`` (250) rows per
  direction, so long conversations come back truncated.

Failure policy
--------------
Every method propagates ``StoreError`` except ``get_unread_count``, which logs
the failure and reports 0. ``mark_conversation_as_read`` writes concurrently
and without rollback: the first failed write propagates, writes that already
landed stay applied.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from workboard.database.config.config import settings
from workboard.database.core.entity_store import EntityStore
from workboard.database.core.errors import StoreError, ValidationError
from workboard.database.core.views import ConversationSummary, MessageView
from workboard.database.helpers.transactionManagement import db_session_context

logger = logging.getLogger(__name__)

MESSAGE_TYPE = "mensaje"
INBOX_LIMIT = 500
CONVERSATION_LIMIT = 250


def _as_message(flat) -> MessageView:
    return MessageView.from_row(flat["_raw"])


class MessagingService:
    """
    Inbox, conversation and read-state operations over ``mensaje`` entities.

    Parameters
    ----------
    table_name : str | None
        Table holding the messages. None means ``settings.ENTITIES_TABLE``.
    """

    def __init__(self, table_name: Optional[str] = None):
        self.table_name = table_name or settings.ENTITIES_TABLE
        self.store = EntityStore(MESSAGE_TYPE, table_name=self.table_name)

    async def _query(self, filters: Dict[str, str], ascending: bool, limit: int) -> List[MessageView]:
        rows = await self.store.list(order_by="created_at", ascending=ascending, filters=filters, limit=limit)
        return [_as_message(row) for row in rows]

    async def get_inbox(self, member_id: str) -> List[MessageView]:
        """Messages addressed to ``member_id``, newest first (at most 500)."""
        try:
            return await self._query({"recipient_id": member_id}, ascending=False, limit=INBOX_LIMIT)
        except StoreError:
            logger.error("Error getting inbox for %s", member_id)
            raise

    async def get_sent(self, member_id: str) -> List[MessageView]:
        """Messages written by ``member_id``, newest first (at most 500)."""
        try:
            return await self._query({"sender_id": member_id}, ascending=False, limit=INBOX_LIMIT)
        except StoreError:
            logger.error("Error getting sent messages for %s", member_id)
            raise

    async def get_conversation(self, member_id: str, other_id: str) -> List[MessageView]:
        """
        Messages exchanged between two members, oldest first.

        Both directions are queried concurrently (at most 250 rows each) and
        merged by creation time.
        """
        outgoing, incoming = await asyncio.gather(
            self._query({"sender_id": member_id, "recipient_id": other_id}, ascending=True, limit=CONVERSATION_LIMIT),
            self._query({"sender_id": other_id, "recipient_id": member_id}, ascending=True, limit=CONVERSATION_LIMIT),
        )
        return sorted(outgoing + incoming, key=lambda message: message.created_at)

    async def send(self, sender_id: str, recipient_id: str, content: str) -> MessageView:
        """
        Store a new unread message.

        Raises
        ------
        ValidationError
            Missing sender or recipient, or content empty after trimming.
        """
        if not sender_id or not recipient_id:
            raise ValidationError("A message needs both a sender and a recipient")
        text = (content or "").strip()
        if not text:
            raise ValidationError("Message content cannot be empty")
        try:
            created = await self.store.create(
                {"sender_id": sender_id, "recipient_id": recipient_id, "content": text, "read": False}
            )
        except StoreError:
            logger.error("Error sending message from %s to %s", sender_id, recipient_id)
            raise
        return _as_message(created)

    async def mark_as_read(self, message_id: str) -> MessageView:
        """Set ``read`` on one message. Marking it again changes nothing."""
        try:
            updated = await self.store.update(message_id, {"read": True})
        except StoreError:
            logger.error("Error marking message %s as read", message_id)
            raise
        return _as_message(updated)

    async def mark_conversation_as_read(self, member_id: str, other_id: str) -> int:
        """
        Mark every unread message from ``other_id`` to ``member_id`` as read.

        Looks at no more than 500 messages and writes them concurrently, one
        session per write. The writes are not atomic: the first failure is
        raised and writes that already landed stay. Inside an enclosing
        ``@transactional`` the writes run one after another on its session,
        since an ``AsyncSession`` cannot be shared between tasks.

        Returns
        -------
        int
            Number of messages that were unread and got written.
        """
        try:
            rows = await self.store.list(
                order_by=None,
                filters={"sender_id": other_id, "recipient_id": member_id},
                limit=INBOX_LIMIT,
            )
        except StoreError:
            logger.error("Error marking conversation %s -> %s as read", other_id, member_id)
            raise

        unread = [row["_raw"] for row in rows if row["_raw"]["data"].get("read") is not True]

        def mark(raw):
            return self.store.write_payload(raw["id"], {**raw["data"], "read": True}, old_row=raw)

        if db_session_context.get() is None:
            await asyncio.gather(*(mark(raw) for raw in unread))
        else:
            for raw in unread:
                await mark(raw)
        return len(unread)

    async def get_unread_count(self, member_id: str) -> int:
        """
        Unread messages addressed to ``member_id``, counted over at most 500 rows.

        Returns 0 when the store fails; the failure is logged, not raised.
        """
        try:
            rows = await self.store.list(order_by=None, filters={"recipient_id": member_id}, limit=INBOX_LIMIT)
        except StoreError:
            logger.exception("Error getting unread count for %s", member_id)
            return 0
        return sum(1 for row in rows if row["_raw"]["data"].get("read") is not True)

    async def get_conversations(self, member_id: str) -> List[ConversationSummary]:
        """
        One summary per counterpart, most recently active counterpart first.

        Each summary holds the latest message exchanged with the counterpart
        and how many of the counterpart's messages to ``member_id`` are unread.
        """
        inbox, sent = await asyncio.gather(self.get_inbox(member_id), self.get_sent(member_id))
        messages = sorted(inbox + sent, key=lambda message: message.created_at, reverse=True)

        conversations: Dict[Optional[str], ConversationSummary] = {}
        for message in messages:
            other_id = message.recipient_id if message.sender_id == member_id else message.sender_id
            if other_id not in conversations:
                conversations[other_id] = ConversationSummary(other_member_id=other_id, last_message=message)
            if message.recipient_id == member_id and not message.read:
                conversations[other_id].unread_count += 1
        return list(conversations.values())
