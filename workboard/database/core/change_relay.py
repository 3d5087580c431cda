"""
Change Notification Relay
=========================

Purpose
-------
Delivers insert/update/delete notifications for the polymorphic entities table
to in-process subscribers, already flattened.

Flow
----
1. The DAO stages a notification on the SQLAlchemy session
   (``record_change``) right after each successful write statement.
2. When that session commits, the ``after_commit`` session event hands the
   staged notifications to ``change_relay``. A rollback discards them, so
   subscribers only ever see committed changes.
3. The relay looks up the channels registered for ``(table, type)`` and calls
   each one with a ``ChangeEvent``.

Channels
--------
- One ``subscribe`` call = one channel. Two subscribers of the same type get
  two independent channels.
- Routing is a key lookup on ``(table, type)``: a callback is never invoked
  for rows of another type.
- The returned unsubscribe callable releases the channel and is safe to call
  more than once, also after ``ChangeRelay.close()``.

Callbacks run synchronously on the event-loop thread during commit. They must
return quickly and must not touch the committing session; coroutine consumers
should push into an ``asyncio.Queue`` and drain it elsewhere.
"""

import logging
from itertools import count
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy import event
from sqlalchemy.orm import Session

from workboard.database.core.views import ChangeEvent, flatten_entity

logger = logging.getLogger(__name__)

PENDING_CHANGES_KEY = "workboard.pending_changes"

ChangeCallback = Callable[[ChangeEvent], Any]


class Channel:
    """A single subscription to the changes of one entity type in one table."""

    _ids = count(1)

    def __init__(self, table_name: str, entity_type: str, callback: ChangeCallback):
        self.id = next(self._ids)
        self.table_name = table_name
        self.entity_type = entity_type
        self.callback = callback
        self.closed = False

    @property
    def topic(self) -> str:
        return f"{self.table_name}:{self.entity_type}"

    def __repr__(self) -> str:
        return f"Channel(id={self.id}, topic={self.topic!r}, closed={self.closed})"


class ChangeRelay:
    """
    Registry of change-feed channels keyed by ``(table name, entity type)``.
    """

    def __init__(self):
        self._channels: Dict[Tuple[str, str], List[Channel]] = {}

    def subscribe(self, table_name: str, entity_type: str, callback: ChangeCallback) -> Callable[[], None]:
        """
        Open a channel for the changes of ``entity_type`` rows in ``table_name``.

        Returns
        -------
        Callable[[], None]
            Unsubscribe action. Idempotent.
        """
        channel = Channel(table_name, entity_type, callback)
        self._channels.setdefault((table_name, entity_type), []).append(channel)
        logger.debug("Opened %r", channel)

        def unsubscribe() -> None:
            self._remove(channel)

        return unsubscribe

    def _remove(self, channel: Channel) -> None:
        if channel.closed:
            return
        channel.closed = True
        key = (channel.table_name, channel.entity_type)
        channels = self._channels.get(key, [])
        if channel in channels:
            channels.remove(channel)
        if not channels:
            self._channels.pop(key, None)
        logger.debug("Closed %r", channel)

    def channel_count(self, table_name: Optional[str] = None, entity_type: Optional[str] = None) -> int:
        """Number of open channels, optionally restricted to one table and/or type."""
        return sum(
            len(channels)
            for (table, etype), channels in self._channels.items()
            if (table_name is None or table == table_name)
            and (entity_type is None or etype == entity_type)
        )

    def publish(
        self,
        table_name: str,
        event_type: str,
        new_row: Optional[Dict[str, Any]],
        old_row: Optional[Dict[str, Any]],
    ) -> None:
        """
        Deliver one committed row change to the channels of its type.

        Parameters
        ----------
        table_name : str
            Table the row lives in.
        event_type : str
            ``INSERT``, ``UPDATE`` or ``DELETE``.
        new_row, old_row : dict | None
            Raw rows after / before the change.
        """
        entity_type = (new_row or old_row or {}).get("type")
        channels = list(self._channels.get((table_name, entity_type), ()))
        if not channels:
            return

        change = ChangeEvent(
            event_type=event_type,
            data=flatten_entity(new_row),
            old_data=flatten_entity(old_row),
        )
        for channel in channels:
            if channel.closed:
                continue
            try:
                channel.callback(change)
            except Exception:
                logger.exception("Change callback failed on %r", channel)

    def close(self) -> None:
        """Release every open channel."""
        for channels in list(self._channels.values()):
            for channel in list(channels):
                self._remove(channel)
        self._channels.clear()


change_relay = ChangeRelay()
"""Process-wide relay fed by committed sessions."""


def record_change(session, table_name: str, event_type: str, new_row=None, old_row=None) -> None:
    """
    Stage a row change on ``session`` until it commits.

    Parameters
    ----------
    session : Session | AsyncSession
        Session that executed the write.
    """
    session.info.setdefault(PENDING_CHANGES_KEY, []).append(
        (table_name, event_type, new_row, old_row)
    )


@event.listens_for(Session, "after_commit")
def _dispatch_committed_changes(session: Session) -> None:
    for table_name, event_type, new_row, old_row in session.info.pop(PENDING_CHANGES_KEY, []):
        change_relay.publish(table_name, event_type, new_row, old_row)


@event.listens_for(Session, "after_soft_rollback")
def _discard_rolled_back_changes(session: Session, previous_transaction) -> None:
    dropped = session.info.pop(PENDING_CHANGES_KEY, None)
    if dropped:
        logger.debug("Discarded %d uncommitted change(s)", len(dropped))
