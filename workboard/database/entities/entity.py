"""
Entity ORM Model
================

The ``Entity`` ORM model represents one row of the polymorphic entities table.
Heterogeneous record kinds ("proyecto", "cliente", "miembro", "mensaje", ...)
share the table and are told apart by the ``type`` discriminator; their fields
live in the ``data`` JSON document.

Key features
~~~~~~~~~~~~
- String UUID primary key (``id``), native ``UUID`` on PostgreSQL
- ``type`` discriminator, immutable after creation
- ``data`` payload (``JSONB`` on PostgreSQL, ``JSON`` elsewhere)
- Timezone-aware ``created_at`` / ``updated_at`` timestamps (UTC), maintained on
  insert and update

No foreign keys exist between entity kinds: relations are ids stored inside
``data`` and resolved by ``workboard.database.core.resolver``.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import JSON, TEXT, DateTime, String, Table
from sqlalchemy.dialects.postgresql import JSONB, UUID as pgUUID
from sqlalchemy.orm import Mapped, mapped_column

from workboard.database.config.config import settings
from workboard.database.config.connection_engine import declarativeBase, metadata


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Entity(declarativeBase):
    """
    ORM model for the polymorphic entities table.

    Attributes
    ----------
    id : str
        Primary key. UUID assigned on insert.
    type : str
        Logical record kind.
    data : dict
        Schema-less payload specific to ``type``.
    created_at : datetime
        Insert timestamp (UTC).
    updated_at : datetime
        Last write timestamp (UTC).
    """

    __tablename__ = settings.ENTITIES_TABLE

    id: Mapped[str] = mapped_column(
        String(36).with_variant(pgUUID(as_uuid=False), "postgresql"),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    """Primary key. UUID of the entity, as a string."""

    type: Mapped[str] = mapped_column(TEXT, nullable=False)
    """Discriminator naming the logical record kind."""

    data: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=dict
    )
    """Payload document."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    """Timestamp when the entity was created."""

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )
    """Timestamp of the last write to the entity."""

    def __str__(self) -> str:
        return f"Entity: id:{self.id}, type: {self.type}, data: {self.data}"


def get_entities_table(table_name: str | None = None) -> Table:
    """
    Return the ``Table`` holding entities under ``table_name``.

    The default name maps to ``Entity.__table__``. Any other name gets a table
    with the same columns registered on the shared ``metadata`` (created once,
    then reused).

    Parameters
    ----------
    table_name : str | None
        Physical table name. ``None`` means ``settings.ENTITIES_TABLE``.

    Returns
    -------
    Table
        Core table object usable in ``select``/``insert``/``update``/``delete``.
    """
    name = table_name or Entity.__tablename__
    if name == Entity.__tablename__:
        return Entity.__table__
    existing = metadata.tables.get(name)
    if existing is not None:
        return existing
    return Entity.__table__.to_metadata(metadata, name=name)
