"""
Entity DAO

Purpose
-------
Data-access layer for the polymorphic entities table. Provides the storage
primitives the record store is built on:
- Equality filters on payload fields and on row columns
- Case-insensitive substring match on a payload field
- Ordering by a payload field (as text) or by a row column, with an optional limit
- Insert, payload overwrite and delete, each scoped to one entity type
- Row-change notifications staged for the change relay

Design
------
- Requires an active SQLAlchemy `AsyncSession` provided by the caller
  (``@transactional`` in the record store). Commit/rollback stays with the caller.
- Works on a Core `Table`, so the same DAO serves any table bound through
  ``get_entities_table``.
- Payload fields are read with ``data ->> 'field'`` semantics: every comparison
  and every ordering on a payload field is done on its text form. JSON
  booleans read as ``"true"``/``"false"`` on every backend.

Rows
----
Rows are returned as plain dicts::

    {"id": str, "type": str, "data": dict, "created_at": datetime, "updated_at": datetime}

Usage
-----
.. code-block:: python

    from workboard.database.entities.entity import get_entities_table
    from workboard.database.daos.entity_dao import EntityDao

    dao = EntityDao(get_entities_table())
    async with session_factory() as session:
        row = await dao.createEntity(session, "cliente", {"nombre": "ACME"})
        await session.commit()
        rows = await dao.fetchEntities(session, "cliente", filters={"nombre": "ACME"})

Error Handling
--------------
- Methods log with ``logger.exception(...)`` and re-raise the SQLAlchemy error.
  Translation into the ``StoreError`` taxonomy happens one layer up.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from sqlalchemy import TEXT, Table, asc, case, cast, delete, desc, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from workboard.database.core.change_relay import record_change

logger = logging.getLogger(__name__)

ROW_COLUMNS = ("id", "type", "created_at", "updated_at")
"""Columns that can be ordered on directly instead of through the payload."""


def _text_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class EntityDao:
    """
    Data Access Object (DAO) for the polymorphic entities table.
    """

    def __init__(self, table: Table):
        self.table = table

    def _field(self, session: AsyncSession, name: str):
        """Text value of payload field ``name`` (``data ->> name``)."""
        text_value = cast(self.table.c.data[name].as_string(), TEXT)
        if getattr(session.get_bind().dialect, "name", "") != "sqlite":
            return text_value
        # SQLite extracts JSON true/false as 1/0
        kind = func.json_type(self.table.c.data, f'$."{name}"')
        return case((kind == "true", "true"), (kind == "false", "false"), else_=text_value)

    def _row(self, row) -> Dict[str, Any]:
        raw = dict(row._mapping)
        raw["data"] = dict(raw.get("data") or {})
        raw["id"] = str(raw["id"])
        return raw

    def _scoped(self, entity_type: str):
        return select(self.table).where(self.table.c.type == entity_type)

    async def fetchEntities(
        self,
        session: AsyncSession,
        entity_type: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch the rows of one type, filtered and ordered.

        Parameters
        ----------
        session : AsyncSession
            Active SQLAlchemy session.
        entity_type : str
            Type discriminator.
        filters : dict | None
            Payload field → value equality filters, compared as text. Values
            that are None or "" are skipped.
        order_by : str | None
            Payload field (text ordering) or one of ``ROW_COLUMNS``.
        ascending : bool
            Sort direction.
        limit : int | None
            Maximum number of rows.

        Returns
        -------
        list[dict]
            Matching rows.
        """
        try:
            query = self._scoped(entity_type)
            for key, value in (filters or {}).items():
                if value is None or value == "":
                    continue
                query = query.where(self._field(session, key) == _text_value(value))
            if order_by:
                column = self.table.c[order_by] if order_by in ROW_COLUMNS else self._field(session, order_by)
                query = query.order_by(asc(column) if ascending else desc(column))
            if limit is not None:
                query = query.limit(limit)
            result = await session.execute(query)
            return [self._row(row) for row in result]
        except Exception:
            logger.exception("Error in EntityDao.fetchEntities (type=%s)", entity_type)
            raise

    async def fetchEntityById(self, session: AsyncSession, entity_type: str, entity_id: str) -> List[Dict[str, Any]]:
        """
        Return all rows of ``entity_type`` with ``entity_id``.

        Returns a list (normally of zero or one row); deciding what zero or
        several rows mean is left to the caller.
        """
        try:
            result = await session.execute(
                self._scoped(entity_type).where(self.table.c.id == entity_id)
            )
            return [self._row(row) for row in result]
        except Exception:
            logger.exception("Error in EntityDao.fetchEntityById (type=%s, id=%s)", entity_type, entity_id)
            raise

    async def fetchEntitiesByIds(self, session: AsyncSession, entity_type: str, ids: Iterable[str]) -> List[Dict[str, Any]]:
        """Return the rows of ``entity_type`` whose id is in ``ids``."""
        try:
            result = await session.execute(
                self._scoped(entity_type).where(self.table.c.id.in_(list(ids)))
            )
            return [self._row(row) for row in result]
        except Exception:
            logger.exception("Error in EntityDao.fetchEntitiesByIds (type=%s)", entity_type)
            raise

    async def searchEntities(self, session: AsyncSession, entity_type: str, field: str, term: str) -> List[Dict[str, Any]]:
        """Case-insensitive substring match of ``term`` on payload ``field``."""
        try:
            result = await session.execute(
                self._scoped(entity_type).where(self._field(session, field).ilike(f"%{term}%"))
            )
            return [self._row(row) for row in result]
        except Exception:
            logger.exception("Error in EntityDao.searchEntities (type=%s, field=%s)", entity_type, field)
            raise

    async def createEntity(self, session: AsyncSession, entity_type: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a row of ``entity_type`` holding ``payload``.

        Returns
        -------
        dict
            The stored row, with its assigned id and timestamps.
        """
        try:
            entity_id = str(uuid4())
            await session.execute(
                insert(self.table).values(id=entity_id, type=entity_type, data=dict(payload))
            )
            created = (await self.fetchEntityById(session, entity_type, entity_id))[0]
            record_change(session, self.table.name, "INSERT", new_row=created)
            return created
        except Exception:
            logger.exception("Error in EntityDao.createEntity (type=%s)", entity_type)
            raise

    async def updateEntityData(
        self,
        session: AsyncSession,
        entity_type: str,
        entity_id: str,
        data: Dict[str, Any],
        old_row: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Overwrite the payload of one row.

        Parameters
        ----------
        data : dict
            Complete new payload. Merging is the caller's job.
        old_row : dict | None
            Row as the caller last read it, forwarded to subscribers as the
            pre-change state.

        Returns
        -------
        list[dict]
            Rows after the write (empty if nothing matched).
        """
        try:
            await session.execute(
                update(self.table)
                .where(self.table.c.id == entity_id, self.table.c.type == entity_type)
                .values(data=dict(data))
            )
            rows = await self.fetchEntityById(session, entity_type, entity_id)
            for row in rows:
                record_change(session, self.table.name, "UPDATE", new_row=row, old_row=old_row)
            return rows
        except Exception:
            logger.exception("Error in EntityDao.updateEntityData (type=%s, id=%s)", entity_type, entity_id)
            raise

    async def deleteEntity(self, session: AsyncSession, entity_type: str, entity_id: str) -> int:
        """
        Delete one row of ``entity_type``.

        Returns
        -------
        int
            Number of rows deleted. Zero is not an error.
        """
        try:
            old_rows = await self.fetchEntityById(session, entity_type, entity_id)
            await session.execute(
                delete(self.table).where(self.table.c.id == entity_id, self.table.c.type == entity_type)
            )
            for row in old_rows:
                record_change(session, self.table.name, "DELETE", old_row=row)
            return len(old_rows)
        except Exception:
            logger.exception("Error in EntityDao.deleteEntity (type=%s, id=%s)", entity_type, entity_id)
            raise
