"""
Polymorphic Record Store
========================

``EntityStore`` is the generic CRUD / search / change-feed API over the
polymorphic entities table, bound to one entity type at construction.

.. code-block:: python

    proyectos = EntityStore("proyecto")
    created = await proyectos.create({"nombre": "Reforma cocina", "cliente_id": cliente["id"]})
    await proyectos.update(created["id"], {"estado": "en curso"})
    rows = await proyectos.list(order_by="nombre", filters={"cliente_id": cliente["id"]})

    unsubscribe = proyectos.subscribe(lambda change: print(change.event_type, change.data))
    ...
    unsubscribe()

Every method returns flattened views (see ``views.flatten_entity``). Storage
failures surface as ``StoreError``; a missing row on ``get``/``update`` as
``NotFound``.

Ordering on payload fields is text ordering, also for numeric-looking values.

``update`` is a read-modify-write: it reads the current payload, merges the
updates over it and writes the result back in one transaction, without a
version check. Two concurrent updates of the same entity race; the last
writer's merged payload wins, and fields changed only by the first writer can
be lost.
"""

import logging
from functools import wraps
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from workboard.database.core.change_relay import ChangeCallback, change_relay
from workboard.database.core.errors import NotFound, StoreError
from workboard.database.core.views import flatten_entity
from workboard.database.daos.entity_dao import EntityDao
from workboard.database.entities.entity import get_entities_table
from workboard.database.helpers.transactionManagement import transactional

logger = logging.getLogger(__name__)

SEARCH_FIELD = "nombre"
"""Payload field matched by ``search``."""


def store_errors(func):
    """Translate SQLAlchemy and driver connection failures raised by ``func`` into ``StoreError``."""
    @wraps(func)
    async def wrap_func(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except (SQLAlchemyError, OSError) as e:
            raise StoreError(f"{func.__name__} failed: {e}") from e

    return wrap_func


class EntityStore:
    """
    CRUD, search and change subscription for one entity type.

    Parameters
    ----------
    entity_type : str
        Discriminator every operation is scoped to.
    table_name : str | None
        Physical table. None means ``settings.ENTITIES_TABLE``.
    """

    def __init__(self, entity_type: str, table_name: Optional[str] = None):
        self.entity_type = entity_type
        self.table = get_entities_table(table_name)
        self.dao = EntityDao(self.table)

    @property
    def table_name(self) -> str:
        return self.table.name

    def __repr__(self) -> str:
        return f"EntityStore(type={self.entity_type!r}, table={self.table_name!r})"

    @store_errors
    @transactional
    async def list(
        self,
        order_by: Optional[str] = "nombre",
        ascending: bool = True,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
        session: AsyncSession = None,
    ) -> List[Dict[str, Any]]:
        """
        List the entities of this type.

        Parameters
        ----------
        order_by : str | None
            Payload field (text ordering) or ``id``/``created_at``/``updated_at``.
        ascending : bool
            Sort direction.
        filters : dict | None
            Payload field equality filters. None and "" values are ignored.
        limit : int | None
            Optional cap on the number of results.
        """
        rows = await self.dao.fetchEntities(
            session, self.entity_type, filters=filters, order_by=order_by, ascending=ascending, limit=limit
        )
        return [flatten_entity(row) for row in rows]

    async def _fetch_one(self, session: AsyncSession, entity_id: str) -> Dict[str, Any]:
        rows = await self.dao.fetchEntityById(session, self.entity_type, entity_id)
        if not rows:
            raise NotFound(f"No {self.entity_type} with id {entity_id}")
        if len(rows) > 1:
            raise StoreError(f"{len(rows)} rows of {self.entity_type} share id {entity_id}", code="ambiguous")
        return rows[0]

    @store_errors
    @transactional
    async def get(self, entity_id: str, session: AsyncSession = None) -> Dict[str, Any]:
        """Return the entity with ``entity_id``; ``NotFound`` if absent."""
        return flatten_entity(await self._fetch_one(session, entity_id))

    @store_errors
    @transactional
    async def create(self, payload: Dict[str, Any], session: AsyncSession = None) -> Dict[str, Any]:
        """Insert a new entity holding ``payload``; returns it with id and timestamps."""
        row = await self.dao.createEntity(session, self.entity_type, payload or {})
        logger.debug("Created %s %s", self.entity_type, row["id"])
        return flatten_entity(row)

    @store_errors
    @transactional
    async def update(self, entity_id: str, updates: Dict[str, Any], session: AsyncSession = None) -> Dict[str, Any]:
        """
        Shallow-merge ``updates`` over the stored payload.

        Keys in ``updates`` win, keys absent from it are kept. Not protected
        against concurrent updates of the same entity.
        """
        current = await self._fetch_one(session, entity_id)
        merged = {**current["data"], **(updates or {})}
        rows = await self.dao.updateEntityData(session, self.entity_type, entity_id, merged, old_row=current)
        if not rows:
            raise NotFound(f"No {self.entity_type} with id {entity_id}")
        return flatten_entity(rows[0])

    @store_errors
    @transactional
    async def remove(self, entity_id: str, session: AsyncSession = None) -> bool:
        """Delete the entity. Deleting an id that does not exist is not an error."""
        deleted = await self.dao.deleteEntity(session, self.entity_type, entity_id)
        logger.debug("Removed %d %s row(s) with id %s", deleted, self.entity_type, entity_id)
        return True

    @store_errors
    @transactional
    async def search(self, term: str, session: AsyncSession = None) -> List[Dict[str, Any]]:
        """Entities whose ``nombre`` contains ``term``, ignoring case."""
        rows = await self.dao.searchEntities(session, self.entity_type, SEARCH_FIELD, term or "")
        return [flatten_entity(row) for row in rows]

    @store_errors
    @transactional
    async def get_many(self, ids: Iterable[str], session: AsyncSession = None) -> List[Dict[str, Any]]:
        """Entities of this type whose id is in ``ids``."""
        rows = await self.dao.fetchEntitiesByIds(session, self.entity_type, ids)
        return [flatten_entity(row) for row in rows]

    @store_errors
    @transactional
    async def write_payload(
        self,
        entity_id: str,
        payload: Dict[str, Any],
        old_row: Optional[Dict[str, Any]] = None,
        session: AsyncSession = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Overwrite the payload with ``payload`` as given, without reading first.

        ``old_row`` is the raw row the caller already holds; subscribers get
        it as the pre-change state. Returns the flattened entity, or None if
        no row matched.
        """
        rows = await self.dao.updateEntityData(session, self.entity_type, entity_id, payload, old_row=old_row)
        return flatten_entity(rows[0]) if rows else None

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        """
        Receive every committed insert/update/delete of this type.

        ``callback`` gets a ``ChangeEvent`` with flattened ``data`` /
        ``old_data``. Returns the unsubscribe action; invoke it when the
        consumer goes away. Calling it again is a no-op.
        """
        return change_relay.subscribe(self.table_name, self.entity_type, callback)
