"""
Related-entity lookups.

Relations between entities are plain ids stored in payloads (a project's
``cliente_id``, a message's ``sender_id``). These helpers hydrate them.

Both short-circuit on empty input without touching the database, and
``get_entity_by_id`` treats "no such row" as a normal empty answer while
letting every other store failure propagate.
"""

from typing import Any, Dict, Iterable, List, Optional

from workboard.database.core.entity_store import EntityStore
from workboard.database.core.errors import NotFound


async def get_entities_by_ids(
    entity_type: str, ids: Optional[Iterable[str]], table_name: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Fetch the entities of ``entity_type`` whose id is in ``ids``.

    Parameters
    ----------
    entity_type : str
        Type discriminator.
    ids : Iterable[str] | None
        Identifiers to fetch. Unknown ids are skipped silently.
    table_name : str | None
        Physical table, default ``settings.ENTITIES_TABLE``.

    Returns
    -------
    list[dict]
        Flattened entities, in no particular order. ``[]`` for empty/None ``ids``.
    """
    ids = [entity_id for entity_id in (ids or []) if entity_id]
    if not ids:
        return []
    return await EntityStore(entity_type, table_name=table_name).get_many(ids)


async def get_entity_by_id(
    entity_type: str, entity_id: Optional[str], table_name: Optional[str] = None
) -> Optional[Dict[str, Any]]:
    """
    Fetch one entity, or None when ``entity_id`` is empty or matches nothing.

    Raises
    ------
    StoreError
        Any failure other than "not found".
    """
    if not entity_id:
        return None
    try:
        return await EntityStore(entity_type, table_name=table_name).get(entity_id)
    except NotFound:
        return None
