"""
FastAPI Router — Entities • Messages
====================================

Purpose
-------
Defines the HTTP API for:
- Entities: list/search, get, create, update (merge), delete, batch lookup — any type
- Messages: inbox, sent, conversation, conversation summaries, unread counter,
  send, mark one message / a whole conversation as read

Key Notes
---------
- Entity payloads are free-form JSON objects; responses are flattened entities.
- `GET /entities/{type}` treats every query parameter other than `order_by`,
  `ascending` and `search` as a payload equality filter.
- Store errors map to HTTP errors: NotFound → 404, ValidationError → 422,
  any other StoreError → 503.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, HTTPException, Request

from workboard.api.models import EntityIds, MarkedAsRead, NewMessage, UnreadCount
from workboard.database.core.entity_store import EntityStore
from workboard.database.core.errors import NotFound, StoreError, ValidationError
from workboard.database.core.messaging import MessagingService
from workboard.database.core.resolver import get_entities_by_ids

logger = logging.getLogger(__name__)

router = APIRouter()
"""Creates the FastAPI router in which we define its routes"""

LIST_OPTIONS = ("order_by", "ascending", "search")


def to_http_error(e: Exception) -> HTTPException:
    """Map the store error taxonomy to an HTTPException."""
    if isinstance(e, NotFound):
        return HTTPException(status_code=404, detail=e.detail)
    if isinstance(e, ValidationError):
        return HTTPException(status_code=422, detail=e.detail)
    logger.error("Store failure: %s", e)
    return HTTPException(status_code=503, detail=getattr(e, "detail", str(e)))


@router.get('/entities/{entity_type}')
async def list_entities(entity_type: str, request: Request, order_by: str = "nombre", ascending: bool = True, search: str | None = None):
    """List entities of a type.

    Query:
        order_by: payload field (text ordering) or created_at/updated_at/id
        ascending: sort direction
        search: case-insensitive substring on `nombre` (filters/order ignored)
        anything else: payload equality filter
    """
    store = EntityStore(entity_type)
    try:
        if search is not None:
            return await store.search(search)
        filters = {k: v for k, v in request.query_params.items() if k not in LIST_OPTIONS}
        return await store.list(order_by=order_by, ascending=ascending, filters=filters)
    except StoreError as e:
        raise to_http_error(e)


@router.get('/entities/{entity_type}/{entity_id}')
async def get_entity(entity_type: str, entity_id: str):
    """Get one entity; 404 if it does not exist."""
    try:
        return await EntityStore(entity_type).get(entity_id)
    except StoreError as e:
        raise to_http_error(e)


@router.post('/entities/{entity_type}', status_code=201)
async def create_entity(entity_type: str, payload: Dict[str, Any] = Body(...)):
    """Create an entity from a JSON object payload."""
    try:
        return await EntityStore(entity_type).create(payload)
    except StoreError as e:
        raise to_http_error(e)


@router.patch('/entities/{entity_type}/{entity_id}')
async def update_entity(entity_type: str, entity_id: str, updates: Dict[str, Any] = Body(...)):
    """Merge the given fields into an entity's payload."""
    try:
        return await EntityStore(entity_type).update(entity_id, updates)
    except StoreError as e:
        raise to_http_error(e)


@router.delete('/entities/{entity_type}/{entity_id}')
async def delete_entity(entity_type: str, entity_id: str):
    """Delete an entity. Succeeds for ids that do not exist."""
    try:
        return await EntityStore(entity_type).remove(entity_id)
    except StoreError as e:
        raise to_http_error(e)


@router.post('/entities/{entity_type}/batch')
async def batch_entities(entity_type: str, data: EntityIds):
    """Fetch the entities of a type matching an id set."""
    try:
        return await get_entities_by_ids(entity_type, data.ids)
    except StoreError as e:
        raise to_http_error(e)


@router.get('/members/{member_id}/inbox')
async def inbox(member_id: str):
    """Messages received by a member, newest first."""
    try:
        return await MessagingService().get_inbox(member_id)
    except StoreError as e:
        raise to_http_error(e)


@router.get('/members/{member_id}/sent')
async def sent(member_id: str):
    """Messages written by a member, newest first."""
    try:
        return await MessagingService().get_sent(member_id)
    except StoreError as e:
        raise to_http_error(e)


@router.get('/members/{member_id}/conversations')
async def conversations(member_id: str):
    """One summary per counterpart, most recently active first."""
    try:
        return await MessagingService().get_conversations(member_id)
    except StoreError as e:
        raise to_http_error(e)


@router.get('/members/{member_id}/conversations/{other_id}')
async def conversation(member_id: str, other_id: str):
    """Messages between two members, oldest first."""
    try:
        return await MessagingService().get_conversation(member_id, other_id)
    except StoreError as e:
        raise to_http_error(e)


@router.post('/members/{member_id}/conversations/{other_id}/read', response_model=MarkedAsRead)
async def read_conversation(member_id: str, other_id: str):
    """Mark every unread message from `other_id` to `member_id` as read."""
    try:
        marked = await MessagingService().mark_conversation_as_read(member_id, other_id)
        return MarkedAsRead(marked=marked)
    except StoreError as e:
        raise to_http_error(e)


@router.get('/members/{member_id}/unread_count', response_model=UnreadCount)
async def unread_count(member_id: str):
    """Unread message counter. Reports 0 when the store fails."""
    count = await MessagingService().get_unread_count(member_id)
    return UnreadCount(member_id=member_id, unread_count=count)


@router.post('/messages', status_code=201)
async def send_message(data: NewMessage):
    """Send a private message."""
    try:
        return await MessagingService().send(data.sender_id, data.recipient_id, data.content)
    except (StoreError, ValidationError) as e:
        raise to_http_error(e)


@router.post('/messages/{message_id}/read')
async def read_message(message_id: str):
    """Mark one message as read."""
    try:
        return await MessagingService().mark_as_read(message_id)
    except StoreError as e:
        raise to_http_error(e)
