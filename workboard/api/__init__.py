"""
API Package — FastAPI Router • Models
=====================================

Mission
-------
This package defines the backend’s HTTP interface over the entity access layer.

Contents
--------
- fast_api
    FastAPI router with endpoints for:
      • Entities (any type): list with filters/ordering, search, get, create,
        merge-update, delete, batch lookup by ids
      • Messages: inbox, sent, conversation, conversation summaries, unread
        counter, send, mark as read (one message or a whole conversation)

- models
    Pydantic data contracts for the fixed-shape requests/responses:
      • NewMessage, EntityIds, UnreadCount, MarkedAsRead

Operational Notes
-----------------
- The change feed is served as a WebSocket by `workboard.main`.
- Entity payloads are schema-less JSON objects; callers must not use `id`,
  `type`, `created_at` or `updated_at` as payload field names.
"""
