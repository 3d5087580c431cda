"""
The `core` package is the semantic layer over the polymorphic entities table.

Contents
--------
- errors: `StoreError`, `NotFound`, `ValidationError`
- views: flattening of rows, `MessageView`, `ConversationSummary`, `ChangeEvent`
- change_relay: per-type change feed fed by committed sessions
- entity_store: `EntityStore`, generic CRUD/search/subscribe bound to one type
- messaging: `MessagingService`, inbox/conversations/read state over "mensaje" entities
- resolver: `get_entities_by_ids`, `get_entity_by_id` for hydrating relations
"""
