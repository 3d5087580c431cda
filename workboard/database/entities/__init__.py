"""
Entities Package — SQLAlchemy 2.0 ORM Models (PostgreSQL JSONB + UUID + UTC)
===========================================================================

The `entities` package defines the ORM model of the application. Every record
kind is stored in a single polymorphic table, so there is one model.

Tech Stack & Conventions
------------------------
- PostgreSQL with native UUID and JSONB columns (portable JSON elsewhere)
- Timezone-aware timestamps (UTC)
- SQLAlchemy 2.0 style `Mapped[...]` + `mapped_column(...)`

Contents
--------
- Entity
    One polymorphic record.
    * Fields: `id` (UUID PK), `type` (discriminator), `data` (payload document)
    * Tracks `created_at` and `updated_at` (UTC, tz-aware)
    * Adding a record kind needs no migration: pick a new `type` string

- get_entities_table(table_name)
    Returns the Core `Table` for a physical table name, binding the Entity
    column layout to names other than the default when asked.
"""
