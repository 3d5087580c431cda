"""
The `database` package is responsible for all interactions with the application's database.
It provides configuration, the polymorphic entity model, data access, and the semantic
layer (record store, change feed, messaging, relation lookups) built on top of it.

Contents:
    - config:
        Configuration and the async SQLAlchemy engine, metadata and session factory.

    - entities:
        The `Entity` model of the single polymorphic table.

    - daos:
        `EntityDao`, the SQL primitives over that table.

    - core:
        `EntityStore`, `ChangeRelay`, `MessagingService` and the related-entity resolver.

    - helpers:
        `@transactional` async session management.
"""
