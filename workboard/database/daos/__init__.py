"""
DAOs Package — Data Access Layer (SQLAlchemy 2.0 asyncio)
=========================================================

The `daos` package provides the Data Access Layer for the application.
It encapsulates the SQL issued against the polymorphic entities table,
providing storage primitives for the semantic layer while hiding query details.

Conventions
-----------
- SQLAlchemy 2.0 Core statements on the entities `Table`
- Session lifecycle (open/commit/rollback) is handled by callers
- DAOs surface exceptions so upper layers decide error policy

Contents
--------
- EntityDao
    * Fetches rows of a type with payload equality filters, text ordering and limits
    * Fetches rows by id or id set, searches a payload field case-insensitively
    * Inserts, overwrites payloads and deletes rows, scoped to a type
    * Stages change notifications that the relay delivers after commit
"""
