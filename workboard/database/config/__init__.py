"""
The `config` package provides two core building blocks for establishing and managing database connections.

Contents:
    - config: Configuration layer - strongly typed app settings loaded from environment variables (with .env support), exposed through a singleton Settings object
    - connection_engine: Database layer - SQLAlchemy asyncio bootstrap that constructs a connection URL from those settings, creates the AsyncEngine, shared MetaData, the declarative base and the session factory

Together they provide environment-driven configuration and a clean ORM foundation.
"""
