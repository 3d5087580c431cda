"""
Configuration — Pydantic v2 Settings (env / .env)
=================================================

Purpose
-------
Centralized, strongly-typed application configuration using:
- Pydantic v2 `BaseSettings` for environment-driven values
- `pydantic-settings` v2 for `.env` loading and model config

Load Order & Behavior
---------------------
- Values are read from the environment; if not present, `.env` is used.
- Every field has a development default, so the package imports without a `.env`.
- `extra="ignore"`: unknown env vars are ignored (not an error).

Usage
-----
from workboard.database.config.config import settings

# Example
table_name = settings.ENTITIES_TABLE
db_host = settings.DB_HOST

Security
--------
- Never commit secrets or the `.env` file to source control.
- Prefer runtime environment variables in production (K8s/Secrets Manager/etc.).
"""


from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Application configuration settings loaded from environment variables
    or a `.env` file. Provides strongly typed access to environment values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    DATABASE_URL: Optional[str] = Field(None, description="Full SQLAlchemy URL. When set, the DB_* parts below are ignored.")
    DB_DRIVER_NAME: str = Field("postgresql+asyncpg", description="Async database driver (e.g., `postgresql+asyncpg`, `sqlite+aiosqlite`).")
    DB_USERNAME: Optional[str] = Field(None, description="Database username credential.")
    DB_PASSWORD: Optional[str] = Field(None, description="Database password credential.")
    DB_HOST: Optional[str] = Field("localhost", description="Hostname or IP address of the database server.")
    DB_PORT: Optional[int] = Field(None, description="Port of the database server.")
    DB_DATABASE_NAME: Optional[str] = Field("workboard", description="Name of the application’s database.")
    DB_ECHO: bool = Field(False, description="Echo emitted SQL to the log.")
    ENTITIES_TABLE: str = Field("entities", description="Physical table holding the polymorphic entities (messages included).")
    FRONTEND_URL: str = Field("http://localhost:5173", description="Base URL of the frontend client application (CORS origin).")
    INIT_MODE: str = Field("runtime", description="Initialization mode. `runtime` creates missing tables on startup.")
    LOG_LEVEL: str = Field("INFO", description="Root log level for the application loggers.")

# Singleton instance of Settings, ready to be imported across the app
settings = Settings()
"""Defines a Settings object that contains the contents of the .env file"""
