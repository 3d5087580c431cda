"""
Database Transaction Management
===============================

This module provides utilities for managing SQLAlchemy ``AsyncSession`` objects
using Python context variables and a decorator-based transaction wrapper.

It allows seamless propagation of a database session across coroutine calls
without explicitly threading it through arguments. Coroutines can be safely
decorated with ``@transactional`` to ensure they run inside a managed
transactional context.

Key features
~~~~~~~~~~~~
- Context variable to store the active session
- Implicit reuse of existing sessions
- Automatic commit and rollback handling
- Clean session closure after execution
- Decorator pattern for coroutine-level transaction management

Concurrency
~~~~~~~~~~~
``asyncio.gather`` runs each coroutine in its own task with a copy of the
current context. Coroutines gathered outside a transaction therefore open one
session each; gathering inside a transaction would share a session across
tasks, which ``AsyncSession`` does not support.
"""

from functools import wraps
import contextvars
from workboard.database.config import connection_engine

# --------------------------------------------------------------------
# Context variable to store the current database session.
# --------------------------------------------------------------------
db_session_context = contextvars.ContextVar("db_session_context", default=None)
"""Context variable storing the active SQLAlchemy async session."""


def transactional(func):
    """
    Decorator to wrap coroutines in a managed SQLAlchemy transaction.

    Ensures that:
    - If a session already exists in context, it is reused.
    - Otherwise, a new session is created, committed, and closed.
    - On errors, the session is rolled back and closed.

    Parameters
    ----------
    func : coroutine function
        The coroutine to wrap. It must accept a `session` keyword argument.

    Returns
    -------
    coroutine function
        The wrapped coroutine, executed within a database transaction.

    Example
    -------
    >>> @transactional
    ... async def count_rows(table, session=None):
    ...     return (await session.execute(select(func.count()).select_from(table))).scalar_one()
    """
    @wraps(func)
    async def wrap_func(*args, **kwargs):
        session = db_session_context.get()
        if session is not None:
            return await func(*args, session=session, **kwargs)

        session = connection_engine.get_session_factory()()
        token = db_session_context.set(session)

        try:
            result = await func(*args, session=session, **kwargs)
            await session.flush()
            await session.commit()
        except Exception as e:
            await session.rollback()
            raise e
        finally:
            await session.close()
            db_session_context.reset(token)

        return result

    return wrap_func
