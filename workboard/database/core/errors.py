"""
Error taxonomy of the entity access layer.

- ``StoreError``: any transport, query or constraint failure reported by the
  database. The original SQLAlchemy exception is chained as ``__cause__``.
- ``NotFound``: a single-row fetch matched zero rows. Subclass of
  ``StoreError`` so callers that only care about "the store failed" still
  catch it, while resolvers can single it out.
- ``ValidationError``: input rejected by the semantic layer before reaching
  the store (empty message content, missing linkage).
"""


class StoreError(Exception):
    """Failure reported by the backing store."""

    code = "store_error"

    def __init__(self, detail: str, code: str | None = None):
        super().__init__(detail)
        self.detail = detail
        if code is not None:
            self.code = code


class NotFound(StoreError):
    """A single-row fetch matched no rows."""

    code = "not_found"


class ValidationError(Exception):
    """Input rejected before any store call."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail
