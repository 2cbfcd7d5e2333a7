"""HTTP API for the lending service.

Serves /api for user registration, login, the catalog and borrow records.
"""

from .router import router

__all__ = ["router"]
