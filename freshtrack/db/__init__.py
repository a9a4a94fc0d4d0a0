"""SQLite database module for the product store."""

from .products import PersistenceError, ProductDB
from .schema import ensure_schema

__all__ = [
    "PersistenceError",
    "ProductDB",
    "ensure_schema",
]
