"""Product CRUD operations, scoped by owning user."""

from __future__ import annotations

import logging
import sqlite3
from datetime import date
from pathlib import Path

from ..models import DEFAULT_CATEGORY, Product
from .schema import ensure_schema

logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """A read, write or delete against the product store failed."""


class ProductDB:
    """Manages the products table."""

    def __init__(
        self, db_path: str | Path = "~/.config/freshtrack/freshtrack.db"
    ) -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            try:
                self._conn = ensure_schema(self._db_path)
            except (sqlite3.Error, OSError) as e:
                raise PersistenceError(f"Could not open product store: {e}") from e
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def add_product(
        self,
        user_id: str,
        name: str,
        expiry_date: date,
        *,
        category: str = DEFAULT_CATEGORY,
        notes: str | None = None,
    ) -> Product:
        """Insert a product row owned by ``user_id``.

        Returns:
            The stored product, including its ID and creation timestamp.
        """
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """INSERT INTO products (user_id, name, category, expiry_date, notes)
                   VALUES (?, ?, ?, ?, ?)""",
                (user_id, name, category, expiry_date.isoformat(), notes),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Error adding product: %s", e)
            raise PersistenceError(f"Failed to add product: {e}") from e

        product = self.get_product(user_id, cur.lastrowid)
        if product is None:
            raise PersistenceError("Product vanished after insert")
        return product

    def get_product(self, user_id: str, product_id: int) -> Product | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM products WHERE id = ? AND user_id = ?",
                (product_id, user_id),
            ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to load product: {e}") from e
        return Product.from_row(row) if row else None

    def list_products(self, user_id: str) -> list[Product]:
        """Return the user's products ordered by expiry date (soonest first)."""
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """SELECT * FROM products
                   WHERE user_id = ?
                   ORDER BY expiry_date ASC, id ASC""",
                (user_id,),
            ).fetchall()
        except sqlite3.Error as e:
            logger.error("Error fetching products: %s", e)
            raise PersistenceError(f"Failed to load products: {e}") from e
        return [Product.from_row(r) for r in rows]

    def delete_product(self, user_id: str, product_id: int) -> bool:
        """Delete a product owned by ``user_id``.

        Returns:
            True if a row was deleted.
        """
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "DELETE FROM products WHERE id = ? AND user_id = ?",
                (product_id, user_id),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Error deleting product: %s", e)
            raise PersistenceError(f"Failed to delete product: {e}") from e
        return cur.rowcount > 0
