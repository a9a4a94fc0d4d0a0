"""Create-product form: validation, submission and scan hand-off."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Callable

from .auth import UserSession
from .db import PersistenceError, ProductDB
from .draft import DraftStateCoordinator
from .models import CATEGORIES, Product, ProductFields, ScanKind, ScanResult
from .navigation import Navigator
from .notify import Notifier

logger = logging.getLogger(__name__)


class SubmitError(Exception):
    """The form could not be submitted; its fields are left untouched."""


class Unauthenticated(SubmitError):
    pass


class MissingName(SubmitError):
    pass


class MissingExpiry(SubmitError):
    pass


class InvalidCategory(SubmitError):
    pass


def parse_expiry(value: str) -> date | None:
    """Parse an ISO calendar date, returning None if absent or invalid."""
    value = (value or "").strip()
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


class ProductFormController:
    """Backs the create-product form.

    A controller instance lives only while the form view is shown. Opening
    the scanner saves a draft and hands control away; the next instance
    calls :meth:`mount` to restore the draft and apply the scan result.
    """

    def __init__(
        self,
        session: UserSession,
        db: ProductDB,
        drafts: DraftStateCoordinator,
        navigator: Navigator,
        notifier: Notifier | None = None,
        *,
        on_product_added: Callable[[Product], None] | None = None,
    ) -> None:
        self._session = session
        self._db = db
        self._drafts = drafts
        self._navigator = navigator
        self._notifier = notifier or Notifier()
        self._on_product_added = on_product_added
        self.fields = ProductFields()

    def set_field(self, name: str, value: str) -> None:
        if name not in ProductFields.field_names():
            raise AttributeError(f"Unknown form field: {name!r}")
        self.fields = replace(self.fields, **{name: value})

    def reset(self) -> None:
        self.fields = ProductFields()

    def mount(self) -> ScanResult | None:
        """Restore state after returning from the scanner.

        The pending scan result is consumed here and nowhere else, so
        mounting again never reapplies it.
        """
        result = self._navigator.take_scan_result()
        protected = (result.kind.field_name,) if result is not None else ()

        if self._drafts.exists:
            self.fields = self._drafts.restore(self.fields, protected=protected)
            self._drafts.clear()

        if result is not None:
            self.set_field(result.kind.field_name, result.text)
            logger.info("Applied scanned %s", result.kind.label.lower())
        return result

    def handle_scan(self, kind: ScanKind) -> None:
        """Save the draft, then hand the view over to the scanner."""
        kind = ScanKind(kind)
        self._drafts.save(self.fields)
        self._navigator.open_scanner(kind)

    def submit(self, fields: ProductFields | None = None) -> Product:
        """Validate and store the product.

        Raises:
            Unauthenticated, MissingName, MissingExpiry, InvalidCategory:
                validation failed; nothing was written.
            PersistenceError: the store rejected the write.
        """
        if fields is not None:
            self.fields = fields
        fields = self.fields

        try:
            product = self._submit(fields)
        except (SubmitError, PersistenceError) as e:
            self._notifier.error(str(e))
            raise

        self.reset()
        self._notifier.success("Product added successfully!")
        if self._on_product_added is not None:
            self._on_product_added(product)
        return product

    def _submit(self, fields: ProductFields) -> Product:
        user_id = self._session.current_user()
        if user_id is None:
            raise Unauthenticated("You must be logged in to add products")

        name = fields.name.strip()
        if not name:
            raise MissingName("Please enter a product name")

        expiry = parse_expiry(fields.expiry_date)
        if expiry is None:
            raise MissingExpiry("Please enter an expiry date")

        if fields.category not in CATEGORIES:
            raise InvalidCategory(f"Unknown category: {fields.category!r}")

        product = self._db.add_product(
            user_id,
            name,
            expiry,
            category=fields.category,
            notes=fields.notes.strip() or None,
        )
        self._drafts.clear()
        logger.info("Product %d added for %s", product.id, user_id)
        return product
