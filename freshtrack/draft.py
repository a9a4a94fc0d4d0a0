"""Draft persistence for the create-product form across a scan round trip."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import replace

from .models import ProductFields
from .storage import SessionStorage

logger = logging.getLogger(__name__)

DRAFT_KEY = "freshtrack.product_draft"


class DraftStateCoordinator:
    """Owns the single draft slot in session storage.

    Nothing else reads or writes the slot. At most one draft exists at a
    time; saving overwrites the previous one.
    """

    def __init__(self, storage: SessionStorage, key: str = DRAFT_KEY) -> None:
        self._storage = storage
        self._key = key

    @property
    def exists(self) -> bool:
        return self._key in self._storage

    def save(self, fields: ProductFields) -> None:
        """Snapshot the form. Call before navigating to the scanner."""
        self._storage.set(self._key, json.dumps(fields.to_dict()))
        logger.debug("Draft saved")

    def load(self) -> ProductFields:
        """Return the stored draft, or default fields if absent or corrupt."""
        raw = self._storage.get(self._key)
        if raw is None:
            return ProductFields()
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.debug("Ignoring corrupt draft")
            return ProductFields()
        if not isinstance(data, dict):
            logger.debug("Ignoring corrupt draft")
            return ProductFields()

        values: dict[str, str] = {}
        for name in ProductFields.field_names():
            value = data.get(name)
            if value is None:
                continue
            if not isinstance(value, str):
                logger.debug("Ignoring corrupt draft")
                return ProductFields()
            values[name] = value
        return ProductFields(**values)

    def restore(
        self,
        current: ProductFields | None = None,
        *,
        protected: Iterable[str] = (),
    ) -> ProductFields:
        """Merge the draft into ``current`` without overwriting user input.

        A draft value is applied only where ``current`` still holds the
        field's default and the field is not listed in ``protected``.
        """
        base = current if current is not None else ProductFields()
        draft = self.load()
        skip = set(protected)

        updates: dict[str, str] = {}
        for name in ProductFields.field_names():
            if name in skip or not base.is_default(name):
                continue
            updates[name] = getattr(draft, name)
        return replace(base, **updates)

    def clear(self) -> None:
        self._storage.remove(self._key)
        logger.debug("Draft cleared")
