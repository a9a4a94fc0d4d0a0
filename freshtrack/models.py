"""Data models shared by the form, draft and scanner flows."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import date
from enum import Enum
from typing import Any

CATEGORIES = (
    "Dairy",
    "Meat & Poultry",
    "Vegetables",
    "Fruits",
    "Beverages",
    "Snacks",
    "Canned Goods",
    "Frozen",
    "Bakery",
    "Condiments",
    "Medicine",
    "Personal Care",
    "Other",
)

DEFAULT_CATEGORY = "Other"


class ScanKind(str, Enum):
    """Which form field a photograph is analyzed to fill."""

    PRODUCT_NAME = "product_name"
    EXPIRY_DATE = "expiry_date"

    @property
    def field_name(self) -> str:
        return "name" if self is ScanKind.PRODUCT_NAME else "expiry_date"

    @property
    def label(self) -> str:
        return "Product name" if self is ScanKind.PRODUCT_NAME else "Expiry date"


@dataclass
class ProductFields:
    """In-progress values of the create-product form."""

    name: str = ""
    category: str = DEFAULT_CATEGORY
    expiry_date: str = ""
    notes: str = ""

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def is_default(self, field_name: str) -> bool:
        return getattr(self, field_name) == getattr(ProductFields(), field_name)

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class ScanRequest:
    kind: ScanKind


@dataclass(frozen=True)
class ScanResult:
    kind: ScanKind
    text: str


@dataclass
class Product:
    """A stored product row."""

    id: int
    user_id: str
    name: str
    category: str
    expiry_date: date
    notes: str | None = None
    created_at: str = ""

    @classmethod
    def from_row(cls, row: Any) -> Product:
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            category=row["category"],
            expiry_date=date.fromisoformat(row["expiry_date"]),
            notes=row["notes"],
            created_at=row["created_at"],
        )

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["expiry_date"] = self.expiry_date.isoformat()
        return d
