"""Freshness classification, dashboard stats and list filters."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from enum import Enum

from .models import Product

EXPIRING_WINDOW_DAYS = 3


class Freshness(str, Enum):
    EXPIRED = "expired"
    EXPIRING = "expiring"
    FRESH = "fresh"


def days_until(expiry: date, today: date | None = None) -> int:
    return (expiry - (today or date.today())).days


def freshness_status(
    expiry: date,
    today: date | None = None,
    window: int = EXPIRING_WINDOW_DAYS,
) -> Freshness:
    """Classify an expiry date relative to today.

    Items expiring today count as expiring, not expired.
    """
    days = days_until(expiry, today)
    if days < 0:
        return Freshness.EXPIRED
    if days <= window:
        return Freshness.EXPIRING
    return Freshness.FRESH


def status_label(
    expiry: date, today: date | None = None, window: int = EXPIRING_WINDOW_DAYS
) -> str:
    days = days_until(expiry, today)
    if days < 0:
        return "Expired"
    if days == 0:
        return "Expires Today"
    if days <= window:
        return f"{days} day{'' if days == 1 else 's'} left"
    return f"{days} days left"


@dataclass
class FreshnessStats:
    total: int = 0
    expired: int = 0
    expiring: int = 0
    fresh: int = 0


def summarize(
    products: Iterable[Product],
    today: date | None = None,
    window: int = EXPIRING_WINDOW_DAYS,
) -> FreshnessStats:
    stats = FreshnessStats()
    for p in products:
        stats.total += 1
        match freshness_status(p.expiry_date, today, window):
            case Freshness.EXPIRED:
                stats.expired += 1
            case Freshness.EXPIRING:
                stats.expiring += 1
            case Freshness.FRESH:
                stats.fresh += 1
    return stats


def group_by_status(
    products: Iterable[Product],
    today: date | None = None,
    window: int = EXPIRING_WINDOW_DAYS,
) -> dict[Freshness, list[Product]]:
    """Group products by freshness, keeping their order within each group."""
    groups: dict[Freshness, list[Product]] = {s: [] for s in Freshness}
    for p in products:
        groups[freshness_status(p.expiry_date, today, window)].append(p)
    return groups


def filter_products(
    products: Iterable[Product],
    *,
    search: str = "",
    category: str | None = None,
    status: Freshness | str | None = None,
    today: date | None = None,
    window: int = EXPIRING_WINDOW_DAYS,
) -> list[Product]:
    """Apply the dashboard's search box, category and status filters.

    ``None`` or ``"all"`` disables the category or status filter.
    """
    needle = search.lower()
    wanted = None if status in (None, "all") else Freshness(status)
    result = []
    for p in products:
        if needle not in p.name.lower():
            continue
        if category not in (None, "all") and p.category != category:
            continue
        if wanted is not None and freshness_status(p.expiry_date, today, window) is not wanted:
            continue
        result.append(p)
    return result


def categories_in_use(products: Iterable[Product]) -> list[str]:
    seen: dict[str, None] = {}
    for p in products:
        seen.setdefault(p.category, None)
    return list(seen)
