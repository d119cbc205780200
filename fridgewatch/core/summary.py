# fridgewatch/core/summary.py
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from .expiration import EXPIRING_SOON_DAYS, as_local_naive, days_until, partition, soonest
from .models import Banner, InventoryFilter, InventoryItem, InventorySection, InventorySummary, SortOption

BANNER_NAME_LIMIT = 3
ALL_CATEGORIES = "All"
FAVORITES_CATEGORY = "favorites"


def badge_text(days: int) -> str:
    if days < 0:
        return "Expired"
    if days == 0:
        return "Today"
    if days == 1:
        return "1 day"
    return f"{days} days"


def subtitle(days: int, expiration_date: date, soon_days: int = EXPIRING_SOON_DAYS) -> str:
    if days < 0:
        return "Expired"
    if days == 0:
        return "Expires today"
    if days == 1:
        return "Expires tomorrow"
    if days <= soon_days:
        return f"Expires in {days} days"
    return f"Expires {expiration_date:%b} {expiration_date.day}, {expiration_date.year}"


def banner(
    total: int,
    expiring_soon: List[InventoryItem],
    expired_count: int,
) -> Optional[Banner]:
    if total == 0:
        return None
    n = len(expiring_soon)
    if n == 0 and expired_count == 0:
        return Banner(
            title="Everything fresh!",
            message="No items are expiring soon. Nice work!",
            style="success",
        )
    if n == 0:
        # Only expired items left; the summary line already says so.
        return None
    names = ", ".join(it.name for it in expiring_soon[:BANNER_NAME_LIMIT])
    extra = f" +{n - BANNER_NAME_LIMIT} more" if n > BANNER_NAME_LIMIT else ""
    return Banner(
        title=f"{n} item{'' if n == 1 else 's'} expiring soon",
        message=f"{names}{extra}" if names else "Check the expiring soon section.",
        style="warning",
    )


def _by_expiration(items: Iterable[InventoryItem], now: datetime) -> List[InventoryItem]:
    # Undated items go last; among dated ones the earliest expiration comes first.
    def key(it: InventoryItem):
        if it.expiration_date is None:
            return (1, datetime.min)
        return (0, as_local_naive(it.expiration_date, now))
    return sorted(items, key=key)


def sections(items: Iterable[InventoryItem], now: datetime, soon_days: int = EXPIRING_SOON_DAYS) -> List[InventorySection]:
    b = partition(_by_expiration(items, now), now, soon_days)
    out: List[InventorySection] = []
    for title, rows in (("Expired", b.expired), ("Expiring Soon", b.expiring_soon), ("Later", b.later)):
        if rows:
            out.append(InventorySection(title=title, items=rows))
    return out


def summarize(items: Iterable[InventoryItem], now: datetime, soon_days: int = EXPIRING_SOON_DAYS) -> InventorySummary:
    """Figures for an inventory overview: counts, summary line, banner, hero item and sections."""
    items = list(items)
    b = partition(items, now, soon_days)
    if items:
        line = f"{len(b.expiring_soon)} expiring soon • {len(b.expired)} expired"
    else:
        line = "Add your first items to start tracking freshness."
    return InventorySummary(
        expired_count=len(b.expired),
        expiring_soon_count=len(b.expiring_soon),
        later_count=len(b.later),
        summary_line=line,
        banner=banner(len(items), b.expiring_soon, len(b.expired)),
        hero=soonest(items, now),
        sections=sections(items, now, soon_days),
    )


def snooze(item: InventoryItem, days: int = 1) -> InventoryItem:
    """Push the expiration date out; items without one are returned unchanged."""
    if item.expiration_date is None:
        return item
    return item.model_copy(update={"expiration_date": item.expiration_date + timedelta(days=days)})


def use_one(item: InventoryItem) -> InventoryItem:
    return item.model_copy(update={"quantity": max(0.0, item.quantity - 1)})


def describe(item: InventoryItem, now: datetime, soon_days: int = EXPIRING_SOON_DAYS) -> dict:
    """Badge and subtitle strings for one item; undated items get neither."""
    if item.expiration_date is None:
        return {"days": None, "badge": None, "subtitle": None}
    days = days_until(item.expiration_date, now)
    exp = item.expiration_date
    if exp.tzinfo is not None:
        exp = exp.astimezone(now.tzinfo)
    return {"days": days, "badge": badge_text(days), "subtitle": subtitle(days, exp.date(), soon_days)}


def categories(items: Iterable[InventoryItem]) -> List[str]:
    """Distinct categories in alphabetical order; items without one are left out."""
    return sorted({it.category for it in items if it.category})


def filter_and_sort(
    items: Iterable[InventoryItem],
    now: datetime,
    category: Optional[str] = None,
    item_filter: InventoryFilter = InventoryFilter.ALL,
    sort: SortOption = SortOption.EXPIRATION_SOON,
    soon_days: int = EXPIRING_SOON_DAYS,
) -> List[InventoryItem]:
    """
    The inventory list as browsed: narrowed to one category (None or "All" keeps
    every item), then to the chosen filter, then ordered.

    - expiring_soon keeps dated items due within `soon_days`, today included
    - favorites keeps items whose category is "favorites", in any case
    - expiration_soon sorts earliest first with undated items last
    - quantity_high and recently_added sort descending, ties keep stored order
    """
    rows = list(items)
    if category and category != ALL_CATEGORIES:
        rows = [it for it in rows if it.category == category]

    if item_filter is InventoryFilter.EXPIRING_SOON:
        rows = [it for it in rows
                if it.expiration_date is not None and 0 <= days_until(it.expiration_date, now) <= soon_days]
    elif item_filter is InventoryFilter.FAVORITES:
        rows = [it for it in rows if (it.category or "").lower() == FAVORITES_CATEGORY]

    if sort is SortOption.QUANTITY_HIGH:
        return sorted(rows, key=lambda it: it.quantity, reverse=True)
    if sort is SortOption.RECENTLY_ADDED:
        return sorted(rows, key=lambda it: as_local_naive(it.timestamp, now), reverse=True)
    return _by_expiration(rows, now)
