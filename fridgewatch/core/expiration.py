# fridgewatch/core/expiration.py
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional, Union

from .models import (
    Buckets,
    ExpirationBucket,
    InventoryItem,
    NotificationRequest,
    ReconcileResult,
)

NOTIFICATION_PREFIX = "item-expiration-"
EXPIRING_SOON_DAYS = 3
NOTIFICATION_HOUR = 9
IMMEDIATE_DELAY = timedelta(seconds=60)

DateLike = Union[date, datetime]


def _local_date(moment: DateLike, now: datetime) -> date:
    # Calendar day of `moment` as seen from the zone of `now`.
    if isinstance(moment, datetime):
        if moment.tzinfo is not None:
            moment = moment.astimezone(now.tzinfo)
        return moment.date()
    return moment


def days_until(expiration_date: DateLike, now: datetime) -> int:
    """Whole calendar days from today to the expiration day; negative once expired."""
    return (_local_date(expiration_date, now) - now.date()).days


def classify(
    item: InventoryItem,
    now: datetime,
    soon_days: int = EXPIRING_SOON_DAYS,
) -> ExpirationBucket:
    if item.expiration_date is None:
        return ExpirationBucket.LATER
    days = days_until(item.expiration_date, now)
    if days < 0:
        return ExpirationBucket.EXPIRED
    if days <= soon_days:
        return ExpirationBucket.EXPIRING_SOON
    return ExpirationBucket.LATER


def _wall_clock(day: date, at: time, now: datetime) -> datetime:
    # A fixed offset taken from the system clock only holds for the day it was
    # read on; let the system zone pick the offset for `day` instead.
    tz = now.tzinfo
    if isinstance(tz, timezone) and now.utcoffset() == now.astimezone().utcoffset():
        return datetime.combine(day, at).astimezone()
    return datetime.combine(day, at, tzinfo=tz)


def trigger_time(
    expiration_date: DateLike,
    now: datetime,
    hour: int = NOTIFICATION_HOUR,
    delay: timedelta = IMMEDIATE_DELAY,
) -> datetime:
    """
    Morning of the expiration day in local time, or `now + delay` when that
    slot has already passed.
    """
    morning = _wall_clock(_local_date(expiration_date, now), time(hour), now)
    if morning > now:
        return morning
    return now + delay


def notification_id(item_id: str) -> str:
    return f"{NOTIFICATION_PREFIX}{item_id}"


def qualifies(item: InventoryItem, now: datetime, soon_days: int = EXPIRING_SOON_DAYS) -> bool:
    """Only stored items that expire within the reminder window get a notification."""
    if not item.id:
        return False
    return classify(item, now, soon_days) is ExpirationBucket.EXPIRING_SOON


def _long_date(d: date) -> str:
    return f"{d:%B} {d.day}, {d.year}"


def build_request(
    item: InventoryItem,
    now: datetime,
    hour: int = NOTIFICATION_HOUR,
    delay: timedelta = IMMEDIATE_DELAY,
) -> NotificationRequest:
    if not item.id or item.expiration_date is None:
        raise ValueError(f"Item {item.name!r} has no id or expiration date")
    return NotificationRequest(
        id=notification_id(item.id),
        item_id=item.id,
        trigger_at=trigger_time(item.expiration_date, now, hour=hour, delay=delay),
        title=f"Expiring soon: {item.name}",
        body=f"Expires {_long_date(_local_date(item.expiration_date, now))}.",
    )


def partition(
    items: Iterable[InventoryItem],
    now: datetime,
    soon_days: int = EXPIRING_SOON_DAYS,
) -> Buckets:
    """Split items into expired / expiring soon / later, keeping input order."""
    out = Buckets()
    for it in items:
        bucket = classify(it, now, soon_days)
        if bucket is ExpirationBucket.EXPIRED:
            out.expired.append(it)
        elif bucket is ExpirationBucket.EXPIRING_SOON:
            out.expiring_soon.append(it)
        else:
            out.later.append(it)
    return out


def reconcile(
    items: Iterable[InventoryItem],
    pending_ids: Iterable[str],
    now: datetime,
    soon_days: int = EXPIRING_SOON_DAYS,
    hour: int = NOTIFICATION_HOUR,
    delay: timedelta = IMMEDIATE_DELAY,
) -> ReconcileResult:
    """
    Diff the desired notification set against what is pending.

    - to_schedule: one request per qualifying item, trigger time recomputed on
      every call. Requests are not compared against pending ones; re-adding a
      request with the same id replaces it.
    - to_cancel: every pending id that no qualifying item maps to, in the
      order the pending ids were given.

    Pure: nothing is scheduled or cancelled here.
    """
    desired: dict[str, NotificationRequest] = {}
    for it in items:
        if qualifies(it, now, soon_days):
            req = build_request(it, now, hour=hour, delay=delay)
            desired[req.id] = req

    to_cancel: List[str] = []
    seen: set[str] = set()
    for pid in pending_ids:
        if pid in desired or pid in seen:
            continue
        seen.add(pid)
        to_cancel.append(pid)

    return ReconcileResult(to_schedule=list(desired.values()), to_cancel=to_cancel)


def soonest(items: Iterable[InventoryItem], now: datetime) -> Optional[InventoryItem]:
    """The not-yet-expired item with the earliest expiration date."""
    best: Optional[InventoryItem] = None
    best_key: Optional[tuple[int, datetime]] = None
    for it in items:
        if it.expiration_date is None:
            continue
        days = days_until(it.expiration_date, now)
        if days < 0:
            continue
        key = (days, as_local_naive(it.expiration_date, now))
        if best_key is None or key < best_key:
            best, best_key = it, key
    return best


def as_local_naive(moment: datetime, now: datetime) -> datetime:
    # Comparable sort key for a mix of aware and naive datetimes.
    if moment.tzinfo is not None:
        moment = moment.astimezone(now.tzinfo)
    return moment.replace(tzinfo=None)
