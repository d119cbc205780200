# tests/unit/test_expiration.py
import time
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from fridgewatch.core.expiration import (
    build_request,
    classify,
    days_until,
    notification_id,
    partition,
    qualifies,
    reconcile,
    soonest,
    trigger_time,
)
from fridgewatch.core.models import ExpirationBucket, InventoryItem

TZ = timezone(timedelta(hours=-5))
NOW = datetime(2024, 1, 10, 12, 0, tzinfo=TZ)


def item(item_id, expires, name=None):
    return InventoryItem(id=item_id, name=name or f"item {item_id}", expiration_date=expires)


def test_days_until_uses_calendar_days():
    assert days_until(date(2024, 1, 10), NOW) == 0
    assert days_until(date(2024, 1, 9), NOW) == -1
    assert days_until(datetime(2024, 1, 12, 23, 59, tzinfo=TZ), NOW) == 2
    # late tonight is still "today"
    assert days_until(datetime(2024, 1, 10, 23, 59, tzinfo=TZ), NOW) == 0


def test_days_until_converts_aware_dates_into_local_zone():
    # 02:00 UTC on the 12th is 21:00 on the 11th at UTC-5
    assert days_until(datetime(2024, 1, 12, 2, 0, tzinfo=timezone.utc), NOW) == 1


@pytest.mark.parametrize("expires,bucket", [
    (date(2024, 1, 9), ExpirationBucket.EXPIRED),
    (date(2024, 1, 10), ExpirationBucket.EXPIRING_SOON),
    (date(2024, 1, 13), ExpirationBucket.EXPIRING_SOON),
    (date(2024, 1, 14), ExpirationBucket.LATER),
    (None, ExpirationBucket.LATER),
    ("garbage", ExpirationBucket.LATER),
])
def test_classify(expires, bucket):
    assert classify(item("a", expires), NOW) is bucket


def test_trigger_time_is_morning_of_expiration_day():
    assert trigger_time(date(2024, 1, 12), NOW) == datetime(2024, 1, 12, 9, 0, tzinfo=TZ)


def test_trigger_time_today_after_nine_fires_almost_immediately():
    assert trigger_time(date(2024, 1, 10), NOW) == NOW + timedelta(seconds=60)


def test_trigger_time_today_before_nine_keeps_morning_slot():
    early = datetime(2024, 1, 10, 7, 30, tzinfo=TZ)
    assert trigger_time(date(2024, 1, 10), early) == datetime(2024, 1, 10, 9, 0, tzinfo=TZ)


def test_trigger_time_exactly_nine_is_not_future():
    nine = datetime(2024, 1, 10, 9, 0, tzinfo=TZ)
    assert trigger_time(date(2024, 1, 10), nine) == nine + timedelta(seconds=60)


@pytest.fixture
def new_york_clock(monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("process timezone cannot be changed on this platform")
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


def test_trigger_time_across_spring_forward_with_system_clock(new_york_clock):
    # Saturday noon EST; the expiration day falls after the switch to EDT
    now = datetime(2025, 3, 8, 12, 0).astimezone()
    assert now.utcoffset() == timedelta(hours=-5)
    fire = trigger_time(date(2025, 3, 10), now)
    assert fire.utcoffset() == timedelta(hours=-4)
    assert fire.astimezone().replace(tzinfo=None) == datetime(2025, 3, 10, 9, 0)


def test_trigger_time_across_fall_back_with_system_clock(new_york_clock):
    now = datetime(2025, 11, 1, 12, 0).astimezone()
    fire = trigger_time(date(2025, 11, 3), now)
    assert fire.utcoffset() == timedelta(hours=-5)
    assert fire.astimezone().hour == 9


def test_trigger_time_across_spring_forward_with_named_zone():
    tz = ZoneInfo("America/New_York")
    now = datetime(2025, 3, 8, 12, 0, tzinfo=tz)
    fire = trigger_time(date(2025, 3, 10), now)
    assert (fire.hour, fire.minute) == (9, 0)
    assert fire.utcoffset() == timedelta(hours=-4)


def test_build_request_content():
    req = build_request(item("b", date(2024, 1, 12), name="Yogurt"), NOW)
    assert req.id == "item-expiration-b"
    assert req.item_id == "b"
    assert req.title == "Expiring soon: Yogurt"
    assert req.body == "Expires January 12, 2024."


def test_items_without_id_never_qualify():
    unsaved = InventoryItem(name="Milk", expiration_date=date(2024, 1, 11))
    assert classify(unsaved, NOW) is ExpirationBucket.EXPIRING_SOON
    assert not qualifies(unsaved, NOW)


def test_reconcile_example_inventory():
    a = item("A", date(2024, 1, 9))
    b = item("B", date(2024, 1, 12))
    c = item("C", date(2024, 1, 20))
    pending = [notification_id("A"), notification_id("B")]

    out = reconcile([a, b, c], pending, NOW)

    assert [r.id for r in out.to_schedule] == ["item-expiration-B"]
    assert out.to_schedule[0].trigger_at == datetime(2024, 1, 12, 9, 0, tzinfo=TZ)
    assert out.to_cancel == ["item-expiration-A"]


def test_reconcile_one_request_per_qualifying_item():
    items = [item(str(d), date(2024, 1, 10) + timedelta(days=d)) for d in range(-2, 7)]
    out = reconcile(items, [], NOW)
    assert sorted(r.item_id for r in out.to_schedule) == ["0", "1", "2", "3"]
    assert len({r.id for r in out.to_schedule}) == len(out.to_schedule)


def test_reconcile_cancels_stale_and_foreign_pending_ids():
    out = reconcile([item("x", date(2024, 1, 11))], ["item-expiration-gone", "other", "other"], NOW)
    assert out.to_cancel == ["item-expiration-gone", "other"]


def test_reconcile_collapses_duplicate_item_ids():
    out = reconcile([item("d", date(2024, 1, 11)), item("d", date(2024, 1, 12))], [], NOW)
    assert len(out.to_schedule) == 1
    assert out.to_schedule[0].trigger_at == datetime(2024, 1, 12, 9, 0, tzinfo=TZ)


def test_reconcile_is_idempotent():
    items = [item("a", date(2024, 1, 10)), item("b", date(2024, 1, 13)), item("c", None)]
    first = reconcile(items, [], NOW)
    second = reconcile(items, [r.id for r in first.to_schedule], NOW)
    assert first.to_schedule == second.to_schedule
    assert second.to_cancel == []


def test_reconcile_honours_custom_window():
    out = reconcile([item("w", date(2024, 1, 15))], [], NOW, soon_days=5, hour=7)
    assert out.to_schedule[0].trigger_at == datetime(2024, 1, 15, 7, 0, tzinfo=TZ)


def test_partition_keeps_input_order():
    items = [item("later", date(2024, 2, 1)), item("gone", date(2024, 1, 1)),
             item("soon2", date(2024, 1, 12)), item("soon1", date(2024, 1, 11))]
    b = partition(items, NOW)
    assert [i.id for i in b.expired] == ["gone"]
    assert [i.id for i in b.expiring_soon] == ["soon2", "soon1"]
    assert [i.id for i in b.later] == ["later"]


def test_soonest_skips_expired_and_undated():
    items = [item("gone", date(2024, 1, 1)), item("none", None),
             item("week", date(2024, 1, 17)), item("two", date(2024, 1, 12))]
    assert soonest(items, NOW).id == "two"
    assert soonest([item("gone", date(2024, 1, 1))], NOW) is None
