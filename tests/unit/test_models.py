# tests/unit/test_models.py
from datetime import date, datetime, timezone

import pytest
from fridgewatch.core.models import InventoryItem, NotificationRequest


def test_item_name_is_stripped():
    it = InventoryItem(name="  Milk  ")
    assert it.name == "Milk"
    assert it.unit == "pcs"
    assert it.quantity == 1


def test_item_name_cannot_be_blank():
    with pytest.raises(Exception):
        InventoryItem(name="  ")


def test_negative_quantity_is_rejected():
    with pytest.raises(Exception):
        InventoryItem(name="Eggs", quantity=-1)


def test_expiration_accepts_plain_dates():
    it = InventoryItem(name="Eggs", expiration_date=date(2024, 1, 12))
    assert it.expiration_date == datetime(2024, 1, 12)


def test_expiration_accepts_iso_strings_with_z():
    it = InventoryItem(name="Eggs", expiration_date="2024-01-12T09:30:00Z")
    assert it.expiration_date == datetime(2024, 1, 12, 9, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize("raw", ["not a date", "", "2024-13-45", {"seconds": 1}, True])
def test_unreadable_expiration_becomes_none(raw):
    it = InventoryItem(name="Cheese", expiration_date=raw)
    assert it.expiration_date is None


def test_notification_request_roundtrips_through_json():
    req = NotificationRequest(
        id="item-expiration-a",
        item_id="a",
        trigger_at=datetime(2024, 1, 12, 9, 0, tzinfo=timezone.utc),
        title="Expiring soon: Milk",
        body="Expires January 12, 2024.",
    )
    again = NotificationRequest.model_validate_json(req.model_dump_json())
    assert again == req
