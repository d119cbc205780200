# tests/unit/test_summary.py
from datetime import date, datetime, timedelta

from fridgewatch.core.models import InventoryFilter, InventoryItem, SortOption
from fridgewatch.core.summary import (
    badge_text,
    categories,
    describe,
    filter_and_sort,
    snooze,
    subtitle,
    summarize,
    use_one,
)

NOW = datetime(2024, 1, 10, 12, 0)  # naive = local wall clock


def item(name, offset, **kw):
    expires = None if offset is None else date(2024, 1, 10) + timedelta(days=offset)
    return InventoryItem(id=name.lower(), name=name, expiration_date=expires, **kw)


def test_badge_text():
    assert [badge_text(d) for d in (-1, 0, 1, 5)] == ["Expired", "Today", "1 day", "5 days"]


def test_subtitle():
    d = date(2024, 1, 20)
    assert subtitle(-2, d) == "Expired"
    assert subtitle(0, d) == "Expires today"
    assert subtitle(1, d) == "Expires tomorrow"
    assert subtitle(3, d) == "Expires in 3 days"
    assert subtitle(10, d) == "Expires Jan 20, 2024"


def test_empty_inventory_summary():
    s = summarize([], NOW)
    assert s.summary_line == "Add your first items to start tracking freshness."
    assert s.banner is None
    assert s.hero is None
    assert s.sections == []


def test_everything_fresh_banner():
    s = summarize([item("Rice", 30), item("Salt", None)], NOW)
    assert s.summary_line == "0 expiring soon • 0 expired"
    assert s.banner.style == "success"
    assert s.banner.title == "Everything fresh!"


def test_only_expired_items_have_no_banner():
    s = summarize([item("Milk", -1)], NOW)
    assert s.expired_count == 1
    assert s.banner is None


def test_warning_banner_lists_three_names_and_the_rest():
    items = [item(n, 1) for n in ("Eggs", "Ham", "Kale", "Leek", "Plum")]
    s = summarize(items, NOW)
    assert s.banner.style == "warning"
    assert s.banner.title == "5 items expiring soon"
    assert s.banner.message == "Eggs, Ham, Kale +2 more"


def test_single_item_banner_is_singular():
    s = summarize([item("Eggs", 0)], NOW)
    assert s.banner.title == "1 item expiring soon"
    assert s.banner.message == "Eggs"


def test_preview_inventory_sections_and_hero():
    items = [item("Milk", -1), item("Tomatoes", 7), item("Lettuce", 2), item("Eggs", 0)]
    s = summarize(items, NOW)
    assert (s.expired_count, s.expiring_soon_count, s.later_count) == (1, 2, 1)
    assert [sec.title for sec in s.sections] == ["Expired", "Expiring Soon", "Later"]
    assert [i.name for i in s.sections[1].items] == ["Eggs", "Lettuce"]
    assert s.hero.name == "Eggs"


def test_undated_items_sort_last_in_later_section():
    s = summarize([item("Salt", None), item("Rice", 30)], NOW)
    assert [i.name for i in s.sections[0].items] == ["Rice", "Salt"]


def test_snooze_moves_expiration_by_a_day():
    it = item("Milk", 1)
    assert snooze(it).expiration_date == it.expiration_date + timedelta(days=1)
    undated = item("Salt", None)
    assert snooze(undated) is undated


def test_use_one_floors_at_zero():
    assert use_one(item("Eggs", 3, quantity=2)).quantity == 1
    assert use_one(item("Eggs", 3, quantity=0.5)).quantity == 0


def test_item_edits_return_copies():
    it = item("Milk", 1, quantity=2)
    snooze(it)
    use_one(it)
    assert it.quantity == 2
    assert it.expiration_date == datetime(2024, 1, 11)


def test_describe():
    assert describe(item("Eggs", 1), NOW) == {"days": 1, "badge": "1 day", "subtitle": "Expires tomorrow"}
    assert describe(item("Salt", None), NOW)["badge"] is None


def pantry():
    return [
        item("Milk", -1, category="Dairy", quantity=1, timestamp=datetime(2024, 1, 1)),
        item("Yogurt", 2, category="Dairy", quantity=4, timestamp=datetime(2024, 1, 5)),
        item("Kale", 0, category="Produce", quantity=2, timestamp=datetime(2024, 1, 9)),
        item("Salt", None, category="Favorites", quantity=1, timestamp=datetime(2024, 1, 3)),
        item("Ham", 3, category="favorites", quantity=6, timestamp=datetime(2024, 1, 7)),
        item("Rice", 10, quantity=2, timestamp=datetime(2024, 1, 2)),
    ]


def names(items):
    return [i.name for i in items]


def test_categories_are_distinct_and_sorted():
    assert categories(pantry()) == ["Dairy", "Favorites", "Produce", "favorites"]
    assert categories([]) == []


def test_default_browse_sorts_by_expiration_with_undated_last():
    assert names(filter_and_sort(pantry(), NOW)) == ["Milk", "Kale", "Yogurt", "Ham", "Rice", "Salt"]


def test_category_narrows_and_all_keeps_everything():
    assert names(filter_and_sort(pantry(), NOW, category="Dairy")) == ["Milk", "Yogurt"]
    assert len(filter_and_sort(pantry(), NOW, category="All")) == 6
    assert filter_and_sort(pantry(), NOW, category="Frozen") == []


def test_expiring_soon_filter_excludes_expired_and_undated():
    rows = filter_and_sort(pantry(), NOW, item_filter=InventoryFilter.EXPIRING_SOON)
    assert names(rows) == ["Kale", "Yogurt", "Ham"]


def test_favorites_filter_ignores_case():
    rows = filter_and_sort(pantry(), NOW, item_filter=InventoryFilter.FAVORITES)
    assert names(rows) == ["Ham", "Salt"]


def test_quantity_sort_is_descending_and_stable():
    rows = filter_and_sort(pantry(), NOW, sort=SortOption.QUANTITY_HIGH)
    assert names(rows) == ["Ham", "Yogurt", "Kale", "Rice", "Milk", "Salt"]


def test_recently_added_sort_puts_newest_first():
    rows = filter_and_sort(pantry(), NOW, category="Dairy", sort=SortOption.RECENTLY_ADDED)
    assert names(rows) == ["Yogurt", "Milk"]
