import pytest

from catalog_events.models import (
    EventName, ProductLineItem, RawEvent, is_catalog_eligible, normalize_event_name,
)


@pytest.mark.parametrize("raw,expected", [
    ("purchase", EventName.PURCHASE),
    ("Purchase", EventName.PURCHASE),
    ("add_to_cart", EventName.ADD_TO_CART),
    ("addToCart", EventName.ADD_TO_CART),
    ("begin_checkout", EventName.INITIATE_CHECKOUT),
    ("view_content", EventName.VIEW_CONTENT),
    ("pageview", EventName.PAGE_VIEW),
    (" Search ", EventName.SEARCH),
])
def test_synonyms_normalize_to_one_member(raw, expected):
    assert normalize_event_name(raw) is expected


def test_unknown_names_pass_through_as_custom_events():
    assert normalize_event_name("wishlist_add") == "wishlist_add"
    assert not is_catalog_eligible("wishlist_add")


@pytest.mark.parametrize("raw,expected", [(5, "5"), (None, ""), (3.5, "3.5")])
def test_non_string_names_are_coerced(raw, expected):
    assert normalize_event_name(raw) == expected
    assert not is_catalog_eligible(raw)


def test_catalog_eligible_set_is_closed():
    eligible = {n for n in EventName if is_catalog_eligible(n)}
    assert eligible == {
        EventName.VIEW_CONTENT, EventName.ADD_TO_CART, EventName.INITIATE_CHECKOUT, EventName.PURCHASE,
    }


def test_product_line_item_accepts_storefront_key_variants():
    item = ProductLineItem.from_dict({"product_id": 123, "qty": 2, "price": "9.50"})
    assert item == ProductLineItem(id=123, quantity=2, unit_price="9.50")


def test_raw_event_from_dict_normalizes_and_tolerates_bad_shapes():
    ev = RawEvent.from_dict({
        "storeId": "store-A",
        "pixelId": "px-A",
        "eventName": "purchase",
        "products": "not-a-list",
        "customData": {"currency": "EUR", "value": 12},
        "user_data": "nope",
        "orderId": "o-1",
    })
    assert ev.event_name is EventName.PURCHASE
    assert ev.products == ()
    assert ev.currency == "EUR"
    assert ev.user_data == {}
    assert ev.order_id == "o-1"
