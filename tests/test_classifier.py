import pytest

from catalog_events import process_event_with_catalog
from catalog_events.classifier import build_contents, classify_event
from catalog_events.models import ProductLineItem

PRODUCTS = [{"id": "p1", "quantity": 2, "price": 10}, {"id": "p2", "quantity": 1, "price": 5}]


def test_eligible_event_with_products_currency_and_catalog():
    c = classify_event("AddToCart", PRODUCTS, "USD", "cat-A")
    assert c.is_catalog_event
    assert c.catalog_id == "cat-A"
    assert c.content_ids == ["p1", "p2"]
    assert c.contents == [
        {"id": "p1", "quantity": 2, "item_price": 10.0},
        {"id": "p2", "quantity": 1, "item_price": 5.0},
    ]
    assert c.total_value == 25
    assert c.currency == "USD"


def test_non_eligible_name_is_never_catalog():
    c = classify_event("PageView", PRODUCTS, "USD", "cat-A")
    assert not c.is_catalog_event
    assert c.reason == "event not catalog-eligible"


def test_each_missing_precondition_downgrades():
    assert classify_event("ViewContent", [], "USD", "cat-A").reason == "no products"
    assert classify_event("ViewContent", None, "USD", "cat-A").reason == "no products"
    assert classify_event("ViewContent", PRODUCTS, "USD", None).reason == "no catalog mapped to pixel"
    assert classify_event("ViewContent", PRODUCTS, None, "cat-A").reason == "no currency"


def test_placeholder_ids_are_filtered_and_all_placeholders_downgrade():
    products = [{"id": "undefined"}, {"id": "null"}, {"id": ""}, {"id": None}]
    c = classify_event("Purchase", products, "USD", "cat-A")
    assert not c.is_catalog_event
    assert c.reason == "no valid product ids"

    mixed = classify_event("Purchase", products + [{"id": 42, "price": 3}], "USD", "cat-A")
    assert mixed.content_ids == ["42"]
    assert mixed.total_value == 3


def test_quantity_and_price_defaults():
    contents = build_contents([ProductLineItem(id="p1", quantity=None, unit_price=None),
                               {"id": "p2", "quantity": 0, "price": "abc"}])
    assert contents == [
        {"id": "p1", "quantity": 1, "item_price": 0.0},
        {"id": "p2", "quantity": 1, "item_price": 0.0},
    ]


def test_synonym_names_classify_like_canonical():
    assert classify_event("purchase", [{"id": "p1", "price": 100}], "USD", "cat-A").total_value == 100


@pytest.mark.parametrize("lines", [
    [(1, 0.125)],
    [(3, 0.1)],
    [(1.5, 19.99), (2, 0.005)],
    [(7, 33.333), (1, 0.01)],
])
def test_value_is_exact_sum_of_quantity_times_price(lines):
    products = [{"id": f"p{i}", "quantity": q, "price": p} for i, (q, p) in enumerate(lines)]
    c = classify_event("Purchase", products, "USD", "cat-A")
    assert c.total_value == sum(q * p for q, p in lines)


def test_sub_cent_price_reaches_payload_unchanged(repo):
    r = process_event_with_catalog(repo, "store-A", "px-A", "Purchase",
                                   products=[{"id": "p1", "quantity": 1, "price": 0.125}], currency="USD")
    assert r.custom_data["value"] == 0.125
