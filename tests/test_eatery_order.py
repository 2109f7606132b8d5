"""
Order enrichment tests (pure, no database)
"""
from chowdown.core.eatery_order import enrich
from chowdown.core.errors import Err, ErrorCode, Ok
from chowdown.schemas.eatery import Eatery, RawEatery
from chowdown.schemas.order import Order

EATERY = Eatery.from_raw(RawEatery.model_validate({
    "id": "e1",
    "name": "Corner Deli",
    "cuisine": "American",
    "loc": {"lat": 42.1, "lng": -75.9},
    "menu": {
        "Sides": [{"id": "A", "name": "Fries", "price": 3}],
        "Mains": [{"id": "B", "name": "Reuben", "price": 5, "details": "on rye"}],
    },
}))


def test_enrich_prices_items_and_totals():
    order = Order(id="0_1234", eatery_id="e1", items={"A": 2, "B": 1})
    result = enrich(EATERY, order)
    assert isinstance(result, Ok), result
    eatery_order = result.value
    assert eatery_order.total == 11
    assert eatery_order.name == "Corner Deli"
    assert eatery_order.cuisine == "American"
    assert [(i.id, i.quantity, i.quantity_price) for i in eatery_order.items] == [
        ("A", 2, 6),
        ("B", 1, 5),
    ]
    assert eatery_order.items[1].category == "Mains"
    assert eatery_order.items[1].details == "on rye"


def test_enrich_serializes_camel_case():
    order = Order(id="0_1234", eatery_id="e1", items={"B": 2})
    body = enrich(EATERY, order).value.model_dump(mode="json", by_alias=True)
    assert body["eateryId"] == "e1"
    assert body["items"][0]["quantityPrice"] == 10
    assert body["total"] == 10


def test_enrich_empty_order_totals_zero():
    result = enrich(EATERY, Order(id="0_0001", eatery_id="e1"))
    assert result.value.items == []
    assert result.value.total == 0


def test_enrich_mismatched_eatery_is_bad_request():
    result = enrich(EATERY, Order(id="0_0001", eatery_id="other"))
    assert isinstance(result, Err)
    assert [e.code for e in result.errors] == [ErrorCode.BAD_REQ]


def test_enrich_reports_every_unknown_item():
    order = Order(id="0_0001", eatery_id="e1", items={"A": 1, "X": 1, "Y": 2})
    result = enrich(EATERY, order)
    assert isinstance(result, Err)
    assert [e.code for e in result.errors] == [ErrorCode.NOT_FOUND, ErrorCode.NOT_FOUND]
    assert '"X"' in result.errors[0].text
    assert '"Y"' in result.errors[1].text
