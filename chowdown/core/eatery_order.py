"""
Chow Service - Order enrichment

Joins a raw order with its eatery's flattened menu to produce priced line
items and a total.
"""
from chowdown.core.errors import Err, ErrorCode, ErrorDetail, Ok, Result, err
from chowdown.schemas.eatery import Eatery
from chowdown.schemas.order import EateryOrder, EateryOrderItem, Order


def enrich(eatery: Eatery, order: Order) -> Result[EateryOrder]:
    """
    Return order augmented with the eatery's name, loc and cuisine, its items
    as a list of menu items carrying quantity and quantity_price, and total.

    A mismatched eatery is BAD_REQ (the caller paired the wrong records).
    Every item missing from the menu is reported as its own NOT_FOUND.
    """
    if order.eatery_id != eatery.id:
        return err(
            ErrorCode.BAD_REQ,
            f'order eateryId "{order.eatery_id}" does not match that of '
            f'provided eatery "{eatery.id}"',
        )
    unknown = [
        ErrorDetail(f'unknown item-id "{item_id}" in order "{order.id}"', ErrorCode.NOT_FOUND)
        for item_id in order.items
        if item_id not in eatery.flat_menu
    ]
    if unknown:
        return Err(unknown)

    items = []
    for item_id, quantity in order.items.items():
        menu_item = eatery.flat_menu[item_id]
        items.append(EateryOrderItem(
            **menu_item.model_dump(),
            quantity=quantity,
            quantity_price=quantity * menu_item.price,
        ))
    return Ok(EateryOrder(
        id=order.id,
        eatery_id=order.eatery_id,
        name=eatery.name,
        loc=eatery.loc,
        cuisine=eatery.cuisine,
        items=items,
        total=sum(item.quantity_price for item in items),
    ))
