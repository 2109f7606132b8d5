"""
Chow Service - Order routes

Flow for every order response:
  1. Validate query parameters (all problems reported together)
  2. Read / write the order through the OrderRepository
  3. Join it with its eatery's menu (enrich) and attach links
"""
from fastapi import APIRouter, Depends, Query, Request, Response, status

from chowdown.api.deps import get_eatery_repository, get_order_repository
from chowdown.api.links import eatery_link, order_link, order_url, self_link
from chowdown.api.params import parse_eatery_id, parse_item_edit
from chowdown.core.eatery_order import enrich
from chowdown.core.errors import AppErrorsException, ErrorCode, ErrorDetail, unwrap
from chowdown.db.eatery_ops import EateryRepository
from chowdown.db.order_ops import OrderRepository
from chowdown.schemas.order import EateryOrder

router = APIRouter(prefix="/orders", tags=["orders"])


def order_body(eatery_order: EateryOrder, links: list[dict]) -> dict:
    return {**eatery_order.model_dump(mode="json", by_alias=True), "links": links}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(
    request: Request,
    response: Response,
    eatery_id: str | None = Query(None, alias="eateryId"),
    orders: OrderRepository = Depends(get_order_repository),
    eateries: EateryRepository = Depends(get_eatery_repository),
):
    """Create an empty order for eateryId; Location points at the new order."""
    eatery_id = unwrap(parse_eatery_id(eatery_id))
    eatery = unwrap(await eateries.get_by_id(eatery_id))
    order = unwrap(await orders.create(eatery.id))
    eatery_order = unwrap(enrich(eatery, order))

    response.headers["Location"] = order_url(request, order.id)
    return order_body(eatery_order, [
        self_link(request),
        eatery_link(request, eatery.id),
        order_link(request, order.id),
    ])


@router.get("/{order_id}")
async def get_order(
    request: Request,
    order_id: str,
    orders: OrderRepository = Depends(get_order_repository),
    eateries: EateryRepository = Depends(get_eatery_repository),
):
    order = unwrap(await orders.get(order_id))
    eatery = unwrap(await eateries.get_by_id(order.eatery_id))
    eatery_order = unwrap(enrich(eatery, order))
    return order_body(eatery_order, [self_link(request), eatery_link(request, eatery.id)])


@router.patch("/{order_id}")
async def edit_order(
    request: Request,
    order_id: str,
    item_id: str | None = Query(None, alias="itemId"),
    n_items: str | None = Query(None, alias="nItems"),
    orders: OrderRepository = Depends(get_order_repository),
    eateries: EateryRepository = Depends(get_eatery_repository),
):
    """Set the quantity of itemId to exactly nItems; nItems=0 drops the item."""
    item_id, quantity = unwrap(parse_item_edit(order_id, item_id, n_items))
    order = unwrap(await orders.get(order_id))
    eatery = unwrap(await eateries.get_by_id(order.eatery_id))
    if item_id not in eatery.flat_menu:
        raise AppErrorsException([
            ErrorDetail(f'no item "{item_id}" on the menu of eatery "{eatery.id}"', ErrorCode.NOT_FOUND)
        ])
    order = unwrap(await orders.edit_item(order_id, item_id, quantity))
    eatery_order = unwrap(enrich(eatery, order))
    return order_body(eatery_order, [
        order_link(request, order_id, rel="self"),
        eatery_link(request, eatery.id),
    ])


@router.delete("/{order_id}")
async def remove_order(
    order_id: str,
    orders: OrderRepository = Depends(get_order_repository),
):
    return unwrap(await orders.remove(order_id))
