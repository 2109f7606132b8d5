"""
Chow Service - Order schemas
"""
from pydantic import Field

from chowdown.schemas.common import CamelModel, Location
from chowdown.schemas.eatery import MenuItem


class Order(CamelModel):
    id: str
    eatery_id: str
    # item-id -> quantity; an absent item means quantity 0
    items: dict[str, int] = Field(default_factory=dict)


class EateryOrderItem(MenuItem):
    quantity: int
    quantity_price: float


class EateryOrder(CamelModel):
    id: str
    eatery_id: str
    name: str
    loc: Location
    cuisine: str
    items: list[EateryOrderItem]
    total: float
