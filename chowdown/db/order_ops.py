"""
Chow Service - Order repository

Orders are created empty and edited one item at a time. Quantities are
absolute: editing an item to n sets it to n, editing it to 0 drops the key.
Every edit writes the whole items document back, so repeating an edit is a
no-op; a write is skipped entirely when the items would not change.

Concurrent edits of the same order race at the storage layer and the last
write wins. The only consistency check is that a replace must hit exactly
one row.
"""
import logging

from sqlalchemy import delete, insert, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chowdown.core.errors import Err, ErrorCode, Ok, Result, err
from chowdown.db.id_generator import IdGenerator
from chowdown.models.order import OrderDoc
from chowdown.schemas.order import Order

logger = logging.getLogger(__name__)


class OrderRepository:

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession], id_generator: IdGenerator):
        self._sessionmaker = sessionmaker
        self._id_generator = id_generator

    async def create(self, eatery_id: str) -> Result[Order]:
        """Return a new empty order for eatery_id with a fresh, hard to guess id."""
        next_id = await self._id_generator.next_id()
        if isinstance(next_id, Err):
            return next_id
        order = Order(id=next_id.value, eatery_id=eatery_id, items={})
        try:
            async with self._sessionmaker() as session:
                result = await session.execute(
                    insert(OrderDoc).values(id=order.id, eatery_id=order.eatery_id, items={})
                )
                if result.rowcount != 1:
                    await session.rollback()
                    return err(ErrorCode.DB, f"order create: expected 1 insert, got {result.rowcount}")
                await session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Order create failed for eatery %s", eatery_id)
            return err(ErrorCode.DB, f"cannot create new order: {exc}")
        logger.info("Created order %s for eatery %s", order.id, eatery_id)
        return Ok(order)

    async def get(self, order_id: str) -> Result[Order]:
        try:
            async with self._sessionmaker() as session:
                doc = await session.get(OrderDoc, order_id)
        except SQLAlchemyError as exc:
            logger.exception("Order read failed for %s", order_id)
            return err(ErrorCode.DB, f"cannot read order {order_id}: {exc}")
        if doc is None:
            return err(ErrorCode.NOT_FOUND, f"no order with orderId {order_id}")
        return Ok(Order(id=doc.id, eatery_id=doc.eatery_id, items=dict(doc.items or {})))

    async def remove(self, order_id: str) -> Result[dict]:
        try:
            async with self._sessionmaker() as session:
                result = await session.execute(delete(OrderDoc).where(OrderDoc.id == order_id))
                await session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Order delete failed for %s", order_id)
            return err(ErrorCode.DB, f"cannot remove order {order_id}: {exc}")
        if result.rowcount != 1:
            return err(ErrorCode.NOT_FOUND, f"no order with orderId {order_id}")
        return Ok({})

    async def edit_item(self, order_id: str, item_id: str, quantity: int) -> Result[Order]:
        """
        Set the quantity of item_id in order order_id to exactly quantity.

        quantity < 0 is BAD_REQ, quantity == 0 removes the item. Returns the
        order as it stands after the edit.
        """
        if quantity < 0:
            return err(ErrorCode.BAD_REQ, f"cannot have a negative quantity {quantity}")
        current = await self.get(order_id)
        if isinstance(current, Err):
            return current
        order = current.value

        items = dict(order.items)
        if quantity == 0:
            items.pop(item_id, None)
        else:
            items[item_id] = quantity
        if items == order.items:
            return Ok(order)

        try:
            async with self._sessionmaker() as session:
                result = await session.execute(
                    update(OrderDoc).where(OrderDoc.id == order_id).values(items=items)
                )
                if result.rowcount != 1:
                    await session.rollback()
                    return err(
                        ErrorCode.DB,
                        f"order item edit: got {result.rowcount} replacements; expected 1",
                    )
                await session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Order edit failed for %s", order_id)
            return err(ErrorCode.DB, f"cannot edit order {order_id}: {exc}")
        return Ok(order.model_copy(update={"items": items}))

    async def clear(self) -> Result[dict]:
        """Delete every order and reset the id base."""
        try:
            async with self._sessionmaker() as session:
                result = await session.execute(delete(OrderDoc))
                await session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Clearing orders failed")
            return err(ErrorCode.DB, f"cannot clear orders: {exc}")
        logger.info("Cleared %s orders", result.rowcount)
        return await self._id_generator.reset()
