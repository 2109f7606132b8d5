"""
Chow Service - Order storage models

[TRANSACTIONAL DATA] orders - wiped by clear-orders.
[TRANSACTIONAL DATA] id_counters - base reset to 0 by clear-orders.
"""
from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from chowdown.db.database import Base


class OrderDoc(Base):
    """
    items maps item-id to a positive quantity; it is always written as a
    whole document, never patched key by key.
    """
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    eatery_id: Mapped[str] = mapped_column(String(128), index=True, nullable=False)
    items: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class IdCounter(Base):
    """
    One row per id sequence. base is also the optimistic lock column:
    every increment is conditional on the value previously read.
    """
    __tablename__ = "id_counters"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    base: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
