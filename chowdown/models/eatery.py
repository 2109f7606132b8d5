"""
Chow Service - Eatery storage model

[CONFIG DATA] eateries - replaced wholesale by a bulk load.

The full extended eatery lives in ``document``; the remaining columns are
derived from it at load time so that lookups and cuisine/distance queries
run against indexed columns instead of the JSON payload.
"""
from sqlalchemy import JSON, Float, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from chowdown.db.database import Base


class EateryDoc(Base):
    __tablename__ = "eateries"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)  # id with "." -> "_"
    id: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    cuisine: Mapped[str] = mapped_column(String(100), nullable=False)
    cuisine_key: Mapped[str] = mapped_column(String(100), nullable=False)  # lowercased cuisine
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    # unit-sphere coordinates of (lat, lng)
    x: Mapped[float] = mapped_column(Float, nullable=False)
    y: Mapped[float] = mapped_column(Float, nullable=False)
    z: Mapped[float] = mapped_column(Float, nullable=False)
    document: Mapped[dict] = mapped_column(JSON, nullable=False)

    __table_args__ = (
        Index("ix_eateries_cuisine_key", "cuisine_key"),
        Index("ix_eateries_cuisine_location", "cuisine_key", "x", "y", "z"),
    )

    def __repr__(self) -> str:
        return f"<EateryDoc id={self.id} cuisine={self.cuisine_key}>"
