"""
Chow Service - Repository container

Built once per process (by the FastAPI app factory or the CLI) and passed to
every caller; it owns the engine, and therefore the connection pool.
"""
import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from chowdown.core.config import Settings
from chowdown.core.errors import ErrorCode, Ok, Result, err
from chowdown.db.database import create_tables, make_engine, make_sessionmaker
from chowdown.db.eatery_cache import EateryCache
from chowdown.db.eatery_ops import EateryRepository
from chowdown.db.id_generator import IdGenerator
from chowdown.db.order_ops import OrderRepository
from chowdown.schemas.common import Location

logger = logging.getLogger(__name__)


@dataclass
class Repositories:
    engine: AsyncEngine
    id_generator: IdGenerator
    orders: OrderRepository
    eateries: EateryRepository
    cache: EateryCache | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Repositories":
        engine = make_engine(settings.database_url, echo=settings.DEBUG)
        sessionmaker = make_sessionmaker(engine)
        cache = None
        if settings.EATERY_CACHE_ENABLED:
            cache = EateryCache.from_settings(settings)
        id_generator = IdGenerator(sessionmaker, rand_digits=settings.ORDER_ID_RAND_DIGITS)
        return cls(
            engine=engine,
            id_generator=id_generator,
            orders=OrderRepository(sessionmaker, id_generator),
            eateries=EateryRepository(
                sessionmaker, cache, Location(lat=settings.DEFAULT_LAT, lng=settings.DEFAULT_LNG)
            ),
            cache=cache,
        )

    async def init(self) -> Result[dict]:
        try:
            await create_tables(self.engine)
        except (OSError, SQLAlchemyError) as exc:
            logger.exception("Database initialization failed")
            return err(ErrorCode.DB, f"cannot initialize database {self.engine.url!r}: {exc}")
        return Ok({})

    async def close(self) -> None:
        if self.cache is not None:
            await self.cache.close()
        await self.engine.dispose()
