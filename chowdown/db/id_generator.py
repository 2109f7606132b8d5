"""
Chow Service - Order id generation with a persisted, optimistically locked base

An id is "<base>_<random digits>": the base makes it unique, the random
suffix makes it hard to guess. The base lives in the id_counters table and
is advanced with a conditional UPDATE before the id is handed out, so ids
stay unique across restarts and across server instances.
"""
import logging
import secrets

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chowdown.core.errors import ErrorCode, Ok, Result, err
from chowdown.core.optimistic_lock import StaleDataError, with_optimistic_retry
from chowdown.models.order import IdCounter

logger = logging.getLogger(__name__)

ORDER_ID_SEQUENCE = "orders"


class IdGenerator:

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        name: str = ORDER_ID_SEQUENCE,
        rand_digits: int = 4,
    ):
        self._sessionmaker = sessionmaker
        self.name = name
        self.rand_digits = rand_digits

    async def next_id(self) -> Result[str]:
        try:
            base = await self._advance()
        except StaleDataError:
            return err(ErrorCode.DB, f'cannot advance id base for "{self.name}": too many concurrent updates')
        except SQLAlchemyError as exc:
            logger.exception("Id base update failed for %s", self.name)
            return err(ErrorCode.DB, f'cannot advance id base for "{self.name}": {exc}')
        suffix = secrets.randbelow(10 ** self.rand_digits)
        return Ok(f"{base}_{suffix:0{self.rand_digits}d}")

    async def base(self) -> Result[int]:
        try:
            async with self._sessionmaker() as session:
                value = await session.scalar(
                    select(IdCounter.base).where(IdCounter.name == self.name)
                )
        except SQLAlchemyError as exc:
            logger.exception("Id base read failed for %s", self.name)
            return err(ErrorCode.DB, f'cannot read id base for "{self.name}": {exc}')
        return Ok(value or 0)

    async def reset(self) -> Result[dict]:
        try:
            async with self._sessionmaker() as session:
                await session.execute(
                    update(IdCounter).where(IdCounter.name == self.name).values(base=0)
                )
                await session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Id base reset failed for %s", self.name)
            return err(ErrorCode.DB, f'cannot reset id base for "{self.name}": {exc}')
        return Ok({})

    @with_optimistic_retry()
    async def _advance(self) -> int:
        """
        Increment the stored base and return the value it had before.

          - READ:  current base (creating the counter row on first use)
          - WRITE: UPDATE ... SET base = base + 1 WHERE base = <read base>
          - no row updated -> another allocator won the race -> retry
        """
        async with self._sessionmaker() as session:
            current = await session.scalar(
                select(IdCounter.base).where(IdCounter.name == self.name)
            )
            if current is None:
                session.add(IdCounter(name=self.name, base=1))
                try:
                    await session.commit()
                except IntegrityError:
                    await session.rollback()
                    raise StaleDataError(f'id counter "{self.name}" created concurrently')
                return 0

            result = await session.execute(
                update(IdCounter)
                .where(IdCounter.name == self.name, IdCounter.base == current)
                .values(base=current + 1)
            )
            if result.rowcount != 1:
                await session.rollback()
                raise StaleDataError(f'id counter "{self.name}" changed concurrently')
            await session.commit()
            return current
