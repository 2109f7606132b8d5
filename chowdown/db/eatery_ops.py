"""
Chow Service - Eatery repository: lookup, geo search and bulk load

Cuisine search never scans or sorts in process. Each eatery row carries its
lowercased cuisine and the unit-sphere vector of its location; the query
filters on the indexed cuisine column and orders by squared chord length to
the search origin, which ranks rows exactly like great-circle distance.
Only the rows actually returned get their chord converted to miles.
"""
import logging
import math
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError
from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chowdown.core.errors import Err, ErrorCode, ErrorDetail, Ok, Result, err
from chowdown.db.eatery_cache import EateryCache
from chowdown.models.eatery import EateryDoc
from chowdown.schemas.common import Location
from chowdown.schemas.eatery import Eatery, EaterySummary, RawEatery, storage_key

logger = logging.getLogger(__name__)

EARTH_RADIUS_MILES = 3958.8

# largest offset or count (a 32-bit signed int) accepted by locate
MAX_ROWS = 2**31 - 1


def unit_vector(lat: float, lng: float) -> tuple[float, float, float]:
    phi, lam = math.radians(lat), math.radians(lng)
    return (math.cos(phi) * math.cos(lam), math.cos(phi) * math.sin(lam), math.sin(phi))


def chord_to_miles(chord_squared: float) -> float:
    half_chord = min(1.0, math.sqrt(max(chord_squared, 0.0)) / 2)
    return 2 * EARTH_RADIUS_MILES * math.asin(half_chord)


class LoadError(Exception):
    """Raised inside a bulk load when an insert is not acknowledged."""


class EateryRepository:

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        cache: EateryCache | None = None,
        default_origin: Location | None = None,
    ):
        self._sessionmaker = sessionmaker
        self._cache = cache
        self.default_origin = default_origin

    async def get_by_id(self, eatery_id: str) -> Result[Eatery]:
        key = storage_key(eatery_id)
        if self._cache is not None:
            cached = await self._cache.get(key)
            if cached is not None:
                return Ok(cached)
        try:
            async with self._sessionmaker() as session:
                doc = await session.get(EateryDoc, key)
        except SQLAlchemyError as exc:
            logger.exception("Eatery read failed for %s", eatery_id)
            return err(ErrorCode.DB, f'cannot find eatery "{eatery_id}": {exc}')
        if doc is None:
            return err(ErrorCode.NOT_FOUND, f'cannot find eatery "{eatery_id}"')
        eatery = Eatery.model_validate(doc.document)
        if self._cache is not None:
            await self._cache.put(eatery)
        return Ok(eatery)

    async def locate(
        self, cuisine: str, origin: Location | None = None, offset: int = 0, count: int = 5
    ) -> Result[list[EaterySummary]]:
        """
        Return summaries of eateries serving cuisine (case-insensitive),
        nearest to origin (default_origin when omitted) first, skipping
        offset rows and returning at most count. No match is an empty list,
        not an error.
        """
        origin = origin or self.default_origin
        if origin is None:
            return err(ErrorCode.BAD_REQ, f'no search origin for "{cuisine}" eateries')
        if not (0 <= offset <= MAX_ROWS and 1 <= count <= MAX_ROWS):
            return err(ErrorCode.BAD_REQ, f"offset {offset} / count {count} out of range [0, {MAX_ROWS}]")
        x0, y0, z0 = unit_vector(origin.lat, origin.lng)
        chord_squared = (
            (EateryDoc.x - x0) * (EateryDoc.x - x0)
            + (EateryDoc.y - y0) * (EateryDoc.y - y0)
            + (EateryDoc.z - z0) * (EateryDoc.z - z0)
        ).label("chord_squared")
        stmt = (
            select(EateryDoc.id, EateryDoc.name, EateryDoc.lat, EateryDoc.lng, chord_squared)
            .where(EateryDoc.cuisine_key == cuisine.lower())
            .order_by(chord_squared, EateryDoc.key)
            .offset(offset)
            .limit(count)
        )
        try:
            async with self._sessionmaker() as session:
                rows = (await session.execute(stmt)).all()
        except SQLAlchemyError as exc:
            logger.exception("Locate failed for cuisine %s", cuisine)
            return err(
                ErrorCode.DB,
                f'cannot locate "{cuisine}" eateries at ({origin.lat}, {origin.lng}): {exc}',
            )
        return Ok([
            EaterySummary(
                id=row.id,
                name=row.name,
                loc=Location(lat=row.lat, lng=row.lng),
                dist=chord_to_miles(row.chord_squared),
            )
            for row in rows
        ])

    async def load_all(self, raw_eateries: Iterable[Any]) -> Result[dict]:
        """
        Replace every stored eatery with raw_eateries.

        All records are validated before anything is deleted. The delete and
        the inserts then run in a single transaction; a storage failure is
        reported as DB and the whole load must be retried.
        """
        validated = _validate_all(raw_eateries)
        if isinstance(validated, Err):
            return validated
        eateries = validated.value

        try:
            async with self._sessionmaker() as session:
                await session.execute(delete(EateryDoc))
                conn = await session.connection()
                await conn.run_sync(_ensure_indexes)
                for eatery in eateries:
                    result = await session.execute(insert(EateryDoc).values(**_to_row(eatery)))
                    if result.rowcount != 1:
                        raise LoadError(f"inserted {result.rowcount} eateries for {eatery.id}")
                await session.commit()
        except (SQLAlchemyError, LoadError) as exc:
            logger.exception("Eatery load failed")
            return err(ErrorCode.DB, f"cannot load eateries: {exc}")
        finally:
            if self._cache is not None:
                await self._cache.flush()
        logger.info("Loaded %d eateries", len(eateries))
        return Ok({})


def _validate_all(raw_eateries: Iterable[Any]) -> Result[list[Eatery]]:
    eateries: list[Eatery] = []
    errors: list[ErrorDetail] = []
    seen: set[str] = set()
    for index, raw in enumerate(raw_eateries):
        label = raw.get("id") if isinstance(raw, dict) else None
        try:
            eatery = Eatery.from_raw(RawEatery.model_validate(raw))
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()
            )
            errors.append(ErrorDetail(f"bad eatery #{index} ({label}): {problems}", ErrorCode.BAD_REQ))
            continue
        if eatery.storage_key in seen:
            errors.append(ErrorDetail(f'duplicate eatery id "{eatery.id}"', ErrorCode.BAD_REQ))
            continue
        seen.add(eatery.storage_key)
        eateries.append(eatery)
    return Err(errors) if errors else Ok(eateries)


def _to_row(eatery: Eatery) -> dict[str, Any]:
    x, y, z = unit_vector(eatery.loc.lat, eatery.loc.lng)
    return {
        "key": eatery.storage_key,
        "id": eatery.id,
        "name": eatery.name,
        "cuisine": eatery.cuisine,
        "cuisine_key": eatery.cuisine.lower(),
        "lat": eatery.loc.lat,
        "lng": eatery.loc.lng,
        "x": x,
        "y": y,
        "z": z,
        "document": eatery.model_dump(mode="json", by_alias=True),
    }


def _ensure_indexes(sync_conn) -> None:
    for index in EateryDoc.__table__.indexes:
        index.create(sync_conn, checkfirst=True)
