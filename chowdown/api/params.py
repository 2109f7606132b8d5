"""
Chow Service - Request parameter validation

Each parser checks every parameter it is given and reports all problems
together instead of stopping at the first one.
"""
import re
from dataclasses import dataclass

from chowdown.core.errors import Err, ErrorCode, ErrorDetail, Ok, Result
from chowdown.db.eatery_ops import MAX_ROWS
from chowdown.schemas.common import Location

COORD_RE = re.compile(r"^[-+]?\d+(?:\.\d*)?$")
UINT_RE = re.compile(r"^\d+$")
INT_RE = re.compile(r"^[-+]?\d+$")

COORD_INFOS = {
    "lat": ("latitude", -90.0, 90.0),
    "lng": ("longitude", -180.0, 180.0),
}


@dataclass(frozen=True)
class LocateQuery:
    cuisine: str
    offset: int
    count: int


def _bad(text: str) -> ErrorDetail:
    return ErrorDetail(text, ErrorCode.BAD_REQ)


def collect_errors(*results: Result) -> list[ErrorDetail]:
    errors: list[ErrorDetail] = []
    for result in results:
        if isinstance(result, Err):
            errors.extend(result.errors)
    return errors


def parse_location(lat: str, lng: str) -> Result[Location]:
    errors = []
    loc = {}
    for key, value in (("lat", lat), ("lng", lng)):
        name, low, high = COORD_INFOS[key]
        if not COORD_RE.match(value or ""):
            errors.append(_bad(f'bad {name} "{value}"'))
            continue
        num = loc[key] = float(value)
        if not low <= num <= high:
            errors.append(_bad(f"{name} {num} not in range [{low}, {high}]"))
    return Err(errors) if errors else Ok(Location(**loc))


def parse_locate_query(
    cuisine: str | None, offset: str | None, count: str | None, default_count: int
) -> Result[LocateQuery]:
    errors = []
    if not (cuisine or "").strip():
        errors.append(_bad("missing cuisine parameter"))
    offset = "0" if offset is None else offset
    count = str(default_count) if count is None else count
    if not UINT_RE.match(offset) or int(offset) > MAX_ROWS:
        errors.append(_bad(f'bad offset "{offset}"'))
    if not UINT_RE.match(count) or not 1 <= int(count) < MAX_ROWS:
        errors.append(_bad(f'bad count "{count}"'))
    if errors:
        return Err(errors)
    return Ok(LocateQuery(cuisine=cuisine.strip(), offset=int(offset), count=int(count)))


def parse_eatery_id(eatery_id: str | None) -> Result[str]:
    if not (eatery_id or "").strip():
        return Err([_bad("missing eateryId parameter")])
    return Ok(eatery_id.strip())


def parse_item_edit(order_id: str, item_id: str | None, n_items: str | None) -> Result[tuple[str, int]]:
    errors = []
    if not (item_id or "").strip():
        errors.append(_bad(f'no itemId in update for order "{order_id}"'))
    if n_items is None:
        errors.append(_bad(f'no nItems in update for order "{order_id}"'))
    elif not INT_RE.match(n_items):
        errors.append(_bad(f'bad nItems "{n_items}" in update for order "{order_id}"'))
    elif int(n_items) < 0:
        errors.append(_bad(f'cannot have a negative quantity {n_items} for order "{order_id}"'))
    if errors:
        return Err(errors)
    return Ok((item_id.strip(), int(n_items)))
