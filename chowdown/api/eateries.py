"""
Chow Service - Eatery routes

  GET /eateries/{lat},{lng}?cuisine=&offset=&count=   nearest eateries of a cuisine
  GET /eateries/{eatery_id}                           eatery details
"""
from fastapi import APIRouter, Depends, Request

from chowdown.api.deps import get_app_settings, get_eatery_repository
from chowdown.api.links import eatery_link, page_link, self_link
from chowdown.api.params import collect_errors, parse_locate_query, parse_location
from chowdown.core.config import Settings
from chowdown.core.errors import AppErrorsException, unwrap
from chowdown.db.eatery_ops import EateryRepository

router = APIRouter(prefix="/eateries", tags=["eateries"])


# registered before /{eatery_id} so that "lat,lng" is never taken for an id
@router.get("/{lat},{lng}")
async def locate_eateries(
    request: Request,
    lat: str,
    lng: str,
    cuisine: str | None = None,
    offset: str | None = None,
    count: str | None = None,
    eateries: EateryRepository = Depends(get_eatery_repository),
    settings: Settings = Depends(get_app_settings),
):
    """
    One row beyond count is requested to learn whether a next page exists;
    it is dropped from the response.
    """
    loc = parse_location(lat, lng)
    query = parse_locate_query(cuisine, offset, count, settings.LOCATE_DEFAULT_COUNT)
    errors = collect_errors(loc, query)
    if errors:
        raise AppErrorsException(errors)
    loc, query = loc.value, query.value

    results = unwrap(await eateries.locate(query.cuisine, loc, query.offset, query.count + 1))

    links = [self_link(request)]
    if len(results) > query.count:
        links.append(page_link(request, "next", query, query.offset + query.count))
    if query.offset > 0 and results:
        links.append(page_link(request, "prev", query, max(0, query.offset - query.count)))

    summaries = [
        {"links": [eatery_link(request, summary.id, rel="self")], **summary.model_dump(by_alias=True)}
        for summary in results[:query.count]
    ]
    return {"eateries": summaries, "links": links}


@router.get("/{eatery_id}")
async def get_eatery(
    request: Request,
    eatery_id: str,
    eateries: EateryRepository = Depends(get_eatery_repository),
):
    eatery = unwrap(await eateries.get_by_id(eatery_id))
    return {"links": [self_link(request)], **eatery.model_dump(mode="json", by_alias=True)}
