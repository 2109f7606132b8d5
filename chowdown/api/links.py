"""
Chow Service - HATEOAS link construction

Every href is absolute, built from the scheme, host and port of the request
being answered.
"""
from fastapi import Request

from chowdown.api.params import LocateQuery
from chowdown.schemas.common import make_link


def self_link(request: Request) -> dict:
    return make_link("self", str(request.url)).model_dump()


def eatery_link(request: Request, eatery_id: str, rel: str = "eatery") -> dict:
    href = request.url_for("get_eatery", eatery_id=eatery_id)
    return make_link(rel, str(href)).model_dump()


def order_url(request: Request, order_id: str) -> str:
    return str(request.url_for("get_order", order_id=order_id))


def order_link(request: Request, order_id: str, rel: str = "order") -> dict:
    return make_link(rel, order_url(request, order_id)).model_dump()


def page_link(request: Request, rel: str, query: LocateQuery, offset: int) -> dict:
    """next / prev link for a search: the request URL with offset replaced."""
    href = request.url.include_query_params(
        cuisine=query.cuisine, offset=offset, count=query.count
    )
    return make_link(rel, str(href)).model_dump()
