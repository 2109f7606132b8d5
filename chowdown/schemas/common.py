"""
Chow Service - Shared pydantic schemas
"""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """snake_case attributes, camelCase JSON."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Location(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class Link(BaseModel):
    rel: str
    name: str
    href: str


def make_link(rel: str, href: str) -> Link:
    return Link(rel=rel, name=rel, href=href)
