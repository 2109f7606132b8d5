"""
Chow Service - Eatery schemas

RawEatery is the external JSON record accepted by a bulk load. Eatery is the
extended record that is stored and served: the categorized menu is flattened
into ``flat_menu`` (item-id -> item with its category) and ``menu`` is
rewritten to map each category to its item ids.
"""
from typing import Any

from pydantic import ConfigDict, Field, model_validator

from chowdown.schemas.common import CamelModel, Location


class MenuItem(CamelModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1)
    name: str
    price: float = Field(..., ge=0)
    details: str | None = None
    category: str | None = None


class RawEatery(CamelModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1)
    name: str
    cuisine: str = Field(..., min_length=1)
    loc: Location
    menu: dict[str, list[MenuItem]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_unique_item_ids(self) -> "RawEatery":
        seen: set[str] = set()
        for items in self.menu.values():
            for item in items:
                if item.id in seen:
                    raise ValueError(f'duplicate menu item id "{item.id}"')
                seen.add(item.id)
        return self


# extended-record fields (and their wire aliases) built by Eatery.from_raw
DERIVED_FIELDS = {"menu_categories", "menuCategories", "flat_menu", "flatMenu"}


class Eatery(CamelModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    cuisine: str
    loc: Location
    menu: dict[str, list[str]]
    menu_categories: list[str]
    flat_menu: dict[str, MenuItem]

    @classmethod
    def from_raw(cls, raw: RawEatery) -> "Eatery":
        flat_menu: dict[str, MenuItem] = {}
        menu: dict[str, list[str]] = {}
        for category, items in raw.menu.items():
            menu[category] = [item.id for item in items]
            for item in items:
                flat_menu[item.id] = item.model_copy(update={"category": category})
        # derived fields are always recomputed, never taken from the input
        extra: dict[str, Any] = {
            key: value for key, value in (raw.model_extra or {}).items()
            if key not in DERIVED_FIELDS
        }
        return cls(
            id=raw.id,
            name=raw.name,
            cuisine=raw.cuisine,
            loc=raw.loc,
            menu=menu,
            menu_categories=list(raw.menu.keys()),
            flat_menu=flat_menu,
            **extra,
        )

    @property
    def storage_key(self) -> str:
        return storage_key(self.id)


class EaterySummary(CamelModel):
    id: str
    name: str
    loc: Location
    dist: float


def storage_key(eatery_id: str) -> str:
    return eatery_id.replace(".", "_")
