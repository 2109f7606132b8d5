"""
Chow Service test fixtures

Every test gets its own SQLite database file under tmp_path, so no Postgres
or Redis server is needed.
"""
import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport

from chowdown.core.config import Settings
from chowdown.core.errors import Ok
from chowdown.db.repositories import Repositories
from chowdown.main import create_app

# Binghamton University
ORIGIN = (42.087225457002376, -75.96795097953378)


def make_eatery(eatery_id, name, cuisine, lat, lng, menu=None, **extra):
    return {
        "id": eatery_id,
        "name": name,
        "cuisine": cuisine,
        "loc": {"lat": lat, "lng": lng},
        "menu": menu or {},
        **extra,
    }


# Chinese eateries get strictly increasing distances from ORIGIN: same
# longitude, latitude stepping north.
CHINESE = [
    make_eatery(f"chinese.{i}", f"Golden Wok {i}", "Chinese", 42.09 + 0.01 * i, -75.97)
    for i in range(1, 8)
]

HOUSE_OF_SPICE = make_eatery(
    "house.of.spice",
    "House of Spice",
    "Indian",
    42.1013,
    -75.9162,
    menu={
        "Appetizers": [
            {"id": "samosa", "name": "Samosa", "price": 3, "details": "two per order"},
            {"id": "pakora", "name": "Vegetable Pakora", "price": 4.5},
        ],
        "Entrees": [
            {"id": "korma", "name": "Chicken Korma", "price": 5, "spicy": True},
        ],
    },
    phone="607-555-0142",
)

TACO_STAND = make_eatery(
    "taco-stand",
    "Taco Stand",
    "mexican",
    42.0990,
    -75.9180,
    menu={"Tacos": [{"id": "al-pastor", "name": "Al Pastor", "price": 2.75}]},
)


@pytest.fixture
def eateries_data() -> list[dict]:
    return [*CHINESE, HOUSE_OF_SPICE, TACO_STAND]


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'chow.db'}",
        METRICS_ENABLED=False,
        EATERY_CACHE_ENABLED=False,
    )


@pytest_asyncio.fixture
async def repos(settings):
    repositories = Repositories.from_settings(settings)
    assert isinstance(await repositories.init(), Ok)
    yield repositories
    await repositories.close()


@pytest_asyncio.fixture
async def loaded_repos(repos, eateries_data):
    result = await repos.eateries.load_all(eateries_data)
    assert isinstance(result, Ok), result
    return repos


@pytest_asyncio.fixture
async def client(settings, loaded_repos):
    """HTTP client talking to the app in-process (no network)."""
    app = create_app(settings, loaded_repos)
    async with app.router.lifespan_context(app):
        async with httpx.AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as client:
            yield client
