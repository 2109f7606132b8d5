"""
Chow Service - Command-line driver

    chowdown [--db-url URL] COMMAND [ARG...]

Runs a single repository operation and prints its result as JSON, or starts
the web service with ``serve``. Error results are printed one message per
line on stderr and the process exits with status 1.
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import uvicorn
from pydantic import BaseModel

from chowdown.api.params import parse_location
from chowdown.core.config import Settings, configure_logging, get_settings
from chowdown.core.errors import Err, ErrorCode, Ok, Result, err
from chowdown.db.repositories import Repositories
from chowdown.main import create_app

logger = logging.getLogger(__name__)


def read_eateries(path: str) -> Result[Any]:
    """Read a .json list of eateries or a .jsonl file with one eatery per line."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        return err(ErrorCode.BAD_REQ, f"unable to read {path}: {exc}")
    try:
        if path.endswith(".jsonl"):
            return Ok([json.loads(line) for line in text.splitlines() if line.strip()])
        return Ok(json.loads(text))
    except json.JSONDecodeError as exc:
        return err(ErrorCode.BAD_REQ, f"unable to parse JSON from {path}: {exc}")


# ─── Commands ─────────────────────────────────────────────────────────────────

async def new_order(repos: Repositories, args) -> Result:
    eatery = await repos.eateries.get_by_id(args.eatery_id)
    if isinstance(eatery, Err):
        return eatery
    return await repos.orders.create(eatery.value.id)


async def get_order(repos: Repositories, args) -> Result:
    return await repos.orders.get(args.order_id)


async def edit_order(repos: Repositories, args) -> Result:
    return await repos.orders.edit_item(args.order_id, args.item_id, args.n_units)


async def remove_order(repos: Repositories, args) -> Result:
    return await repos.orders.remove(args.order_id)


async def clear_orders(repos: Repositories, args) -> Result:
    return await repos.orders.clear()


async def get_eatery(repos: Repositories, args) -> Result:
    return await repos.eateries.get_by_id(args.eatery_id)


async def load_eateries(repos: Repositories, args) -> Result:
    return await load_eateries_file(repos, args.path)


async def load_eateries_file(repos: Repositories, path: str) -> Result:
    data = read_eateries(path)
    if isinstance(data, Err):
        return data
    if not isinstance(data.value, list):
        return err(ErrorCode.BAD_REQ, f"{path} does not contain a list of eateries")
    return await repos.eateries.load_all(data.value)


async def locate_eateries(repos: Repositories, args) -> Result:
    loc = parse_location(args.lat, args.lng)
    if isinstance(loc, Err):
        return loc
    return await repos.eateries.locate(args.cuisine, loc.value, args.offset, args.count)


COMMANDS = {
    "new-order": new_order,
    "get-order": get_order,
    "edit-order": edit_order,
    "remove-order": remove_order,
    "clear-orders": clear_orders,
    "get-eatery": get_eatery,
    "load-eateries": load_eateries,
    "locate-eateries": locate_eateries,
}


# ─── Argument parsing ─────────────────────────────────────────────────────────

def _non_negative(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"{value} must be >= 0")
    return number


def _port(value: str) -> int:
    if not value.isdigit() or int(value) < 1024:
        raise argparse.ArgumentTypeError(f"bad port {value}: must be >= 1024")
    return int(value)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chowdown", description="Chow eatery and order service.")
    parser.add_argument("--db-url", help="SQLAlchemy database URL (overrides DATABASE_URL)")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the web service")
    serve.add_argument("-c", "--clear-orders", action="store_true", help="remove all orders first")
    serve.add_argument("--port", type=_port, default=settings.PORT)
    serve.add_argument("eateries", nargs="?", help="JSON / JSONL eatery data to load first")

    cmd = sub.add_parser("new-order", help="create a new order for eatery EATERY_ID")
    cmd.add_argument("eatery_id")

    cmd = sub.add_parser("get-order", help="show details of order ORDER_ID")
    cmd.add_argument("order_id")

    cmd = sub.add_parser("edit-order", help="set the quantity of ITEM_ID in ORDER_ID to N_UNITS")
    cmd.add_argument("order_id")
    cmd.add_argument("item_id")
    cmd.add_argument("n_units", type=int)

    cmd = sub.add_parser("remove-order", help="remove order ORDER_ID")
    cmd.add_argument("order_id")

    sub.add_parser("clear-orders", help="remove all orders and reset order ids")

    cmd = sub.add_parser("get-eatery", help="show details for eatery EATERY_ID")
    cmd.add_argument("eatery_id")

    cmd = sub.add_parser("load-eateries", help="replace all eateries with those in PATH")
    cmd.add_argument("path")

    cmd = sub.add_parser(
        "locate-eateries", help="eateries of CUISINE sorted by distance from LAT, LNG"
    )
    cmd.add_argument("cuisine")
    cmd.add_argument("lat")
    cmd.add_argument("lng")
    cmd.add_argument("offset", nargs="?", type=_non_negative, default=0)
    cmd.add_argument("count", nargs="?", type=_non_negative, default=settings.LOCATE_DEFAULT_COUNT)
    return parser


# ─── Output ───────────────────────────────────────────────────────────────────

def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


def report(result: Result) -> int:
    if isinstance(result, Err):
        for error in result.errors:
            print(error.message, file=sys.stderr)
        return 1
    value = _jsonable(result.value)
    if isinstance(value, list) or not isinstance(value, dict) or value:
        print(json.dumps(value, indent=2))
    return 0


async def run_command(settings: Settings, args) -> int:
    repos = Repositories.from_settings(settings)
    try:
        result = await repos.init()
        if isinstance(result, Ok):
            result = await COMMANDS[args.command](repos, args)
    finally:
        await repos.close()
    return report(result)


async def prepare_service(settings: Settings, args) -> int:
    """Clear orders and / or load eateries before the server starts."""
    repos = Repositories.from_settings(settings)
    try:
        if (status := report(await repos.init())) != 0:
            return status
        if args.clear_orders:
            if (status := report(await repos.orders.clear())) != 0:
                return status
        if args.eateries:
            if (status := report(await load_eateries_file(repos, args.eateries))) != 0:
                return status
    finally:
        await repos.close()
    return 0


def serve(settings: Settings, args) -> int:
    status = asyncio.run(prepare_service(settings, args))
    if status != 0:
        return status
    logger.info("%s listening on port %d", settings.SERVICE_NAME, args.port)
    uvicorn.run(create_app(settings), host=settings.HOST, port=args.port)
    return 0


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    args = build_parser(settings).parse_args(argv)
    if args.db_url:
        settings = settings.model_copy(update={"DATABASE_URL": args.db_url})
    configure_logging(settings)
    if args.command == "serve":
        return serve(settings, args)
    return asyncio.run(run_command(settings, args))


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
