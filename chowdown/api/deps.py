"""
Chow Service - FastAPI dependencies

Handlers receive the process-wide repositories built by create_app through
these getters rather than importing a global instance.
"""
from fastapi import Request

from chowdown.core.config import Settings
from chowdown.db.eatery_ops import EateryRepository
from chowdown.db.order_ops import OrderRepository
from chowdown.db.repositories import Repositories


def get_repositories(request: Request) -> Repositories:
    return request.app.state.repositories


def get_order_repository(request: Request) -> OrderRepository:
    return request.app.state.repositories.orders


def get_eatery_repository(request: Request) -> EateryRepository:
    return request.app.state.repositories.eateries


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
