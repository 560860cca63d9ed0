# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection: wire configuration, repositories, and services.
Leaf providers are cached singletons built on first use; tests replace
them through app.dependency_overrides.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.engine import Engine

from hotline.core.config import HotlineConfig, settings
from hotline.core.database import make_engine
from hotline.models.domain import Schedule
from hotline.repositories.forward_state_repository import ForwardStateRepository
from hotline.repositories.schedule_repository import load_schedule
from hotline.services.admin_auth import AllowListAuthorizer, CallerAuthorizer
from hotline.services.call_flow import CallFlowService
from hotline.services.forward_service import ForwardService


# ── Singletons ──
@lru_cache
def get_hotline_config() -> HotlineConfig:
    return HotlineConfig.from_settings(settings)


@lru_cache
def get_schedule() -> Schedule:
    return load_schedule(settings.SCHEDULE_FILE, settings.DEFAULT_TIMEZONE)


@lru_cache
def get_engine() -> Engine:
    return make_engine(settings.DATABASE_URL)


@lru_cache
def get_forward_repo() -> ForwardStateRepository:
    return ForwardStateRepository(get_engine())


def get_admin_api_token() -> str:
    return settings.ADMIN_API_TOKEN


# ── Per-request services ──
def get_authorizer(
    config: HotlineConfig = Depends(get_hotline_config),
) -> CallerAuthorizer:
    return AllowListAuthorizer(config.admin_numbers)


def get_forward_service(
    forward_repo: ForwardStateRepository = Depends(get_forward_repo),
    schedule: Schedule = Depends(get_schedule),
    config: HotlineConfig = Depends(get_hotline_config),
) -> ForwardService:
    return ForwardService(
        forward_repo=forward_repo,
        schedule=schedule,
        config=config,
    )


def get_call_flow(
    forward_service: ForwardService = Depends(get_forward_service),
    authorizer: CallerAuthorizer = Depends(get_authorizer),
    config: HotlineConfig = Depends(get_hotline_config),
) -> CallFlowService:
    return CallFlowService(
        forward_service=forward_service,
        authorizer=authorizer,
        config=config,
    )
