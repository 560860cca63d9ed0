# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Hotline Service
===============
Twilio voice webhooks that forward hotline calls to the volunteer on call,
with an administrator menu (who is on call, temporary forward override)
and a refresh trigger that re-points the forward number at the shift change.

Port: 8080
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hotline.controllers import oncall_controller, system_controller, voice_controller
from hotline.core.config import settings
from hotline.core.dependencies import (
    get_engine,
    get_forward_repo,
    get_hotline_config,
    get_schedule,
)
from hotline.core.logging import configure_server_logging, get_logger
from hotline.middleware import MetricsMiddleware, RequestIDMiddleware
from hotline.repositories.forward_state_repository import ForwardStoreError
from hotline.services.forward_service import ForwardService

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Load the roster (fail fast), then create and seed the forward store."""
    configure_server_logging()
    schedule = get_schedule()
    logger.info(
        "Roster ready: timezone=%s, weekdays=%d", schedule.timezone, len(schedule.days)
    )
    try:
        forward_repo = get_forward_repo()
        forward_repo.ensure_schema()
        ForwardService(forward_repo, schedule, get_hotline_config()).initialize_store()
        logger.info("Forward store ready")
    except ForwardStoreError as exc:
        logger.error("Forward store unavailable, calls will use the default number: %s", exc)
    yield
    get_engine().dispose()
    logger.info("Forward store connections disposed, shutting down")


app = FastAPI(
    title="Hotline Service",
    description="Routes hotline calls to the on-call volunteer.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ForwardStoreError)
async def forward_store_exception_handler(request: Request, exc: ForwardStoreError):
    req_id = getattr(request.state, "request_id", None)
    logger.error("Forward store unavailable: %s", exc, extra={"request_id": req_id})
    return JSONResponse(
        status_code=503,
        content={"error": "forward_store_unavailable", "request_id": req_id},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    req_id = getattr(request.state, "request_id", None)
    logger.exception("Unhandled exception", extra={"request_id": req_id})
    return JSONResponse(
        status_code=500,
        content={"error": "internal_server_error", "detail": str(exc), "request_id": req_id},
    )


app.include_router(system_controller.router)
app.include_router(voice_controller.router)
app.include_router(oncall_controller.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=settings.SERVICE_PORT)
