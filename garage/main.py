"""FastAPI application entry point."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from garage.api.router import api_router
from garage.config import get_settings
from garage.db.engine import async_session_factory, create_all, engine
from garage.errors import GarageError
from garage.services.retention import run_periodic_sweep

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    await create_all()

    # Background expiry sweep for notifications and conversations
    interval = get_settings().retention.sweep_interval_seconds
    sweep_task = asyncio.create_task(run_periodic_sweep(async_session_factory, interval))
    yield
    sweep_task.cancel()
    await engine.dispose()


app = FastAPI(
    title="Garage Operations",
    description="Work orders, QA sign-off, invoicing and staff messaging for a vehicle service garage.",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(GarageError)
async def garage_error_handler(request: Request, exc: GarageError):
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", ""))
    return JSONResponse(
        status_code=422,
        content={"error": {"kind": "validation_error", "message": "; ".join(parts) or "Invalid request"}},
    )


app.include_router(api_router)


@app.get("/api/health")
async def health():
    return {"ok": True}
