# barbershop/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from barbershop.config import get_settings
from barbershop.db import init_db
from barbershop.deps import get_container
from barbershop.errors import DomainError, UnexpectedError, ValidationError
from barbershop.logging_config import setup_logging
from barbershop.routers import (
    appointments_routes,
    barbers_routes,
    timeslots_routes,
    users_routes,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # honour a container swapped in through dependency_overrides
    container = app.dependency_overrides.get(get_container, get_container)()
    init_db(container.engine)
    logger.info(
        f"Shop hours {container.policy.hours_start}:00-{container.policy.hours_end}:00, "
        f"cancellation window {container.policy.cancellation_window_hours}h"
    )
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Barber Shop Booking", lifespan=lifespan)

    app.include_router(barbers_routes.router)
    app.include_router(users_routes.router)
    app.include_router(timeslots_routes.router)
    app.include_router(appointments_routes.router)

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        if isinstance(exc, UnexpectedError):
            logger.error(f"{request.method} {request.url.path} failed: {exc.cause!r}")
        return JSONResponse(status_code=exc.status_code, content=exc.serialize())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        error = ValidationError.from_details(exc.errors())
        return JSONResponse(status_code=error.status_code, content=error.serialize())

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        error = UnexpectedError(exc, production=get_settings().is_production)
        return JSONResponse(status_code=error.status_code, content=error.serialize())

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app


app = create_app()
