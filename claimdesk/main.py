from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from claimdesk.db import filters as _filters  # noqa: F401  (register SQLAlchemy filters)
from claimdesk.db.init_db import init_db
from claimdesk.errors import ClaimDeskError
from claimdesk.logging_config import configure_app_logging
from claimdesk.routers import auth, centers, claims, departments, users
from claimdesk.security.policy import get_policy
from claimdesk.settings import get_settings

logger = logging.getLogger(__name__)


async def claimdesk_error_handler(request: Request, exc: ClaimDeskError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = get_settings()
        configure_app_logging(settings.log_level)
        logger.info("App startup beginning")

        get_policy()
        init_db(settings)
        logger.info("Database initialized (tables ensured + registry seed if configured)")

        yield

    app = FastAPI(title="claimdesk", lifespan=lifespan)
    app.add_exception_handler(ClaimDeskError, claimdesk_error_handler)

    app.include_router(auth.router)
    app.include_router(centers.router)
    app.include_router(departments.router)
    app.include_router(users.router)
    app.include_router(claims.router)

    return app


app = create_app()
