import os
import sys
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Ensure local imports resolve
sys.path.append(os.path.dirname(__file__))

# Core
from core.config import settings
from core.config_validator import validate_config_on_startup
from core.logging_config import logger
from database import create_db_and_tables

# -------------------------------------------------
# Routers
# -------------------------------------------------
from routers.check_in import router as check_in_router
from routers.settings import router as settings_router
from routers.checkpoints import router as checkpoints_router
from routers.homestay_checkins import router as homestay_checkins_router

from routers.acl import router as acl_router
from routers.roles import router as roles_router

from routers.residents import router as residents_router
from routers.billing import router as billing_router
from routers.payments import router as payments_router
from routers.blobs import router as blobs_router

from routers.health import router as health_router


# -------------------------------------------------
# Create the Application
# -------------------------------------------------
def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="Taman Community API: guard patrol check-ins, access control, directory and billing",
    )

    # -------------------------------------------------
    # CORS
    # -------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------
    # Startup: config check + schema
    # -------------------------------------------------
    @app.on_event("startup")
    async def on_startup():
        logger.info(f"Starting {settings.PROJECT_NAME} ({settings.ENV})")
        validate_config_on_startup()
        create_db_and_tables()
        for route in app.routes:
            methods = ",".join(getattr(route, "methods", None) or [])
            logger.debug(f"Route {methods:10s} {getattr(route, 'path', '')}")

    # -------------------------------------------------
    # Error handling ({"error": ...} bodies)
    # -------------------------------------------------
    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (401, 403, 500):
            logger.warning(
                f"HTTP {exc.status_code} at {request.url}: {exc.detail}"
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation(request: Request, exc: RequestValidationError):
        logger.info(f"Invalid payload at {request.url}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": "invalid_payload"})

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.error("Unhandled error at %s", request.url, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
        )

    # -------------------------------------------------
    # Register Routers
    # -------------------------------------------------

    # Guard patrol
    app.include_router(check_in_router)
    app.include_router(settings_router)
    app.include_router(checkpoints_router)
    app.include_router(homestay_checkins_router)

    # Access control
    app.include_router(acl_router)
    app.include_router(roles_router)

    # Directory + billing
    app.include_router(residents_router)
    app.include_router(billing_router)
    app.include_router(payments_router)
    app.include_router(blobs_router)

    # Health
    app.include_router(health_router)

    return app


# Create the global FastAPI instance
app = create_app()
