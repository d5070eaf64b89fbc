# routers/health.py

from fastapi import APIRouter

from core.config import settings
from database import ping_database

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


# -----------------------------------------------------
# GET /health/db
# Runs `select 1` against the relational store
# No auth required
# -----------------------------------------------------
@router.get("/db", summary="Database health check")
def health_db():
    """
    Safe for external health monitors (no auth required).
    """
    return ping_database()


# -----------------------------------------------------
# GET /health/app
# -----------------------------------------------------
@router.get("/app", summary="App health check")
async def health_app():
    return {
        "service": settings.PROJECT_NAME,
        "status": "ok",
    }
