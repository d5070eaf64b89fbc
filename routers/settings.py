# routers/settings.py

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from database import get_session
from core.errors import handle_db_error
from core.permission_helpers import requires_permission
from core.permissions import RESOURCE_SETTINGS
from core.utils import to_float_or_none
from models.check_in import CheckInSettingsUpdate
from services.check_in_service import get_check_in_settings, save_check_in_settings


router = APIRouter(
    prefix="/settings",
    tags=["Settings"],
)


# -----------------------------------------------------
# GET /settings/check-in
# Public; the check-in screen shows the radius before submitting
# -----------------------------------------------------
@router.get("/check-in", summary="Check-in radius and cooldown")
def read_check_in_settings(session: Session = Depends(get_session)):
    try:
        radius, window = get_check_in_settings(session)
    except Exception as e:
        raise handle_db_error(e, "Failed to fetch settings")
    return {"radius": radius, "timeWindow": window}


# -----------------------------------------------------
# POST /settings/check-in
# -----------------------------------------------------
@router.post(
    "/check-in",
    summary="Update check-in radius and cooldown",
    dependencies=[Depends(requires_permission(RESOURCE_SETTINGS, "update"))],
)
def update_check_in_settings(
    payload: CheckInSettingsUpdate,
    session: Session = Depends(get_session),
):
    radius = to_float_or_none(payload.radius)
    time_window = to_float_or_none(payload.time_window)
    if radius is None or time_window is None or radius < 0 or time_window < 0:
        raise HTTPException(400, "Invalid input")

    try:
        row = save_check_in_settings(session, radius, time_window)
    except Exception as e:
        raise handle_db_error(e, "Failed to update settings")

    return {"radius": row.radius, "timeWindow": row.time_window}
