# routers/check_in.py

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlmodel import Session, select

from database import get_session
from dependencies.auth import require_credential
from core.errors import handle_db_error
from models.check_in import CheckInLog, CheckInRequest
from models.checkpoint import Checkpoint
from services.check_in_service import CheckInService


router = APIRouter(
    prefix="/check-in",
    tags=["Check-in"],
)


def get_check_in_service(session: Session = Depends(get_session)) -> CheckInService:
    return CheckInService(session)


# ============================================================
# SUBMIT CHECK-IN
# ============================================================
@router.post(
    "",
    summary="Check in at the nearest checkpoint",
    description="""
    Finds the nearest checkpoint to the submitted coordinates, rejects the
    request when it is outside the configured radius (400) or when the same
    user checked in at that checkpoint within the cooldown window (429),
    and otherwise records the check-in.

    **Auth:** any bearer credential (401 when missing).
    """,
    dependencies=[Depends(require_credential)],
)
def submit_check_in(
    payload: CheckInRequest,
    service: CheckInService = Depends(get_check_in_service),
):
    if payload.latitude is None or payload.longitude is None or not payload.user_id:
        raise HTTPException(400, "Missing location or user ID")

    try:
        outcome = service.submit(payload.user_id, payload.latitude, payload.longitude)
    except Exception as e:
        raise handle_db_error(e, "Check-in failed")

    return JSONResponse(status_code=outcome.status_code, content=outcome.to_api())


# ============================================================
# LIST CHECK-IN LOGS / LAST CHECK-IN
# ============================================================
@router.get(
    "",
    summary="Check-in logs",
    description="""
    With both `userId` and `checkpointId`: `{lastCheckIn}` for that pair
    (null when none). Otherwise every log entry, newest first, with the
    checkpoint name.
    """,
    dependencies=[Depends(require_credential)],
)
def list_check_ins(
    userId: Optional[str] = None,
    checkpointId: Optional[str] = None,
    session: Session = Depends(get_session),
):
    try:
        if userId and checkpointId:
            last = session.exec(
                select(CheckInLog)
                .where(CheckInLog.user_id == userId)
                .where(CheckInLog.checkpoint_id == checkpointId)
                .order_by(CheckInLog.timestamp.desc())
                .limit(1)
            ).first()
            return {"lastCheckIn": last.timestamp if last else None}

        rows = session.exec(
            select(CheckInLog, Checkpoint)
            .join(Checkpoint, CheckInLog.checkpoint_id == Checkpoint.id, isouter=True)
            .order_by(CheckInLog.timestamp.desc())
        ).all()
    except Exception as e:
        raise handle_db_error(e, "Failed to fetch check-ins")

    return [
        {
            "id": log.id,
            "user_id": log.user_id,
            "checkpoint_id": log.checkpoint_id,
            "latitude": log.latitude,
            "longitude": log.longitude,
            "timestamp": log.timestamp,
            # Checkpoint may have been deleted since; logs keep only the id
            "checkpoint_name": checkpoint.name if checkpoint else None,
        }
        for log, checkpoint in rows
    ]
