# routers/homestay_checkins.py

import json
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import JSONResponse
from sqlalchemy import func
from sqlmodel import Session, select

from database import get_session
from core.errors import handle_db_error
from core.logging_config import logger
from core.permission_helpers import requires_permission
from core.permissions import HOMESTAY_LIST_POLICY, RESOURCE_CHECK_IN_LOGS
from core.utils import clean, new_id, parse_plates, to_iso, utc_now
from models.homestay import (
    HomestayCheckIn,
    HomestayCheckInCreate,
    HomestayCheckInUpdate,
    homestay_to_api,
)
from routers.checkpoints import clamp_page


router = APIRouter(
    prefix="/homestay-checkins",
    tags=["Homestay"],
)


# ============================================================
# LIST GUEST CHECK-INS
# ============================================================
@router.get(
    "",
    summary="List homestay guest check-ins",
    description="""
    Paginated, newest first; `homestayId` filters one homestay.
    With `latestByHomestay=true`, returns only the latest submission per
    homestay. Returns 204 when there is nothing to show.

    **Permissions:** `/check-in-logs` read. Admins always pass;
    an ACL entry on `homestay-checkins` is accepted as well.
    """,
    dependencies=[Depends(requires_permission(RESOURCE_CHECK_IN_LOGS, "read", HOMESTAY_LIST_POLICY))],
)
def list_homestay_checkins(
    page: int = 1,
    pageSize: int = 10,
    homestayId: Optional[str] = None,
    latestByHomestay: Optional[str] = None,
    session: Session = Depends(get_session),
):
    page, pageSize = clamp_page(page, pageSize)

    try:
        if latestByHomestay == "true":
            latest = (
                select(
                    HomestayCheckIn.homestay_id,
                    func.max(HomestayCheckIn.submitted_at).label("max_submitted"),
                )
                .group_by(HomestayCheckIn.homestay_id)
                .subquery()
            )
            rows = session.exec(
                select(HomestayCheckIn)
                .join(
                    latest,
                    (latest.c.homestay_id == HomestayCheckIn.homestay_id)
                    & (latest.c.max_submitted == HomestayCheckIn.submitted_at),
                )
                .order_by(HomestayCheckIn.homestay_id)
            ).all()
            if not rows:
                return Response(status_code=204)
            return {"data": [homestay_to_api(r) for r in rows]}

        query = select(HomestayCheckIn)
        count_query = select(func.count()).select_from(HomestayCheckIn)
        if homestayId:
            query = query.where(HomestayCheckIn.homestay_id == homestayId)
            count_query = count_query.where(HomestayCheckIn.homestay_id == homestayId)

        total = session.exec(count_query).one()
        rows = session.exec(
            query.order_by(HomestayCheckIn.submitted_at.desc())
            .offset((page - 1) * pageSize)
            .limit(pageSize)
        ).all()
    except Exception as e:
        raise handle_db_error(e, "Failed to fetch homestay check-ins")

    if not rows:
        return Response(status_code=204)

    return {
        "page": page,
        "pageSize": pageSize,
        "total": total,
        "data": [homestay_to_api(r) for r in rows],
    }


# ============================================================
# GUEST REGISTRATION (public form, no credential)
# ============================================================
@router.post("", summary="Register homestay guests", status_code=201)
def create_homestay_checkin(
    payload: HomestayCheckInCreate,
    session: Session = Depends(get_session),
):
    homestay_id = clean(str(payload.homestay_id)) if payload.homestay_id is not None else None
    person_in_charge = clean(payload.person_in_charge)
    if not homestay_id or not person_in_charge or not payload.number_of_guests:
        raise HTTPException(400, "homestayId, personInCharge, numberOfGuests are required")

    row = HomestayCheckIn(
        id=new_id(),
        homestay_id=homestay_id,
        person_in_charge=person_in_charge,
        guests=payload.number_of_guests,
        plates_json=json.dumps(parse_plates(payload.number_plates)),
        arrival=payload.date_of_arrival or None,
        departure=payload.date_of_departure or None,
        notes=payload.additional_notes or None,
        submitted_at=to_iso(utc_now()),
    )

    try:
        session.add(row)
        session.commit()
        session.refresh(row)
    except Exception as e:
        session.rollback()
        raise handle_db_error(e, "Failed to create homestay check-in")

    logger.info(f"Homestay check-in {row.id} for homestay {row.homestay_id}")
    return JSONResponse(status_code=201, content=homestay_to_api(row))


# ============================================================
# GUARD CORRECTION
# ============================================================
@router.put(
    "/{checkin_id}",
    summary="Update a homestay guest check-in",
    dependencies=[Depends(requires_permission(RESOURCE_CHECK_IN_LOGS, "update"))],
)
def update_homestay_checkin(
    checkin_id: str,
    payload: HomestayCheckInUpdate,
    session: Session = Depends(get_session),
):
    person_in_charge = clean(payload.person_in_charge)
    if not person_in_charge or not payload.number_of_guests:
        raise HTTPException(400, "personInCharge and numberOfGuests are required")

    row = session.get(HomestayCheckIn, checkin_id)
    if row is None:
        raise HTTPException(404, "Homestay check-in not found")

    row.person_in_charge = person_in_charge
    row.guests = payload.number_of_guests
    row.plates_json = json.dumps(parse_plates(payload.number_plates))
    row.arrival = payload.date_of_arrival or None
    row.departure = payload.date_of_departure or None
    row.notes = payload.additional_notes or None

    try:
        session.add(row)
        session.commit()
        session.refresh(row)
    except Exception as e:
        session.rollback()
        raise handle_db_error(e, "Failed to update check-in")

    return homestay_to_api(row)
