# routers/residents.py

import json
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import JSONResponse
from sqlalchemy import func, or_
from sqlmodel import Session, select

from database import get_session
from core.errors import handle_db_error
from core.permission_helpers import requires_permission
from core.permissions import RESOURCE_DIRECTORY
from core.utils import clean, like_pattern, new_id
from models.resident import HOUSE_TYPES, Resident, ResidentPayload, resident_to_api
from routers.checkpoints import clamp_page


router = APIRouter(
    prefix="/residents",
    tags=["Directory"],
)


# -------------------------------------------------------------
# Payload normalization
# -------------------------------------------------------------
def normalize_owners(payload: ResidentPayload) -> list:
    owners = []
    for owner in payload.owners:
        name, phone = clean(owner.name), clean(owner.phone)
        if not name or not phone:
            continue
        entry = {"name": name, "phone": phone}
        if owner.user_id:
            entry["userId"] = str(owner.user_id)
        owners.append(entry)
    return owners


def normalize_vehicles(payload: ResidentPayload) -> list:
    # Incomplete vehicles are dropped rather than rejected
    vehicles = []
    for vehicle in payload.vehicles:
        brand, model, plate = clean(vehicle.brand), clean(vehicle.model), clean(vehicle.plate)
        if brand and model and plate:
            vehicles.append({"brand": brand, "model": model, "plate": plate})
    return vehicles


def house_type_of(payload: ResidentPayload) -> str:
    return payload.house_type if payload.house_type in HOUSE_TYPES else "own"


def house_no_taken(session: Session, house_no: str, exclude_id: Optional[str] = None) -> bool:
    query = select(Resident.id).where(Resident.house_no == house_no)
    if exclude_id:
        query = query.where(Resident.id != exclude_id)
    return session.exec(query).first() is not None


# ============================================================
# LIST RESIDENTS
# ============================================================
@router.get(
    "",
    summary="List residents",
    description="""
    Paginated, ordered by house number. `houseType` may repeat;
    `filter` matches house number, owners and vehicles. 204 when empty.
    """,
    dependencies=[Depends(requires_permission(RESOURCE_DIRECTORY, "read"))],
)
def list_residents(
    page: int = 1,
    pageSize: int = 10,
    houseType: List[str] = Query([]),
    filter: Optional[str] = None,
    session: Session = Depends(get_session),
):
    page, pageSize = clamp_page(page, pageSize)

    conditions = []
    if houseType:
        conditions.append(Resident.house_type.in_(houseType))
    if filter:
        pattern = like_pattern(filter)
        conditions.append(
            or_(
                Resident.house_no.like(pattern, escape="\\"),
                Resident.owners_json.like(pattern, escape="\\"),
                Resident.vehicles_json.like(pattern, escape="\\"),
            )
        )

    try:
        query = select(Resident)
        count_query = select(func.count()).select_from(Resident)
        for condition in conditions:
            query = query.where(condition)
            count_query = count_query.where(condition)

        total = session.exec(count_query).one()
        rows = session.exec(
            query.order_by(Resident.house_no).offset((page - 1) * pageSize).limit(pageSize)
        ).all()
    except Exception as e:
        raise handle_db_error(e, "Failed to fetch residents")

    if not rows:
        return Response(status_code=204)

    return {
        "page": page,
        "pageSize": pageSize,
        "total": total,
        "data": [resident_to_api(r) for r in rows],
    }


# ============================================================
# CREATE RESIDENT
# ============================================================
@router.post(
    "",
    summary="Create resident",
    status_code=201,
    dependencies=[Depends(requires_permission(RESOURCE_DIRECTORY, "create"))],
)
def create_resident(payload: ResidentPayload, session: Session = Depends(get_session)):
    house_no = clean(payload.house_no)
    if not house_no:
        raise HTTPException(400, "House number is required")

    for owner in payload.owners:
        if not clean(owner.name) or not clean(owner.phone):
            raise HTTPException(400, "Owner name and phone are required")

    if house_no_taken(session, house_no):
        raise HTTPException(409, "House number already exists")

    resident = Resident(
        id=new_id(),
        house_no=house_no,
        house_type=house_type_of(payload),
        owners_json=json.dumps(normalize_owners(payload)),
        vehicles_json=json.dumps(normalize_vehicles(payload)),
    )

    try:
        session.add(resident)
        session.commit()
        session.refresh(resident)
    except Exception as e:
        session.rollback()
        raise handle_db_error(e, "Failed to create resident")

    return JSONResponse(status_code=201, content=resident_to_api(resident))


# ============================================================
# UPDATE RESIDENT
# ============================================================
@router.put(
    "/{resident_id}",
    summary="Update resident",
    dependencies=[Depends(requires_permission(RESOURCE_DIRECTORY, "update"))],
)
def update_resident(resident_id: str, payload: ResidentPayload, session: Session = Depends(get_session)):
    house_no = clean(payload.house_no)
    if not house_no:
        raise HTTPException(400, "House number is required")

    resident = session.get(Resident, resident_id)
    if resident is None:
        raise HTTPException(404, "Resident not found")

    if house_no_taken(session, house_no, exclude_id=resident_id):
        raise HTTPException(409, "House number already exists")

    resident.house_no = house_no
    resident.house_type = house_type_of(payload)
    resident.owners_json = json.dumps(normalize_owners(payload))
    resident.vehicles_json = json.dumps(normalize_vehicles(payload))

    try:
        session.add(resident)
        session.commit()
        session.refresh(resident)
    except Exception as e:
        session.rollback()
        raise handle_db_error(e, "Failed to update resident")

    return resident_to_api(resident)


# ============================================================
# DELETE RESIDENT
# ============================================================
@router.delete(
    "/{resident_id}",
    summary="Delete resident",
    status_code=204,
    dependencies=[Depends(requires_permission(RESOURCE_DIRECTORY, "delete"))],
)
def delete_resident(resident_id: str, session: Session = Depends(get_session)):
    resident = session.get(Resident, resident_id)
    if resident is None:
        raise HTTPException(404, "Resident not found")

    try:
        session.delete(resident)
        session.commit()
    except Exception as e:
        session.rollback()
        raise handle_db_error(e, "Failed to delete resident")

    return Response(status_code=204)
