# routers/checkpoints.py

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import func
from sqlmodel import Session, select

from database import get_session
from core.errors import handle_db_error
from core.permission_helpers import requires_permission
from core.permissions import RESOURCE_CHECKPOINTS
from core.utils import new_id, to_iso, utc_now
from models.checkpoint import Checkpoint, CheckpointCreate, CheckpointUpdate, checkpoint_to_api


router = APIRouter(
    prefix="/checkpoints",
    tags=["Checkpoints"],
)


def clamp_page(page: int, page_size: int):
    return max(1, page), max(1, min(100, page_size))


def validate_checkpoint(payload: CheckpointCreate):
    name = (payload.name or "").strip()
    if not name or payload.latitude is None or payload.longitude is None:
        raise HTTPException(400, "invalid_payload")
    return name


# ============================================================
# LIST CHECKPOINTS
# ============================================================
@router.get(
    "",
    summary="List checkpoints",
    description="""
    Paginated, ordered by name. `name` filters by substring.
    Returns 204 when the page is empty.
    """,
    dependencies=[Depends(requires_permission(RESOURCE_CHECKPOINTS, "read"))],
)
def list_checkpoints(
    page: int = 1,
    pageSize: int = 10,
    name: Optional[str] = None,
    session: Session = Depends(get_session),
):
    page, pageSize = clamp_page(page, pageSize)

    try:
        query = select(Checkpoint)
        count_query = select(func.count()).select_from(Checkpoint)
        if name:
            query = query.where(Checkpoint.name.contains(name, autoescape=True))
            count_query = count_query.where(Checkpoint.name.contains(name, autoescape=True))

        total = session.exec(count_query).one()
        rows = session.exec(
            query.order_by(Checkpoint.name).offset((page - 1) * pageSize).limit(pageSize)
        ).all()
    except Exception as e:
        raise handle_db_error(e, "Failed to fetch checkpoints")

    if not rows:
        return Response(status_code=204)

    return {
        "page": page,
        "pageSize": pageSize,
        "total": total,
        "data": [checkpoint_to_api(cp) for cp in rows],
    }


# ============================================================
# CREATE CHECKPOINT
# ============================================================
@router.post(
    "",
    summary="Create checkpoint",
    dependencies=[Depends(requires_permission(RESOURCE_CHECKPOINTS, "create"))],
)
def create_checkpoint(payload: CheckpointCreate, session: Session = Depends(get_session)):
    name = validate_checkpoint(payload)

    now = to_iso(utc_now())
    checkpoint = Checkpoint(
        id=new_id(),
        name=name,
        latitude=payload.latitude,
        longitude=payload.longitude,
        created_at=now,
        updated_at=now,
    )

    try:
        session.add(checkpoint)
        session.commit()
        session.refresh(checkpoint)
    except Exception as e:
        session.rollback()
        raise handle_db_error(e, "Failed to create checkpoint")

    return checkpoint_to_api(checkpoint)


# ============================================================
# UPDATE CHECKPOINT
# ============================================================
@router.put(
    "/{checkpoint_id}",
    summary="Update checkpoint",
    dependencies=[Depends(requires_permission(RESOURCE_CHECKPOINTS, "update"))],
)
def update_checkpoint(
    checkpoint_id: str,
    payload: CheckpointUpdate,
    session: Session = Depends(get_session),
):
    name = validate_checkpoint(payload)

    checkpoint = session.get(Checkpoint, checkpoint_id)
    if checkpoint is None:
        raise HTTPException(404, "Checkpoint not found")

    checkpoint.name = name
    checkpoint.latitude = payload.latitude
    checkpoint.longitude = payload.longitude
    checkpoint.updated_at = to_iso(utc_now())

    try:
        session.add(checkpoint)
        session.commit()
        session.refresh(checkpoint)
    except Exception as e:
        session.rollback()
        raise handle_db_error(e, "Failed to update checkpoint")

    return checkpoint_to_api(checkpoint)


# ============================================================
# DELETE CHECKPOINT
# Check-in logs keep the dangling id; nothing cascades.
# ============================================================
@router.delete(
    "/{checkpoint_id}",
    summary="Delete checkpoint",
    status_code=204,
    dependencies=[Depends(requires_permission(RESOURCE_CHECKPOINTS, "delete"))],
)
def delete_checkpoint(checkpoint_id: str, session: Session = Depends(get_session)):
    checkpoint = session.get(Checkpoint, checkpoint_id)
    if checkpoint is None:
        raise HTTPException(404, "Checkpoint not found")

    try:
        session.delete(checkpoint)
        session.commit()
    except Exception as e:
        session.rollback()
        raise handle_db_error(e, "Failed to delete checkpoint")

    return Response(status_code=204)
