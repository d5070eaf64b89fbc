# routers/billing.py

import re
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlmodel import Session, select

from database import get_session
from core.errors import handle_db_error
from core.logging_config import logger
from core.permission_helpers import requires_permission
from core.permissions import RESOURCE_BILLING
from core.utils import new_id, to_float_or_none, to_iso, utc_now
from dependencies.auth import get_credential_subject
from models.billing import (
    BILLING_FREQUENCIES,
    BillingSettings,
    BillingSettingsHistory,
    BillingSettingsUpdate,
    billing_history_to_api,
    billing_settings_to_api,
)


router = APIRouter(
    prefix="/billing",
    tags=["Billing"],
)


DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_valid_date(value: str) -> bool:
    if not value or not DATE_PATTERN.match(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def latest_settings(session: Session) -> Optional[BillingSettings]:
    return session.exec(
        select(BillingSettings).order_by(BillingSettings.updated_at.desc()).limit(1)
    ).first()


# ============================================================
# CURRENT SETTINGS
# ============================================================
@router.get(
    "/settings",
    summary="Current billing settings",
    dependencies=[Depends(requires_permission(RESOURCE_BILLING, "read"))],
)
def get_billing_settings(session: Session = Depends(get_session)):
    try:
        row = latest_settings(session)
    except Exception as e:
        raise handle_db_error(e, "Failed to fetch billing settings")

    if row is None:
        return Response(status_code=204)
    return billing_settings_to_api(row)


# ============================================================
# SAVE SETTINGS (append-only, with history)
# ============================================================
@router.post(
    "/settings",
    summary="Save billing settings",
    description="""
    Appends a new settings row (the newest row is current) and a history
    row holding the previous and new values. `changedBy` is taken from the
    bearer token subject when present.
    """,
    dependencies=[Depends(requires_permission(RESOURCE_BILLING, "update"))],
)
def save_billing_settings(
    payload: BillingSettingsUpdate,
    session: Session = Depends(get_session),
    changed_by: Optional[str] = Depends(get_credential_subject),
):
    rate = to_float_or_none(payload.rate)
    if rate is None or rate <= 0:
        raise HTTPException(400, "Invalid rate")

    frequency = payload.frequency or "monthly"
    if frequency not in BILLING_FREQUENCIES:
        raise HTTPException(400, "Invalid frequency")

    start_date = payload.start_date or ""
    if not is_valid_date(start_date):
        raise HTTPException(400, "Invalid startDate")

    # Non-string keys are treated as "no image"
    qr_key = payload.qr_key if isinstance(payload.qr_key, str) else None
    bg_key = payload.bg_key if isinstance(payload.bg_key, str) else None

    now = to_iso(utc_now())

    try:
        prev = latest_settings(session)

        row = BillingSettings(
            id=new_id(),
            rate=rate,
            frequency=frequency,
            qr_key=qr_key,
            bg_key=bg_key,
            start_date=start_date,
            updated_at=now,
        )
        history = BillingSettingsHistory(
            id=new_id(),
            prev_rate=prev.rate if prev else None,
            prev_frequency=prev.frequency if prev else None,
            prev_qr_key=prev.qr_key if prev else None,
            prev_bg_key=prev.bg_key if prev else None,
            prev_start_date=prev.start_date if prev else None,
            new_rate=rate,
            new_frequency=frequency,
            new_qr_key=qr_key,
            new_bg_key=bg_key,
            new_start_date=start_date,
            changed_at=now,
            changed_by=changed_by,
        )

        session.add(row)
        session.add(history)
        session.commit()
        session.refresh(row)
    except Exception as e:
        session.rollback()
        raise handle_db_error(e, "Failed to update billing settings")

    logger.info(f"Billing settings updated by {changed_by or 'unknown'}: {rate} {frequency}")
    return billing_settings_to_api(row)


# ============================================================
# HISTORY
# ============================================================
@router.get(
    "/settings-history",
    summary="Billing settings change history",
    dependencies=[Depends(requires_permission(RESOURCE_BILLING, "read"))],
)
def get_billing_history(session: Session = Depends(get_session)):
    try:
        rows = session.exec(
            select(BillingSettingsHistory).order_by(BillingSettingsHistory.changed_at.desc())
        ).all()
    except Exception as e:
        raise handle_db_error(e, "Failed to fetch history")

    return [billing_history_to_api(r) for r in rows]
