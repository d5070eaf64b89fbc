# routers/payments.py

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlmodel import Session, select

from database import get_session
from core.errors import handle_db_error
from core.logging_config import logger
from core.permission_helpers import requires_permission
from core.permissions import RESOURCE_BILLING
from core.utils import clean, new_id, to_float_or_none, to_iso, utc_now
from dependencies.auth import get_credential_subject
from models.payment import (
    PAYMENT_STATUSES,
    Payment,
    PaymentCreate,
    PaymentReview,
    payment_to_api,
)
from routers.billing import is_valid_date


router = APIRouter(
    prefix="/billing/payments",
    tags=["Billing"],
)


# ============================================================
# LIST PAYMENTS
# ============================================================
@router.get(
    "",
    summary="List submitted payments",
    description="""
    Newest payment date first. Optional filters: `houseId`, `status`, and a
    `start`/`end` date range (applied only when both are given).
    """,
    dependencies=[Depends(requires_permission(RESOURCE_BILLING, "read"))],
)
def list_payments(
    houseId: Optional[str] = None,
    status: Optional[str] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
    session: Session = Depends(get_session),
):
    query = select(Payment)
    if houseId:
        query = query.where(Payment.house_id == houseId)
    if status:
        query = query.where(Payment.status == status)
    if start and end:
        query = query.where(Payment.payment_date.between(start, end))

    try:
        rows = session.exec(
            query.order_by(Payment.payment_date.desc(), Payment.created_at.desc())
        ).all()
    except Exception as e:
        raise handle_db_error(e, "Failed to fetch payments")

    return [payment_to_api(r) for r in rows]


# ============================================================
# SUBMIT PAYMENT (resident)
# ============================================================
@router.post(
    "",
    summary="Submit a payment with its receipt",
    status_code=201,
)
def submit_payment(payload: PaymentCreate, session: Session = Depends(get_session)):
    house_id = clean(str(payload.house_id)) if payload.house_id is not None else None
    if not house_id:
        raise HTTPException(400, "houseId required")

    amount = to_float_or_none(payload.amount)
    if amount is None or amount <= 0:
        raise HTTPException(400, "invalid amount")

    receipt_key = payload.receipt_key if isinstance(payload.receipt_key, str) else None
    if not clean(receipt_key):
        raise HTTPException(400, "receiptKey required")

    now = utc_now()
    payment_date = clean(payload.payment_date) or now.strftime("%Y-%m-%d")
    if not is_valid_date(payment_date):
        raise HTTPException(400, "Invalid paymentDate")

    stamp = to_iso(now)
    payment = Payment(
        id=new_id(),
        house_id=house_id,
        amount=amount,
        receipt_key=receipt_key.strip(),
        payment_date=payment_date,
        status="pending",
        created_at=stamp,
        updated_at=stamp,
    )

    try:
        session.add(payment)
        session.commit()
        session.refresh(payment)
    except Exception as e:
        session.rollback()
        raise handle_db_error(e, "Failed to submit payment")

    logger.info(f"Payment {payment.id} submitted for house {house_id}: {amount}")
    return JSONResponse(status_code=201, content=payment_to_api(payment))


# ============================================================
# REVIEW PAYMENT
# ============================================================
@router.put(
    "/{payment_id}",
    summary="Set a payment's review status",
    dependencies=[Depends(requires_permission(RESOURCE_BILLING, "update"))],
)
def review_payment(
    payment_id: str,
    payload: PaymentReview,
    session: Session = Depends(get_session),
    reviewer: Optional[str] = Depends(get_credential_subject),
):
    if payload.status not in PAYMENT_STATUSES:
        raise HTTPException(400, "invalid_payload")

    payment = session.get(Payment, payment_id)
    if payment is None:
        raise HTTPException(404, "Payment not found")

    now = to_iso(utc_now())
    payment.status = payload.status
    payment.updated_at = now
    payment.reviewed_at = now

    try:
        session.add(payment)
        session.commit()
        session.refresh(payment)
    except Exception as e:
        session.rollback()
        raise handle_db_error(e, "Failed to update payment")

    logger.info(f"Payment {payment_id} marked {payload.status} by {reviewer or 'unknown'}")
    return payment_to_api(payment)
