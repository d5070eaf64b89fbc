# models/payment.py

from typing import Any, Optional
from pydantic import BaseModel, Field as PydanticField
from sqlmodel import SQLModel, Field


PAYMENT_STATUSES = ("pending", "confirmed", "rejected")


class Payment(SQLModel, table=True):
    """A resident's submitted payment, backed by a receipt image in the blob store."""
    __tablename__ = "payments"

    id: str = Field(primary_key=True)
    house_id: str = Field(index=True)
    amount: float
    receipt_key: str
    payment_date: str = Field(index=True)
    status: str = "pending"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    reviewed_at: Optional[str] = None


class PaymentCreate(BaseModel):
    house_id: Any = PydanticField(None, alias="houseId")
    amount: Any = None
    receipt_key: Any = PydanticField(None, alias="receiptKey")
    payment_date: Optional[str] = PydanticField(None, alias="paymentDate")

    model_config = {"populate_by_name": True}


class PaymentReview(BaseModel):
    status: Any = None


def payment_to_api(row: Payment) -> dict:
    return {
        "id": row.id,
        "houseId": row.house_id,
        "amount": row.amount,
        "receiptKey": row.receipt_key,
        "paymentDate": row.payment_date,
        "status": row.status,
        "createdAt": row.created_at,
        "updatedAt": row.updated_at,
        "reviewedAt": row.reviewed_at,
    }
