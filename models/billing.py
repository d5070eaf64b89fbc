# models/billing.py

from typing import Any, Optional
from pydantic import BaseModel, Field as PydanticField
from sqlmodel import SQLModel, Field


BILLING_FREQUENCIES = ("monthly", "semi-annual", "annual")


class BillingSettings(SQLModel, table=True):
    """Each save appends a row; the newest row is the current setting."""
    __tablename__ = "billing_settings"

    id: str = Field(primary_key=True)
    rate: float
    frequency: str = "monthly"
    qr_key: Optional[str] = None
    bg_key: Optional[str] = None
    start_date: Optional[str] = None
    updated_at: Optional[str] = Field(default=None, index=True)


class BillingSettingsHistory(SQLModel, table=True):
    __tablename__ = "billing_settings_history"

    id: str = Field(primary_key=True)
    prev_rate: Optional[float] = None
    prev_frequency: Optional[str] = None
    prev_qr_key: Optional[str] = None
    prev_bg_key: Optional[str] = None
    prev_start_date: Optional[str] = None
    new_rate: Optional[float] = None
    new_frequency: Optional[str] = None
    new_qr_key: Optional[str] = None
    new_bg_key: Optional[str] = None
    new_start_date: Optional[str] = None
    changed_at: Optional[str] = Field(default=None, index=True)
    changed_by: Optional[str] = None


class BillingSettingsUpdate(BaseModel):
    rate: Any = None
    frequency: Optional[str] = None
    qr_key: Any = PydanticField(None, alias="qrKey")
    bg_key: Any = PydanticField(None, alias="bgKey")
    start_date: Optional[str] = PydanticField(None, alias="startDate")

    model_config = {"populate_by_name": True}


def billing_settings_to_api(row: BillingSettings) -> dict:
    return {
        "id": row.id,
        "rate": row.rate,
        "frequency": row.frequency or "monthly",
        "qrKey": row.qr_key,
        "bgKey": row.bg_key,
        "startDate": row.start_date or "",
        "updatedAt": row.updated_at or "",
    }


def billing_history_to_api(row: BillingSettingsHistory) -> dict:
    return {
        "id": row.id,
        "prevRate": row.prev_rate,
        "prevFrequency": row.prev_frequency,
        "prevQrKey": row.prev_qr_key,
        "prevBgKey": row.prev_bg_key,
        "prevStartDate": row.prev_start_date,
        "newRate": row.new_rate,
        "newFrequency": row.new_frequency,
        "newQrKey": row.new_qr_key,
        "newBgKey": row.new_bg_key,
        "newStartDate": row.new_start_date,
        "changedAt": row.changed_at,
        "changedBy": row.changed_by,
    }
