# models/check_in.py

from typing import Any, Optional
from pydantic import BaseModel, Field as PydanticField
from sqlmodel import SQLModel, Field


# -------------------------------------------------
# Tables
# -------------------------------------------------
class CheckInLog(SQLModel, table=True):
    """Append-only. Rows are written by CheckInRecorder and never updated."""
    __tablename__ = "check_in_logs"

    id: str = Field(primary_key=True)
    user_id: str = Field(index=True)
    checkpoint_id: str = Field(index=True)
    latitude: float
    longitude: float
    timestamp: str = Field(index=True)


class CheckInSettings(SQLModel, table=True):
    __tablename__ = "check_in_settings"

    id: str = Field(primary_key=True)
    radius: Optional[float] = None
    time_window: Optional[float] = None
    updated_at: Optional[str] = None


class CheckInCursor(SQLModel, table=True):
    """Last accepted check-in per (user, checkpoint); atomic guard only."""
    __tablename__ = "check_in_cursors"

    user_id: str = Field(primary_key=True)
    checkpoint_id: str = Field(primary_key=True)
    last_timestamp: str


# -------------------------------------------------
# Payloads
# -------------------------------------------------
class CheckInRequest(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    user_id: Optional[str] = PydanticField(None, alias="userId")

    model_config = {"populate_by_name": True}


class CheckInSettingsUpdate(BaseModel):
    # Loose on purpose; validated by the route so the error reads "Invalid input"
    radius: Any = None
    time_window: Any = PydanticField(None, alias="timeWindow")

    model_config = {"populate_by_name": True}
