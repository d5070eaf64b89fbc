# models/checkpoint.py

from typing import Optional
from pydantic import BaseModel
from sqlmodel import SQLModel, Field


class Checkpoint(SQLModel, table=True):
    __tablename__ = "checkpoints"

    id: str = Field(primary_key=True)
    name: str
    latitude: float
    longitude: float
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class CheckpointCreate(BaseModel):
    name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class CheckpointUpdate(CheckpointCreate):
    pass


def checkpoint_to_api(cp: Checkpoint) -> dict:
    return {
        "id": cp.id,
        "name": cp.name,
        "latitude": cp.latitude,
        "longitude": cp.longitude,
        "createdAt": cp.created_at,
        "updatedAt": cp.updated_at,
    }
