# models/resident.py

from typing import List, Optional
from pydantic import BaseModel, Field as PydanticField
from sqlmodel import SQLModel, Field

from core.utils import parse_json_list


HOUSE_TYPES = ("own", "homestay")


class Resident(SQLModel, table=True):
    __tablename__ = "residents"

    id: str = Field(primary_key=True)
    house_no: str = Field(unique=True, index=True)
    house_type: str = "own"
    owners_json: str = "[]"
    vehicles_json: str = "[]"


class Owner(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    user_id: Optional[str] = PydanticField(None, alias="userId")

    model_config = {"populate_by_name": True}


class Vehicle(BaseModel):
    brand: Optional[str] = None
    model: Optional[str] = None
    plate: Optional[str] = None


class ResidentPayload(BaseModel):
    house_no: Optional[str] = PydanticField(None, alias="houseNo")
    house_type: Optional[str] = PydanticField(None, alias="houseType")
    owners: List[Owner] = []
    vehicles: List[Vehicle] = []

    model_config = {"populate_by_name": True}


def resident_to_api(row: Resident) -> dict:
    return {
        "id": row.id,
        "houseNo": row.house_no,
        "houseType": row.house_type or "own",
        "owners": parse_json_list(row.owners_json),
        "vehicles": parse_json_list(row.vehicles_json),
    }
