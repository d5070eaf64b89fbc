# models/homestay.py

from typing import List, Optional, Union
from pydantic import BaseModel, Field as PydanticField
from sqlmodel import SQLModel, Field

from core.utils import parse_json_list


class HomestayCheckIn(SQLModel, table=True):
    __tablename__ = "homestay_checkins"

    id: str = Field(primary_key=True)
    homestay_id: str = Field(index=True)
    person_in_charge: str
    guests: int
    plates_json: str = "[]"
    arrival: Optional[str] = None
    departure: Optional[str] = None
    notes: Optional[str] = None
    submitted_at: str = Field(index=True)


class HomestayCheckInCreate(BaseModel):
    """Guest registration form, camelCase on the wire."""
    homestay_id: Optional[Union[str, int]] = PydanticField(None, alias="homestayId")
    person_in_charge: Optional[str] = PydanticField(None, alias="personInCharge")
    number_of_guests: Optional[int] = PydanticField(None, alias="numberOfGuests")
    number_plates: Optional[Union[List[Optional[str]], str]] = PydanticField(None, alias="numberPlates")
    date_of_arrival: Optional[str] = PydanticField(None, alias="dateOfArrival")
    date_of_departure: Optional[str] = PydanticField(None, alias="dateOfDeparture")
    additional_notes: Optional[str] = PydanticField(None, alias="additionalNotes")

    model_config = {"populate_by_name": True}


class HomestayCheckInUpdate(HomestayCheckInCreate):
    pass


def homestay_to_api(row: HomestayCheckIn) -> dict:
    return {
        "id": row.id,
        "homestayId": row.homestay_id,
        "personInCharge": row.person_in_charge,
        "numberOfGuests": row.guests,
        "numberPlates": parse_json_list(row.plates_json),
        "dateOfArrival": row.arrival,
        "dateOfDeparture": row.departure,
        "additionalNotes": row.notes,
        "submittedAt": row.submitted_at,
    }
