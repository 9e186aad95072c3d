from datetime import date
from typing import List, Literal, Optional

from pydantic import AliasChoices, EmailStr, Field, PositiveInt, model_validator

from sawari.schemas.base import CamelModel

Location = Literal["Birgunj", "Kathmandu"]
VehicleType = Literal["Sumo", "EV"]
SeatStatus = Literal["available", "booked", "locked"]

TIME_PATTERN = r"^(0[1-9]|1[0-2]):[0-5][0-9] (AM|PM)$"


class RideFields(CamelModel):
    origin: Location = Field(..., alias="from")
    destination: Location = Field(..., alias="to")
    departure_time: str = Field(..., pattern=TIME_PATTERN)
    arrival_time: str = Field(..., pattern=TIME_PATTERN)
    vehicle_type: VehicleType
    vehicle_number: str = Field(..., min_length=1, max_length=64)
    price: PositiveInt
    total_seats: PositiveInt = Field(..., le=60)
    owner_name: Optional[str] = None
    owner_email: Optional[EmailStr] = None

    @model_validator(mode="after")
    def distinct_cities(self):
        if self.origin == self.destination:
            raise ValueError("Origin and destination must be different.")
        return self


class RideIn(RideFields):
    date: date


class TemplateIn(RideFields):
    pass


class SeatOut(CamelModel):
    number: int = Field(..., validation_alias=AliasChoices("number", "seat_number"))
    status: SeatStatus


class RideOut(CamelModel):
    id: str
    origin: Location = Field(..., alias="from")
    destination: Location = Field(..., alias="to")
    date: date
    departure_time: str
    arrival_time: str
    vehicle_type: VehicleType
    vehicle_number: str
    total_seats: int
    price: int
    owner_name: Optional[str] = None
    owner_email: Optional[str] = None
    template_id: Optional[str] = None
    seats: List[SeatOut] = []


class TemplateOut(CamelModel):
    id: str
    origin: Location = Field(..., alias="from")
    destination: Location = Field(..., alias="to")
    departure_time: str
    arrival_time: str
    vehicle_type: VehicleType
    vehicle_number: str
    price: int
    total_seats: int
    owner_name: Optional[str] = None
    owner_email: Optional[str] = None


class GenerateRidesRequest(CamelModel):
    date: date


class GenerateRidesResponse(CamelModel):
    date: date
    created: List[str]
    skipped: List[str]
