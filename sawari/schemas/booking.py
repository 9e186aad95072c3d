from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, PositiveInt, field_validator

from sawari.schemas.base import CamelModel
from sawari.schemas.ride import RideOut

PaymentMethod = Literal["esewa", "khalti", "imepay"]
BookingStatus = Literal["confirmed", "pending-payment", "cancelled"]


class ReserveSeatsRequest(CamelModel):
    ride_id: str = Field(..., min_length=1)
    seats: List[PositiveInt] = Field(..., min_length=1, description="Seat numbers to book")
    passenger_name: str = Field(..., min_length=2, max_length=255)
    passenger_phone: str = Field(..., pattern=r"^\d{10}$")
    user_id: str = Field(..., min_length=1)
    payment_method: Optional[PaymentMethod] = None
    transaction_id: Optional[str] = Field(None, max_length=128)

    @field_validator("seats")
    @classmethod
    def seats_unique(cls, v: List[int]) -> List[int]:
        if len(set(v)) != len(v):
            raise ValueError("A seat may only be selected once.")
        return v

    @field_validator("passenger_name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if len(v.strip()) < 2:
            raise ValueError("Passenger name must be at least 2 characters.")
        return v.strip()


class BookingOut(CamelModel):
    id: str
    ticket_number: str
    ride_id: str
    user_id: str
    seats: List[int]
    passenger_name: str
    passenger_phone: str
    status: BookingStatus
    created_at: datetime
    payment_method: Optional[PaymentMethod] = None
    transaction_id: Optional[str] = None
    payment_screenshot_url: Optional[str] = None


class ReserveSeatsSuccess(CamelModel):
    success: Literal[True] = True
    booking: BookingOut


class ReserveSeatsFailure(CamelModel):
    success: Literal[False] = False
    reason: str
    unavailable_seats: List[int] = []
    retryable: bool = False


class BookingStatusUpdate(CamelModel):
    status: Literal["confirmed", "cancelled"]


class TicketOut(CamelModel):
    booking: BookingOut
    # None once the ride has been deleted
    ride: Optional[RideOut] = None
