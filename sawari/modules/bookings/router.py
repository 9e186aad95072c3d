from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from sawari.auth.deps import get_current_user
from sawari.db.session import get_session
from sawari.models.models import Booking, Ride, User
from sawari.schemas.booking import BookingOut, TicketOut
from sawari.schemas.ride import RideOut
from sawari.services import bookings as booking_service
from sawari.services.storage import FileStorage, get_storage

router = APIRouter(tags=["bookings"])


def _ensure_owner(booking: Booking, user: User) -> None:
    if booking.user_id != user.id and user.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your booking")


@router.get("/mine", response_model=List[BookingOut])
async def my_bookings(db: AsyncSession = Depends(get_session), current_user: User = Depends(get_current_user)):
    return await booking_service.list_bookings_by_user(db, current_user.id)


@router.get("/{booking_id}", response_model=TicketOut)
async def ticket(booking_id: str, db: AsyncSession = Depends(get_session), current_user: User = Depends(get_current_user)):
    booking = await booking_service.get_booking(db, booking_id)
    _ensure_owner(booking, current_user)
    ride = await db.get(Ride, booking.ride_id)
    return TicketOut(booking=BookingOut.model_validate(booking), ride=RideOut.model_validate(ride) if ride else None)


@router.post("/{booking_id}/payment-screenshot", response_model=BookingOut)
async def upload_payment_screenshot(
    booking_id: str,
    screenshot: UploadFile = File(...),
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    storage: FileStorage = Depends(get_storage),
):
    booking = await booking_service.get_booking(db, booking_id)
    _ensure_owner(booking, current_user)
    return await booking_service.attach_payment_screenshot(db, storage, booking, screenshot)
