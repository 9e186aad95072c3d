import logging
from typing import List, Optional

from fastapi import Request, UploadFile
from sqlalchemy import delete as sa_delete, select as sa_select
from sqlalchemy.ext.asyncio import AsyncSession

from sawari.models.models import Booking, User
from sawari.services.audit import record_admin_action
from sawari.services.errors import ConflictError, NotFoundError
from sawari.services.reservation import lock_seats, release_seats, reset_all_seats
from sawari.services.storage import MB, FileStorage, read_image

logger = logging.getLogger(__name__)

SCREENSHOT_MAX_BYTES = 4 * MB


async def list_bookings(db: AsyncSession, ride_id: Optional[str] = None, status: Optional[str] = None) -> List[Booking]:
    stmt = sa_select(Booking).order_by(Booking.created_at.desc())
    if ride_id:
        stmt = stmt.where(Booking.ride_id == ride_id)
    if status:
        stmt = stmt.where(Booking.status == status)
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def list_bookings_by_user(db: AsyncSession, user_id: str) -> List[Booking]:
    stmt = sa_select(Booking).where(Booking.user_id == user_id).order_by(Booking.created_at.desc())
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def get_booking(db: AsyncSession, booking_id: str) -> Booking:
    booking = await db.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found.")
    return booking


async def attach_payment_screenshot(db: AsyncSession, storage: FileStorage, booking: Booking, upload: UploadFile) -> Booking:
    data, ext = await read_image(upload, SCREENSHOT_MAX_BYTES)
    url = await storage.save(f"payment_screenshots/{booking.id}.{ext}", data, upload.content_type)
    booking.payment_screenshot_url = url
    await db.commit()
    return booking


async def update_booking_status(
    db: AsyncSession, booking_id: str, new_status: str, actor: Optional[User] = None, request: Optional[Request] = None
) -> Booking:
    """Admin confirmation or cancellation. Cancelling gives the seats back to the ride."""
    res = await db.execute(sa_select(Booking).where(Booking.id == booking_id).with_for_update())
    booking = res.scalars().first()
    if booking is None:
        raise NotFoundError("Booking not found.")
    if booking.status == new_status:
        return booking
    if booking.status == "cancelled":
        raise ConflictError("A cancelled booking cannot be reinstated; make a new reservation instead.")

    previous = booking.status
    if new_status == "cancelled":
        await release_seats(db, booking.ride_id, list(booking.seats))
    booking.status = new_status
    await record_admin_action(
        db, actor, "update_booking_status", "booking", booking.id, {"from": previous, "to": new_status}, request
    )
    await db.commit()
    return booking


async def clear_all_bookings(db: AsyncSession, actor: Optional[User] = None, request: Optional[Request] = None) -> dict:
    # hold every seat row first so no reservation can commit between the delete and the reset
    await lock_seats(db)
    result = await db.execute(sa_delete(Booking))
    seats = await reset_all_seats(db)
    counts = {"bookings": result.rowcount, "seats": seats}
    await record_admin_action(db, actor, "clear_all_bookings", "booking", None, counts, request)
    await db.commit()
    logger.warning("all bookings cleared", extra=counts)
    return counts
