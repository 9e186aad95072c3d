from datetime import date
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from sawari.auth.deps import require_admin
from sawari.db.session import get_session
from sawari.models.models import User
from sawari.schemas.booking import BookingOut, BookingStatus, BookingStatusUpdate
from sawari.schemas.ride import GenerateRidesRequest, GenerateRidesResponse, RideIn, RideOut, TemplateIn, TemplateOut
from sawari.schemas.site import ActionResult, FooterSettings, PaymentQrCodes
from sawari.schemas.user import RoleUpdate, UserOut
from sawari.services import bookings as booking_service
from sawari.services import rides as ride_service
from sawari.services import site_settings
from sawari.services import users as user_service
from sawari.services import vehicle_templates as template_service
from sawari.services.storage import FileStorage, get_storage

router = APIRouter(tags=["admin"], dependencies=[Depends(require_admin)])


# Bookings
@router.get("/bookings", response_model=List[BookingOut])
async def view_bookings(
    ride_id: Optional[str] = Query(None, alias="rideId"),
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_session),
):
    return await booking_service.list_bookings(db, ride_id=ride_id, status=booking_status)


@router.patch("/bookings/{booking_id}/status", response_model=BookingOut)
async def set_booking_status(
    booking_id: str,
    payload: BookingStatusUpdate,
    request: Request,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    return await booking_service.update_booking_status(db, booking_id, payload.status, current_user, request)


@router.post("/bookings/clear", response_model=ActionResult)
async def clear_bookings(request: Request, db: AsyncSession = Depends(get_session), current_user: User = Depends(require_admin)):
    counts = await booking_service.clear_all_bookings(db, current_user, request)
    return ActionResult(message="All bookings have been cleared and seats reset.", detail=counts)


# Schedule
@router.get("/rides", response_model=List[RideOut])
async def schedule(ride_date: date = Query(..., alias="date"), db: AsyncSession = Depends(get_session)):
    return await ride_service.list_schedule(db, ride_date)


@router.post("/rides", response_model=RideOut, status_code=status.HTTP_201_CREATED)
async def create_ride(
    payload: RideIn, request: Request, db: AsyncSession = Depends(get_session), current_user: User = Depends(require_admin)
):
    return await ride_service.create_ride(db, payload, current_user, request)


@router.post("/rides/generate", response_model=GenerateRidesResponse)
async def generate_rides(
    payload: GenerateRidesRequest,
    request: Request,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    created, skipped = await template_service.generate_rides(db, payload.date, current_user, request)
    return GenerateRidesResponse(date=payload.date, created=created, skipped=skipped)


@router.put("/rides/{ride_id}", response_model=RideOut)
async def update_ride(
    ride_id: str,
    payload: RideIn,
    request: Request,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    return await ride_service.update_ride(db, ride_id, payload, current_user, request)


@router.delete("/rides/{ride_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ride(ride_id: str, request: Request, db: AsyncSession = Depends(get_session), current_user: User = Depends(require_admin)):
    await ride_service.delete_ride(db, ride_id, current_user, request)


# Vehicle templates
@router.get("/templates", response_model=List[TemplateOut])
async def list_templates(db: AsyncSession = Depends(get_session)):
    return await template_service.list_templates(db)


@router.post("/templates", response_model=TemplateOut, status_code=status.HTTP_201_CREATED)
async def create_template(
    payload: TemplateIn, request: Request, db: AsyncSession = Depends(get_session), current_user: User = Depends(require_admin)
):
    return await template_service.save_template(db, payload, actor=current_user, request=request)


@router.put("/templates/{template_id}", response_model=TemplateOut)
async def update_template(
    template_id: str,
    payload: TemplateIn,
    request: Request,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    return await template_service.save_template(db, payload, template_id, current_user, request)


@router.delete("/templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: str, request: Request, db: AsyncSession = Depends(get_session), current_user: User = Depends(require_admin)
):
    await template_service.delete_template(db, template_id, current_user, request)


# Users
@router.get("/users", response_model=List[UserOut])
async def list_users(db: AsyncSession = Depends(get_session)):
    return await user_service.list_users(db)


@router.patch("/users/{user_id}/role", response_model=UserOut)
async def set_user_role(
    user_id: str,
    payload: RoleUpdate,
    request: Request,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    return await user_service.set_role(db, user_id, payload.role, current_user, request)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: str, request: Request, db: AsyncSession = Depends(get_session), current_user: User = Depends(require_admin)):
    await user_service.delete_user(db, user_id, current_user, request)


# Site content
@router.put("/settings/footer", response_model=FooterSettings)
async def update_footer(
    payload: FooterSettings, request: Request, db: AsyncSession = Depends(get_session), current_user: User = Depends(require_admin)
):
    return await site_settings.update_footer_settings(db, payload, current_user, request)


@router.post("/settings/payment-qr/{method}", response_model=PaymentQrCodes)
async def upload_payment_qr(
    method: Literal["esewa", "khalti", "imepay"],
    request: Request,
    qr_code: UploadFile = File(..., alias="qrCode"),
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
    storage: FileStorage = Depends(get_storage),
):
    return await site_settings.upload_payment_qr(db, storage, method, qr_code, current_user, request)
