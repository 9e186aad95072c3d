from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from sawari.auth.deps import get_current_user
from sawari.db.session import async_session
from sawari.models.models import User
from sawari.schemas.booking import BookingOut, ReserveSeatsFailure, ReserveSeatsRequest, ReserveSeatsSuccess
from sawari.services.reservation import InvalidReservation, PassengerInfo, ReservationOutcome, ReservationService
from sawari.services.transactions import SqlAlchemyTransactionManager

router = APIRouter(tags=["reservations"])

RESERVE_SEATS_PATH = "/reserve-seats"

FAILURE_STATUS = {
    ReservationOutcome.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ReservationOutcome.REJECTED: status.HTTP_409_CONFLICT,
    ReservationOutcome.CONFLICT: status.HTTP_409_CONFLICT,
    ReservationOutcome.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def get_reservation_service() -> ReservationService:
    return ReservationService(SqlAlchemyTransactionManager(async_session))


def _failure(status_code: int, body: ReserveSeatsFailure) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


@router.post(
    RESERVE_SEATS_PATH,
    status_code=status.HTTP_201_CREATED,
    response_model=ReserveSeatsSuccess,
    responses={code: {"model": ReserveSeatsFailure} for code in (404, 409, 422, 503)},
)
async def reserve_seats(
    req: ReserveSeatsRequest,
    current_user: User = Depends(get_current_user),
    service: ReservationService = Depends(get_reservation_service),
):
    """Book seats on a ride. Either every requested seat is booked or none is."""
    if req.user_id != current_user.id and current_user.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Bookings can only be made for your own account")

    try:
        result = await service.reserve_seats(
            req.ride_id,
            req.seats,
            PassengerInfo(name=req.passenger_name, phone=req.passenger_phone),
            req.user_id,
            payment_method=req.payment_method,
            transaction_id=req.transaction_id,
        )
    except InvalidReservation as exc:
        return _failure(status.HTTP_422_UNPROCESSABLE_ENTITY, ReserveSeatsFailure(reason=str(exc)))

    if result.success:
        return ReserveSeatsSuccess(booking=BookingOut.model_validate(result.booking))
    return _failure(
        FAILURE_STATUS[result.outcome],
        ReserveSeatsFailure(reason=result.reason, unavailable_seats=result.unavailable_seats, retryable=result.retryable),
    )
