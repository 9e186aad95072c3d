"""Seat reservation: the only code path that changes a seat's status.

``ReservationService.reserve_seats`` turns available seats into booked ones
and records the booking in a single transaction. The release helpers at the
bottom are the administrative way back to ``available``.
"""
import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List, Optional
from uuid import uuid4

from sqlalchemy import Select, select as sa_select, update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession

from sawari.metrics import RESERVATION_ATTEMPTS, RESERVATION_LATENCY, SEATS_RELEASED
from sawari.models.models import RideSeat
from sawari.services.transactions import (
    BookingRecord,
    ConflictRetriesExhausted,
    ReservationContext,
    StoreUnavailable,
    TransactionManager,
)

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^\d{10}$")


class ReservationOutcome(str, Enum):
    SUCCESS = "success"
    REJECTED = "rejected"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAVAILABLE = "unavailable"


@dataclass
class PassengerInfo:
    name: str
    phone: str


@dataclass
class ReservationResult:
    outcome: ReservationOutcome
    booking: Optional[BookingRecord] = None
    reason: Optional[str] = None
    unavailable_seats: List[int] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.outcome is ReservationOutcome.SUCCESS

    @property
    def retryable(self) -> bool:
        """Infrastructure failures; business rejections are deterministic."""
        return self.outcome in (ReservationOutcome.CONFLICT, ReservationOutcome.UNAVAILABLE)


class InvalidReservation(ValueError):
    pass


class _Rejected(Exception):
    # raised inside the transaction function so the manager rolls back
    def __init__(self, result: ReservationResult):
        super().__init__(result.reason)
        self.result = result


def validate_request(ride_id: str, seat_numbers: Iterable[int], passenger: PassengerInfo, user_id: str) -> List[int]:
    if not ride_id:
        raise InvalidReservation("Ride id is required.")
    if not user_id:
        raise InvalidReservation("User must be logged in to book.")
    seats = list(seat_numbers)
    if not seats:
        raise InvalidReservation("Please select at least one seat.")
    if any(isinstance(n, bool) or not isinstance(n, int) or n < 1 for n in seats):
        raise InvalidReservation("Seat numbers must be positive integers.")
    if len(set(seats)) != len(seats):
        raise InvalidReservation("A seat may only be selected once.")
    if not passenger.name or not passenger.name.strip():
        raise InvalidReservation("Passenger name is required.")
    if not PHONE_PATTERN.match(passenger.phone or ""):
        raise InvalidReservation("Please enter a valid 10-digit phone number.")
    return sorted(seats)


def unavailable_reason(seats: List[int]) -> str:
    if len(seats) == 1:
        return f"Seat {seats[0]} is no longer available."
    return "Seats %s are no longer available." % ", ".join(str(s) for s in seats)


def new_ticket_number() -> str:
    return "TKT-" + uuid4().hex[:10].upper()


class ReservationService:
    def __init__(self, transactions: TransactionManager):
        self.transactions = transactions

    async def reserve_seats(
        self,
        ride_id: str,
        seat_numbers: Iterable[int],
        passenger: PassengerInfo,
        user_id: str,
        payment_method: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ) -> ReservationResult:
        seats = validate_request(ride_id, seat_numbers, passenger, user_id)

        async def _reserve(ctx: ReservationContext) -> BookingRecord:
            ride = await ctx.get_ride(ride_id)
            if ride is None:
                raise _Rejected(ReservationResult(ReservationOutcome.NOT_FOUND, reason="Ride not found."))
            taken = [n for n in seats if ride.seat(n) is None or ride.seat(n).status != "available"]
            if taken:
                raise _Rejected(
                    ReservationResult(ReservationOutcome.REJECTED, reason=unavailable_reason(taken), unavailable_seats=taken)
                )
            await ctx.claim_seats(ride_id, seats)
            record = BookingRecord(
                id=uuid4().hex,
                ticket_number=new_ticket_number(),
                ride_id=ride_id,
                user_id=user_id,
                seats=seats,
                passenger_name=passenger.name.strip(),
                passenger_phone=passenger.phone,
                status="confirmed",
                created_at=datetime.now(timezone.utc),
                payment_method=payment_method,
                transaction_id=transaction_id,
            )
            return await ctx.add_booking(record)

        start = time.perf_counter()
        try:
            booking = await self.transactions.run_transaction(_reserve)
        except _Rejected as rejected:
            result = rejected.result
        except ConflictRetriesExhausted:
            logger.warning("reservation contention on ride %s", ride_id)
            result = ReservationResult(
                ReservationOutcome.CONFLICT,
                reason="These seats are in high demand right now. Please try again.",
            )
        except StoreUnavailable:
            logger.exception("reservation store unavailable for ride %s", ride_id)
            result = ReservationResult(
                ReservationOutcome.UNAVAILABLE,
                reason="Booking service is temporarily unavailable. Please try again shortly.",
            )
        else:
            result = ReservationResult(ReservationOutcome.SUCCESS, booking=booking)
            logger.info("seats reserved", extra={"ride_id": ride_id, "seats": seats, "booking_id": booking.id})

        RESERVATION_LATENCY.observe(time.perf_counter() - start)
        RESERVATION_ATTEMPTS.labels(result=result.outcome.value).inc()
        return result


def seat_lock_query(ride_id: Optional[str] = None) -> Select:
    """Row locks on seats in the order the reservation transaction takes them."""
    stmt = sa_select(RideSeat)
    if ride_id is not None:
        stmt = stmt.where(RideSeat.ride_id == ride_id)
    return stmt.order_by(RideSeat.ride_id, RideSeat.seat_number).with_for_update()


async def lock_seats(db: AsyncSession, ride_id: Optional[str] = None) -> List[RideSeat]:
    """Lock seat rows (one ride or all) and refresh any already loaded. Caller owns the transaction."""
    res = await db.execute(seat_lock_query(ride_id).execution_options(populate_existing=True))
    return list(res.scalars().all())


async def release_seats(db: AsyncSession, ride_id: str, seat_numbers: List[int]) -> int:
    """Return booked seats to available. Caller owns the transaction."""
    if not seat_numbers:
        return 0
    upd = (
        sa_update(RideSeat)
        .where(RideSeat.ride_id == ride_id)
        .where(RideSeat.seat_number.in_(seat_numbers))
        .values(status="available")
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(upd)
    SEATS_RELEASED.inc(result.rowcount)
    return result.rowcount


async def reset_all_seats(db: AsyncSession) -> int:
    upd = (
        sa_update(RideSeat)
        .where(RideSeat.status != "available")
        .values(status="available")
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(upd)
    SEATS_RELEASED.inc(result.rowcount)
    return result.rowcount
