"""Transaction managers used by the seat reservation service.

A transaction function receives a ``ReservationContext`` and may read a ride,
claim seats on it and add a booking. The manager commits everything the
function did or nothing. When a concurrent writer gets there first the
context raises ``TransactionConflict`` and the manager re-runs the whole
function, up to ``max_attempts`` times.
"""
import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, TypeVar

from sqlalchemy import select as sa_select, update as sa_update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sawari.config import settings
from sawari.metrics import TRANSACTION_RETRIES
from sawari.models.models import Booking, Ride, RideSeat

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TransactionConflict(Exception):
    """Data read by the transaction was changed by another writer before commit."""


class ConflictRetriesExhausted(Exception):
    """The transaction kept conflicting and the manager gave up."""


class StoreUnavailable(Exception):
    """The backing store could not be reached or aborted for a non-business reason."""


@dataclass
class SeatView:
    number: int
    status: str


@dataclass
class RideView:
    id: str
    total_seats: int
    seats: List[SeatView] = field(default_factory=list)

    def seat(self, number: int) -> Optional[SeatView]:
        for s in self.seats:
            if s.number == number:
                return s
        return None


@dataclass
class BookingRecord:
    id: str
    ticket_number: str
    ride_id: str
    user_id: str
    seats: List[int]
    passenger_name: str
    passenger_phone: str
    status: str
    created_at: datetime
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None
    payment_screenshot_url: Optional[str] = None

    @classmethod
    def from_model(cls, b: Booking) -> "BookingRecord":
        return cls(
            id=b.id,
            ticket_number=b.ticket_number,
            ride_id=b.ride_id,
            user_id=b.user_id,
            seats=list(b.seats),
            passenger_name=b.passenger_name,
            passenger_phone=b.passenger_phone,
            status=b.status,
            created_at=b.created_at,
            payment_method=b.payment_method,
            transaction_id=b.transaction_id,
            payment_screenshot_url=b.payment_screenshot_url,
        )


class ReservationContext(ABC):
    @abstractmethod
    async def get_ride(self, ride_id: str) -> Optional[RideView]:
        ...

    @abstractmethod
    async def claim_seats(self, ride_id: str, seat_numbers: List[int]) -> None:
        """Flip the seats to booked; raise TransactionConflict if any is no longer available."""

    @abstractmethod
    async def add_booking(self, record: BookingRecord) -> BookingRecord:
        ...


class TransactionManager(ABC):
    backend = "base"

    def __init__(self, max_attempts: Optional[int] = None):
        self.max_attempts = max_attempts or settings.RESERVATION_MAX_ATTEMPTS
        self.retries = 0

    async def run_transaction(self, fn: Callable[[ReservationContext], Awaitable[T]]) -> T:
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await self._run_once(fn)
            except TransactionConflict as exc:
                self.retries += 1
                TRANSACTION_RETRIES.labels(backend=self.backend).inc()
                logger.info("transaction conflict, re-running", extra={"attempt": attempt, "detail": str(exc)})
        raise ConflictRetriesExhausted(f"gave up after {self.max_attempts} attempts")

    @abstractmethod
    async def _run_once(self, fn: Callable[[ReservationContext], Awaitable[T]]) -> T:
        ...


class SqlReservationContext(ReservationContext):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_ride(self, ride_id: str) -> Optional[RideView]:
        res = await self.session.execute(sa_select(Ride.id, Ride.total_seats).where(Ride.id == ride_id))
        row = res.first()
        if row is None:
            return None
        # lock the ride's seat rows in a stable order so concurrent bookings queue up instead of deadlocking
        stmt = (
            sa_select(RideSeat.seat_number, RideSeat.status)
            .where(RideSeat.ride_id == ride_id)
            .order_by(RideSeat.seat_number)
            .with_for_update()
        )
        seats = (await self.session.execute(stmt)).all()
        return RideView(id=row.id, total_seats=row.total_seats, seats=[SeatView(n, s) for n, s in seats])

    async def claim_seats(self, ride_id: str, seat_numbers: List[int]) -> None:
        upd = (
            sa_update(RideSeat)
            .where(RideSeat.ride_id == ride_id)
            .where(RideSeat.seat_number.in_(seat_numbers))
            .where(RideSeat.status == "available")
            .values(status="booked")
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(upd)
        if result.rowcount != len(seat_numbers):
            raise TransactionConflict(f"ride {ride_id}: claimed {result.rowcount} of {len(seat_numbers)} seats")

    async def add_booking(self, record: BookingRecord) -> BookingRecord:
        booking = Booking(
            id=record.id,
            ticket_number=record.ticket_number,
            ride_id=record.ride_id,
            user_id=record.user_id,
            seats=list(record.seats),
            passenger_name=record.passenger_name,
            passenger_phone=record.passenger_phone,
            status=record.status,
            payment_method=record.payment_method,
            transaction_id=record.transaction_id,
            created_at=record.created_at,
        )
        self.session.add(booking)
        await self.session.flush()
        return record


class SqlAlchemyTransactionManager(TransactionManager):
    backend = "sqlalchemy"

    def __init__(self, session_factory: async_sessionmaker, max_attempts: Optional[int] = None):
        super().__init__(max_attempts)
        self.session_factory = session_factory

    async def _run_once(self, fn):
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    return await fn(SqlReservationContext(session))
        except IntegrityError as exc:
            # unique ticket number or seat constraint hit by a concurrent insert
            raise TransactionConflict(str(exc.orig)) from exc
        except (DBAPIError, OSError) as exc:
            raise StoreUnavailable(str(exc)) from exc


class InMemoryReservationContext(ReservationContext):
    def __init__(self, manager: "InMemoryTransactionManager"):
        self.manager = manager
        self.read_versions: Dict[str, int] = {}
        self.snapshots: Dict[str, RideView] = {}
        self.new_bookings: List[BookingRecord] = []

    async def get_ride(self, ride_id: str) -> Optional[RideView]:
        ride = self.manager.rides.get(ride_id)
        self.read_versions[ride_id] = self.manager.versions.get(ride_id, 0)
        snapshot = copy.deepcopy(ride) if ride is not None else None
        if snapshot is not None:
            self.snapshots[ride_id] = snapshot
        # hand control back to the loop as a real store round trip would
        await asyncio.sleep(0)
        return copy.deepcopy(snapshot)

    async def claim_seats(self, ride_id: str, seat_numbers: List[int]) -> None:
        snapshot = self.snapshots.get(ride_id)
        if snapshot is None:
            raise TransactionConflict(f"ride {ride_id} was not read in this transaction")
        for number in seat_numbers:
            seat = snapshot.seat(number)
            if seat is None or seat.status != "available":
                raise TransactionConflict(f"ride {ride_id}: seat {number} not available")
            seat.status = "booked"

    async def add_booking(self, record: BookingRecord) -> BookingRecord:
        self.new_bookings.append(record)
        return record


class InMemoryTransactionManager(TransactionManager):
    """Optimistic, version-checked store kept in process memory.

    Used by the test-suite and for running the service without a database.
    """

    backend = "memory"

    def __init__(self, max_attempts: Optional[int] = None):
        super().__init__(max_attempts)
        self.rides: Dict[str, RideView] = {}
        self.versions: Dict[str, int] = {}
        self.bookings: List[BookingRecord] = []
        self._commit_lock = asyncio.Lock()

    def add_ride(self, ride_id: str, total_seats: int, booked: Iterable[int] = ()) -> RideView:
        booked = set(booked)
        ride = RideView(
            id=ride_id,
            total_seats=total_seats,
            seats=[SeatView(n, "booked" if n in booked else "available") for n in range(1, total_seats + 1)],
        )
        self.rides[ride_id] = ride
        self.versions[ride_id] = self.versions.get(ride_id, 0) + 1
        return ride

    async def _run_once(self, fn):
        ctx = InMemoryReservationContext(self)
        result = await fn(ctx)
        async with self._commit_lock:
            for ride_id, version in ctx.read_versions.items():
                if self.versions.get(ride_id, 0) != version:
                    raise TransactionConflict(f"ride {ride_id} changed since it was read")
            for ride_id, snapshot in ctx.snapshots.items():
                if snapshot.seats != self.rides[ride_id].seats:
                    self.rides[ride_id] = snapshot
                    self.versions[ride_id] += 1
            self.bookings.extend(ctx.new_bookings)
        return result
