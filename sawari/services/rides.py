import logging
from datetime import date, datetime, timedelta
from typing import List, Optional
from zoneinfo import ZoneInfo

from fastapi import Request
from sqlalchemy import select as sa_select
from sqlalchemy.ext.asyncio import AsyncSession

from sawari.config import settings
from sawari.models.models import Ride, RideSeat, User, new_id
from sawari.schemas.ride import RideIn
from sawari.services.audit import record_admin_action
from sawari.services.errors import ConflictError, NotFoundError
from sawari.services.reservation import lock_seats

logger = logging.getLogger(__name__)

TIME_FORMAT = "%I:%M %p"
RIDE_FIELDS = (
    "origin",
    "destination",
    "date",
    "departure_time",
    "arrival_time",
    "vehicle_type",
    "vehicle_number",
    "price",
    "total_seats",
    "owner_name",
    "owner_email",
)


def service_now() -> datetime:
    """Wall-clock time where the rides run, without tzinfo."""
    return datetime.now(ZoneInfo(settings.SERVICE_TIMEZONE)).replace(tzinfo=None)


def departure_at(ride: Ride) -> datetime:
    return datetime.combine(ride.date, datetime.strptime(ride.departure_time, TIME_FORMAT).time())


def has_departed(ride: Ride, now: datetime) -> bool:
    # only today's schedule is trimmed; other dates are listed as requested
    return ride.date == now.date() and departure_at(ride) <= now


def schedule_key(ride: Ride):
    return (ride.date, datetime.strptime(ride.departure_time, TIME_FORMAT).time())


def build_seats(total_seats: int, start: int = 1) -> List[RideSeat]:
    return [RideSeat(seat_number=n, status="available") for n in range(start, total_seats + 1)]


async def get_ride_by_id(db: AsyncSession, ride_id: str, now: Optional[datetime] = None) -> Optional[Ride]:
    ride = await db.get(Ride, ride_id)
    if ride is None or has_departed(ride, now or service_now()):
        return None
    return ride


async def _rides_on(db: AsyncSession, day: date, origin: Optional[str], destination: Optional[str]) -> List[Ride]:
    stmt = sa_select(Ride).where(Ride.date == day)
    if origin:
        stmt = stmt.where(Ride.origin == origin)
    if destination:
        stmt = stmt.where(Ride.destination == destination)
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def list_rides(
    db: AsyncSession,
    origin: Optional[str] = None,
    destination: Optional[str] = None,
    ride_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> List[Ride]:
    """Bookable rides, ordered by date then departure time.

    Without a date the listing shows what is still to leave today and falls
    back to tomorrow's schedule once today's last ride has gone.
    """
    now = now or service_now()
    origin = None if origin == "all" else origin
    destination = None if destination == "all" else destination

    if ride_date is not None:
        rides = await _rides_on(db, ride_date, origin, destination)
    else:
        rides = [r for r in await _rides_on(db, now.date(), origin, destination) if not has_departed(r, now)]
        if not rides:
            rides = await _rides_on(db, now.date() + timedelta(days=1), origin, destination)
    rides = [r for r in rides if not has_departed(r, now)]
    return sorted(rides, key=schedule_key)


async def list_schedule(db: AsyncSession, ride_date: date) -> List[Ride]:
    """Admin view of a day: every ride, departed or not."""
    return sorted(await _rides_on(db, ride_date, None, None), key=schedule_key)


async def create_ride(db: AsyncSession, data: RideIn, actor: Optional[User] = None, request: Optional[Request] = None) -> Ride:
    ride = Ride(id=new_id(), **{f: getattr(data, f) for f in RIDE_FIELDS})
    ride.seats = build_seats(data.total_seats)
    db.add(ride)
    await record_admin_action(db, actor, "create_ride", "ride", ride.id, {"date": data.date.isoformat()}, request)
    await db.commit()
    return ride


async def update_ride(
    db: AsyncSession, ride_id: str, data: RideIn, actor: Optional[User] = None, request: Optional[Request] = None
) -> Ride:
    ride = await db.get(Ride, ride_id)
    if ride is None:
        raise NotFoundError("Ride not found.")

    if data.total_seats > ride.total_seats:
        ride.seats.extend(build_seats(data.total_seats, start=ride.total_seats + 1))
    elif data.total_seats < ride.total_seats:
        # re-read under lock so a reservation committed since the ride was loaded is seen
        locked = await lock_seats(db, ride.id)
        dropped = [s for s in locked if s.seat_number > data.total_seats]
        if any(s.status != "available" for s in dropped):
            raise ConflictError("Seats that are already booked cannot be removed from the ride.")
        for seat in dropped:
            ride.seats.remove(seat)

    changed = {}
    for f in RIDE_FIELDS:
        value = getattr(data, f)
        if getattr(ride, f) != value:
            changed[f] = str(value)
            setattr(ride, f, value)
    await record_admin_action(db, actor, "update_ride", "ride", ride.id, changed, request)
    await db.commit()
    return ride


async def delete_ride(db: AsyncSession, ride_id: str, actor: Optional[User] = None, request: Optional[Request] = None) -> None:
    # bookings for the ride are left as they are
    ride = await db.get(Ride, ride_id)
    if ride is None:
        raise NotFoundError("Ride not found.")
    await db.delete(ride)
    await record_admin_action(db, actor, "delete_ride", "ride", ride_id, {"date": ride.date.isoformat()}, request)
    await db.commit()
    logger.info("ride deleted", extra={"ride_id": ride_id})
