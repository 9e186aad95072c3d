import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from sawari.models.models import AuditLog, RideSeat
from sawari.services import bookings as booking_service
from sawari.services.errors import ConflictError, NotFoundError
from sawari.services.reservation import PassengerInfo, lock_seats, seat_lock_query

PASSENGER = PassengerInfo(name="Hari Prasad", phone="9812345678")


@pytest.fixture
def book(reservation_service):
    async def _book(ride_id, seats, user_id="u1"):
        result = await reservation_service.reserve_seats(ride_id, seats, PASSENGER, user_id)
        assert result.success
        return result.booking

    return _book


async def statuses(db, ride_id):
    res = await db.execute(
        select(RideSeat.seat_number, RideSeat.status).where(RideSeat.ride_id == ride_id).order_by(RideSeat.seat_number)
    )
    return dict(res.all())


class TestBookingAdmin:
    async def test_cancelling_releases_seats(self, db, make_ride, make_user, book):
        admin = await make_user(role="admin")
        ride_id = await make_ride()
        booking = await book(ride_id, [3, 4])
        await book(ride_id, [5])

        updated = await booking_service.update_booking_status(db, booking.id, "cancelled", admin)

        assert updated.status == "cancelled"
        seats = await statuses(db, ride_id)
        assert seats[3] == seats[4] == "available"
        assert seats[5] == "booked"
        res = await db.execute(select(AuditLog).where(AuditLog.action == "update_booking_status"))
        entry = res.scalars().one()
        assert entry.actor_id == admin.id
        assert entry.detail == {"from": "confirmed", "to": "cancelled"}

    async def test_cancelled_booking_stays_cancelled(self, db, make_ride, book):
        ride_id = await make_ride()
        booking = await book(ride_id, [1])
        await booking_service.update_booking_status(db, booking.id, "cancelled")

        with pytest.raises(ConflictError):
            await booking_service.update_booking_status(db, booking.id, "confirmed")
        assert (await statuses(db, ride_id))[1] == "available"

    async def test_same_status_is_a_no_op(self, db, make_ride, book):
        ride_id = await make_ride()
        booking = await book(ride_id, [1])

        updated = await booking_service.update_booking_status(db, booking.id, "confirmed")

        assert updated.status == "confirmed"
        assert (await statuses(db, ride_id))[1] == "booked"

    async def test_unknown_booking(self, db):
        with pytest.raises(NotFoundError):
            await booking_service.update_booking_status(db, "missing", "cancelled")

    async def test_listing_filters(self, db, make_ride, book):
        ride_a = await make_ride()
        ride_b = await make_ride()
        first = await book(ride_a, [1], user_id="u1")
        await book(ride_b, [1], user_id="u2")
        await booking_service.update_booking_status(db, first.id, "cancelled")

        assert [b.ride_id for b in await booking_service.list_bookings(db, ride_id=ride_a)] == [ride_a]
        assert [b.id for b in await booking_service.list_bookings(db, status="cancelled")] == [first.id]
        assert [b.user_id for b in await booking_service.list_bookings_by_user(db, "u2")] == ["u2"]

    async def test_clear_all_bookings(self, db, make_ride, book):
        ride_a = await make_ride()
        ride_b = await make_ride(booked=(9,))
        await book(ride_a, [1, 2])
        await book(ride_b, [3])

        counts = await booking_service.clear_all_bookings(db)

        assert counts == {"bookings": 2, "seats": 4}
        assert await booking_service.list_bookings(db) == []
        assert set((await statuses(db, ride_a)).values()) == {"available"}
        assert set((await statuses(db, ride_b)).values()) == {"available"}

    async def test_clear_all_locks_seats_before_touching_bookings(self, db, make_ride, book, monkeypatch):
        ride_id = await make_ride()
        await book(ride_id, [1])
        seen = []

        async def spy(session, ride_id=None):
            seen.append(len(await booking_service.list_bookings(session)))
            return await lock_seats(session, ride_id)

        monkeypatch.setattr(booking_service, "lock_seats", spy)

        await booking_service.clear_all_bookings(db)

        assert seen == [1]


def test_seat_lock_query_matches_reservation_lock_order():
    sql = str(seat_lock_query("R1").compile(dialect=postgresql.dialect()))

    assert "FOR UPDATE" in sql
    assert "ORDER BY ride_seats.ride_id, ride_seats.seat_number" in sql
