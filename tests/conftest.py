import os
import tempfile
from datetime import date

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("MEDIA_ROOT", tempfile.mkdtemp(prefix="sawari-media-"))

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from sawari.db.base import Base  # noqa: E402
from sawari.db.session import get_session  # noqa: E402
from sawari.models.models import Ride, User, new_id  # noqa: E402
from sawari.services import auth as auth_service  # noqa: E402
from sawari.services.reservation import ReservationService  # noqa: E402
from sawari.services.rides import build_seats  # noqa: E402
from sawari.services.storage import LocalFileStorage, get_storage  # noqa: E402
from sawari.services.transactions import SqlAlchemyTransactionManager  # noqa: E402

FAR_DATE = date(2030, 1, 15)


@pytest.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'sawari.db'}", poolclass=NullPool)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_ride(session_factory):
    async def _make(
        ride_id=None,
        total_seats=9,
        booked=(),
        ride_date=FAR_DATE,
        departure_time="06:00 AM",
        origin="Birgunj",
        destination="Kathmandu",
    ):
        ride = Ride(
            id=ride_id or new_id(),
            origin=origin,
            destination=destination,
            date=ride_date,
            departure_time=departure_time,
            arrival_time="02:00 PM",
            vehicle_type="Sumo",
            vehicle_number="Na 1 Kha 1234",
            total_seats=total_seats,
            price=850,
        )
        ride.seats = build_seats(total_seats)
        for seat in ride.seats:
            if seat.seat_number in booked:
                seat.status = "booked"
        async with session_factory() as session:
            session.add(ride)
            await session.commit()
        return ride.id

    return _make


@pytest.fixture
def make_user(session_factory):
    async def _make(role="user", email=None, password=None):
        user = User(
            id=new_id(),
            email=email or f"{new_id()[:8]}@example.com",
            name="Test Passenger",
            phone_number="9800000000",
            hashed_password=auth_service.hash_password(password) if password else "not-a-hash",
            role=role,
        )
        async with session_factory() as session:
            session.add(user)
            await session.commit()
        return user

    return _make


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {auth_service.create_access_token(user.id, user.role)}"}


@pytest.fixture
def reservation_service(session_factory):
    return ReservationService(SqlAlchemyTransactionManager(session_factory))


@pytest.fixture
async def client(session_factory, reservation_service, tmp_path):
    from sawari.main import app
    from sawari.modules.reservations.router import get_reservation_service

    async def _get_session():
        async with session_factory() as session:
            yield session

    storage = LocalFileStorage(root=str(tmp_path / "media"), base_url="/media")
    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_reservation_service] = lambda: reservation_service
    app.dependency_overrides[get_storage] = lambda: storage
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def headers_for():
    return auth_headers
