from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from sawari.db.base import Base


def new_id() -> str:
    return uuid4().hex


class User(Base):
    __tablename__ = "users"
    id = Column(String(64), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    phone_number = Column(String(32), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    # user | admin
    role = Column(String(16), nullable=False, default="user", index=True)
    photo_url = Column(String(1024), nullable=True)
    dob = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class VehicleTemplate(Base):
    __tablename__ = "vehicle_templates"
    id = Column(String(64), primary_key=True, default=new_id)
    origin = Column(String(32), nullable=False)
    destination = Column(String(32), nullable=False)
    departure_time = Column(String(8), nullable=False)
    arrival_time = Column(String(8), nullable=False)
    vehicle_type = Column(String(16), nullable=False)
    vehicle_number = Column(String(64), nullable=False)
    price = Column(Integer, nullable=False)
    total_seats = Column(Integer, nullable=False)
    owner_name = Column(String(255), nullable=True)
    owner_email = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Ride(Base):
    __tablename__ = "rides"
    id = Column(String(64), primary_key=True, default=new_id)
    template_id = Column(String(64), ForeignKey("vehicle_templates.id", ondelete="SET NULL"), nullable=True, index=True)
    origin = Column(String(32), nullable=False, index=True)
    destination = Column(String(32), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    # "hh:mm AM" strings, as shown on tickets
    departure_time = Column(String(8), nullable=False)
    arrival_time = Column(String(8), nullable=False)
    vehicle_type = Column(String(16), nullable=False)
    vehicle_number = Column(String(64), nullable=False)
    total_seats = Column(Integer, nullable=False)
    price = Column(Integer, nullable=False)
    owner_name = Column(String(255), nullable=True)
    owner_email = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    seats = relationship(
        "RideSeat",
        back_populates="ride",
        cascade="all, delete-orphan",
        order_by="RideSeat.seat_number",
        lazy="selectin",
    )

    __table_args__ = (UniqueConstraint("template_id", "date", name="uq_ride_template_date"),)


class RideSeat(Base):
    __tablename__ = "ride_seats"
    id = Column(Integer, primary_key=True, autoincrement=True)
    ride_id = Column(String(64), ForeignKey("rides.id", ondelete="CASCADE"), nullable=False, index=True)
    seat_number = Column(Integer, nullable=False)
    # available | booked | locked
    status = Column(String(16), nullable=False, default="available")

    ride = relationship("Ride", back_populates="seats")

    __table_args__ = (UniqueConstraint("ride_id", "seat_number", name="uq_ride_seat_number"),)


class Booking(Base):
    __tablename__ = "bookings"
    id = Column(String(64), primary_key=True, default=new_id)
    ticket_number = Column(String(32), nullable=False, unique=True, index=True)
    # no foreign keys: deleting a ride or user leaves its bookings in place
    ride_id = Column(String(64), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    seats = Column(JSON, nullable=False)
    passenger_name = Column(String(255), nullable=False)
    passenger_phone = Column(String(16), nullable=False)
    # confirmed | pending-payment | cancelled
    status = Column(String(32), nullable=False, default="confirmed", index=True)
    payment_method = Column(String(16), nullable=True)
    transaction_id = Column(String(128), nullable=True)
    payment_screenshot_url = Column(String(1024), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("ix_bookings_ride_status", "ride_id", "status"),)


class SiteSetting(Base):
    __tablename__ = "site_settings"
    key = Column(String(64), primary_key=True)
    value = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class AuditLog(Base):
    __tablename__ = "audit_logs"
    id = Column(Integer, primary_key=True, autoincrement=True)
    actor_id = Column(String(64), nullable=True, index=True)
    action = Column(String(255), nullable=False)
    object_type = Column(String(128), nullable=True)
    object_id = Column(String(128), nullable=True)
    detail = Column(JSON, nullable=True)
    ip_address = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
