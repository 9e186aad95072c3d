from datetime import date
from typing import List, Optional, Tuple

from fastapi import Request
from sqlalchemy import select as sa_select
from sqlalchemy.ext.asyncio import AsyncSession

from sawari.models.models import Ride, User, VehicleTemplate, new_id
from sawari.schemas.ride import TemplateIn
from sawari.services.audit import record_admin_action
from sawari.services.errors import NotFoundError
from sawari.services.rides import build_seats

TEMPLATE_FIELDS = (
    "origin",
    "destination",
    "departure_time",
    "arrival_time",
    "vehicle_type",
    "vehicle_number",
    "price",
    "total_seats",
    "owner_name",
    "owner_email",
)


async def list_templates(db: AsyncSession) -> List[VehicleTemplate]:
    res = await db.execute(sa_select(VehicleTemplate).order_by(VehicleTemplate.origin, VehicleTemplate.created_at))
    return list(res.scalars().all())


async def save_template(
    db: AsyncSession,
    data: TemplateIn,
    template_id: Optional[str] = None,
    actor: Optional[User] = None,
    request: Optional[Request] = None,
) -> VehicleTemplate:
    """Create a template, or overwrite the one named by ``template_id``."""
    if template_id is None:
        template = VehicleTemplate(id=new_id())
        db.add(template)
        action = "create_vehicle_template"
    else:
        template = await db.get(VehicleTemplate, template_id)
        if template is None:
            raise NotFoundError("Vehicle template not found.")
        action = "update_vehicle_template"
    for f in TEMPLATE_FIELDS:
        setattr(template, f, getattr(data, f))
    await record_admin_action(db, actor, action, "vehicle_template", template.id, {"vehicle": data.vehicle_number}, request)
    await db.commit()
    return template


async def delete_template(db: AsyncSession, template_id: str, actor: Optional[User] = None, request: Optional[Request] = None) -> None:
    template = await db.get(VehicleTemplate, template_id)
    if template is None:
        raise NotFoundError("Vehicle template not found.")
    await db.delete(template)
    await record_admin_action(db, actor, "delete_vehicle_template", "vehicle_template", template_id, None, request)
    await db.commit()


def ride_from_template(template: VehicleTemplate, ride_date: date) -> Ride:
    ride = Ride(id=new_id(), template_id=template.id, date=ride_date)
    for f in TEMPLATE_FIELDS:
        setattr(ride, f, getattr(template, f))
    ride.seats = build_seats(template.total_seats)
    return ride


async def generate_rides(
    db: AsyncSession, ride_date: date, actor: Optional[User] = None, request: Optional[Request] = None
) -> Tuple[List[str], List[str]]:
    """Create the day's rides from every template; templates already scheduled that day are skipped.

    Returns (created ride ids, skipped template ids).
    """
    templates = await list_templates(db)
    res = await db.execute(sa_select(Ride.template_id).where(Ride.date == ride_date, Ride.template_id.is_not(None)))
    scheduled = set(res.scalars().all())

    created, skipped = [], []
    for template in templates:
        if template.id in scheduled:
            skipped.append(template.id)
            continue
        ride = ride_from_template(template, ride_date)
        db.add(ride)
        created.append(ride.id)
    await record_admin_action(
        db, actor, "generate_rides", "ride", None, {"date": ride_date.isoformat(), "created": len(created)}, request
    )
    await db.commit()
    return created, skipped
