from sqlalchemy import select

from sawari.models.models import Ride
from sawari.schemas.ride import TemplateIn
from sawari.services import vehicle_templates as template_service

from conftest import FAR_DATE


def template_payload(**overrides):
    data = {
        "from": "Kathmandu",
        "to": "Birgunj",
        "departureTime": "07:30 AM",
        "arrivalTime": "03:00 PM",
        "vehicleType": "EV",
        "vehicleNumber": "Ba 2 Pa 42",
        "price": 1200,
        "totalSeats": 6,
    }
    data.update(overrides)
    return TemplateIn.model_validate(data)


class TestVehicleTemplates:
    async def test_update_overwrites_fields(self, db):
        template = await template_service.save_template(db, template_payload())

        updated = await template_service.save_template(db, template_payload(price=1500), template.id)

        assert updated.id == template.id
        assert updated.price == 1500
        assert len(await template_service.list_templates(db)) == 1

    async def test_generate_rides_is_idempotent_per_day(self, db):
        first = await template_service.save_template(db, template_payload())
        second = await template_service.save_template(db, template_payload(departureTime="01:00 PM", arrivalTime="08:00 PM"))

        created, skipped = await template_service.generate_rides(db, FAR_DATE)
        created_again, skipped_again = await template_service.generate_rides(db, FAR_DATE)

        assert len(created) == 2
        assert skipped == []
        assert created_again == []
        assert sorted(skipped_again) == sorted([first.id, second.id])

        res = await db.execute(select(Ride).where(Ride.date == FAR_DATE))
        rides = res.scalars().all()
        assert sorted(r.template_id for r in rides) == sorted([first.id, second.id])
        for ride in rides:
            assert ride.origin == "Kathmandu"
            assert [s.seat_number for s in ride.seats] == list(range(1, 7))
            assert {s.status for s in ride.seats} == {"available"}

    async def test_deleting_template_keeps_generated_rides(self, db):
        template = await template_service.save_template(db, template_payload())
        created, _ = await template_service.generate_rides(db, FAR_DATE)

        await template_service.delete_template(db, template.id)

        assert await template_service.list_templates(db) == []
        assert await db.get(Ride, created[0]) is not None
