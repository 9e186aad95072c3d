from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from sawari.db.session import get_session
from sawari.schemas.ride import RideOut
from sawari.services import rides as ride_service

router = APIRouter(tags=["rides"])


@router.get("/", response_model=List[RideOut])
async def list_rides(
    origin: Optional[str] = Query(None, alias="from"),
    destination: Optional[str] = Query(None, alias="to"),
    ride_date: Optional[date] = Query(None, alias="date"),
    db: AsyncSession = Depends(get_session),
):
    return await ride_service.list_rides(db, origin=origin, destination=destination, ride_date=ride_date)


@router.get("/{ride_id}", response_model=RideOut)
async def get_ride(ride_id: str, db: AsyncSession = Depends(get_session)):
    ride = await ride_service.get_ride_by_id(db, ride_id)
    if ride is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ride not found")
    return ride
