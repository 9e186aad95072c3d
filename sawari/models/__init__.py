from .models import *

__all__ = [
    "Base",
    "User",
    "VehicleTemplate",
    "Ride",
    "RideSeat",
    "Booking",
    "SiteSetting",
    "AuditLog",
]
