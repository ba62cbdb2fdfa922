"""Booking models - re-exports all models and Base.metadata."""

from .base import Base, UUIDMixin, TimestampMixin
from .admin import Admin, ADMIN_ROLES
from .schedule import WorkingHoursDefault, DaySpecificHours
from .booking import BookingService, Booking, BOOKING_STATUSES

__all__ = [
    "Base",
    "UUIDMixin",
    "TimestampMixin",
    "Admin",
    "ADMIN_ROLES",
    "WorkingHoursDefault",
    "DaySpecificHours",
    "BookingService",
    "Booking",
    "BOOKING_STATUSES",
]
