"""Models module exporting all database models."""

from .booking import TERMINAL_STATUSES, Booking, BookingBackup, BookingStatus
from .profile import Profile
from .tour import MAX_SUB_IMAGES, Tour, TourType

__all__ = [
    # Catalog
    "Tour",
    "TourType",
    "MAX_SUB_IMAGES",

    # Bookings
    "Booking",
    "BookingBackup",
    "BookingStatus",
    "TERMINAL_STATUSES",

    # Accounts
    "Profile",
]
