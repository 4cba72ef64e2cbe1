# hotel/exceptions.py
"""Fault categories shared by the repositories, services and HTTP handlers."""


class HotelError(Exception):
    """Base class for every error raised on purpose by this package."""


class StorageFault(HotelError):
    """The storage backend rejected an operation or could not be reached."""


class ConstraintViolationError(StorageFault):
    """A write broke a unique or foreign key constraint."""


class RoomUnavailableError(ConstraintViolationError):
    """The room already has an active reservation overlapping the requested dates."""

    def __init__(self, room_id, start_date, end_date):
        super().__init__(f"Room {room_id} is not available from {start_date} to {end_date}")
        self.room_id = room_id
        self.start_date = start_date
        self.end_date = end_date


class PurgeNotAllowedError(HotelError):
    """delete_all() was called on a repository built without the purge capability."""


class NotFoundError(HotelError):
    pass


class InvalidDateRangeError(HotelError, ValueError):
    pass


class BusinessRuleError(HotelError):
    pass
