# hotel/repositories/base.py
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Protocol, runtime_checkable, Optional, List

from hotel import schemas
from hotel.exceptions import InvalidDateRangeError
from hotel.models import RoomType, RoomStatus


@runtime_checkable
class UserRepository(Protocol):
    def get_all_users(self) -> List[schemas.User]: ...
    def get_user_by_id(self, user_id: int) -> Optional[schemas.User]: ...
    def get_user_by_email(self, email: str) -> Optional[schemas.User]: ...
    def create_user(self, user: schemas.User) -> int: ...
    def update_user(self, user_id: int, user: schemas.User) -> int: ...
    def delete_user(self, user_id: int) -> int: ...


@runtime_checkable
class AdministratorRepository(Protocol):
    def get_all_administrators(self) -> List[schemas.Administrator]: ...
    def get_administrator_by_id(self, administrator_id: int) -> Optional[schemas.Administrator]: ...
    def get_administrator_by_user_id(self, user_id: int) -> Optional[schemas.Administrator]: ...
    def create_administrator(self, administrator: schemas.Administrator) -> int: ...

    # Matched on the owning user, since administrators edit their own profile
    def update_administrator(self, administrator: schemas.Administrator, user_id: int) -> int: ...


@runtime_checkable
class ClientRepository(Protocol):
    def get_all_clients(self) -> List[schemas.Client]: ...
    def get_client_by_id(self, client_id: int) -> Optional[schemas.Client]: ...
    def get_client_by_user_id(self, user_id: int) -> Optional[schemas.Client]: ...
    def create_client(self, client: schemas.Client) -> int: ...
    def update_client(self, client: schemas.Client) -> Optional[schemas.Client]: ...


@runtime_checkable
class RoomRepository(Protocol):
    def get_all_rooms(self) -> List[schemas.Room]: ...
    def get_room_by_id(self, room_id: int) -> Optional[schemas.Room]: ...
    def create_room(self, room: schemas.Room) -> int: ...
    def update_room(self, room: schemas.Room, room_id: int) -> int: ...
    def delete_room(self, room_id: int) -> int: ...
    def get_rooms_by_type(self, room_type: RoomType) -> List[schemas.Room]: ...
    def get_available_rooms(self) -> List[schemas.Room]: ...
    def update_status(self, room_id: int, status: RoomStatus) -> int: ...
    def get_rooms_in_maintenance(self) -> List[schemas.Room]: ...


@runtime_checkable
class ReservationRepository(Protocol):
    def get_all_reservations(self) -> List[schemas.Reservation]: ...
    def get_reservation_by_id(self, reservation_id: int) -> Optional[schemas.Reservation]: ...
    def get_reservations_by_client_id(self, client_id: int) -> List[schemas.Reservation]: ...

    # Checks availability and inserts in one atomic step, raising RoomUnavailableError on overlap
    def create_reservation(self, reservation: schemas.Reservation) -> int: ...

    # Matched on reservation.id; same overlap check, ignoring the reservation itself
    def update_reservation(self, reservation: schemas.Reservation) -> int: ...
    def is_room_available(
        self,
        room_id: int,
        start_date: date,
        end_date: date,
        exclude_reservation_id: Optional[int] = None,
    ) -> bool: ...


@runtime_checkable
class PaymentRepository(Protocol):
    def get_all_payments(self) -> List[schemas.Payment]: ...
    def get_payment_by_id(self, payment_id: int) -> Optional[schemas.Payment]: ...
    def get_payments_by_reservation_id(self, reservation_id: int) -> List[schemas.Payment]: ...
    def get_payments_by_client(self, client_id: int) -> List[schemas.Payment]: ...
    def create_payment(self, payment: schemas.Payment) -> int: ...
    def update_payment(self, payment: schemas.Payment, payment_id: int) -> int: ...
    def delete_payment(self, payment_id: int) -> int: ...
    def get_total_paid(self, reservation_id: int) -> Decimal: ...


@runtime_checkable
class Purgeable(Protocol):
    """Bulk reset capability, kept off the request-facing protocols above."""

    def delete_all(self) -> None: ...


CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENTS)


def check_date_range(start_date: date, end_date: date) -> None:
    if start_date is None or end_date is None:
        raise InvalidDateRangeError("Start and end dates are required")
    if end_date < start_date:
        raise InvalidDateRangeError("End date cannot be earlier than start date")
