# hotel/repositories/memory.py
"""
Process-local backend mirroring the relational schema: generated ids, unique
columns, foreign keys with the same cascade/restrict rules as hotel.models.
"""
import itertools
import logging
import threading

from hotel import schemas
from hotel.exceptions import ConstraintViolationError, PurgeNotAllowedError, RoomUnavailableError
from hotel.models import RoomStatus, ReservationStatus
from hotel.repositories.base import check_date_range, to_money

logger = logging.getLogger(__name__)

FOREIGN_KEYS = {
    "administrators": {"user_id": "users"},
    "clients": {"user_id": "users"},
    "reservations": {"client_id": "clients", "room_id": "rooms"},
    "payments": {"reservation_id": "reservations"},
}

UNIQUE_COLUMNS = {
    "users": ("email",),
    "administrators": ("user_id",),
    "clients": ("user_id",),
    "rooms": ("room_number",),
}

ON_DELETE_CASCADE = {
    "users": (("administrators", "user_id"), ("clients", "user_id")),
    "clients": (("reservations", "client_id"),),
    "reservations": (("payments", "reservation_id"),),
}

ON_DELETE_RESTRICT = {
    "rooms": (("reservations", "room_id"),),
}


class MemoryStore:
    def __init__(self):
        self.lock = threading.RLock()
        self.reset()

    def reset(self):
        with self.lock:
            self.tables = {name: {} for name in ("users", "administrators", "clients", "rooms", "reservations", "payments")}
            self._ids = {name: itertools.count(1) for name in self.tables}

    def _check_constraints(self, table, entity, row_id=None):
        for column, target in FOREIGN_KEYS.get(table, {}).items():
            if getattr(entity, column) not in self.tables[target]:
                raise ConstraintViolationError(f"{table}.{column} references a missing {target} row")
        for column in UNIQUE_COLUMNS.get(table, ()):
            value = getattr(entity, column)
            for other_id, other in self.tables[table].items():
                if other_id != row_id and getattr(other, column) == value:
                    raise ConstraintViolationError(f"Duplicate value for {table}.{column}: {value}")

    def insert(self, table, entity) -> int:
        with self.lock:
            self._check_constraints(table, entity)
            row_id = next(self._ids[table])
            self.tables[table][row_id] = entity.model_copy(update={"id": row_id}, deep=True)
        logger.debug("Inserted %s id=%s", table, row_id)
        return row_id

    def replace(self, table, row_id, entity) -> int:
        with self.lock:
            if row_id not in self.tables[table]:
                return 0
            self._check_constraints(table, entity, row_id)
            self.tables[table][row_id] = entity.model_copy(update={"id": row_id}, deep=True)
        return 1

    def delete(self, table, row_ids) -> int:
        with self.lock:
            row_ids = [row_id for row_id in row_ids if row_id in self.tables[table]]
            for child_table, column in ON_DELETE_RESTRICT.get(table, ()):
                if any(getattr(child, column) in row_ids for child in self.tables[child_table].values()):
                    raise ConstraintViolationError(f"{table} rows are still referenced by {child_table}")
            for child_table, column in ON_DELETE_CASCADE.get(table, ()):
                children = [
                    child_id for child_id, child in self.tables[child_table].items()
                    if getattr(child, column) in row_ids
                ]
                self.delete(child_table, children)
            for row_id in row_ids:
                del self.tables[table][row_id]
        return len(row_ids)


default_store = MemoryStore()


class MemoryRepository:
    table = None

    def __init__(self, store: MemoryStore = None, allow_purge: bool = False):
        self.store = store if store is not None else default_store
        self.allow_purge = allow_purge

    def _rows(self, predicate=None):
        with self.store.lock:
            rows = sorted(self.store.tables[self.table].values(), key=lambda row: row.id)
            return [row.model_copy(deep=True) for row in rows if predicate is None or predicate(row)]

    def _get(self, row_id):
        with self.store.lock:
            row = self.store.tables[self.table].get(row_id)
            return row.model_copy(deep=True) if row is not None else None

    def _first(self, predicate):
        rows = self._rows(predicate)
        return rows[0] if rows else None

    def _update_fields(self, row_id, **changes) -> int:
        with self.store.lock:
            current = self.store.tables[self.table].get(row_id)
            if current is None:
                return 0
            return self.store.replace(self.table, row_id, current.model_copy(update=changes))

    def delete_all(self) -> None:
        if not self.allow_purge:
            raise PurgeNotAllowedError(f"Bulk delete of {self.table} is disabled")
        with self.store.lock:
            row_ids = set(self.store.tables[self.table])
            # clear restricting references first, the way the SQL purge does
            for child, column in ON_DELETE_RESTRICT.get(self.table, ()):
                referencing = [
                    child_id for child_id, row in self.store.tables[child].items() if getattr(row, column) in row_ids
                ]
                self.store.delete(child, referencing)
            self.store.delete(self.table, list(row_ids))
        logger.warning("Purged every row of %s", self.table)


class MemoryUserRepository(MemoryRepository):
    table = "users"

    def get_all_users(self):
        return self._rows()

    def get_user_by_id(self, user_id: int):
        return self._get(user_id)

    def get_user_by_email(self, email: str):
        return self._first(lambda user: user.email == email)

    def create_user(self, user: schemas.User) -> int:
        return self.store.insert(self.table, user)

    def update_user(self, user_id: int, user: schemas.User) -> int:
        return self._update_fields(user_id, email=user.email, password=user.password, role=user.role)

    def delete_user(self, user_id: int) -> int:
        return self.store.delete(self.table, [user_id])


class MemoryAdministratorRepository(MemoryRepository):
    table = "administrators"

    def get_all_administrators(self):
        return self._rows()

    def get_administrator_by_id(self, administrator_id: int):
        return self._get(administrator_id)

    def get_administrator_by_user_id(self, user_id: int):
        return self._first(lambda admin: admin.user_id == user_id)

    def create_administrator(self, administrator: schemas.Administrator) -> int:
        return self.store.insert(self.table, administrator)

    def update_administrator(self, administrator: schemas.Administrator, user_id: int) -> int:
        with self.store.lock:
            current = self.get_administrator_by_user_id(user_id)
            if current is None:
                return 0
            return self._update_fields(current.id, name=administrator.name)


class MemoryClientRepository(MemoryRepository):
    table = "clients"

    def get_all_clients(self):
        return self._rows()

    def get_client_by_id(self, client_id: int):
        return self._get(client_id)

    def get_client_by_user_id(self, user_id: int):
        return self._first(lambda client: client.user_id == user_id)

    def create_client(self, client: schemas.Client) -> int:
        return self.store.insert(self.table, client)

    def update_client(self, client: schemas.Client):
        updated = self._update_fields(
            client.id, first_name=client.first_name, last_name=client.last_name, phone=client.phone
        )
        return self.get_client_by_id(client.id) if updated else None


class MemoryRoomRepository(MemoryRepository):
    table = "rooms"

    def get_all_rooms(self):
        return self._rows()

    def get_room_by_id(self, room_id: int):
        return self._get(room_id)

    def create_room(self, room: schemas.Room) -> int:
        return self.store.insert(self.table, room)

    def update_room(self, room: schemas.Room, room_id: int) -> int:
        return self.store.replace(self.table, room_id, room)

    def delete_room(self, room_id: int) -> int:
        return self.store.delete(self.table, [room_id])

    def get_rooms_by_type(self, room_type):
        return self._rows(lambda room: room.type == room_type)

    def get_available_rooms(self):
        return self._rows(lambda room: room.status == RoomStatus.AVAILABLE)

    def update_status(self, room_id: int, status: RoomStatus) -> int:
        return self._update_fields(room_id, status=status)

    def get_rooms_in_maintenance(self):
        return self._rows(lambda room: room.status == RoomStatus.MAINTENANCE)


class MemoryReservationRepository(MemoryRepository):
    table = "reservations"

    def get_all_reservations(self):
        return self._rows()

    def get_reservation_by_id(self, reservation_id: int):
        return self._get(reservation_id)

    def get_reservations_by_client_id(self, client_id: int):
        return self._rows(lambda reservation: reservation.client_id == client_id)

    def _overlaps(self, room_id, start_date, end_date, exclude_reservation_id=None):
        def clashes(other):
            return (
                other.room_id == room_id
                and other.id != exclude_reservation_id
                and other.status != ReservationStatus.CANCELED
                and other.start_date <= end_date
                and other.end_date >= start_date
            )
        return bool(self._rows(clashes))

    def is_room_available(self, room_id: int, start_date, end_date, exclude_reservation_id=None) -> bool:
        check_date_range(start_date, end_date)
        return not self._overlaps(room_id, start_date, end_date, exclude_reservation_id)

    def create_reservation(self, reservation: schemas.Reservation) -> int:
        check_date_range(reservation.start_date, reservation.end_date)
        with self.store.lock:
            if reservation.status != ReservationStatus.CANCELED and self._overlaps(
                reservation.room_id, reservation.start_date, reservation.end_date
            ):
                raise RoomUnavailableError(reservation.room_id, reservation.start_date, reservation.end_date)
            return self.store.insert(self.table, reservation)

    def update_reservation(self, reservation: schemas.Reservation) -> int:
        check_date_range(reservation.start_date, reservation.end_date)
        with self.store.lock:
            if reservation.status != ReservationStatus.CANCELED and self._overlaps(
                reservation.room_id, reservation.start_date, reservation.end_date, reservation.id
            ):
                raise RoomUnavailableError(reservation.room_id, reservation.start_date, reservation.end_date)
            return self.store.replace(self.table, reservation.id, reservation)


class MemoryPaymentRepository(MemoryRepository):
    table = "payments"

    def get_all_payments(self):
        return self._rows()

    def get_payment_by_id(self, payment_id: int):
        return self._get(payment_id)

    def get_payments_by_reservation_id(self, reservation_id: int):
        return self._rows(lambda payment: payment.reservation_id == reservation_id)

    def get_payments_by_client(self, client_id: int):
        with self.store.lock:
            reservations = self.store.tables["reservations"]
            return self._rows(
                lambda payment: payment.reservation_id in reservations
                and reservations[payment.reservation_id].client_id == client_id
            )

    def create_payment(self, payment: schemas.Payment) -> int:
        return self.store.insert(self.table, payment)

    def update_payment(self, payment: schemas.Payment, payment_id: int) -> int:
        return self._update_fields(
            payment_id, amount=payment.amount, payment_date=payment.payment_date, method=payment.method
        )

    def delete_payment(self, payment_id: int) -> int:
        return self.store.delete(self.table, [payment_id])

    def get_total_paid(self, reservation_id: int):
        return to_money(sum(payment.amount for payment in self.get_payments_by_reservation_id(reservation_id)))
