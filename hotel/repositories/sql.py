# hotel/repositories/sql.py
import logging
import threading
from contextlib import contextmanager

from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from hotel import models, schemas
from hotel.exceptions import ConstraintViolationError, PurgeNotAllowedError, RoomUnavailableError, StorageFault
from hotel.models import RoomStatus, ReservationStatus
from hotel.repositories.base import check_date_range, to_money

logger = logging.getLogger(__name__)

# Serializes bookings per room within this process; FOR UPDATE covers other processes.
# Fixed pool of stripes: a room always maps to the same lock, unrelated rooms may share one.
ROOM_LOCK_STRIPES = 64
_room_locks = [threading.Lock() for _ in range(ROOM_LOCK_STRIPES)]


def _room_lock(room_id):
    return _room_locks[room_id % ROOM_LOCK_STRIPES]


class SqlRepository:
    model = None
    schema = None
    # Tables referencing this one with RESTRICT; a purge clears them first
    purge_first = ()

    def __init__(self, db: Session, allow_purge: bool = False):
        self.db = db
        self.allow_purge = allow_purge

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("Constraint violation on %s (%s): %s", self.model.__tablename__, action, exc.orig)
            raise ConstraintViolationError(f"Could not {action}: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Storage failure on %s (%s): %s", self.model.__tablename__, action, exc)
            raise StorageFault(f"Could not {action}") from exc

    def _all(self, stmt):
        with self._guard("read"):
            return [self.schema.model_validate(row) for row in self.db.scalars(stmt)]

    def _first(self, stmt):
        with self._guard("read"):
            row = self.db.scalars(stmt).first()
        return self.schema.model_validate(row) if row is not None else None

    def _insert(self, entity) -> int:
        row = self.model(**entity.model_dump(exclude={"id"}))
        with self._guard("insert"):
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        logger.debug("Inserted %s id=%s", self.model.__tablename__, row.id)
        return row.id

    def _execute(self, stmt, action: str) -> int:
        with self._guard(action):
            result = self.db.execute(stmt)
            self.db.commit()
        logger.debug("%s on %s affected %s row(s)", action, self.model.__tablename__, result.rowcount)
        return result.rowcount

    def delete_all(self) -> None:
        if not self.allow_purge:
            raise PurgeNotAllowedError(f"Bulk delete of {self.model.__tablename__} is disabled")
        with self._guard("delete all"):
            for dependent in self.purge_first:
                self.db.execute(delete(dependent))
            self.db.execute(delete(self.model))
            self.db.commit()
        logger.warning("Purged every row of %s", self.model.__tablename__)


class SqlUserRepository(SqlRepository):
    model = models.User
    schema = schemas.User

    def get_all_users(self):
        return self._all(select(models.User).order_by(models.User.id))

    def get_user_by_id(self, user_id: int):
        return self._first(select(models.User).where(models.User.id == user_id))

    def get_user_by_email(self, email: str):
        return self._first(select(models.User).where(models.User.email == email))

    def create_user(self, user: schemas.User) -> int:
        return self._insert(user)

    def update_user(self, user_id: int, user: schemas.User) -> int:
        stmt = (
            update(models.User)
            .where(models.User.id == user_id)
            .values(email=user.email, password=user.password, role=user.role)
        )
        return self._execute(stmt, "update user")

    def delete_user(self, user_id: int) -> int:
        return self._execute(delete(models.User).where(models.User.id == user_id), "delete user")


class SqlAdministratorRepository(SqlRepository):
    model = models.Administrator
    schema = schemas.Administrator

    def get_all_administrators(self):
        return self._all(select(models.Administrator).order_by(models.Administrator.id))

    def get_administrator_by_id(self, administrator_id: int):
        return self._first(select(models.Administrator).where(models.Administrator.id == administrator_id))

    def get_administrator_by_user_id(self, user_id: int):
        return self._first(select(models.Administrator).where(models.Administrator.user_id == user_id))

    def create_administrator(self, administrator: schemas.Administrator) -> int:
        return self._insert(administrator)

    def update_administrator(self, administrator: schemas.Administrator, user_id: int) -> int:
        stmt = (
            update(models.Administrator)
            .where(models.Administrator.user_id == user_id)
            .values(name=administrator.name)
        )
        return self._execute(stmt, "update administrator")


class SqlClientRepository(SqlRepository):
    model = models.Client
    schema = schemas.Client

    def get_all_clients(self):
        return self._all(select(models.Client).order_by(models.Client.id))

    def get_client_by_id(self, client_id: int):
        return self._first(select(models.Client).where(models.Client.id == client_id))

    def get_client_by_user_id(self, user_id: int):
        return self._first(select(models.Client).where(models.Client.user_id == user_id))

    def create_client(self, client: schemas.Client) -> int:
        return self._insert(client)

    def update_client(self, client: schemas.Client):
        stmt = (
            update(models.Client)
            .where(models.Client.id == client.id)
            .values(first_name=client.first_name, last_name=client.last_name, phone=client.phone)
        )
        if self._execute(stmt, "update client") == 0:
            return None
        return self.get_client_by_id(client.id)


class SqlRoomRepository(SqlRepository):
    model = models.Room
    schema = schemas.Room
    # payments go with their reservations through ON DELETE CASCADE
    purge_first = (models.Reservation,)

    def get_all_rooms(self):
        return self._all(select(models.Room).order_by(models.Room.id))

    def get_room_by_id(self, room_id: int):
        return self._first(select(models.Room).where(models.Room.id == room_id))

    def create_room(self, room: schemas.Room) -> int:
        return self._insert(room)

    def update_room(self, room: schemas.Room, room_id: int) -> int:
        stmt = (
            update(models.Room)
            .where(models.Room.id == room_id)
            .values(
                room_number=room.room_number,
                type=room.type,
                price_per_night=room.price_per_night,
                status=room.status,
            )
        )
        return self._execute(stmt, "update room")

    def delete_room(self, room_id: int) -> int:
        return self._execute(delete(models.Room).where(models.Room.id == room_id), "delete room")

    def get_rooms_by_type(self, room_type):
        return self._all(select(models.Room).where(models.Room.type == room_type).order_by(models.Room.id))

    def get_available_rooms(self):
        return self._all(
            select(models.Room).where(models.Room.status == RoomStatus.AVAILABLE).order_by(models.Room.id)
        )

    def update_status(self, room_id: int, status: RoomStatus) -> int:
        stmt = update(models.Room).where(models.Room.id == room_id).values(status=status)
        return self._execute(stmt, "update room status")

    def get_rooms_in_maintenance(self):
        return self._all(
            select(models.Room).where(models.Room.status == RoomStatus.MAINTENANCE).order_by(models.Room.id)
        )


class SqlReservationRepository(SqlRepository):
    model = models.Reservation
    schema = schemas.Reservation

    def get_all_reservations(self):
        return self._all(select(models.Reservation).order_by(models.Reservation.id))

    def get_reservation_by_id(self, reservation_id: int):
        return self._first(select(models.Reservation).where(models.Reservation.id == reservation_id))

    def get_reservations_by_client_id(self, client_id: int):
        return self._all(
            select(models.Reservation)
            .where(models.Reservation.client_id == client_id)
            .order_by(models.Reservation.id)
        )

    def _count_overlapping(self, room_id, start_date, end_date, exclude_reservation_id=None) -> int:
        # Closed intervals: a stay ending on the day another one starts still collides
        stmt = select(func.count(models.Reservation.id)).where(
            models.Reservation.room_id == room_id,
            models.Reservation.start_date <= end_date,
            models.Reservation.end_date >= start_date,
            models.Reservation.status != ReservationStatus.CANCELED,
        )
        if exclude_reservation_id is not None:
            stmt = stmt.where(models.Reservation.id != exclude_reservation_id)
        return self.db.scalar(stmt) or 0

    def is_room_available(self, room_id: int, start_date, end_date, exclude_reservation_id=None) -> bool:
        check_date_range(start_date, end_date)
        with self._guard("check room availability"):
            return self._count_overlapping(room_id, start_date, end_date, exclude_reservation_id) == 0

    def _lock_room(self, room_id):
        self.db.execute(select(models.Room.id).where(models.Room.id == room_id).with_for_update())

    def create_reservation(self, reservation: schemas.Reservation) -> int:
        check_date_range(reservation.start_date, reservation.end_date)
        with _room_lock(reservation.room_id):
            with self._guard("create reservation"):
                self._lock_room(reservation.room_id)
                if (
                    reservation.status != ReservationStatus.CANCELED
                    and self._count_overlapping(reservation.room_id, reservation.start_date, reservation.end_date)
                ):
                    self.db.rollback()
                    raise RoomUnavailableError(reservation.room_id, reservation.start_date, reservation.end_date)

                row = models.Reservation(**reservation.model_dump(exclude={"id"}))
                self.db.add(row)
                self.db.commit()
                self.db.refresh(row)

        logger.info(
            "Reserved room %s from %s to %s (reservation %s)",
            row.room_id, row.start_date, row.end_date, row.id,
        )
        return row.id

    def update_reservation(self, reservation: schemas.Reservation) -> int:
        check_date_range(reservation.start_date, reservation.end_date)
        stmt = (
            update(models.Reservation)
            .where(models.Reservation.id == reservation.id)
            .values(
                client_id=reservation.client_id,
                room_id=reservation.room_id,
                total_price=reservation.total_price,
                start_date=reservation.start_date,
                end_date=reservation.end_date,
                status=reservation.status,
            )
        )
        with _room_lock(reservation.room_id):
            with self._guard("update reservation"):
                self._lock_room(reservation.room_id)
                if reservation.status != ReservationStatus.CANCELED and self._count_overlapping(
                    reservation.room_id, reservation.start_date, reservation.end_date, reservation.id
                ):
                    self.db.rollback()
                    raise RoomUnavailableError(reservation.room_id, reservation.start_date, reservation.end_date)

                result = self.db.execute(stmt)
                self.db.commit()
        return result.rowcount


class SqlPaymentRepository(SqlRepository):
    model = models.Payment
    schema = schemas.Payment

    def get_all_payments(self):
        return self._all(select(models.Payment).order_by(models.Payment.id))

    def get_payment_by_id(self, payment_id: int):
        return self._first(select(models.Payment).where(models.Payment.id == payment_id))

    def get_payments_by_reservation_id(self, reservation_id: int):
        return self._all(
            select(models.Payment)
            .where(models.Payment.reservation_id == reservation_id)
            .order_by(models.Payment.id)
        )

    def get_payments_by_client(self, client_id: int):
        return self._all(
            select(models.Payment)
            .join(models.Reservation, models.Payment.reservation_id == models.Reservation.id)
            .where(models.Reservation.client_id == client_id)
            .order_by(models.Payment.id)
        )

    def create_payment(self, payment: schemas.Payment) -> int:
        return self._insert(payment)

    def update_payment(self, payment: schemas.Payment, payment_id: int) -> int:
        stmt = (
            update(models.Payment)
            .where(models.Payment.id == payment_id)
            .values(amount=payment.amount, payment_date=payment.payment_date, method=payment.method)
        )
        return self._execute(stmt, "update payment")

    def delete_payment(self, payment_id: int) -> int:
        return self._execute(delete(models.Payment).where(models.Payment.id == payment_id), "delete payment")

    def get_total_paid(self, reservation_id: int):
        stmt = select(func.coalesce(func.sum(models.Payment.amount), 0)).where(
            models.Payment.reservation_id == reservation_id
        )
        with self._guard("sum payments"):
            return to_money(self.db.scalar(stmt))
