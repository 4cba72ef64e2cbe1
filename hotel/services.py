# hotel/services.py
import logging
from datetime import date

from hotel import schemas
from hotel.exceptions import BusinessRuleError, InvalidDateRangeError, NotFoundError
from hotel.models import RoomStatus, ReservationStatus
from hotel.repositories.base import (
    AdministratorRepository,
    ClientRepository,
    PaymentRepository,
    ReservationRepository,
    RoomRepository,
    UserRepository,
    to_money,
)

logger = logging.getLogger(__name__)


class ReservationService:
    """
    Booking rules on top of the reservation and room repositories: prices are
    derived from the room rate, new bookings always start as PENDING and only
    pending bookings may be moved.
    """

    def __init__(self, reservations: ReservationRepository, rooms: RoomRepository):
        self.reservations = reservations
        self.rooms = rooms

    def _get_reservation(self, reservation_id: int) -> schemas.Reservation:
        reservation = self.reservations.get_reservation_by_id(reservation_id)
        if reservation is None:
            raise NotFoundError(f"Reservation {reservation_id} not found")
        return reservation

    def calculate_total(self, start_date: date, end_date: date, room_id: int):
        if start_date is None or end_date is None:
            raise InvalidDateRangeError("Start and end dates are required")
        if end_date <= start_date:
            raise InvalidDateRangeError("A stay needs at least one night between check-in and check-out")

        room = self.rooms.get_room_by_id(room_id)
        if room is None:
            raise NotFoundError(f"Room {room_id} not found")
        if room.price_per_night <= 0:
            raise BusinessRuleError(f"Room {room_id} has no valid nightly price")

        nights = (end_date - start_date).days
        return to_money(room.price_per_night * nights)

    def book(self, reservation: schemas.Reservation) -> int:
        room = self.rooms.get_room_by_id(reservation.room_id)
        if room is None:
            raise NotFoundError(f"Room {reservation.room_id} not found")
        if room.status == RoomStatus.MAINTENANCE:
            raise BusinessRuleError("Rooms under maintenance cannot be booked")

        total = self.calculate_total(reservation.start_date, reservation.end_date, reservation.room_id)
        booking = reservation.model_copy(update={"total_price": total, "status": ReservationStatus.PENDING})
        reservation_id = self.reservations.create_reservation(booking)
        logger.info("Booked reservation %s for client %s", reservation_id, reservation.client_id)
        return reservation_id

    def reschedule(self, reservation_id: int, start_date: date, end_date: date, room_id: int = None) -> int:
        reservation = self._get_reservation(reservation_id)
        if reservation.status != ReservationStatus.PENDING:
            raise BusinessRuleError("Only pending reservations can be modified")

        room_id = room_id if room_id is not None else reservation.room_id
        total = self.calculate_total(start_date, end_date, room_id)
        moved = reservation.model_copy(
            update={"room_id": room_id, "start_date": start_date, "end_date": end_date, "total_price": total}
        )
        updated = self.reservations.update_reservation(moved)
        logger.debug("Reservation %s rescheduled, %s row(s) updated", reservation_id, updated)
        return updated

    def cancel(self, reservation_id: int) -> int:
        reservation = self._get_reservation(reservation_id)
        if reservation.status == ReservationStatus.CONFIRMED:
            raise BusinessRuleError("Confirmed reservations cannot be canceled")

        return self.reservations.update_reservation(
            reservation.model_copy(update={"status": ReservationStatus.CANCELED})
        )


class PaymentService:
    def __init__(self, payments: PaymentRepository, reservations: ReservationRepository):
        self.payments = payments
        self.reservations = reservations

    def _get_reservation(self, reservation_id: int) -> schemas.Reservation:
        reservation = self.reservations.get_reservation_by_id(reservation_id)
        if reservation is None:
            raise NotFoundError(f"Reservation {reservation_id} not found")
        return reservation

    def _check_open(self, reservation: schemas.Reservation) -> None:
        if reservation.status == ReservationStatus.CANCELED:
            raise BusinessRuleError("Payments of canceled reservations cannot be changed")

    def _sync_reservation_status(self, reservation: schemas.Reservation) -> None:
        # A reservation is confirmed exactly when its payments cover the total price
        paid = self.payments.get_total_paid(reservation.id)
        total = to_money(reservation.total_price)
        if paid > total:
            raise BusinessRuleError("Payments exceed the total price of the reservation")

        status = ReservationStatus.CONFIRMED if paid == total else ReservationStatus.PENDING
        if status != reservation.status:
            self.reservations.update_reservation(reservation.model_copy(update={"status": status}))
            logger.info("Reservation %s is now %s", reservation.id, status.value)

    def record_payment(self, reservation_id: int, payment: schemas.Payment) -> int:
        reservation = self._get_reservation(reservation_id)
        if reservation.status == ReservationStatus.CANCELED:
            raise BusinessRuleError("Payments cannot be registered for canceled reservations")

        remaining = to_money(reservation.total_price) - self.payments.get_total_paid(reservation_id)
        if payment.amount > remaining:
            if reservation.status == ReservationStatus.CONFIRMED:
                raise BusinessRuleError("The reservation is already paid and confirmed")
            raise BusinessRuleError("The payment exceeds the outstanding amount")

        payment_id = self.payments.create_payment(
            payment.model_copy(update={"reservation_id": reservation_id, "payment_date": date.today()})
        )
        self._sync_reservation_status(reservation)
        return payment_id

    def update_payment(self, payment_id: int, changes: schemas.PaymentUpdate) -> int:
        payment = self.payments.get_payment_by_id(payment_id)
        if payment is None:
            raise NotFoundError(f"Payment {payment_id} not found")
        reservation = self._get_reservation(payment.reservation_id)
        self._check_open(reservation)

        fields = changes.model_dump(exclude_none=True)
        if not fields:
            raise BusinessRuleError("Nothing to update")
        if "amount" in fields:
            projected = self.payments.get_total_paid(reservation.id) - payment.amount + fields["amount"]
            if projected > to_money(reservation.total_price):
                raise BusinessRuleError("Payments exceed the total price of the reservation")

        updated = self.payments.update_payment(payment.model_copy(update=fields), payment_id)
        if "amount" in fields:
            self._sync_reservation_status(reservation)
        return updated

    def delete_payment(self, payment_id: int) -> int:
        payment = self.payments.get_payment_by_id(payment_id)
        if payment is None:
            raise NotFoundError(f"Payment {payment_id} not found")
        reservation = self._get_reservation(payment.reservation_id)
        self._check_open(reservation)

        deleted = self.payments.delete_payment(payment_id)
        self._sync_reservation_status(reservation)
        return deleted


class AccountService:
    """Profiles hang off their user row, so removing one removes the user."""

    def __init__(self, users: UserRepository, clients: ClientRepository, administrators: AdministratorRepository):
        self.users = users
        self.clients = clients
        self.administrators = administrators

    def delete_client(self, client_id: int) -> int:
        client = self.clients.get_client_by_id(client_id)
        if client is None:
            raise NotFoundError(f"Client {client_id} not found")
        return self.users.delete_user(client.user_id)

    def delete_administrator(self, administrator_id: int) -> int:
        administrator = self.administrators.get_administrator_by_id(administrator_id)
        if administrator is None:
            raise NotFoundError(f"Administrator {administrator_id} not found")
        return self.users.delete_user(administrator.user_id)
