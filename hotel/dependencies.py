# hotel/dependencies.py
from fastapi import Depends
from sqlalchemy.orm import Session

from hotel.config import settings
from hotel.database import get_db
from hotel.repositories import (
    AdministratorRepository,
    ClientRepository,
    PaymentRepository,
    ReservationRepository,
    RoomRepository,
    UserRepository,
    memory,
    sql,
)
from hotel.services import AccountService, PaymentService, ReservationService

BACKENDS = {
    "sql": {
        "users": sql.SqlUserRepository,
        "administrators": sql.SqlAdministratorRepository,
        "clients": sql.SqlClientRepository,
        "rooms": sql.SqlRoomRepository,
        "reservations": sql.SqlReservationRepository,
        "payments": sql.SqlPaymentRepository,
    },
    "memory": {
        "users": memory.MemoryUserRepository,
        "administrators": memory.MemoryAdministratorRepository,
        "clients": memory.MemoryClientRepository,
        "rooms": memory.MemoryRoomRepository,
        "reservations": memory.MemoryReservationRepository,
        "payments": memory.MemoryPaymentRepository,
    },
}


def make_repository(entity: str, db: Session = None, backend: str = None, allow_purge: bool = None):
    """
    Builds the repository for `entity` on the configured backend. The SQL
    backend needs the request's session; the memory backend shares the
    process-wide store.
    """
    backend = backend or settings.STORAGE_BACKEND
    allow_purge = settings.ALLOW_PURGE if allow_purge is None else allow_purge
    repository_class = BACKENDS[backend][entity]
    if backend == "sql":
        return repository_class(db, allow_purge=allow_purge)
    return repository_class(memory.default_store, allow_purge=allow_purge)


# Repository providers
def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    return make_repository("users", db)

def get_administrator_repository(db: Session = Depends(get_db)) -> AdministratorRepository:
    return make_repository("administrators", db)

def get_client_repository(db: Session = Depends(get_db)) -> ClientRepository:
    return make_repository("clients", db)

def get_room_repository(db: Session = Depends(get_db)) -> RoomRepository:
    return make_repository("rooms", db)

def get_reservation_repository(db: Session = Depends(get_db)) -> ReservationRepository:
    return make_repository("reservations", db)

def get_payment_repository(db: Session = Depends(get_db)) -> PaymentRepository:
    return make_repository("payments", db)


# Service providers
def get_reservation_service(
    reservations: ReservationRepository = Depends(get_reservation_repository),
    rooms: RoomRepository = Depends(get_room_repository),
) -> ReservationService:
    return ReservationService(reservations, rooms)

def get_payment_service(
    payments: PaymentRepository = Depends(get_payment_repository),
    reservations: ReservationRepository = Depends(get_reservation_repository),
) -> PaymentService:
    return PaymentService(payments, reservations)

def get_account_service(
    users: UserRepository = Depends(get_user_repository),
    clients: ClientRepository = Depends(get_client_repository),
    administrators: AdministratorRepository = Depends(get_administrator_repository),
) -> AccountService:
    return AccountService(users, clients, administrators)
