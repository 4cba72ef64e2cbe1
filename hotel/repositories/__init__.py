from hotel.repositories.base import (
    AdministratorRepository,
    ClientRepository,
    PaymentRepository,
    Purgeable,
    ReservationRepository,
    RoomRepository,
    UserRepository,
)
from hotel.repositories.memory import (
    MemoryAdministratorRepository,
    MemoryClientRepository,
    MemoryPaymentRepository,
    MemoryReservationRepository,
    MemoryRoomRepository,
    MemoryStore,
    MemoryUserRepository,
)
from hotel.repositories.sql import (
    SqlAdministratorRepository,
    SqlClientRepository,
    SqlPaymentRepository,
    SqlReservationRepository,
    SqlRoomRepository,
    SqlUserRepository,
)

__all__ = [
    "AdministratorRepository",
    "ClientRepository",
    "PaymentRepository",
    "Purgeable",
    "ReservationRepository",
    "RoomRepository",
    "UserRepository",
    "MemoryStore",
    "MemoryAdministratorRepository",
    "MemoryClientRepository",
    "MemoryPaymentRepository",
    "MemoryReservationRepository",
    "MemoryRoomRepository",
    "MemoryUserRepository",
    "SqlAdministratorRepository",
    "SqlClientRepository",
    "SqlPaymentRepository",
    "SqlReservationRepository",
    "SqlRoomRepository",
    "SqlUserRepository",
]
