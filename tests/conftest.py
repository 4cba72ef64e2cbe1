import os
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

# Keep the application engine off the filesystem during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy.orm import sessionmaker

from hotel import models, schemas
from hotel.database import Base, make_engine
from hotel.dependencies import BACKENDS, make_repository
from hotel.repositories import MemoryStore

ENTITIES = ("users", "administrators", "clients", "rooms", "reservations", "payments")


@pytest.fixture
def sql_session():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def memory_store():
    return MemoryStore()


def build_repositories(backend, session=None, store=None, allow_purge=True):
    repos = {}
    for entity in ENTITIES:
        if backend == "sql":
            repos[entity] = make_repository(entity, session, backend="sql", allow_purge=allow_purge)
        else:
            repos[entity] = BACKENDS["memory"][entity](store, allow_purge=allow_purge)
    return SimpleNamespace(**repos)


@pytest.fixture(params=["sql", "memory"])
def repos(request, memory_store):
    """All six repositories on one backend, with the purge capability on."""
    if request.param == "sql":
        session = request.getfixturevalue("sql_session")
        return build_repositories("sql", session=session)
    return build_repositories("memory", store=memory_store)


def make_user(email="guest@example.com", role=models.Role.CLIENT):
    return schemas.User(email=email, password="$2b$12$hashedsecret", role=role)


def make_room(room_number=101, room_type=models.RoomType.DOUBLE, price="80.00", status=models.RoomStatus.AVAILABLE):
    return schemas.Room(room_number=room_number, type=room_type, price_per_night=Decimal(price), status=status)


@pytest.fixture
def booking_setup(repos):
    """A client with one room, ready to reserve."""
    user_id = repos.users.create_user(make_user())
    client_id = repos.clients.create_client(
        schemas.Client(user_id=user_id, first_name="Ana", last_name="Lopez", phone="+34 600 000 000")
    )
    room_id = repos.rooms.create_room(make_room())
    other_room_id = repos.rooms.create_room(make_room(room_number=102))
    return SimpleNamespace(
        repos=repos,
        user_id=user_id,
        client_id=client_id,
        room_id=room_id,
        other_room_id=other_room_id,
    )


def make_reservation(client_id, room_id, start, end, status=models.ReservationStatus.PENDING, total="160.00"):
    return schemas.Reservation(
        client_id=client_id,
        room_id=room_id,
        start_date=start,
        end_date=end,
        status=status,
        total_price=Decimal(total) if total is not None else None,
    )


def d(day, month=6, year=2025):
    return date(year, month, day)
