"""
Double-booking prevention: many threads race to reserve the same room for
overlapping dates and exactly one of them may win.
"""
import threading

import pytest
from sqlalchemy.orm import sessionmaker

from hotel import schemas
from hotel.database import Base, make_engine
from hotel.exceptions import RoomUnavailableError
from hotel.repositories import MemoryStore
from hotel.repositories.sql import ROOM_LOCK_STRIPES, _room_lock
from tests.conftest import build_repositories, d, make_reservation, make_room, make_user

ATTEMPTS = 8


def race(make_repository, client_id, room_id):
    barrier = threading.Barrier(ATTEMPTS)
    outcomes = []
    outcomes_lock = threading.Lock()

    def attempt(offset):
        reservations = make_repository()
        barrier.wait()
        try:
            # every range shares day 10 with every other one
            reservations.create_reservation(make_reservation(client_id, room_id, d(10 - offset), d(10 + offset)))
            result = "booked"
        except RoomUnavailableError:
            result = "rejected"
        with outcomes_lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt, args=(offset,)) for offset in range(ATTEMPTS)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return outcomes


def seed(repos):
    user_id = repos.users.create_user(make_user())
    client_id = repos.clients.create_client(schemas.Client(user_id=user_id, first_name="Ana", last_name="Lopez"))
    room_id = repos.rooms.create_room(make_room())
    return client_id, room_id


def test_memory_backend_books_room_once():
    store = MemoryStore()
    client_id, room_id = seed(build_repositories("memory", store=store))

    outcomes = race(lambda: build_repositories("memory", store=store).reservations, client_id, room_id)

    assert sorted(outcomes) == ["booked"] + ["rejected"] * (ATTEMPTS - 1)
    assert len(build_repositories("memory", store=store).reservations.get_all_reservations()) == 1


@pytest.fixture
def file_engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'hotel_race.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


def test_sql_backend_books_room_once(file_engine):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    setup_session = Session()
    try:
        client_id, room_id = seed(build_repositories("sql", session=setup_session))
    finally:
        setup_session.close()

    sessions = []

    def reservations_for_thread():
        session = Session()
        sessions.append(session)
        return build_repositories("sql", session=session).reservations

    try:
        outcomes = race(reservations_for_thread, client_id, room_id)
    finally:
        for session in sessions:
            session.close()

    assert sorted(outcomes) == ["booked"] + ["rejected"] * (ATTEMPTS - 1)

    check_session = Session()
    try:
        assert len(build_repositories("sql", session=check_session).reservations.get_all_reservations()) == 1
    finally:
        check_session.close()


def test_room_locks_come_from_a_fixed_pool():
    assert _room_lock(7) is _room_lock(7)
    assert _room_lock(7) is _room_lock(7 + ROOM_LOCK_STRIPES)
    assert _room_lock(7) is not _room_lock(8)
    assert len({id(_room_lock(room_id)) for room_id in range(10 * ROOM_LOCK_STRIPES)}) == ROOM_LOCK_STRIPES
