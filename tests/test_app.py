import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from hotel import dependencies
from hotel.config import settings
from hotel.exceptions import PurgeNotAllowedError
from hotel.main import app
from hotel.repositories import (
    MemoryRoomRepository,
    Purgeable,
    ReservationRepository,
    RoomRepository,
    SqlReservationRepository,
    SqlRoomRepository,
)
from hotel.services import ReservationService


def test_read_root():
    client = TestClient(app)
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"message": "Welcome to the Hotel Management System"}


def test_main_app_handlers_answer_unexpected_faults():
    # a throwaway app carrying the main app's handlers, so no route is added to the real one
    scratch = FastAPI()
    scratch.exception_handlers.update(app.exception_handlers)

    @scratch.get("/boom")
    def boom():
        return None.total_price

    client = TestClient(scratch, raise_server_exceptions=False)
    response = client.get("/boom")

    assert response.status_code == 500
    assert response.text == "Internal error. Contact support"
    assert "/boom" not in {route.path for route in app.routes}


class TestRepositoryComposition:

    def test_sql_backend_is_the_default(self, sql_session):
        rooms = dependencies.make_repository("rooms", sql_session)

        assert isinstance(rooms, SqlRoomRepository)
        assert isinstance(rooms, RoomRepository)

    def test_memory_backend_selected_by_setting(self, monkeypatch):
        monkeypatch.setattr(settings, "STORAGE_BACKEND", "memory")

        rooms = dependencies.get_room_repository(db=None)

        assert isinstance(rooms, MemoryRoomRepository)

    def test_purge_follows_setting(self, sql_session, monkeypatch):
        monkeypatch.setattr(settings, "ALLOW_PURGE", False)
        with pytest.raises(PurgeNotAllowedError):
            dependencies.make_repository("rooms", sql_session).delete_all()

        monkeypatch.setattr(settings, "ALLOW_PURGE", True)
        rooms = dependencies.make_repository("rooms", sql_session)
        rooms.delete_all()
        assert rooms.get_all_rooms() == []

    def test_purge_is_not_part_of_the_request_protocol(self):
        assert "delete_all" not in RoomRepository.__dict__
        assert "delete_all" in Purgeable.__dict__

    def test_service_providers_wire_repositories(self, sql_session):
        reservations = dependencies.get_reservation_repository(db=sql_session)
        rooms = dependencies.get_room_repository(db=sql_session)

        service = dependencies.get_reservation_service(reservations=reservations, rooms=rooms)

        assert isinstance(service, ReservationService)
        assert isinstance(service.reservations, SqlReservationRepository)
        assert isinstance(service.reservations, ReservationRepository)
