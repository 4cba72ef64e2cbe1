import logging
from datetime import date

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from hotel.database import get_db
from hotel.dependencies import get_reservation_repository, get_room_repository
from hotel.exceptions import (
    BusinessRuleError,
    ConstraintViolationError,
    NotFoundError,
    PurgeNotAllowedError,
    RoomUnavailableError,
    StorageFault,
)
from hotel.handlers import INTERNAL_ERROR_MESSAGE, register_exception_handlers


def build_app():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/null-profile")
    def null_profile():
        profile = None
        return {"name": profile.name}

    @app.get("/broken-sum")
    def broken_sum():
        return {"total": sum([1, "2"])}

    @app.get("/raise/{kind}")
    def raise_kind(kind: str):
        errors = {
            "missing": NotFoundError("Reservation 7 not found"),
            "rule": BusinessRuleError("Confirmed reservations cannot be canceled"),
            "duplicate": ConstraintViolationError("Duplicate value for users.email"),
            "taken": RoomUnavailableError(3, date(2025, 6, 1), date(2025, 6, 3)),
            "purge": PurgeNotAllowedError("Bulk delete of rooms is disabled"),
            "storage": StorageFault("connection refused by db-host:5432"),
            "value": ValueError("plain value error"),
        }
        raise errors[kind]

    return app


@pytest.fixture
def client():
    # Unhandled errors are re-raised by Starlette after the handler answers
    return TestClient(build_app(), raise_server_exceptions=False)


@pytest.mark.parametrize("path", ["/null-profile", "/broken-sum", "/raise/value"])
def test_unexpected_faults_get_opaque_500(client, path):
    response = client.get(path)

    assert response.status_code == 500
    assert response.text == INTERNAL_ERROR_MESSAGE == "Internal error. Contact support"


def test_unexpected_fault_is_logged_server_side(client, caplog):
    with caplog.at_level(logging.ERROR, logger="hotel.handlers"):
        client.get("/null-profile")

    assert any("NoneType" in record.getMessage() for record in caplog.records)


@pytest.mark.parametrize(
    "kind, status_code",
    [
        ("missing", 404),
        ("rule", 400),
        ("duplicate", 409),
        ("taken", 409),
        ("purge", 403),
    ],
)
def test_known_faults_map_to_status_codes(client, kind, status_code):
    response = client.get(f"/raise/{kind}")

    assert response.status_code == status_code
    assert response.json()["detail"]


def test_storage_faults_do_not_leak_details(client):
    response = client.get("/raise/storage")

    assert response.status_code == 503
    assert response.json() == {"detail": "Storage unavailable"}
    assert "db-host" not in response.text


def test_repository_fault_through_dependency_injection(sql_session):
    app = build_app()
    app.dependency_overrides[get_db] = lambda: sql_session

    @app.get("/availability/{room_id}")
    def availability(room_id: int, reservations=Depends(get_reservation_repository)):
        return {"available": reservations.is_room_available(room_id, date(2025, 6, 10), date(2025, 6, 1))}

    @app.get("/rooms/{room_id}/rate")
    def rate(room_id: int, rooms=Depends(get_room_repository)):
        # absent room: dereferencing None is an unexpected fault
        return {"rate": str(rooms.get_room_by_id(room_id).price_per_night)}

    client = TestClient(app, raise_server_exceptions=False)

    assert client.get("/availability/1").status_code == 400
    response = client.get("/rooms/1/rate")
    assert response.status_code == 500
    assert response.text == "Internal error. Contact support"
