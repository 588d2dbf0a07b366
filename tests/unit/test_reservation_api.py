from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from tablebook.api.dependencies import (
    Repositories,
    build_memory_repositories,
    get_clock,
    get_password_hasher,
    get_publisher,
    get_repositories,
)
from tablebook.api.main import create_app
from tablebook.domain.common.ids import TableId, UserId
from tablebook.domain.table.entities import Table
from tablebook.domain.user.entities import Role, User
from tablebook.infrastructure.auth.jwt_tokens import JwtTokenService

NOW = datetime(2025, 11, 7, 12, 0)
SECRET = "api-test-secret-with-enough-length-000001"


class FakePasswordHasher:
    def hash_password(self, plain_password: str) -> str:
        return f"hashed:{plain_password}"

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        return hashed_password == f"hashed:{plain_password}"


class FakePublisher:
    def __init__(self) -> None:
        self.published: list[tuple[str, str]] = []

    def publish(self, channel: str, message: str) -> None:
        self.published.append((channel, message))


def _fixed_clock():
    return lambda: NOW


@pytest.fixture
def repositories() -> Repositories:
    repositories = build_memory_repositories(seed=False)
    for number, seats in ((1, 2), (2, 4), (3, 6)):
        repositories.tables.add(
            Table(table_id=TableId(f"tbl_{number:03d}"), number=number, seats=seats)
        )
    repositories.users.add(
        User(
            user_id=UserId("usr_admin"),
            email="admin@example.com",
            password_hash="hashed:adminpass",
            role=Role.ADMIN,
            full_name="Admin",
        )
    )
    return repositories


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def app(repositories: Repositories, publisher: FakePublisher) -> FastAPI:
    token_service = JwtTokenService(
        secret=SECRET,
        ttl_seconds=3600,
        clock=lambda: datetime.now(timezone.utc),
    )
    application = create_app(token_service=token_service)
    application.dependency_overrides[get_repositories] = lambda: repositories
    application.dependency_overrides[get_publisher] = lambda: publisher
    application.dependency_overrides[get_clock] = _fixed_clock
    application.dependency_overrides[get_password_hasher] = FakePasswordHasher
    return application


def _register(app: FastAPI, email: str, full_name: str = "Guest") -> TestClient:
    client = TestClient(app)
    response = client.post(
        "/auth/register",
        json={"email": email, "password": "secret1", "fullName": full_name},
    )
    assert response.status_code == 200, response.text
    return client


def _login(app: FastAPI, email: str, password: str) -> TestClient:
    client = TestClient(app)
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return client


def test_register_sets_token_cookie(app: FastAPI) -> None:
    client = TestClient(app)
    response = client.post(
        "/auth/register",
        json={"email": "Alice@Example.com", "password": "secret1", "fullName": "Alice"},
    )

    assert response.status_code == 200
    assert response.json() == {
        "email": "alice@example.com",
        "role": "USER",
        "fullName": "Alice",
        "phone": None,
    }
    set_cookie = response.headers["set-cookie"].lower()
    assert set_cookie.startswith("token=")
    assert "httponly" in set_cookie
    assert "samesite=lax" in set_cookie
    assert "max-age=3600" in set_cookie
    assert "path=/" in set_cookie


def test_register_twice_with_different_case_conflicts(app: FastAPI) -> None:
    _register(app, "alice@example.com")
    response = TestClient(app).post(
        "/auth/register",
        json={"email": "ALICE@example.com", "password": "secret1", "fullName": "Alice"},
    )
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "EMAIL_TAKEN"


def test_register_validates_payload(app: FastAPI) -> None:
    response = TestClient(app).post(
        "/auth/register",
        json={"email": "alice@example.com", "password": "123", "fullName": "Alice"},
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_REQUEST"


def test_login_and_auth_check(app: FastAPI) -> None:
    _register(app, "alice@example.com", "Alice")

    bad = TestClient(app).post(
        "/auth/login", json={"email": "alice@example.com", "password": "wrong"}
    )
    assert bad.status_code == 401
    assert bad.json()["error"]["code"] == "BAD_CREDENTIALS"

    client = _login(app, "alice@example.com", "secret1")
    check = client.get("/auth/auth_check")
    assert check.status_code == 200
    assert check.json()["fullName"] == "Alice"

    assert TestClient(app).get("/auth/auth_check").status_code == 401


def test_logout_clears_cookie(app: FastAPI) -> None:
    client = _register(app, "alice@example.com")
    response = client.post("/auth/logout")
    assert response.status_code == 200
    assert 'token=""' in response.headers["set-cookie"] or "token=;" in response.headers[
        "set-cookie"
    ]
    assert client.get("/auth/auth_check").status_code == 401


def test_bearer_header_authenticates(app: FastAPI) -> None:
    registered = _register(app, "alice@example.com")
    token = registered.cookies.get("token")
    response = TestClient(app).get(
        "/reservations/mine", headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 204


def test_booking_round_trip(app: FastAPI, publisher: FakePublisher) -> None:
    client = _register(app, "alice@example.com", "Alice")

    created = client.post(
        "/reservations", json={"tableNumber": 1, "startTime": "2025-11-07T18:00"}
    )
    assert created.status_code == 200, created.text
    body = created.json()
    assert body["email"] == "alice@example.com"
    assert body["fullName"] == "Alice"
    assert body["tableNumber"] == 1
    assert body["startTime"] == "2025-11-07T18:00:00"
    assert body["endTime"] == "2025-11-07T20:00:00"
    assert len(publisher.published) == 1

    mine = client.get("/reservations/mine")
    assert mine.status_code == 200
    assert mine.json() == body

    available = client.get(
        "/reservations/available", params={"start": "2025-11-07T19:00", "minutes": 60}
    )
    assert available.status_code == 200
    assert [table["tableNumber"] for table in available.json()] == [2, 3]

    deleted = client.delete(f"/reservations/{body['id']}")
    assert deleted.status_code == 204
    assert client.get("/reservations/mine").status_code == 204

    again = client.delete(f"/reservations/{body['id']}")
    assert again.status_code == 404
    assert again.json()["error"]["code"] == "RESERVATION_NOT_FOUND"


def test_available_accepts_seconds_and_defaults_minutes(app: FastAPI) -> None:
    client = _register(app, "alice@example.com")
    client.post(
        "/reservations",
        json={"tableNumber": 2, "startTime": "2025-11-07T18:00", "endTime": "2025-11-07T19:00"},
    )

    touching = client.get("/reservations/available", params={"start": "2025-11-07T19:00:00"})
    assert [table["tableNumber"] for table in touching.json()] == [1, 2, 3]
    assert touching.json()[0] == {"id": "tbl_001", "tableNumber": 1, "numberOfSeats": 2}

    inside = client.get("/reservations/available", params={"start": "2025-11-07T18:45"})
    assert [table["tableNumber"] for table in inside.json()] == [1, 3]


def test_available_requires_authentication_and_valid_start(app: FastAPI) -> None:
    assert TestClient(app).get(
        "/reservations/available", params={"start": "2025-11-07T18:00"}
    ).status_code == 401

    client = _register(app, "alice@example.com")
    response = client.get("/reservations/available", params={"start": "tomorrow"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_REQUEST"


def test_booking_requires_authentication(app: FastAPI) -> None:
    response = TestClient(app).post(
        "/reservations", json={"tableNumber": 1, "startTime": "2025-11-07T18:00"}
    )
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_invalid_cookie_yields_401_not_crash(app: FastAPI) -> None:
    client = TestClient(app)
    client.cookies.set("token", "definitely-not-a-jwt")
    response = client.post(
        "/reservations", json={"tableNumber": 1, "startTime": "2025-11-07T18:00"}
    )
    assert response.status_code == 401


def test_window_errors_expose_reason(app: FastAPI) -> None:
    client = _register(app, "alice@example.com")
    response = client.post(
        "/reservations",
        json={"tableNumber": 1, "startTime": "2025-11-07T21:00", "endTime": "2025-11-07T22:30"},
    )
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "INVALID_RESERVATION_WINDOW"
    assert error["details"] == {"reason": "ENDS_AFTER_CLOSING"}
    assert error["message"] == "reservations are only allowed until 22:00"


def test_conflicts(app: FastAPI) -> None:
    alice = _register(app, "alice@example.com")
    bob = _register(app, "bob@example.com")

    assert alice.post(
        "/reservations", json={"tableNumber": 1, "startTime": "2025-11-07T18:00"}
    ).status_code == 200

    taken = bob.post("/reservations", json={"tableNumber": 1, "startTime": "2025-11-07T19:00"})
    assert taken.status_code == 409
    assert taken.json()["error"]["code"] == "TABLE_ALREADY_RESERVED"

    twice = alice.post("/reservations", json={"tableNumber": 2, "startTime": "2025-11-07T18:00"})
    assert twice.status_code == 409
    assert twice.json()["error"]["code"] == "USER_ALREADY_RESERVED"

    missing = bob.post("/reservations", json={"tableNumber": 42, "startTime": "2025-11-07T18:00"})
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "TABLE_NOT_FOUND"


def test_only_owner_or_admin_can_cancel(app: FastAPI) -> None:
    alice = _register(app, "alice@example.com")
    bob = _register(app, "bob@example.com")
    reservation_id = alice.post(
        "/reservations", json={"tableNumber": 1, "startTime": "2025-11-07T18:00"}
    ).json()["id"]

    forbidden = bob.delete(f"/reservations/{reservation_id}")
    assert forbidden.status_code == 403
    assert forbidden.json()["error"]["code"] == "FORBIDDEN"

    admin = _login(app, "admin@example.com", "adminpass")
    assert admin.delete(f"/reservations/{reservation_id}").status_code == 204
    assert alice.get("/reservations/mine").status_code == 204


def test_admin_listing(app: FastAPI) -> None:
    alice = _register(app, "alice@example.com", "Alice")
    bob = _register(app, "bob@example.com", "Bob")
    alice.post("/reservations", json={"tableNumber": 2, "startTime": "2025-11-07T18:00"})
    bob.post("/reservations", json={"tableNumber": 1, "startTime": "2025-11-07T18:00"})

    assert TestClient(app).get("/reservations/all").status_code == 401
    assert alice.get("/reservations/all").status_code == 403

    admin = _login(app, "admin@example.com", "adminpass")
    listing = admin.get("/reservations/all")
    assert listing.status_code == 200
    assert [(row["tableNumber"], row["fullName"]) for row in listing.json()] == [
        (1, "Bob"),
        (2, "Alice"),
    ]


def test_valid_token_for_missing_user(app: FastAPI) -> None:
    client = TestClient(app)
    client.cookies.set("token", app.state.token_service.issue("ghost@example.com"))

    booking = client.post(
        "/reservations", json={"tableNumber": 1, "startTime": "2025-11-07T18:00"}
    )
    assert booking.status_code == 404
    assert booking.json()["error"]["code"] == "USER_NOT_FOUND"
    assert client.get("/auth/auth_check").status_code == 401
    assert client.get("/reservations/all").status_code == 403


def test_error_body_carries_request_id(app: FastAPI) -> None:
    response = TestClient(app).get(
        "/reservations/mine", headers={"X-Request-Id": "req-test-123"}
    )
    assert response.status_code == 401
    assert response.json()["requestId"] == "req-test-123"
    assert response.headers["X-Request-Id"] == "req-test-123"


def test_profile_update_and_password_change(app: FastAPI) -> None:
    client = _register(app, "alice@example.com", "Alice")

    profile = client.get("/user/me")
    assert profile.json() == {"fullName": "Alice", "email": "alice@example.com", "phone": None}

    updated = client.put("/user/me", json={"email": "Alice.New@Example.com", "phone": "555"})
    assert updated.status_code == 204
    assert client.get("/auth/auth_check").json()["email"] == "alice.new@example.com"

    changed = client.put(
        "/user/change-password", json={"oldPassword": "secret1", "newPassword": "another1"}
    )
    assert changed.status_code == 200
    _login(app, "alice.new@example.com", "another1")

    short = client.put(
        "/user/change-password", json={"oldPassword": "another1", "newPassword": "abc"}
    )
    assert short.status_code == 400
    assert short.json()["error"]["code"] == "INVALID_PASSWORD"


def test_profile_update_rejects_taken_email(app: FastAPI) -> None:
    _register(app, "alice@example.com")
    bob = _register(app, "bob@example.com")
    response = bob.put("/user/me", json={"email": "alice@example.com"})
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "EMAIL_TAKEN"
