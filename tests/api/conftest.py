from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.identity.domain.models import UserRole
from routes.dependencies import (
    get_clock,
    get_notification_sink,
    get_password_hasher,
    get_rdq_repository,
    get_user_repository,
)
from server import app

from fakes import (
    FakeHasher,
    FakeRdqRepository,
    FakeUserRepository,
    RecordingNotificationSink,
    TickingClock,
)

PASSWORD = "Secret1!"


class ApiWorld:
    """Fake stores wired into the app plus logged-in clients per persona."""

    def __init__(self) -> None:
        self.users = FakeUserRepository()
        self.rdq = FakeRdqRepository(self.users)
        self.notifier = RecordingNotificationSink()
        self.clock = TickingClock(start=datetime.now(timezone.utc))

        self.admin = self.users.seed("admin@example.com", UserRole.ADMIN, password=PASSWORD)
        self.manager = self.users.seed("bob@example.com", UserRole.MANAGER, password=PASSWORD)
        self.other_manager = self.users.seed("dave@example.com", UserRole.MANAGER, password=PASSWORD)
        self.alice = self.users.seed(
            "alice@example.com", manager_id=self.manager.id, password=PASSWORD
        )
        self.carol = self.users.seed(
            "carol@example.com", manager_id=self.other_manager.id, password=PASSWORD
        )
        self.client = TestClient(app)

    def token(self, user) -> str:
        response = self.client.post(
            "/api/auth/login", json={"email": user.email, "password": PASSWORD}
        )
        assert response.status_code == 200, response.text
        return response.json()["access_token"]

    def headers(self, user) -> dict:
        return {"Authorization": f"Bearer {self.token(user)}"}


@pytest.fixture
def world():
    world = ApiWorld()
    app.dependency_overrides[get_user_repository] = lambda: world.users
    app.dependency_overrides[get_rdq_repository] = lambda: world.rdq
    app.dependency_overrides[get_notification_sink] = lambda: world.notifier
    app.dependency_overrides[get_password_hasher] = lambda: FakeHasher()
    app.dependency_overrides[get_clock] = lambda: world.clock
    yield world
    app.dependency_overrides.clear()
