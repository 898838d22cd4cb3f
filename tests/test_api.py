# tests/test_api.py

from __future__ import annotations

import re

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from auth.email_service import ACTIVATION_SUBJECT
from auth.models import Task, User
from auth.passwords import hash_password
from config.settings import Settings

from .fakes import FakeUserDatabase, RecordingEmailService

CODE_RE = re.compile(r"registration code is: ([0-9a-f]+)")


@pytest.fixture()
def user_db() -> FakeUserDatabase:
    return FakeUserDatabase()


@pytest.fixture()
def mailer() -> RecordingEmailService:
    return RecordingEmailService()


@pytest.fixture()
def client(user_db, mailer):
    settings = Settings(reminders_enabled=False, registration_code_ttl_seconds=30)
    app = create_app(settings=settings, user_db=user_db, email_service=mailer)
    with TestClient(app) as c:
        yield c


def activation_code(mailer: RecordingEmailService, email: str) -> str:
    messages = [m for m in mailer.sent_to(email) if m.subject == ACTIVATION_SUBJECT]
    assert messages, f"no activation email for {email}"
    return CODE_RE.search(messages[-1].body).group(1)


def seed_user(user_db: FakeUserDatabase, email: str = "a@b.com", password: str = "pw1", tasks=()) -> None:
    user_db.docs[email] = User(
        email=email, password=hash_password(password, iterations=1000), tasks=list(tasks)
    )


def test_end_to_end_registration_and_tasks(client, user_db, mailer) -> None:
    resp = client.get("/register", params={"email": "a@b.com", "password": "pw1"})
    assert resp.status_code == 200
    assert resp.text == "true"

    code = activation_code(mailer, "a@b.com")
    resp = client.get("/regFinish", params={"email": "a@b.com", "code": code})
    assert resp.status_code == 200
    assert resp.text == "true"

    assert client.get("/tasks", params={"email": "a@b.com"}).json() == []

    resp = client.get(
        "/createTask",
        params={
            "email": "a@b.com",
            "title": "write report",
            "description": "quarterly numbers",
            "deadline": "2099-01-01T00:00:00Z",
        },
    )
    assert resp.status_code == 200
    task_id = resp.json()["taskID"]

    tasks = client.get("/tasks", params={"email": "a@b.com"}).json()
    assert [t["id"] for t in tasks] == [task_id]
    assert tasks[0]["title"] == "write report"
    assert tasks[0]["complete"] is False

    resp = client.get("/deleteTask", params={"email": "a@b.com", "task_id": task_id})
    assert resp.status_code == 200

    assert client.get("/tasks", params={"email": "a@b.com"}).json() == []


def test_second_confirmation_is_rejected(client, mailer) -> None:
    client.get("/register", params={"email": "a@b.com", "password": "pw1"})
    code = activation_code(mailer, "a@b.com")

    assert client.get("/regFinish", params={"email": "a@b.com", "code": code}).text == "true"

    resp = client.get("/regFinish", params={"email": "a@b.com", "code": code})
    assert resp.status_code == 400
    assert resp.text == "invalid code"


def test_wrong_code_is_rejected(client, user_db) -> None:
    client.get("/register", params={"email": "a@b.com", "password": "pw1"})

    resp = client.get("/regFinish", params={"email": "a@b.com", "code": "deadbeef"})

    assert resp.status_code == 400
    assert resp.text == "invalid code"
    assert "a@b.com" not in user_db.docs


def test_expired_code_times_out(client, mailer) -> None:
    client.get("/register", params={"email": "a@b.com", "password": "pw1"})
    code = activation_code(mailer, "a@b.com")

    sessions = client.app.state.registration._sessions
    entry = sessions.get("a@b.com")
    entry.expires_at = sessions.now().replace(year=2000)

    resp = client.get("/regFinish", params={"email": "a@b.com", "code": code})
    assert resp.status_code == 410
    assert resp.text == "time out"


def test_register_rejects_invalid_email(client, mailer) -> None:
    resp = client.get("/register", params={"email": "not-an-email", "password": "pw1"})

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid email"
    assert mailer.sent == []


def test_register_succeeds_when_email_fails(user_db) -> None:
    settings = Settings(reminders_enabled=False)
    app = create_app(settings=settings, user_db=user_db, email_service=RecordingEmailService(fail=True))
    with TestClient(app) as c:
        resp = c.get("/register", params={"email": "a@b.com", "password": "pw1"})

    assert resp.status_code == 200
    assert resp.text == "true"


def test_login(client, user_db) -> None:
    seed_user(user_db)

    assert client.get("/login", params={"email": "a@b.com", "password": "pw1"}).text == "true"
    assert client.get("/login", params={"email": "a@b.com", "password": "nope"}).text == "false"
    assert client.get("/login", params={"email": "x@b.com", "password": "pw1"}).text == "false"


def test_change_password(client, user_db) -> None:
    seed_user(user_db)

    resp = client.get("/changePassword", params={"email": "a@b.com", "new_password": "pw2"})
    assert resp.status_code == 200

    assert client.get("/login", params={"email": "a@b.com", "password": "pw1"}).text == "false"
    assert client.get("/login", params={"email": "a@b.com", "password": "pw2"}).text == "true"

    resp = client.get("/changePassword", params={"email": "x@b.com", "new_password": "pw2"})
    assert resp.status_code == 404


def test_delete_user(client, user_db) -> None:
    seed_user(user_db)

    assert client.get("/delUser", params={"email": "a@b.com"}).status_code == 200
    assert "a@b.com" not in user_db.docs
    assert client.get("/delUser", params={"email": "a@b.com"}).status_code == 404


def test_get_task_and_not_found(client, user_db) -> None:
    task = Task(title="t", description="d", deadline="2099-01-01T00:00:00Z")
    seed_user(user_db, tasks=[task])

    resp = client.get("/task", params={"email": "a@b.com", "task_id": task.id})
    assert resp.status_code == 200
    assert resp.json()["title"] == "t"

    resp = client.get("/task", params={"email": "a@b.com", "task_id": "missing"})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Task not found"

    resp = client.get("/tasks", params={"email": "nobody@b.com"})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "User not found"


@pytest.mark.parametrize("deadline", ["tomorrow", "2099-01-01T00:00:00", ""])
def test_create_task_rejects_bad_deadline(client, user_db, deadline) -> None:
    seed_user(user_db)

    resp = client.get(
        "/createTask",
        params={"email": "a@b.com", "title": "t", "description": "d", "deadline": deadline},
    )

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid deadline format"
    assert user_db.docs["a@b.com"].tasks == []


def test_update_task_replaces_by_id(client, user_db) -> None:
    task = Task(title="t", description="d", deadline="2099-01-01T00:00:00Z")
    seed_user(user_db, tasks=[task])

    body = {
        "id": task.id,
        "title": "t2",
        "description": "d2",
        "deadline": "2099-02-01T00:00:00Z",
        "complete": True,
    }
    resp = client.post("/updateTask", params={"email": "a@b.com"}, json=body)
    assert resp.status_code == 200

    [stored] = user_db.docs["a@b.com"].tasks
    assert stored.id == task.id
    assert stored.title == "t2"
    assert stored.complete is True

    body["id"] = "missing"
    resp = client.post("/updateTask", params={"email": "a@b.com"}, json=body)
    assert resp.status_code == 404


def test_delete_unknown_task_is_not_found(client, user_db) -> None:
    seed_user(user_db)

    resp = client.get("/deleteTask", params={"email": "a@b.com", "task_id": "missing"})
    assert resp.status_code == 404


def test_store_failure_is_server_error(user_db) -> None:
    async def broken(email: str):
        raise ConnectionError("store unavailable")

    user_db.get_user_by_email = broken
    app = create_app(settings=Settings(reminders_enabled=False), user_db=user_db, email_service=RecordingEmailService())
    with TestClient(app, raise_server_exceptions=False) as c:
        resp = c.get("/tasks", params={"email": "a@b.com"})

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Internal server error"


def test_lifespan_starts_and_stops_scheduler(user_db, mailer) -> None:
    settings = Settings(reminders_enabled=True, reminder_interval_seconds=3600)
    app = create_app(settings=settings, user_db=user_db, email_service=mailer)

    with TestClient(app) as c:
        assert user_db.connected
        assert c.app.state.scheduler.is_running
        assert c.get("/health").json() == {"status": "healthy"}

    assert not user_db.connected
