from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient
import pytest

from doctor_botter.app import create_app
from doctor_botter.config import BotSettings


SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"


def _update_payload(chat_id: int, text: str, update_id: int = 1) -> dict[str, object]:
    return {
        "update_id": update_id,
        "message": {
            "message_id": update_id,
            "date": 1700000000,
            "chat": {"id": chat_id, "type": "private"},
            "from": {"id": chat_id, "is_bot": False, "first_name": "Test"},
            "text": text,
        },
    }


@pytest.fixture()
def state_file(tmp_path: Path) -> Path:
    return tmp_path / "state.json"


@pytest.fixture()
def client(state_file: Path) -> TestClient:
    return TestClient(create_app(BotSettings(state_file=str(state_file))))


def test_healthcheck(client: TestClient) -> None:
    response = client.get("/telegram/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_webhook_start_returns_keyboard(client: TestClient) -> None:
    response = client.post("/telegram/webhook", json=_update_payload(42, "/start"))

    assert response.status_code == 200
    data = response.json()
    assert data["method"] == "sendMessage"
    assert data["chat_id"] == 42
    assert "parse_mode" not in data
    assert data["reply_markup"]["keyboard"][2] == [{"text": "Done"}]


def test_webhook_conversation_is_persisted(client: TestClient, state_file: Path) -> None:
    client.post("/telegram/webhook", json=_update_payload(42, "Favourite colour", 1))
    response = client.post("/telegram/webhook", json=_update_payload(42, "Green", 2))

    assert response.json()["text"] == "Saved Favourite colour. What would you like to do next?"
    restarted = TestClient(create_app(BotSettings(state_file=str(state_file))))
    session = restarted.get("/sessions/42")
    assert session.status_code == 200
    assert session.json() == {"chat_id": 42, "stage": "CHOOSING", "facts": {"Favourite colour": "Green"}}


def test_webhook_done_removes_keyboard(client: TestClient) -> None:
    response = client.post("/telegram/webhook", json=_update_payload(42, "Done"))

    assert response.json()["reply_markup"] == {"remove_keyboard": True, "selective": True}


def test_webhook_without_message_returns_empty_body(client: TestClient) -> None:
    response = client.post("/telegram/webhook", json={"update_id": 9})

    assert response.status_code == 200
    assert response.json() == {}


def test_webhook_secret_is_enforced(state_file: Path) -> None:
    secured = TestClient(create_app(BotSettings(state_file=str(state_file), webhook_secret="s3cret")))

    rejected = secured.post("/telegram/webhook", json=_update_payload(1, "/start"))
    wrong = secured.post("/telegram/webhook", json=_update_payload(1, "/start"), headers={SECRET_HEADER: "nope"})
    accepted = secured.post("/telegram/webhook", json=_update_payload(1, "/start"), headers={SECRET_HEADER: "s3cret"})

    assert rejected.status_code == 401
    assert wrong.status_code == 401
    assert accepted.status_code == 200


def test_sessions_listing(client: TestClient) -> None:
    assert client.get("/sessions").json() == {"text": "All saved data:\n(nothing yet)\n"}

    client.post("/telegram/webhook", json=_update_payload(1, "Age", 1))
    client.post("/telegram/webhook", json=_update_payload(1, "33", 2))

    assert client.get("/sessions").json() == {"text": "All saved data:\nUser 1:\nAge - 33\n"}


def test_unknown_session_returns_404(client: TestClient) -> None:
    response = client.get("/sessions/777")

    assert response.status_code == 404
    assert client.get("/sessions").json()["text"] == "All saved data:\n(nothing yet)\n"


def test_webhook_rejects_non_ascii_secret(state_file: Path) -> None:
    secured = TestClient(create_app(BotSettings(state_file=str(state_file), webhook_secret="s3cret")))

    response = secured.post(
        "/telegram/webhook",
        json=_update_payload(1, "/start"),
        headers={SECRET_HEADER: "café".encode("utf-8")},
    )

    assert response.status_code == 401
