import pytest
from fastapi.testclient import TestClient

from conftest import FakeAssistant
from hrdraw import main
from hrdraw.core.config import Settings


@pytest.fixture()
def assistant():
    return FakeAssistant(
        cleaned=["Ann", "Ben", "Cai"],
        transcribed=["Dee"],
        group_names=["Falcons", "Owls"],
    )


@pytest.fixture()
def client(monkeypatch, assistant):
    monkeypatch.setenv("APP_LANGUAGE", "en")
    monkeypatch.setattr(main, "assistant", assistant)
    monkeypatch.setattr(main, "settings", Settings(draw_cycle_ticks=4, draw_cycle_duration_ms=40))
    main.SESSIONS.clear()
    yield TestClient(main.app)
    main.SESSIONS.clear()


def _create(client: TestClient, text: str | None = None) -> dict:
    response = client.post("/api/v1/sessions", json={"text": text} if text is not None else None)
    assert response.status_code == 201
    return response.json()


def test_health(client: TestClient):
    assert client.get("/api/v1/health").json() == {"status": "ok"}


def test_create_session_parses_text(client: TestClient):
    session = _create(client, "A\nB\nA,C")
    assert [c["name"] for c in session["candidates"]] == ["A", "B", "A", "C"]
    assert session["analysis"] == {
        "total": 4,
        "uniqueCount": 3,
        "duplicateCount": 1,
        "duplicates": ["A"],
    }
    assert [c["isDuplicate"] for c in session["candidates"]] == [True, False, True, False]
    assert session["draw"]["eligibleCount"] == 4


def test_unknown_session_is_404(client: TestClient):
    assert client.get("/api/v1/sessions/missing").status_code == 404
    assert client.post("/api/v1/sessions/missing/draw").status_code == 404


def test_update_and_dedupe_roster(client: TestClient):
    session_id = _create(client)["id"]
    response = client.put(f"/api/v1/sessions/{session_id}/roster", json={"text": "x,y,x\nz,y"})
    assert response.json()["analysis"]["duplicateCount"] == 2

    response = client.post(f"/api/v1/sessions/{session_id}/roster/dedupe")
    payload = response.json()
    assert payload["removed"] == 2
    assert payload["rawText"] == "x\ny\nz"
    assert payload["analysis"]["duplicateCount"] == 0


def test_upload_roster_file(client: TestClient):
    session_id = _create(client)["id"]
    files = {"file": ("names.csv", "\ufeffAnn,Ben\nCai\n".encode("utf-8"), "text/csv")}
    response = client.post(f"/api/v1/sessions/{session_id}/roster/file", files=files)
    assert response.status_code == 200
    assert [c["name"] for c in response.json()["candidates"]] == ["Ann", "Ben", "Cai"]


def test_mock_roster(client: TestClient):
    session_id = _create(client)["id"]
    payload = client.post(f"/api/v1/sessions/{session_id}/roster/mock").json()
    assert payload["analysis"]["duplicateCount"] == 2


def test_clear_is_two_step(client: TestClient):
    session_id = _create(client, "A,B")["id"]
    first = client.post(f"/api/v1/sessions/{session_id}/roster/clear").json()
    assert first == {"armed": True, "done": False}
    assert len(client.get(f"/api/v1/sessions/{session_id}").json()["candidates"]) == 2

    second = client.post(f"/api/v1/sessions/{session_id}/roster/clear").json()
    assert second == {"armed": False, "done": True}
    assert client.get(f"/api/v1/sessions/{session_id}").json()["candidates"] == []


def test_ai_clean(client: TestClient, assistant: FakeAssistant):
    session_id = _create(client, "name,dept\nAnn,HR")["id"]
    payload = client.post(f"/api/v1/sessions/{session_id}/roster/ai-clean").json()
    assert payload["fallback"] is False
    assert payload["rawText"] == "Ann\nBen\nCai"


def test_ai_clean_fallback(client: TestClient, assistant: FakeAssistant):
    assistant.fail = True
    session_id = _create(client, "Ann , Ben")["id"]
    payload = client.post(f"/api/v1/sessions/{session_id}/roster/ai-clean").json()
    assert payload["fallback"] is True
    assert payload["message"]
    assert payload["rawText"] == "Ann\nBen"


def test_transcribe_appends_names(client: TestClient, assistant: FakeAssistant):
    session_id = _create(client, "Ann")["id"]
    files = {"file": ("clip.webm", b"\x1a\x45\xdf\xa3", "audio/webm")}
    response = client.post(f"/api/v1/sessions/{session_id}/roster/transcribe", files=files)
    payload = response.json()
    assert payload["transcribed"] == ["Dee"]
    assert payload["rawText"] == "Ann\nDee"
    assert assistant.calls[-1] == ("transcribe_audio", 4, "audio/webm")


def test_transcribe_failure_is_502(client: TestClient, assistant: FakeAssistant):
    assistant.fail = True
    session_id = _create(client, "Ann")["id"]
    files = {"file": ("clip.webm", b"\x00", "audio/webm")}
    response = client.post(f"/api/v1/sessions/{session_id}/roster/transcribe", files=files)
    assert response.status_code == 502
    assert client.get(f"/api/v1/sessions/{session_id}").json()["rawText"] == "Ann"


def test_draw_until_empty(client: TestClient):
    session_id = _create(client, "A,B,C,D,E")["id"]
    winners = []
    for _ in range(5):
        response = client.post(f"/api/v1/sessions/{session_id}/draw")
        assert response.status_code == 200
        payload = response.json()
        assert len(payload["frames"]) == 4
        assert all(frame["delayMs"] == 10 for frame in payload["frames"])
        winners.append(payload["winner"]["id"])
    assert len(set(winners)) == 5

    response = client.post(f"/api/v1/sessions/{session_id}/draw")
    assert response.status_code == 409
    history = client.get(f"/api/v1/sessions/{session_id}").json()["draw"]["history"]
    assert [w["id"] for w in history] == list(reversed(winners))


def test_draw_with_repeats(client: TestClient):
    session_id = _create(client, "Solo")["id"]
    settings = client.put(f"/api/v1/sessions/{session_id}/draw/settings", json={"allowRepeats": True})
    assert settings.json()["allowRepeats"] is True
    for _ in range(3):
        assert client.post(f"/api/v1/sessions/{session_id}/draw").json()["winner"]["name"] == "Solo"


def test_reset_history_is_two_step(client: TestClient):
    session_id = _create(client, "A,B")["id"]
    client.post(f"/api/v1/sessions/{session_id}/draw")
    assert client.post(f"/api/v1/sessions/{session_id}/draw/reset").json()["done"] is False
    assert client.post(f"/api/v1/sessions/{session_id}/draw/reset").json()["done"] is True
    draw = client.get(f"/api/v1/sessions/{session_id}").json()["draw"]
    assert draw["history"] == []
    assert draw["currentWinner"] is None


def test_websocket_draw_streams_frames_then_winner(client: TestClient):
    session_id = _create(client, "A,B,C")["id"]
    with client.websocket_connect(f"/ws/sessions/{session_id}/draw") as websocket:
        messages = [websocket.receive_json() for _ in range(5)]
    assert [m["type"] for m in messages] == ["frame"] * 4 + ["winner"]
    assert messages[-1]["draw"]["history"][0]["id"] == messages[-1]["data"]["id"]


def test_websocket_unknown_session(client: TestClient):
    with client.websocket_connect("/ws/sessions/nope/draw") as websocket:
        assert websocket.receive_json()["type"] == "error"


def test_groups_and_export(client: TestClient):
    session_id = _create(client, ",".join(f"P{i}" for i in range(10)))["id"]
    payload = client.post(f"/api/v1/sessions/{session_id}/groups", json={"groupSize": 4}).json()
    assert [g["size"] for g in payload["groups"]] == [4, 4, 2]
    assert [g["name"] for g in payload["groups"]] == ["Group 1", "Group 2", "Group 3"]

    response = client.get(f"/api/v1/sessions/{session_id}/groups/export")
    assert response.status_code == 200
    assert "groups_result.csv" in response.headers["content-disposition"]
    assert response.content.startswith(b"\xef\xbb\xbf")
    rows = response.content.decode("utf-8-sig").splitlines()
    assert rows[0] == "GroupName,Name,ID"
    assert len(rows) == 11


@pytest.mark.parametrize(
    "size,expected",
    [
        (0, [1, 1, 1]),
        (-2, [1, 1, 1]),
        ("abc", [1, 1, 1]),
        ([2], [1, 1, 1]),
        ({}, [1, 1, 1]),
        ({"n": 2}, [1, 1, 1]),
        (2.5, [2, 1]),
        ("2.5", [2, 1]),
    ],
)
def test_group_size_is_clamped_not_rejected(client: TestClient, size, expected):
    session_id = _create(client, "A,B,C")["id"]
    response = client.post(f"/api/v1/sessions/{session_id}/groups", json={"groupSize": size})
    assert response.status_code == 200
    assert [g["size"] for g in response.json()["groups"]] == expected


def test_session_reports_no_busy_actions_when_idle(client: TestClient):
    assert _create(client, "A")["busy"] == []


def test_ai_group_names(client: TestClient):
    session_id = _create(client, "A,B,C,D,E")["id"]
    client.post(f"/api/v1/sessions/{session_id}/groups", json={"groupSize": 2})
    payload = client.post(f"/api/v1/sessions/{session_id}/groups/ai-names").json()
    assert payload["aiNamed"] is True
    assert [g["name"] for g in payload["groups"]] == ["Falcons", "Owls", "Group 3"]
