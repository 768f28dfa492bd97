"""Tests for the FastAPI tic-tac-toe interface."""

from __future__ import annotations

from fastapi.testclient import TestClient

from tictactoe.config import Settings
from tictactoe.ui import SessionStore, create_app


app = create_app(Settings())
client = TestClient(app)


def _new_session() -> str:
    response = client.post("/api/session")
    assert response.status_code == 200
    return response.json()["id"]


def _move(session_id: str, index: int):
    return client.post(f"/api/session/{session_id}/move", json={"index": index})


def test_index_serves_board_page():
    response = client.get("/")
    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert "Reset Score" in response.text


def test_create_session_and_first_move():
    response = client.post("/api/session")
    assert response.status_code == 200
    payload = response.json()
    assert payload["statusText"] == "Turn: X"
    assert payload["score"] == {"X": 0, "O": 0}

    state = _move(payload["id"], 4).json()
    assert state["moveAccepted"] is True
    assert state["cells"][4]["mark"] == "X"
    assert state["currentPlayer"] == "O"

    follow_up = client.get(f"/api/session/{payload['id']}")
    assert follow_up.status_code == 200
    assert follow_up.json()["cells"][4]["mark"] == "X"


def test_occupied_cell_is_a_no_op_not_an_error():
    session_id = _new_session()
    _move(session_id, 0)

    duplicate = _move(session_id, 0)
    assert duplicate.status_code == 200
    state = duplicate.json()
    assert state["moveAccepted"] is False
    assert state["cells"][0]["mark"] == "X"
    assert state["currentPlayer"] == "O"


def test_full_round_win_and_reset_round():
    session_id = _new_session()
    for index in (0, 4, 1, 5, 2):
        state = _move(session_id, index).json()
    assert state["status"] == "won"
    assert state["statusText"] == "X wins!"
    assert state["winningLine"] == [0, 1, 2]
    assert state["score"] == {"X": 1, "O": 0}

    late = _move(session_id, 8).json()
    assert late["moveAccepted"] is False
    assert late["score"] == {"X": 1, "O": 0}

    reset = client.post(f"/api/session/{session_id}/reset-round")
    assert reset.status_code == 200
    fresh = reset.json()
    assert all(cell["mark"] is None for cell in fresh["cells"])
    assert fresh["status"] == "in_progress"
    assert fresh["currentPlayer"] == "O"
    assert fresh["score"] == {"X": 1, "O": 0}


def test_reset_match_clears_score():
    session_id = _new_session()
    for index in (0, 4, 1, 5, 2):
        _move(session_id, index)

    response = client.post(f"/api/session/{session_id}/reset-match")
    assert response.status_code == 200
    state = response.json()
    assert state["score"] == {"X": 0, "O": 0}
    assert state["roundsCompleted"] == 0
    assert state["statusText"] == "Turn: O"


def test_draw_over_the_api():
    session_id = _new_session()
    for index in (0, 2, 1, 3, 5, 4, 6, 7, 8):
        state = _move(session_id, index).json()
    assert state["statusText"] == "Draw!"
    assert state["roundsCompleted"] == 1


def test_rejects_index_off_the_board():
    session_id = _new_session()
    assert _move(session_id, 9).status_code == 422
    assert client.post(f"/api/session/{session_id}/move", json={}).status_code == 422


def test_unknown_session_returns_404():
    assert client.get("/api/session/missing").status_code == 404
    assert _move("missing", 0).status_code == 404
    assert client.post("/api/session/missing/reset-round").status_code == 404


def test_delete_session():
    session_id = _new_session()
    assert client.delete(f"/api/session/{session_id}").status_code == 200
    assert client.get(f"/api/session/{session_id}").status_code == 404
    assert client.delete(f"/api/session/{session_id}").status_code == 404


def test_sessions_are_independent():
    first = _new_session()
    second = _new_session()
    _move(first, 0)
    state = client.get(f"/api/session/{second}").json()
    assert state["cells"][0]["mark"] is None


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_store_prunes_idle_sessions():
    clock = FakeClock()
    store = SessionStore(ttl_seconds=60, max_sessions=10, clock=clock)
    stale, _ = store.create()
    clock.now += 61
    fresh, _ = store.create()
    assert stale not in store
    assert fresh in store


def test_store_evicts_least_recently_used_when_full():
    clock = FakeClock()
    store = SessionStore(ttl_seconds=3600, max_sessions=2, clock=clock)
    first, _ = store.create()
    clock.now += 1
    second, _ = store.create()
    clock.now += 1
    store.get(first)
    clock.now += 1
    third, _ = store.create()
    assert len(store) == 2
    assert second not in store
    assert first in store and third in store


def test_page_keeps_session_when_cached_for_back_navigation():
    page = client.get("/").text
    assert "addEventListener('pagehide', (event)" in page
    assert "!event.persisted" in page
