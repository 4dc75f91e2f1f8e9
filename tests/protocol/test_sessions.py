from __future__ import annotations

import inspect
from concurrent.futures import ThreadPoolExecutor

from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from variant_chess.protocol.http.app import create_app


def _client() -> TestClient:
    return TestClient(create_app())


def test_create_game_and_get_state() -> None:
    client = _client()
    r = client.post("/api/games")
    assert r.status_code == 200
    body = r.json()
    assert "game_id" in body and isinstance(body["game_id"], str) and body["game_id"]
    game_id = body["game_id"]
    assert body["rules"] == ["standard"]
    assert body["seed"]

    # Fetch state
    r2 = client.get(f"/api/games/{game_id}/state")
    assert r2.status_code == 200
    state = r2.json()
    assert state["game_id"] == game_id
    assert state["seed"] == body["seed"]
    assert len(state["legal_moves"]) == 20
    assert state["state"]["boards"][0]["pieces"]["e1"] == "K"


def test_get_state_unknown_id_404() -> None:
    client = _client()
    r = client.get("/api/games/does-not-exist/state")
    assert r.status_code == 404
    body = r.json()
    assert "error" in body
    assert body["error"]["code"] == "not_found"


def test_create_with_rules_and_seed() -> None:
    client = _client()
    r = client.post("/api/games", json={"rules": ["blink", "standard", "fischer-random"], "seed": "s1"})
    assert r.status_code == 200
    body = r.json()
    assert body["rules"] == ["fischer-random", "blink"]
    assert body["seed"] == "s1"

    again = client.post("/api/games", json={"rules": ["fischer-random", "blink"], "seed": "s1"}).json()
    assert again["state"] == body["state"]
    assert again["game_id"] != body["game_id"]


def test_unknown_rule_is_rejected() -> None:
    client = _client()
    r = client.post("/api/games", json={"rules": ["atomic"]})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "invalid_rules"


def test_delete_game() -> None:
    client = _client()
    game_id = client.post("/api/games").json()["game_id"]
    assert client.delete(f"/api/games/{game_id}").status_code == 200
    assert client.get(f"/api/games/{game_id}/state").status_code == 404


def test_concurrent_moves_on_one_game_apply_once() -> None:
    client = _client()
    game_id = client.post("/api/games").json()["game_id"]

    def play(_: int) -> int:
        return client.post(f"/api/games/{game_id}/move", json={"move": "e2e4"}).status_code

    with ThreadPoolExecutor(max_workers=8) as pool:
        codes = list(pool.map(play, range(8)))
    assert sorted(codes) == [200] + [409] * 7
    state = client.get(f"/api/games/{game_id}/state").json()
    assert state["move_history"] == ["e2e4"]


def test_locking_handlers_run_on_the_threadpool() -> None:
    app = create_app()
    locking = {"get_state", "legal_moves", "make_move", "transfer", "undo", "visibility"}
    endpoints = {r.endpoint.__name__: r.endpoint for r in app.routes if isinstance(r, APIRoute)}
    assert locking <= set(endpoints)
    for name in locking:
        assert not inspect.iscoroutinefunction(endpoints[name])
