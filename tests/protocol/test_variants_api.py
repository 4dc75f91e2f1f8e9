from __future__ import annotations

from fastapi.testclient import TestClient

from variant_chess.protocol.http.app import create_app


def _client() -> TestClient:
    return TestClient(create_app())


def test_fog_visibility() -> None:
    client = _client()
    game_id = client.post("/api/games", json={"rules": ["fog-of-war"]}).json()["game_id"]
    r = client.get(f"/api/games/{game_id}/visibility", params={"viewer": "w"})
    assert r.status_code == 200
    body = r.json()
    assert body["fog"] is True
    assert "e4" in body["squares"]
    assert "e5" not in body["squares"]

    black = client.get(f"/api/games/{game_id}/visibility", params={"viewer": "b"}).json()
    assert "e5" in black["squares"] and "e4" not in black["squares"]


def test_standard_game_has_no_fog() -> None:
    client = _client()
    game_id = client.post("/api/games").json()["game_id"]
    body = client.get(f"/api/games/{game_id}/visibility").json()
    assert body["fog"] is False
    assert len(body["squares"]) == 64


def test_double_knight_conflict_is_409() -> None:
    client = _client()
    game_id = client.post("/api/games", json={"rules": ["double-knight"]}).json()["game_id"]
    r = client.post(f"/api/games/{game_id}/move", json={"move": "g1f3"})
    assert r.json()["side_to_move"] == "w"
    r_conflict = client.post(f"/api/games/{game_id}/move", json={"move": "e2e4"})
    assert r_conflict.status_code == 409
    assert r_conflict.json()["error"]["code"] == "variant_conflict"


def test_void_moves_and_transfer() -> None:
    client = _client()
    game_id = client.post("/api/games", json={"rules": ["void"], "seed": "v"}).json()["game_id"]
    r = client.post(f"/api/games/{game_id}/move", json={"move": "e2e4", "board": 0})
    assert r.status_code == 200
    assert r.json()["side_to_move"] == "w"
    r = client.post(f"/api/games/{game_id}/move", json={"move": "e2e4", "board": 1})
    assert r.json()["side_to_move"] == "b"

    targets = client.get(
        f"/api/games/{game_id}/legal-moves", params={"square": "b8", "board": 0}
    ).json()["transfers"]
    assert "e5" in targets

    r = client.post(
        f"/api/games/{game_id}/transfer",
        json={"from_square": "b8", "to_square": "e5", "board": 0, "to_board": 1},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["side_to_move"] == "w"
    assert body["state"]["transfer_tokens"] == [1, 0]
    assert body["state"]["boards"][1]["pieces"]["e5"] == "n"
    assert body["last_move"] == "0:b8>1:e5"


def test_transfer_in_standard_game_is_a_conflict() -> None:
    client = _client()
    game_id = client.post("/api/games").json()["game_id"]
    r = client.post(
        f"/api/games/{game_id}/transfer",
        json={"from_square": "b1", "to_square": "e5"},
    )
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "variant_conflict"
