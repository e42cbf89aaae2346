"""
HTTP tests for the FastAPI surface using TestClient
"""

import logging
import random
import runpy
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient

import server
from catalog import new_game
from config import Settings
from server import SessionManager, app, get_settings, get_store, manager
from storage import SaveStore

STAND = "lemonade-stand"


@pytest.fixture
def client(tmp_path):
    store = SaveStore(str(tmp_path / "server.db"))
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_settings] = lambda: Settings(db_path=store.db_path)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    manager.sessions.clear()


@pytest.fixture
def game(client):
    response = client.post("/api/games", json={"player_name": "Web", "seed": 3})
    assert response.status_code == 201
    return response.json()


class TestUsers:

    def test_register_and_authenticate(self, client):
        created = client.post("/api/users", json={"username": "web", "password": "pw"})
        assert created.status_code == 201
        user_id = created.json()["id"]

        authed = client.post("/api/users/auth", json={"username": "web", "password": "pw"})
        assert authed.status_code == 200
        assert authed.json()["id"] == user_id

    def test_conflict_and_bad_credentials(self, client):
        client.post("/api/users", json={"username": "web", "password": "pw"})
        assert client.post("/api/users", json={"username": "web", "password": "pw"}).status_code == 409
        assert client.post("/api/users/auth", json={"username": "web", "password": "no"}).status_code == 401


class TestGameSession:

    def test_new_game(self, game):
        assert game["game_state"]["player"]["cash"] == 1000
        assert game["game_state"]["turn"] == 1
        assert game["revenue_per_turn"] == 0

    def test_purchase_and_turn(self, client, game):
        sid = game["session_id"]
        bought = client.post(f"/api/games/{sid}/businesses/{STAND}/purchase")
        assert bought.status_code == 200
        assert bought.json()["game_state"]["player"]["cash"] == 500

        turned = client.post(f"/api/games/{sid}/turn")
        assert turned.status_code == 200
        assert turned.json()["game_state"]["turn"] == 2
        assert turned.json()["game_state"]["player"]["cash"] == 600

    def test_concurrent_turns_on_one_session_serialize(self, client, game):
        sid = game["session_id"]
        assert client.post(f"/api/games/{sid}/businesses/{STAND}/purchase").status_code == 200

        turns = 40
        with ThreadPoolExecutor(max_workers=8) as pool:
            responses = list(pool.map(lambda _: client.post(f"/api/games/{sid}/turn"), range(turns)))

        assert all(r.status_code == 200 for r in responses)
        state = client.get(f"/api/games/{sid}").json()["game_state"]
        assert state["turn"] == 1 + turns
        assert state["player"]["cash"] == 500 + turns * 100

    def test_rejected_transaction_is_400_and_state_kept(self, client, game):
        sid = game["session_id"]
        response = client.post(f"/api/games/{sid}/businesses/online-shop/purchase")
        assert response.status_code == 400
        assert response.json()["detail"] == "business is locked"
        assert client.get(f"/api/games/{sid}").json()["game_state"]["player"]["cash"] == 1000

    def test_stock_trade(self, client, game):
        sid = game["session_id"]
        stock_id = game["game_state"]["stocks"][0]["id"]
        bought = client.post(f"/api/games/{sid}/stocks/{stock_id}/buy", json={"quantity": 2})
        assert bought.status_code == 200
        assert bought.json()["game_state"]["stocks"][0]["owned"] == 2

        sold = client.post(f"/api/games/{sid}/stocks/{stock_id}/sell", json={"quantity": 2})
        assert sold.status_code == 200
        assert "purchasePrice" not in sold.json()["game_state"]["stocks"][0]

    def test_zero_quantity_is_validation_error(self, client, game):
        sid = game["session_id"]
        stock_id = game["game_state"]["stocks"][0]["id"]
        response = client.post(f"/api/games/{sid}/stocks/{stock_id}/buy", json={"quantity": 0})
        assert response.status_code == 422

    def test_unknown_session(self, client):
        assert client.post("/api/games/missing/turn").status_code == 404

    def test_end_session(self, client, game):
        sid = game["session_id"]
        assert client.delete(f"/api/games/{sid}").status_code == 204
        assert client.get(f"/api/games/{sid}").status_code == 404


class TestSaves:

    def test_save_list_and_load_into_session(self, client, game):
        sid = game["session_id"]
        user_id = client.post("/api/users", json={"username": "saver", "password": "pw"}).json()["id"]

        client.post(f"/api/games/{sid}/businesses/{STAND}/purchase")
        saved = client.post(f"/api/games/{sid}/save", json={"user_id": user_id, "name": "slot 1"})
        assert saved.status_code == 201
        save_id = saved.json()["id"]

        listing = client.get("/api/saves", params={"user_id": user_id}).json()
        assert [s["name"] for s in listing] == ["slot 1"]

        client.post(f"/api/games/{sid}/turn")
        loaded = client.post(f"/api/games/{sid}/load/{save_id}")
        assert loaded.status_code == 200
        assert loaded.json()["game_state"]["turn"] == 1
        assert loaded.json()["game_state"]["player"]["cash"] == 500

    def test_save_crud(self, client, game):
        document = game["game_state"]
        created = client.post("/api/saves", json={"user_id": 1, "name": "raw", "game_state": document})
        assert created.status_code == 201
        save_id = created.json()["id"]

        fetched = client.get(f"/api/saves/{save_id}")
        assert fetched.status_code == 200
        assert fetched.json()["game_state"]["player"]["cash"] == 1000

        renamed = client.put(f"/api/saves/{save_id}", json={"name": "renamed"})
        assert renamed.json()["name"] == "renamed"

        assert client.delete(f"/api/saves/{save_id}").status_code == 204
        assert client.get(f"/api/saves/{save_id}").status_code == 404

    def test_invalid_document_rejected(self, client, game):
        document = dict(game["game_state"], turn=0)
        response = client.post("/api/saves", json={"user_id": 1, "name": "bad", "game_state": document})
        assert response.status_code == 422

    def test_load_missing_save_keeps_session(self, client, game):
        sid = game["session_id"]
        assert client.post(f"/api/games/{sid}/load/404").status_code == 404
        assert client.get(f"/api/games/{sid}").json()["game_state"]["turn"] == 1


class TestSessionManager:

    def test_oldest_session_evicted_past_cap(self):
        sessions = SessionManager(max_sessions=2)
        ids = [sessions.create(new_game("Cap"), random.Random(i)) for i in range(3)]
        assert list(sessions.sessions) == ids[1:]
        with pytest.raises(server.HTTPException) as excinfo:
            sessions.get(ids[0])
        assert excinfo.value.status_code == 404

    def test_closed_session_frees_a_slot(self):
        sessions = SessionManager(max_sessions=2)
        first = sessions.create(new_game("Cap"), random.Random(1))
        second = sessions.create(new_game("Cap"), random.Random(2))
        sessions.close(second)
        third = sessions.create(new_game("Cap"), random.Random(3))
        assert list(sessions.sessions) == [first, third]


class TestLogging:

    def test_logging_configured_at_import(self, monkeypatch):
        calls = []
        monkeypatch.setenv("TYCOON_LOG_LEVEL", "DEBUG")
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
        runpy.run_path(server.__file__)
        assert calls == [{"level": logging.DEBUG}]

    def test_settings_dependency_leaves_logging_alone(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
        assert isinstance(get_settings.__wrapped__(), Settings)
        assert calls == []
