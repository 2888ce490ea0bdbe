from fastapi.testclient import TestClient

from vanishing_ttt.server import create_app
from vanishing_ttt.session.manager import SessionConfig


def receive_until(websocket, event: str) -> dict:
    """Read frames until one with ``event`` arrives and return its data."""
    while True:
        frame = websocket.receive_json()
        if frame["event"] == event:
            return frame["data"]


def test_health():
    client = TestClient(create_app(SessionConfig()))
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "players": 0, "rooms": 0}


def test_two_clients_play_over_websocket():
    app = create_app(SessionConfig(turn_timeout_ms=60_000))
    with TestClient(app) as client:
        with client.websocket_connect("/ws") as alice:
            assert receive_until(alice, "updatePlayerCount") == {"count": 1}
            with client.websocket_connect("/ws") as bob:
                assert receive_until(bob, "updatePlayerCount") == {"count": 2}

                alice.send_json({"event": "findGame"})
                receive_until(alice, "waitingForOpponent")

                # Garbage is dropped without closing the connection.
                bob.send_text("not json")
                bob.send_json({"data": {}})
                bob.send_json({"event": "findGame"})

                start = receive_until(alice, "gameStart")
                assert start["symbol"] == "X"
                assert receive_until(bob, "gameStart") == {"symbol": "O", "room": start["room"]}
                turn = receive_until(bob, "newTurn")
                assert turn["symbol"] == "X"

                alice.send_json({
                    "event": "makeMove",
                    "data": {"room": start["room"], "move": {"index": 4, "symbol": "X"}},
                })
                assert receive_until(bob, "moveMade") == {"index": 4, "symbol": "X", "vanished": None}
                assert receive_until(bob, "startTimer") == {"duration": 60_000}

                health = client.get("/health").json()
                assert health["players"] == 2 and health["rooms"] == 1

            over = receive_until(alice, "gameOver")
            assert over["reason"] == "disconnect"
            assert over["winnerId"] == turn["currentPlayerId"]
            assert receive_until(alice, "updatePlayerCount") == {"count": 1}


def test_binary_frames_are_dropped_and_departure_still_runs():
    app = create_app(SessionConfig(turn_timeout_ms=60_000))
    with TestClient(app) as client:
        with client.websocket_connect("/ws") as alice:
            with client.websocket_connect("/ws") as bob:
                alice.send_json({"event": "findGame"})
                receive_until(alice, "waitingForOpponent")
                bob.send_json({"event": "findGame"})
                room = receive_until(bob, "gameStart")["room"]
                alice.send_json({"event": "makeMove", "data": {"room": room, "move": {"index": 4}}})
                receive_until(bob, "moveMade")
                receive_until(alice, "moveMade")

                bob.send_bytes(b"\x00\x01")
                bob.send_json({"event": "makeMove", "data": {"room": room, "move": {"index": 0}}})
                assert receive_until(alice, "moveMade")["index"] == 0

            over = receive_until(alice, "gameOver")
            assert over["reason"] == "disconnect"
            assert over["loserId"] != over["winnerId"]
            assert receive_until(alice, "updatePlayerCount") == {"count": 1}

            health = client.get("/health").json()
            assert health["rooms"] == 0
            assert health["players"] == 1
