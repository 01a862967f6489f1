"""Tests for the reference shared leaderboard server over a loopback socket."""

import json
from collections.abc import Iterator
from http.client import HTTPConnection
from pathlib import Path

import httpx
import pytest

from services.leaderboard.client import RemoteClient
from services.leaderboard.server import LeaderboardServer, RateLimiter, SharedBoard
from services.leaderboard.service import LeaderboardService, LocalLeaderboard
from shared.config.leaderboard import ServerConfig
from shared.leaderboard.models import MAX_PLAYERS, RankedEntry, SubmitResult
from shared.storage.device_store import DeviceStore
from shared.storage.local_store import LocalStore


def _start(tmp_path: Path, **overrides) -> LeaderboardServer:
    config = ServerConfig(host="127.0.0.1", port=0, **overrides)
    server = LeaderboardServer(config, SharedBoard(DeviceStore(tmp_path / "server")))
    server.start()
    return server


@pytest.fixture
def server(tmp_path: Path) -> Iterator[LeaderboardServer]:
    running = _start(tmp_path)
    yield running
    running.stop()


@pytest.fixture
def http(server: LeaderboardServer) -> Iterator[httpx.Client]:
    host, port = server.address
    with httpx.Client(base_url=f"http://{host}:{port}", timeout=5.0) as client:
        yield client


class TestEndpoints:
    """Tests for the wire contract."""

    def test_empty_board(self, http: httpx.Client) -> None:
        assert http.get("/leaderboard").json() == []
        assert http.get("/winner").json() is None

    def test_submit_then_read(self, http: httpx.Client) -> None:
        assert http.post("/score", json={"name": "A", "score": 10}).json() == {"success": True}
        http.post("/score", json={"name": "B", "score": 10})
        http.post("/score", json={"name": "C", "score": 3})

        assert http.get("/leaderboard").json() == [
            {"rank": 1, "name": "A", "score": 10},
            {"rank": 2, "name": "B", "score": 10},
            {"rank": 3, "name": "C", "score": 3},
        ]
        assert http.get("/winner").json() == {"rank": 1, "name": "A", "score": 10}

    def test_capacity(self, http: httpx.Client) -> None:
        for i in range(MAX_PLAYERS):
            http.post("/score", json={"name": f"P{i}", "score": i})

        response = http.post("/score", json={"name": "K", "score": 5})

        assert response.status_code == 200
        assert response.json() == {"success": False, "error": "MAX_PLAYERS"}
        assert len(http.get("/leaderboard").json()) == MAX_PLAYERS

    @pytest.mark.parametrize(
        ("body", "error"),
        [
            pytest.param({"name": "  ", "score": 1}, "INVALID_NAME", id="blank_name"),
            pytest.param({"score": 1}, "INVALID_NAME", id="missing_name"),
            pytest.param({"name": "A", "score": -3}, "INVALID_SCORE", id="negative"),
            pytest.param({"name": "A", "score": "9"}, "INVALID_SCORE", id="string_score"),
        ],
    )
    def test_bad_submission(self, http: httpx.Client, body: dict, error: str) -> None:
        response = http.post("/score", json=body)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": error}

    def test_reset(self, http: httpx.Client) -> None:
        http.post("/score", json={"name": "A", "score": 1})

        assert http.delete("/reset").status_code == 200
        assert http.get("/leaderboard").json() == []

    def test_unknown_path(self, http: httpx.Client) -> None:
        assert http.get("/nope").status_code == 404
        assert http.post("/leaderboard", json={}).status_code == 404

    def test_cors_preflight(self, http: httpx.Client) -> None:
        response = http.options("/score")

        assert response.status_code == 204
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert "DELETE" in response.headers["Access-Control-Allow-Methods"]


class TestPersistence:
    """The shared board survives restarts."""

    def test_board_reloads(self, tmp_path: Path) -> None:
        store = DeviceStore(tmp_path / "server")
        SharedBoard(store).submit("A", 4)

        assert SharedBoard(store).ranked() == [RankedEntry(1, "A", 4)]

    def test_reset_persists(self, tmp_path: Path) -> None:
        store = DeviceStore(tmp_path / "server")
        board = SharedBoard(store)
        board.submit("A", 4)
        board.reset()

        assert SharedBoard(store).ranked() == []


class TestStorageFailures:
    """Storage and request errors still produce a JSON response."""

    @staticmethod
    def _fail(*args, **kwargs) -> None:
        raise OSError("read-only filesystem")

    def test_submit_save_failure(
        self, http: httpx.Client, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(LocalStore, "save", self._fail)

        response = http.post("/score", json={"name": "A", "score": 3})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "STORAGE_UNAVAILABLE"}
        assert http.get("/leaderboard").json() == []

    def test_reset_clear_failure(
        self, http: httpx.Client, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        http.post("/score", json={"name": "A", "score": 3})
        monkeypatch.setattr(LocalStore, "clear", self._fail)

        response = http.delete("/reset")

        assert response.status_code == 500
        assert response.json()["success"] is False
        assert http.get("/leaderboard").json() == [{"rank": 1, "name": "A", "score": 3}]

    def test_non_numeric_content_length(self, server: LeaderboardServer) -> None:
        host, port = server.address
        connection = HTTPConnection(host, port, timeout=5)
        try:
            connection.request(
                "POST",
                "/score",
                headers={"Content-Length": "abc"},
            )
            response = connection.getresponse()

            assert response.status == 400
            assert json.loads(response.read()) == {
                "success": False,
                "error": "INVALID_NAME",
            }
        finally:
            connection.close()


class TestRateLimit:
    """Tests for per-client submission throttling."""

    def test_limiter_window(self) -> None:
        limiter = RateLimiter(2)

        assert limiter.allow("ip")
        assert limiter.allow("ip")
        assert not limiter.allow("ip")
        assert limiter.allow("other")

    def test_server_throttles_submissions(self, tmp_path: Path) -> None:
        server = _start(tmp_path, rate_limit_per_minute=1)
        try:
            host, port = server.address
            with httpx.Client(base_url=f"http://{host}:{port}", timeout=5.0) as http:
                assert http.post("/score", json={"name": "A", "score": 1}).status_code == 200
                assert http.post("/score", json={"name": "A", "score": 2}).status_code == 429
        finally:
            server.stop()


class TestServiceAgainstServer:
    """End to end: the orchestrator talking to a live shared leaderboard."""

    async def test_remote_round_trip(
        self, server: LeaderboardServer, local_board: LocalLeaderboard, local_store
    ) -> None:
        host, port = server.address
        remote = RemoteClient(f"http://{host}:{port}", timeout=5.0)

        async with LeaderboardService(local_board, remote) as service:
            assert await service.submit("Alice", 12) == SubmitResult(success=True)
            assert await service.submit("Alice", 3) == SubmitResult(success=True)
            assert await service.list() == [RankedEntry(1, "Alice", 12)]
            assert await service.winner() == RankedEntry(1, "Alice", 12)

            await service.reset()
            assert await service.list() == []

        assert local_store.load() == []

    async def test_falls_back_once_server_stops(
        self, tmp_path: Path, local_board: LocalLeaderboard
    ) -> None:
        running = _start(tmp_path)
        host, port = running.address
        running.stop()

        async with LeaderboardService(
            local_board, RemoteClient(f"http://{host}:{port}")
        ) as service:
            assert await service.submit("Offline", 8) == SubmitResult(success=True)
            assert await service.list() == [RankedEntry(1, "Offline", 8)]
