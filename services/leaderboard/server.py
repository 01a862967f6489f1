"""HTTP API server for the shared Skybound leaderboard."""

from __future__ import annotations

import json
import threading
import time
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from shared.config.leaderboard import ServerConfig
from shared.leaderboard import roster as policy
from shared.leaderboard.models import (
    ERROR_INVALID_NAME,
    ERROR_INVALID_SCORE,
    RankedEntry,
    SubmitResult,
    is_valid_score,
)
from shared.logging.logger import get_logger
from shared.storage.device_store import DeviceStore
from shared.storage.local_store import LocalStore

log = get_logger("leaderboard.server", runtime="server")

SERVER_ROSTER_KEY = "leaderboard"
ERROR_STORAGE = "STORAGE_UNAVAILABLE"


class RateLimiter:
    def __init__(self, max_per_minute: int) -> None:
        self._max = max(1, int(max_per_minute))
        self._lock = threading.Lock()
        self._buckets: Dict[str, List[float]] = {}

    def allow(self, key: str) -> bool:
        now = time.time()
        window_start = now - 60.0
        with self._lock:
            bucket = self._buckets.setdefault(key, [])
            bucket[:] = [ts for ts in bucket if ts >= window_start]
            if len(bucket) >= self._max:
                return False
            bucket.append(now)
            return True


class SharedBoard:
    """
    The server's roster: roster policy behind a lock, persisted on every
    accepted mutation.
    """

    def __init__(self, store: DeviceStore) -> None:
        self._store = LocalStore(store, key=SERVER_ROSTER_KEY)
        self._lock = threading.Lock()
        self._roster = self._store.load()
        log.info(f"Shared board loaded with {len(self._roster)} player(s)")

    def ranked(self) -> List[RankedEntry]:
        with self._lock:
            return policy.rank(self._roster)

    def winner(self) -> Optional[RankedEntry]:
        with self._lock:
            return policy.winner(self._roster)

    def submit(self, name: str, score: int) -> SubmitResult:
        with self._lock:
            updated, outcome = policy.apply_submission(self._roster, name, score)
            if outcome.accepted:
                self._store.save(updated)
                self._roster = updated
        return SubmitResult.from_outcome(outcome)

    def reset(self) -> None:
        with self._lock:
            self._store.clear()
            self._roster = policy.reset(self._roster)


class LeaderboardServer:
    def __init__(self, config: ServerConfig, board: SharedBoard) -> None:
        self._config = config
        self._board = board
        self._thread: Optional[threading.Thread] = None
        self._server: Optional[ThreadingHTTPServer] = None
        self._rate_limiter = RateLimiter(config.rate_limit_per_minute)

    @property
    def address(self) -> Tuple[str, int]:
        if not self._server:
            raise RuntimeError("Leaderboard server is not running")
        host, port = self._server.server_address[:2]
        return str(host), int(port)

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return

        handler = self._build_handler()
        self._server = ThreadingHTTPServer(
            (self._config.host, int(self._config.port)),
            handler,
        )
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()
        log.info(
            "Leaderboard server running on %s:%s",
            *self.address,
        )

    def stop(self) -> None:
        if not self._server:
            return
        self._server.shutdown()
        self._server.server_close()
        self._server = None
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None
        log.info("Leaderboard server stopped")

    def _build_handler(self):
        config = self._config
        board = self._board
        rate_limiter = self._rate_limiter

        class Handler(BaseHTTPRequestHandler):
            def _send_json(self, status: int, payload: Any) -> None:
                body = json.dumps(payload).encode("utf-8")
                self.send_response(status)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(body)))
                self._apply_cors()
                self.end_headers()
                self.wfile.write(body)

            def _apply_cors(self) -> None:
                origins = config.allow_origins
                if not origins:
                    return
                origin = self.headers.get("Origin")
                if "*" in origins:
                    self.send_header("Access-Control-Allow-Origin", "*")
                elif origin and origin in origins:
                    self.send_header("Access-Control-Allow-Origin", origin)
                self.send_header("Access-Control-Allow-Headers", "Content-Type")
                self.send_header(
                    "Access-Control-Allow-Methods", "GET, POST, DELETE, OPTIONS"
                )

            def _read_json_body(self) -> Any:
                try:
                    length = int(self.headers.get("Content-Length", 0))
                except ValueError:
                    return None
                if length <= 0:
                    return None
                raw = self.rfile.read(length)
                try:
                    return json.loads(raw.decode("utf-8"))
                except (UnicodeDecodeError, json.JSONDecodeError):
                    return None

            def _route(self) -> str:
                return urlparse(self.path).path.rstrip("/") or "/"

            def do_OPTIONS(self) -> None:  # noqa: N802 - stdlib signature
                self.send_response(HTTPStatus.NO_CONTENT)
                self._apply_cors()
                self.end_headers()

            def do_GET(self) -> None:  # noqa: N802 - stdlib signature
                path = self._route()

                if path == "/leaderboard":
                    return self._send_json(
                        HTTPStatus.OK,
                        [entry.to_dict() for entry in board.ranked()],
                    )

                if path == "/winner":
                    top = board.winner()
                    return self._send_json(
                        HTTPStatus.OK,
                        top.to_dict() if top else None,
                    )

                self._send_json(HTTPStatus.NOT_FOUND, {"error": "Unknown endpoint"})

            def do_POST(self) -> None:  # noqa: N802 - stdlib signature
                if self._route() != "/score":
                    return self._send_json(
                        HTTPStatus.NOT_FOUND, {"error": "Unknown endpoint"}
                    )

                if not rate_limiter.allow(self.client_address[0]):
                    return self._send_json(
                        HTTPStatus.TOO_MANY_REQUESTS,
                        {"success": False, "error": "rate limit exceeded"},
                    )

                payload = self._read_json_body()
                if not isinstance(payload, dict):
                    payload = {}

                raw_name = payload.get("name")
                name = policy.normalize_name(raw_name) if isinstance(raw_name, str) else ""
                if not name:
                    return self._send_json(
                        HTTPStatus.BAD_REQUEST,
                        SubmitResult(False, ERROR_INVALID_NAME).to_dict(),
                    )

                score = payload.get("score")
                if not is_valid_score(score):
                    return self._send_json(
                        HTTPStatus.BAD_REQUEST,
                        SubmitResult(False, ERROR_INVALID_SCORE).to_dict(),
                    )

                try:
                    result = board.submit(name, score)
                except OSError as e:
                    log.error(f"Failed to persist submission for '{name}': {e}")
                    return self._send_json(
                        HTTPStatus.INTERNAL_SERVER_ERROR,
                        {"success": False, "error": ERROR_STORAGE},
                    )
                self._send_json(HTTPStatus.OK, result.to_dict())

            def do_DELETE(self) -> None:  # noqa: N802 - stdlib signature
                if self._route() != "/reset":
                    return self._send_json(
                        HTTPStatus.NOT_FOUND, {"error": "Unknown endpoint"}
                    )

                try:
                    board.reset()
                except OSError as e:
                    log.error(f"Failed to reset shared board: {e}")
                    return self._send_json(
                        HTTPStatus.INTERNAL_SERVER_ERROR,
                        {"success": False, "error": ERROR_STORAGE},
                    )
                log.info("Shared board reset")
                self._send_json(HTTPStatus.OK, {"success": True})

            def log_message(self, format: str, *args: Any) -> None:
                log.info("%s - %s", self.address_string(), format % args)

        return Handler


__all__ = ["LeaderboardServer", "RateLimiter", "SharedBoard"]
