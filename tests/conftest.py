"""Shared test fixtures for the Skybound leaderboard tests."""

import os

# Console-only logging for the test session; must precede project imports.
os.environ["SKYBOUND_LOG_DIR"] = ""

from collections.abc import Callable  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import Any  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402

from services.leaderboard.client import RemoteClient  # noqa: E402
from services.leaderboard.service import LocalLeaderboard  # noqa: E402
from shared.leaderboard.models import ScoreEntry  # noqa: E402
from shared.storage.device_store import DeviceStore  # noqa: E402
from shared.storage.local_store import LocalStore  # noqa: E402

API_BASE = "http://leaderboard.test"


@pytest.fixture
def device_store(tmp_path: Path) -> DeviceStore:
    """Device key/value store rooted in a per-test directory."""
    return DeviceStore(tmp_path / "device")


@pytest.fixture
def local_store(device_store: DeviceStore) -> LocalStore:
    return LocalStore(device_store)


@pytest.fixture
def local_board(local_store: LocalStore) -> LocalLeaderboard:
    return LocalLeaderboard(local_store)


@pytest.fixture
def full_roster() -> list[ScoreEntry]:
    """Ten distinct players, P0 scoring 0 through P9 scoring 90."""
    return [ScoreEntry(name=f"P{i}", score=i * 10) for i in range(10)]


@pytest.fixture
def make_remote() -> Callable[..., RemoteClient]:
    """Build RemoteClients backed by httpx.MockTransport handlers.

    Returns:
        Factory taking (handler, timeout=...) and returning a RemoteClient.
    """

    def _factory(handler: Callable[[httpx.Request], Any], timeout: float = 1.0) -> RemoteClient:
        return RemoteClient(
            API_BASE,
            timeout=timeout,
            transport=httpx.MockTransport(handler),
        )

    return _factory


@pytest.fixture
def unreachable_remote(make_remote: Callable[..., RemoteClient]) -> RemoteClient:
    """A shared leaderboard that refuses every connection."""

    def _refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    return make_remote(_refuse)
