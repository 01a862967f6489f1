"""Skybound leaderboard service: remote client, fallback orchestration, reference server."""

from .client import NetworkError, RemoteClient
from .server import LeaderboardServer, SharedBoard
from .service import LeaderboardService, LeaderboardSource, LocalLeaderboard

__all__ = [
    "LeaderboardServer",
    "LeaderboardService",
    "LeaderboardSource",
    "LocalLeaderboard",
    "NetworkError",
    "RemoteClient",
    "SharedBoard",
]
