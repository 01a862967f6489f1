"""
Leaderboard orchestration.

Two interchangeable sources answer the same four questions: the shared
remote leaderboard and the device fallback roster. Every public operation
asks the remote first and falls back to the device on any failure, so the
game never sees a network exception.

Reads are answered by exactly one source; results are never blended.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional, Protocol, TypeVar

from services.leaderboard.client import RemoteClient
from shared.config.leaderboard import LeaderboardConfig
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
from shared.storage.paths import DEVICE_STATE_DIR, get_state_path

log = get_logger("leaderboard.service")

T = TypeVar("T")


class LeaderboardSource(Protocol):
    async def fetch_leaderboard(self) -> List[RankedEntry]: ...

    async def submit_score(self, name: str, score: int) -> SubmitResult: ...

    async def fetch_winner(self) -> Optional[RankedEntry]: ...

    async def reset_leaderboard(self) -> None: ...


# ======================================================================
# Device source
# ======================================================================

class LocalLeaderboard:
    """
    Roster policy over the device store.

    Never raises for storage problems: unreadable rosters load as empty,
    failed writes are logged and the in-memory outcome is still reported.
    """

    def __init__(self, store: LocalStore):
        self._store = store

    async def fetch_leaderboard(self) -> List[RankedEntry]:
        return policy.rank(self._store.load())

    async def submit_score(self, name: str, score: int) -> SubmitResult:
        updated, outcome = policy.apply_submission(self._store.load(), name, score)

        if outcome.accepted:
            try:
                self._store.save(updated)
            except OSError as e:
                log.error(f"Failed to persist local roster: {e}")
        else:
            log.info(f"Local roster rejected '{name}': {outcome.reason}")

        return SubmitResult.from_outcome(outcome)

    async def fetch_winner(self) -> Optional[RankedEntry]:
        return policy.winner(self._store.load())

    async def reset_leaderboard(self) -> None:
        try:
            self._store.clear()
        except OSError as e:
            log.error(f"Failed to clear local roster: {e}")


# ======================================================================
# Orchestrator
# ======================================================================

class LeaderboardService:
    """
    Collaborator-facing leaderboard API: list, submit, winner, reset.
    """

    def __init__(
        self,
        local: LocalLeaderboard,
        remote: Optional[LeaderboardSource] = None,
    ):
        self._local = local
        self._remote = remote

    @classmethod
    def from_config(cls, config: LeaderboardConfig) -> "LeaderboardService":
        device_dir = get_state_path(DEVICE_STATE_DIR, config.storage.state_dir)
        local = LocalLeaderboard(LocalStore(DeviceStore(device_dir)))

        remote = None
        if config.client.remote_enabled:
            remote = RemoteClient(
                config.client.api_base,
                timeout=config.client.timeout_seconds,
            )
        else:
            log.info("Remote leaderboard disabled; using device roster only")

        return cls(local, remote)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        closer = getattr(self._remote, "aclose", None)
        if closer is not None:
            await closer()

    async def __aenter__(self) -> "LeaderboardService":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Fallback combinator
    # ------------------------------------------------------------------

    async def _with_fallback(
        self,
        operation: str,
        call: Callable[[LeaderboardSource], Awaitable[T]],
    ) -> T:
        if self._remote is not None:
            try:
                return await call(self._remote)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.warning(f"Remote {operation} failed, using device roster: {e}")

        return await call(self._local)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def list(self) -> List[RankedEntry]:
        return await self._with_fallback(
            "list", lambda source: source.fetch_leaderboard()
        )

    async def submit(self, name: str, score: int) -> SubmitResult:
        candidate = policy.normalize_name(name) if isinstance(name, str) else ""
        if not candidate:
            return SubmitResult(success=False, error=ERROR_INVALID_NAME)
        if not is_valid_score(score):
            return SubmitResult(success=False, error=ERROR_INVALID_SCORE)

        return await self._with_fallback(
            "submit", lambda source: source.submit_score(candidate, score)
        )

    async def winner(self) -> Optional[RankedEntry]:
        return await self._with_fallback(
            "winner", lambda source: source.fetch_winner()
        )

    async def reset(self) -> None:
        if self._remote is not None:
            try:
                await self._remote.reset_leaderboard()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.warning(f"Remote reset failed, clearing device roster only: {e}")

        await self._local.reset_leaderboard()
