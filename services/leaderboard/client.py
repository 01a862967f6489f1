import asyncio
from typing import Any, List, Optional

import httpx

from shared.leaderboard import roster as policy
from shared.leaderboard.models import RankedEntry, ScoreEntry, SubmitResult
from shared.logging.logger import get_logger

log = get_logger("leaderboard.client")

DEFAULT_TIMEOUT_SECONDS = 1.0


# ======================================================================
# Exceptions
# ======================================================================

class NetworkError(RuntimeError):
    """Raised when the shared leaderboard cannot produce a usable answer."""

    TIMEOUT = "TIMEOUT"
    CONNECTION = "CONNECTION"
    STATUS = "STATUS"
    MALFORMED = "MALFORMED"

    def __init__(self, reason: str, detail: str = ""):
        self.reason = reason
        self.detail = detail
        super().__init__(f"{reason}: {detail}" if detail else reason)


# ======================================================================
# Client
# ======================================================================

class RemoteClient:
    """
    Async client for the shared leaderboard service.

    Responsibilities:
    - Speak the GET /leaderboard, POST /score, GET /winner, DELETE /reset contract
    - Bound every call by a single deadline; the request task is cancelled
      when it expires
    - Report every failure as NetworkError; never reinterpret roster policy
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RemoteClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------ #
    # Leaderboard source operations
    # ------------------------------------------------------------------ #

    async def fetch_leaderboard(self) -> List[RankedEntry]:
        data = await self._request_json("GET", "/leaderboard")
        if not isinstance(data, list):
            raise NetworkError(NetworkError.MALFORMED, "leaderboard is not an array")

        if any(isinstance(item, dict) and "rank" in item for item in data):
            return [
                _parse_ranked(item, default_rank=position)
                for position, item in enumerate(data, start=1)
            ]

        # Unranked payloads are ranked locally.
        return policy.rank([_parse_entry(item) for item in data])

    async def submit_score(self, name: str, score: int) -> SubmitResult:
        data = await self._request_json(
            "POST", "/score", json={"name": name, "score": score}
        )
        if not isinstance(data, dict) or not isinstance(data.get("success"), bool):
            raise NetworkError(NetworkError.MALFORMED, "submit response lacks 'success'")

        error = data.get("error")
        return SubmitResult(
            success=data["success"],
            error=str(error) if error is not None else None,
        )

    async def fetch_winner(self) -> Optional[RankedEntry]:
        data = await self._request_json("GET", "/winner")
        if data is None:
            return None
        return _parse_ranked(data, default_rank=1)

    async def reset_leaderboard(self) -> None:
        await self._request("DELETE", "/reset")

    # ------------------------------------------------------------------ #
    # Transport helpers
    # ------------------------------------------------------------------ #

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await asyncio.wait_for(
                self._client.request(method, path, **kwargs),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise NetworkError(
                NetworkError.TIMEOUT, f"{method} {path} exceeded {self.timeout:.3f}s"
            ) from e
        except httpx.TimeoutException as e:
            raise NetworkError(NetworkError.TIMEOUT, f"{method} {path}: {e}") from e
        except httpx.HTTPError as e:
            raise NetworkError(NetworkError.CONNECTION, f"{method} {path}: {e}") from e

        if not response.is_success:
            raise NetworkError(
                NetworkError.STATUS, f"{method} {path} -> {response.status_code}"
            )

        log.debug(f"{method} {path} -> {response.status_code}")
        return response

    async def _request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._request(method, path, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(NetworkError.MALFORMED, f"{method} {path}: {e}") from e


def _parse_entry(raw: Any) -> ScoreEntry:
    try:
        return ScoreEntry.from_dict(raw)
    except ValueError as e:
        raise NetworkError(NetworkError.MALFORMED, str(e)) from e


def _parse_ranked(raw: Any, *, default_rank: int) -> RankedEntry:
    entry = _parse_entry(raw)

    rank = raw.get("rank", default_rank)
    if not isinstance(rank, int) or isinstance(rank, bool) or rank < 1:
        raise NetworkError(NetworkError.MALFORMED, f"invalid rank: {rank!r}")

    return RankedEntry(rank=rank, name=entry.name, score=entry.score)


__all__ = ["NetworkError", "RemoteClient", "DEFAULT_TIMEOUT_SECONDS"]
