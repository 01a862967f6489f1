"""
Device fallback roster persistence.

Stores one roster as a JSON array of {name, score} under a fixed
device-scoped key. Owns raw storage only: no ranking, no capacity rule.
"""

from __future__ import annotations

from typing import Any, List, Sequence

from shared.leaderboard.models import MAX_PLAYERS, ScoreEntry
from shared.logging.logger import get_logger
from shared.storage.device_store import DeviceStore

log = get_logger("shared.local_store")

ROSTER_KEY = "skybound_mock_leaderboard"


class LocalStore:
    def __init__(self, store: DeviceStore, key: str = ROSTER_KEY):
        self._store = store
        self._key = key

    def load(self) -> List[ScoreEntry]:
        """
        Return the persisted roster, or [] when absent or malformed.
        """
        raw = self._store.get(self._key)
        if raw is None:
            return []

        try:
            return _parse_roster(raw)
        except ValueError as e:
            log.warning(f"Discarding malformed local roster: {e}")
            return []

    def save(self, roster: Sequence[ScoreEntry]) -> None:
        self._store.set(self._key, [entry.to_dict() for entry in roster])

    def clear(self) -> None:
        self._store.delete(self._key)


def _parse_roster(raw: Any) -> List[ScoreEntry]:
    if not isinstance(raw, list):
        raise ValueError(f"root must be an array, got {type(raw).__name__}")
    if len(raw) > MAX_PLAYERS:
        raise ValueError(f"{len(raw)} entries exceeds capacity {MAX_PLAYERS}")

    roster = [ScoreEntry.from_dict(item) for item in raw]

    names = [entry.name for entry in roster]
    if len(set(names)) != len(names):
        raise ValueError("duplicate names")

    return roster
