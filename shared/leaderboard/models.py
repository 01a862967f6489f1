"""
Leaderboard data models.

These are plain value objects shared by the roster policy, the local
fallback store, the remote client and the reference server. They carry no
policy of their own beyond shape validation of their JSON layouts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

# ----------------------------------------------------------------------
# Limits & codes
# ----------------------------------------------------------------------

MAX_PLAYERS = 10
NAME_MAX_LENGTH = 20
DEFAULT_PLAYER_NAME = "Player"

# Policy-level rejection reason
REASON_ROSTER_FULL = "ROSTER_FULL"

# Caller/wire-level error codes
ERROR_MAX_PLAYERS = "MAX_PLAYERS"
ERROR_INVALID_NAME = "INVALID_NAME"
ERROR_INVALID_SCORE = "INVALID_SCORE"


def is_valid_score(value: Any) -> bool:
    # bool is an int subclass; True is not a score
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


@dataclass(frozen=True)
class ScoreEntry:
    name: str
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "score": self.score}

    @classmethod
    def from_dict(cls, raw: Any) -> "ScoreEntry":
        """
        Parse a `{name, score}` mapping.

        Raises ValueError when the shape is wrong; callers decide whether
        that means "absent" (local store) or "malformed" (remote).
        """
        if not isinstance(raw, dict):
            raise ValueError(f"entry must be an object, got {type(raw).__name__}")

        name = raw.get("name")
        score = raw.get("score")

        if not isinstance(name, str) or not name.strip():
            raise ValueError(f"entry name must be a non-empty string: {name!r}")
        if not is_valid_score(score):
            raise ValueError(f"entry score must be a non-negative integer: {score!r}")

        return cls(name=name, score=score)


@dataclass(frozen=True)
class RankedEntry:
    rank: int
    name: str
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {"rank": self.rank, "name": self.name, "score": self.score}


@dataclass(frozen=True)
class SubmissionOutcome:
    """Result of applying one submission to a roster."""

    accepted: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class SubmitResult:
    """Caller-facing submit result, identical to the wire body of POST /score."""

    success: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success}
        if self.error is not None:
            payload["error"] = self.error
        return payload

    @classmethod
    def from_outcome(cls, outcome: SubmissionOutcome) -> "SubmitResult":
        if outcome.accepted:
            return cls(success=True)
        if outcome.reason == REASON_ROSTER_FULL:
            return cls(success=False, error=ERROR_MAX_PLAYERS)
        return cls(success=False, error=outcome.reason)
