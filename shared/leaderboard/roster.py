"""
Roster policy.

Pure functions over a roster (a list of ScoreEntry). No I/O, no clocks,
no randomness. The same rules apply to the device fallback roster and to
the roster held by the reference server.

Ordering contract:
- rank() is a stable sort by score, descending
- ties keep their roster order and still get distinct, consecutive ranks
- new names are appended, so among equal scores earlier registrants win
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from shared.leaderboard.models import (
    MAX_PLAYERS,
    NAME_MAX_LENGTH,
    REASON_ROSTER_FULL,
    RankedEntry,
    ScoreEntry,
    SubmissionOutcome,
)


# ======================================================================
# Ranking
# ======================================================================

def rank(roster: Sequence[ScoreEntry]) -> List[RankedEntry]:
    ordered = sorted(roster, key=lambda entry: -entry.score)
    return [
        RankedEntry(rank=position, name=entry.name, score=entry.score)
        for position, entry in enumerate(ordered, start=1)
    ]


def winner(roster: Sequence[ScoreEntry]) -> Optional[RankedEntry]:
    ranked = rank(roster)
    return ranked[0] if ranked else None


# ======================================================================
# Mutations (return new rosters, never touch the input)
# ======================================================================

def apply_submission(
    roster: Sequence[ScoreEntry],
    name: str,
    score: int,
) -> Tuple[List[ScoreEntry], SubmissionOutcome]:
    """
    Merge one submission into the roster.

    `name` must already be normalized; rejecting empty names is the
    caller's job.

    - known name: score becomes max(recorded, submitted)
    - new name with room: appended at the end
    - new name, roster full: rejected with ROSTER_FULL, roster unchanged
    """
    updated = list(roster)

    for index, entry in enumerate(updated):
        if entry.name == name:
            if score > entry.score:
                updated[index] = ScoreEntry(name=name, score=score)
            return updated, SubmissionOutcome(accepted=True)

    if len(updated) >= MAX_PLAYERS:
        return list(roster), SubmissionOutcome(
            accepted=False, reason=REASON_ROSTER_FULL
        )

    updated.append(ScoreEntry(name=name, score=score))
    return updated, SubmissionOutcome(accepted=True)


def reset(roster: Sequence[ScoreEntry]) -> List[ScoreEntry]:
    return []


# ======================================================================
# Name-entry & game-over helpers
# ======================================================================

def normalize_name(raw: str) -> str:
    return raw.strip()[:NAME_MAX_LENGTH]


def can_register(entries: Iterable[RankedEntry | ScoreEntry], name: str) -> bool:
    """
    True when `name` may join the board shown to the player: either it is
    already on it, or fewer than MAX_PLAYERS distinct names are.
    """
    names = {entry.name for entry in entries}
    return name in names or len(names) < MAX_PLAYERS


def is_new_record(
    entries: Iterable[RankedEntry | ScoreEntry],
    name: str,
    score: int,
) -> bool:
    """True when the board records exactly this score for this name."""
    return any(entry.name == name and entry.score == score for entry in entries)
