"""Tests for ranking, winner selection and the submission merge rule."""

import pytest

from shared.leaderboard import roster as policy
from shared.leaderboard.models import (
    MAX_PLAYERS,
    REASON_ROSTER_FULL,
    RankedEntry,
    ScoreEntry,
)


def _entries(*pairs: tuple[str, int]) -> list[ScoreEntry]:
    return [ScoreEntry(name=name, score=score) for name, score in pairs]


class TestRank:
    """Tests for the score-descending, tie-stable ordering."""

    def test_ties_keep_submission_order(self) -> None:
        """A submitted before B with equal scores ranks first."""
        ranked = policy.rank(_entries(("A", 10), ("B", 10)))

        assert ranked == [
            RankedEntry(rank=1, name="A", score=10),
            RankedEntry(rank=2, name="B", score=10),
        ]

    def test_ranks_are_dense_and_distinct(self) -> None:
        ranked = policy.rank(_entries(("low", 1), ("mid", 5), ("top", 9), ("mid2", 5)))

        assert [entry.name for entry in ranked] == ["top", "mid", "mid2", "low"]
        assert [entry.rank for entry in ranked] == [1, 2, 3, 4]

    def test_rank_is_idempotent(self) -> None:
        roster = _entries(("C", 3), ("A", 7), ("B", 7), ("D", 0))

        assert policy.rank(roster) == policy.rank(roster)

    def test_empty_roster(self) -> None:
        assert policy.rank([]) == []


class TestWinner:
    """Tests for winner derivation."""

    def test_winner_is_first_ranked(self) -> None:
        roster = _entries(("A", 3), ("B", 12), ("C", 12))

        assert policy.winner(roster) == policy.rank(roster)[0]
        assert policy.winner(roster).name == "B"

    def test_no_winner_for_empty_roster(self) -> None:
        assert policy.winner([]) is None


class TestApplySubmission:
    """Tests for insert-if-room, update-if-higher, else reject."""

    @pytest.mark.parametrize("size", [0, 1, 5, MAX_PLAYERS - 1])
    def test_new_name_joins_when_room(self, size: int) -> None:
        roster = [ScoreEntry(name=f"P{i}", score=i) for i in range(size)]

        updated, outcome = policy.apply_submission(roster, "New", 4)

        assert outcome.accepted
        assert len(updated) == size + 1
        assert updated[-1] == ScoreEntry(name="New", score=4)

    def test_new_name_rejected_when_full(self, full_roster: list[ScoreEntry]) -> None:
        updated, outcome = policy.apply_submission(full_roster, "K", 5)

        assert not outcome.accepted
        assert outcome.reason == REASON_ROSTER_FULL
        assert updated == full_roster

    def test_known_name_accepted_when_full(self, full_roster: list[ScoreEntry]) -> None:
        """Capacity only gates new names."""
        updated, outcome = policy.apply_submission(full_roster, "P0", 500)

        assert outcome.accepted
        assert len(updated) == MAX_PLAYERS
        assert updated[0] == ScoreEntry(name="P0", score=500)

    def test_lower_score_keeps_record(self) -> None:
        updated, outcome = policy.apply_submission(_entries(("A", 30)), "A", 10)

        assert outcome.accepted
        assert updated == _entries(("A", 30))

    def test_higher_score_replaces_record(self) -> None:
        updated, _ = policy.apply_submission(_entries(("A", 30), ("B", 5)), "A", 45)

        assert updated == _entries(("A", 45), ("B", 5))

    def test_input_roster_is_not_mutated(self) -> None:
        roster = _entries(("A", 1))

        policy.apply_submission(roster, "A", 99)
        policy.apply_submission(roster, "B", 2)

        assert roster == _entries(("A", 1))

    def test_names_are_case_sensitive(self) -> None:
        updated, outcome = policy.apply_submission(_entries(("alice", 3)), "Alice", 1)

        assert outcome.accepted
        assert [entry.name for entry in updated] == ["alice", "Alice"]

    def test_reset_clears(self, full_roster: list[ScoreEntry]) -> None:
        assert policy.reset(full_roster) == []


class TestNameEntryHelpers:
    """Tests for name normalization, registration and new-record checks."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            pytest.param("  Alice  ", "Alice", id="trimmed"),
            pytest.param("   ", "", id="blank"),
            pytest.param("x" * 25, "x" * 20, id="truncated"),
        ],
    )
    def test_normalize_name(self, raw: str, expected: str) -> None:
        assert policy.normalize_name(raw) == expected

    def test_can_register_known_name_on_full_board(
        self, full_roster: list[ScoreEntry]
    ) -> None:
        board = policy.rank(full_roster)

        assert policy.can_register(board, "P3")
        assert not policy.can_register(board, "Stranger")

    def test_can_register_with_room(self) -> None:
        assert policy.can_register([], "Anyone")

    def test_is_new_record(self) -> None:
        board = policy.rank(_entries(("A", 40), ("B", 12)))

        assert policy.is_new_record(board, "A", 40)
        assert not policy.is_new_record(board, "A", 12)
        assert not policy.is_new_record(board, "C", 40)
