"""Score aggregation and tie detection tests."""

from __future__ import annotations

from fractions import Fraction

import pytest

from app.services.scoring import compute_standings, invalid_score_field, vote_value
from tests.factories import scores


def _vote(voter: str, candidate: str, *values: float) -> dict:
    return {"voter_id": voter, "candidate_id": candidate, **scores(*values)}


def test_vote_value_is_mean_of_five_criteria() -> None:
    assert vote_value(scores(1, 2, 3, 4, 5)) == 3
    assert vote_value({"technical_score": 5}) == 1


def test_candidate_average_is_mean_of_vote_means() -> None:
    standings = compute_standings(
        ["a", "b"],
        [_vote("v1", "a", 5), _vote("v2", "a", 3)],
    )
    a = standings.get("a")
    b = standings.get("b")
    assert a.average == 4 and a.vote_count == 2
    assert a.voter_ids == {"v1", "v2"}
    assert b.average == 0 and b.vote_count == 0
    assert standings.leader == "a"
    assert not standings.is_tie


def test_tie_between_equal_leaders_regardless_of_vote_count() -> None:
    """A (3.0 from 2 votes) and B (3.0 from 1 vote) tie above C (2.0)."""
    votes = [
        _vote("v1", "a", 4),
        _vote("v2", "a", 2),
        _vote("v1", "b", 3),
        *[_vote(f"v{i}", "c", 2) for i in range(5)],
    ]
    standings = compute_standings(["a", "b", "c"], votes)
    assert standings.is_tie
    assert standings.leaders == ["a", "b"]
    assert standings.max_score == 3
    assert standings.leader is None
    assert standings.tie_summary() == {"detected": True, "candidate_ids": ["a", "b"], "max_score": 3.0}


def test_all_zero_scores_are_not_a_tie() -> None:
    standings = compute_standings(["a", "b", "c"], [])
    assert standings.leaders == ["a", "b", "c"]
    assert not standings.is_tie
    assert standings.leader is None


def test_equal_averages_compare_exactly() -> None:
    """Averages built from decimal scores that are not exact in binary still tie."""
    votes = [
        _vote("v1", "a", 3),
        _vote("v1", "b", 4.2),
        _vote("v2", "b", 1.8),
        _vote("v1", "c", 0.1, 0.2, 0.3, 0.4, 0.5),
    ]
    standings = compute_standings(["a", "b", "c"], votes)
    assert standings.get("b").average == Fraction(3)
    assert standings.is_tie
    assert standings.get("c").average == Fraction(3, 10)


def test_criteria_averages_and_ranking() -> None:
    votes = [_vote("v1", "b", 1, 2, 3, 4, 5), _vote("v2", "b", 3, 2, 1, 0, 5)]
    standings = compute_standings(["a", "b"], votes)
    assert standings.get("b").to_dict()["scores"] == {
        "technical": 2.0,
        "experience": 2.0,
        "availability": 2.0,
        "communication": 2.0,
        "leadership": 5.0,
    }
    assert [standing.candidate_id for standing in standings.ranked()] == ["b", "a"]


def test_votes_for_unlisted_candidates_are_counted() -> None:
    standings = compute_standings([], [_vote("v1", "ghost", 2)])
    assert standings.leader == "ghost"


def test_no_candidates() -> None:
    standings = compute_standings([], [])
    assert standings.standings == []
    assert standings.leader is None
    assert not standings.is_tie


@pytest.mark.parametrize("value", [0, 5, 2.5])
def test_boundary_scores_are_valid(value: float) -> None:
    assert invalid_score_field(scores(value)) is None


@pytest.mark.parametrize("value", [-0.01, 5.01, 6, float("nan"), float("inf"), True, "3", None])
def test_out_of_range_scores_are_flagged(value: object) -> None:
    payload = scores(3)
    payload["communication_score"] = value
    assert invalid_score_field(payload) == "communication_score"


def test_missing_score_is_flagged() -> None:
    payload = scores(3)
    del payload["leadership_score"]
    assert invalid_score_field(payload) == "leadership_score"
