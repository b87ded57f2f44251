"""Score aggregation and tie detection for LR elections.

Every vote carries five criterion scores. A vote's value is the mean of its
five scores and a candidate's standing is the mean of the values of the
votes it received. All arithmetic uses ``Fraction`` built from the decimal
text of each stored score, so two candidates with the same scores compare
exactly equal no matter how many votes went into each average.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any

CRITERIA = ("technical", "experience", "availability", "communication", "leadership")
SCORE_COLUMNS = tuple(f"{criterion}_score" for criterion in CRITERIA)
MIN_SCORE = 0
MAX_SCORE = 5

ZERO = Fraction(0)


def exact_score(value: Any) -> Fraction:
    """Convert a stored score to an exact rational; missing scores count as 0."""
    if value is None:
        return ZERO
    return Fraction(str(value))


def vote_value(vote: Mapping[str, Any]) -> Fraction:
    """Return the mean of a vote's five criterion scores."""
    total = sum((exact_score(vote.get(column)) for column in SCORE_COLUMNS), ZERO)
    return total / len(SCORE_COLUMNS)


@dataclass(frozen=True)
class Standing:
    candidate_id: str
    average: Fraction
    vote_count: int
    voter_ids: frozenset[str]
    criteria: dict[str, Fraction] = field(default_factory=dict)

    @property
    def average_score(self) -> float:
        return float(self.average)

    def to_dict(self) -> dict[str, Any]:
        return {
            "candidate_id": self.candidate_id,
            "average_score": self.average_score,
            "vote_count": self.vote_count,
            "scores": {name: float(value) for name, value in self.criteria.items()},
        }


@dataclass(frozen=True)
class Standings:
    """Aggregated results of one room's election."""

    standings: list[Standing]
    max_score: Fraction
    leaders: list[str]

    @property
    def is_tie(self) -> bool:
        # An all-zero maximum means nobody has scored anyone yet.
        return len(self.leaders) > 1 and self.max_score > 0

    @property
    def leader(self) -> str | None:
        """Return the sole leading candidate, if there is one with a positive score."""
        if len(self.leaders) == 1 and self.max_score > 0:
            return self.leaders[0]
        return None

    @property
    def voter_ids(self) -> frozenset[str]:
        voters: set[str] = set()
        for standing in self.standings:
            voters.update(standing.voter_ids)
        return frozenset(voters)

    def get(self, candidate_id: str) -> Standing | None:
        for standing in self.standings:
            if standing.candidate_id == candidate_id:
                return standing
        return None

    def ranked(self) -> list[Standing]:
        """Return standings by descending average, nomination order on ties."""
        order = {standing.candidate_id: idx for idx, standing in enumerate(self.standings)}
        return sorted(
            self.standings,
            key=lambda standing: (-standing.average, order[standing.candidate_id]),
        )

    def tie_summary(self) -> dict[str, Any]:
        return {
            "detected": self.is_tie,
            "candidate_ids": list(self.leaders) if self.is_tie else [],
            "max_score": float(self.max_score),
        }


def _standing(candidate_id: str, votes: list[Mapping[str, Any]]) -> Standing:
    if not votes:
        return Standing(
            candidate_id=candidate_id,
            average=ZERO,
            vote_count=0,
            voter_ids=frozenset(),
            criteria={criterion: ZERO for criterion in CRITERIA},
        )

    count = len(votes)
    average = sum((vote_value(vote) for vote in votes), ZERO) / count
    criteria = {
        criterion: sum((exact_score(vote.get(column)) for vote in votes), ZERO) / count
        for criterion, column in zip(CRITERIA, SCORE_COLUMNS, strict=True)
    }
    return Standing(
        candidate_id=candidate_id,
        average=average,
        vote_count=count,
        voter_ids=frozenset(str(vote["voter_id"]) for vote in votes),
        criteria=criteria,
    )


def compute_standings(
    candidate_ids: Iterable[str],
    votes: Iterable[Mapping[str, Any]],
) -> Standings:
    """Aggregate a room's votes into per-candidate standings.

    ``candidate_ids`` should be in nomination order; candidates with no votes
    get an average of 0. Votes naming a candidate outside ``candidate_ids``
    are still counted, after the listed candidates.
    """
    votes_by_candidate: dict[str, list[Mapping[str, Any]]] = {
        str(candidate_id): [] for candidate_id in candidate_ids
    }
    for vote in votes:
        votes_by_candidate.setdefault(str(vote["candidate_id"]), []).append(vote)

    standings = [
        _standing(candidate_id, candidate_votes)
        for candidate_id, candidate_votes in votes_by_candidate.items()
    ]
    if not standings:
        return Standings(standings=[], max_score=ZERO, leaders=[])

    max_score = max(standing.average for standing in standings)
    leaders = [standing.candidate_id for standing in standings if standing.average == max_score]
    return Standings(standings=standings, max_score=max_score, leaders=leaders)


def invalid_score_field(scores: Mapping[str, Any]) -> str | None:
    """Return the first score column that is missing or outside [0, 5]."""
    for column in SCORE_COLUMNS:
        value = scores.get(column)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return column
        # NaN fails both comparisons.
        if not MIN_SCORE <= value <= MAX_SCORE:
            return column
    return None
