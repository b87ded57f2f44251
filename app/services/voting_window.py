"""Voting window derived from the first nomination in a room."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from app.config import settings
from app.utils.errors import NoCandidatesError, VotingNotStartedError
from app.utils.time import isoformat_utc, parse_timestamp

PHASE_NO_CANDIDATES = "no_candidates"
PHASE_NOMINATION = "nomination"
PHASE_VOTING = "voting"
PHASE_COMPLETED = "completed"


@dataclass(frozen=True)
class VotingWindow:
    """Start and advisory end of a room's voting period.

    Only ``opens_at`` is enforced. Votes that arrive after ``closes_at`` are
    still accepted; the end is reported to clients as a countdown target.
    """

    first_nominated_at: datetime
    opens_at: datetime
    closes_at: datetime

    def is_open(self, now: datetime) -> bool:
        return now >= self.opens_at

    def to_dict(self) -> dict[str, str]:
        return {
            "first_nominated_at": isoformat_utc(self.first_nominated_at),
            "opens_at": isoformat_utc(self.opens_at),
            "closes_at": isoformat_utc(self.closes_at),
        }


def window_for(candidates: Iterable[Mapping[str, Any]]) -> VotingWindow:
    """Build the voting window from candidate rows.

    Raises:
        NoCandidatesError: when the room has no candidates.
    """
    nominated = [parse_timestamp(candidate["created_at"]) for candidate in candidates]
    if not nominated:
        raise NoCandidatesError()

    first = min(nominated)
    opens_at = first + timedelta(seconds=settings.voting_start_delay_seconds)
    closes_at = opens_at + timedelta(
        seconds=settings.voting_duration_seconds + settings.voting_grace_seconds
    )
    return VotingWindow(first_nominated_at=first, opens_at=opens_at, closes_at=closes_at)


def ensure_voting_started(window: VotingWindow, now: datetime) -> None:
    """Raise VotingNotStartedError while the room is still in nomination."""
    if not window.is_open(now):
        raise VotingNotStartedError(isoformat_utc(window.opens_at))


def voting_phase(
    window: VotingWindow | None,
    now: datetime,
    *,
    finalized: bool,
    tie: bool,
    ballots_complete: bool,
) -> str:
    """Return the phase a room's election is in for display purposes.

    ``ballots_complete`` means every eligible voter has scored every
    candidate. Until then the room stays in voting, even past ``closes_at``
    or after a finalize.
    """
    if window is None:
        return PHASE_NO_CANDIDATES
    if tie:
        return PHASE_VOTING
    if finalized and ballots_complete:
        return PHASE_COMPLETED
    if not window.is_open(now):
        return PHASE_NOMINATION
    if now < window.closes_at or not ballots_complete:
        return PHASE_VOTING
    return PHASE_COMPLETED
