"""LR election standings, finalization and self-healing state."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import httpx

from app.services import policy
from app.services.audit_service import AuditService
from app.services.candidate_service import CANDIDATE_TABLE, CandidateService
from app.services.common import SupabaseService, forget_member_role
from app.services.scoring import Standings, compute_standings
from app.services.vote_service import VoteService
from app.services.voting_window import VotingWindow, voting_phase, window_for
from app.utils.errors import (
    AlreadyFinalizedError,
    FinalizationFailedError,
    NoCandidatesError,
    NoLeaderError,
    NotFoundError,
    NotLeaderError,
    StoreError,
    TieDetectedError,
)
from app.utils.time import now_utc
from supabase import Client

FINALIZE_RPC = "finalize_lr_selection"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ElectionState:
    """Derived state of one room's election after revalidation."""

    candidates: list[dict[str, Any]]
    standings: Standings
    eligible_voters: int
    voters: int
    ballots: int
    finalized: bool
    reverted: bool

    @property
    def ballots_complete(self) -> bool:
        """Every eligible voter has scored every candidate."""
        return self.ballots >= self.eligible_voters * len(self.candidates)


def is_finalized(selected_count: int, voters: int, eligible_voters: int, tie: bool) -> bool:
    """Return whether a room's LR selection still holds.

    A selection stands only while exactly one candidate is selected, every
    eligible member has voted and the leaders are not tied.
    """
    return selected_count == 1 and voters >= eligible_voters and not tie


class ElectionService:
    """Compute standings and move rooms between open and finalized."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)
        self.audit = AuditService(client)
        self.candidates = CandidateService(client)
        self.votes = VoteService(client)

    def revalidate(self, room_id: str) -> ElectionState:
        """Recompute a room's election state and clear a stale selection.

        This is not a pure read. When a candidate is selected but turnout
        has dropped below 100% or a tie has appeared, every candidate in the
        room is unselected before returning.
        """
        candidates = self.candidates.rows(room_id)
        votes = self.votes.room_votes(room_id)
        standings = compute_standings((str(c["id"]) for c in candidates), votes)

        candidate_user_ids = {str(candidate["user_id"]) for candidate in candidates}
        eligible = self.db.list_member_ids(room_id) - candidate_user_ids
        voters = len(standings.voter_ids & eligible)
        candidate_ids = {str(candidate["id"]) for candidate in candidates}
        ballots = len(
            {
                (str(vote["voter_id"]), str(vote["candidate_id"]))
                for vote in votes
                if str(vote["voter_id"]) in eligible and str(vote["candidate_id"]) in candidate_ids
            }
        )

        selected = [candidate for candidate in candidates if candidate["is_selected"]]
        finalized = is_finalized(len(selected), voters, len(eligible), standings.is_tie)
        reverted = bool(selected) and not finalized
        if reverted:
            self.db.update(CANDIDATE_TABLE, {"room_id": room_id}, {"is_selected": False})
            candidates = [{**candidate, "is_selected": False} for candidate in candidates]
            logger.warning(
                "Reverted LR selection in room %s (voters=%s eligible=%s tie=%s)",
                room_id,
                voters,
                len(eligible),
                standings.is_tie,
            )
            self.audit.record(
                room_id=room_id,
                user_id=None,
                action="lr_selection_reverted",
                resource_type=CANDIDATE_TABLE,
                resource_id=str(selected[0]["id"]),
                old_values={
                    "selected_candidate_ids": [str(candidate["id"]) for candidate in selected],
                    "voters": voters,
                    "eligible_voters": len(eligible),
                    "tie_detected": standings.is_tie,
                },
            )

        return ElectionState(
            candidates=candidates,
            standings=standings,
            eligible_voters=len(eligible),
            voters=voters,
            ballots=ballots,
            finalized=finalized,
            reverted=reverted,
        )

    def standings(
        self,
        room_id: str,
        user_id: str | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Return results, the caller's votes and the finalized flag."""
        state = self.revalidate(room_id)
        profiles = self.db.get_profiles_map(c["user_id"] for c in state.candidates)
        candidates_by_id = {str(candidate["id"]): candidate for candidate in state.candidates}

        results: list[dict[str, Any]] = []
        for standing in state.standings.ranked():
            candidate = candidates_by_id.get(standing.candidate_id)
            if candidate is None:
                continue
            profile = profiles.get(str(candidate["user_id"])) or {}
            results.append(
                {
                    **standing.to_dict(),
                    "user_id": str(candidate["user_id"]),
                    "full_name": profile.get("full_name") or "Unknown",
                    "is_selected": bool(candidate["is_selected"]),
                }
            )

        window: VotingWindow | None
        try:
            window = window_for(state.candidates)
        except NoCandidatesError:
            window = None

        phase = voting_phase(
            window,
            now or now_utc(),
            finalized=state.finalized,
            tie=state.standings.is_tie,
            ballots_complete=state.ballots_complete,
        )

        return {
            "results": results,
            "my_vote": self.votes.votes_by(room_id, user_id) if user_id else None,
            "is_finalized": state.finalized,
            "tie": state.standings.tie_summary(),
            "turnout": {"voters": state.voters, "eligible_voters": state.eligible_voters},
            "voting_window": window.to_dict() if window else None,
            "phase": phase,
        }

    def finalize(self, actor_id: str, room_id: str, candidate_id: str) -> dict[str, Any]:
        """Select the winning candidate and promote them to LR."""
        role = self.db.get_member_role(actor_id, room_id)
        policy.ensure_can(role, policy.FINALIZE, "Access denied: You must be a member of this room")

        candidates = self.candidates.rows(room_id)
        candidate = next((c for c in candidates if str(c["id"]) == candidate_id), None)
        if candidate is None:
            raise NotFoundError("Candidate")
        if candidate["is_selected"]:
            raise AlreadyFinalizedError()

        standings = compute_standings(
            (str(c["id"]) for c in candidates),
            self.votes.room_votes(room_id),
        )
        if standings.is_tie:
            raise TieDetectedError(list(standings.leaders), float(standings.max_score))
        if standings.leader is None:
            raise NoLeaderError()
        if standings.leader != candidate_id:
            raise NotLeaderError(standings.leader)

        candidate_user_id = str(candidate["user_id"])
        try:
            committed = self.db.rpc(
                FINALIZE_RPC,
                {"p_room_id": room_id, "p_candidate_id": candidate_id},
            )
        except (StoreError, httpx.HTTPError) as exc:
            logger.exception("LR finalization failed for room %s", room_id)
            raise FinalizationFailedError() from exc
        if not committed:
            logger.error("LR finalization for room %s committed no rows", room_id)
            raise FinalizationFailedError()
        forget_member_role(candidate_user_id, room_id)

        standing = standings.get(candidate_id)
        total_score = standing.average_score if standing else 0.0
        vote_count = standing.vote_count if standing else 0
        self.audit.record(
            room_id=room_id,
            user_id=actor_id,
            action="lr_selected",
            resource_type=CANDIDATE_TABLE,
            resource_id=candidate_id,
            new_values={
                "candidate_user_id": candidate_user_id,
                "total_score": total_score,
                "vote_count": vote_count,
            },
        )
        logger.info("Room %s finalized LR candidate %s", room_id, candidate_id)

        profile = self.db.get_profiles_map([candidate_user_id]).get(candidate_user_id) or {}
        return {
            "candidate_id": candidate_id,
            "candidate_name": profile.get("full_name") or "Unknown",
            "candidate_email": profile.get("email") or "Unknown",
            "total_score": total_score,
            "vote_count": vote_count,
        }

    def reset_votes(self, requester_id: str, room_id: str) -> dict[str, Any]:
        """Clear a room's votes for a re-run and revalidate its state."""
        deleted = self.votes.reset(requester_id, room_id)
        state = self.revalidate(room_id)
        return {
            "success": True,
            "message": "Votes reset successfully for tie-breaking",
            "deleted_votes": deleted,
            "is_finalized": state.finalized,
        }

    def revalidate_selected_rooms(self) -> int:
        """Revalidate every room that has a selected candidate.

        Returns the number of rooms whose selection was reverted.
        """
        rows = self.db.select_many(
            CANDIDATE_TABLE,
            filters={"is_selected": True},
            columns="room_id",
        )
        reverted = 0
        for room_id in sorted({str(row["room_id"]) for row in rows}):
            if self.revalidate(room_id).reverted:
                reverted += 1
        return reverted
