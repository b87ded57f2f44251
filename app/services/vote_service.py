"""Scored LR votes: submission and room-wide reset."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from app.services import policy
from app.services.audit_service import AuditService
from app.services.candidate_service import CandidateService
from app.services.common import SupabaseService
from app.services.scoring import SCORE_COLUMNS, invalid_score_field
from app.services.voting_window import ensure_voting_started, window_for
from app.utils.errors import (
    CandidatesCannotVoteError,
    InvalidScoreError,
    NotFoundError,
    VotingClosedError,
)
from app.utils.time import isoformat_utc, now_utc
from supabase import Client

VOTE_TABLE = "lr_vote"
VOTE_CONFLICT_KEY = "room_id,voter_id,candidate_id"


class VoteService:
    """Record at most one score vote per (room, voter, candidate)."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)
        self.audit = AuditService(client)
        self.candidates = CandidateService(client)

    def room_votes(self, room_id: str) -> list[dict[str, Any]]:
        return self.db.select_many(VOTE_TABLE, filters={"room_id": room_id}, order_by="created_at")

    def votes_by(self, room_id: str, voter_id: str) -> list[dict[str, Any]]:
        """Return every vote ``voter_id`` has cast in a room."""
        return self.db.select_many(
            VOTE_TABLE,
            filters={"room_id": room_id, "voter_id": voter_id},
            order_by="created_at",
        )

    def submit(
        self,
        voter_id: str,
        room_id: str,
        candidate_id: str,
        scores: dict[str, Any],
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Create or overwrite the voter's scores for one candidate."""
        invalid = invalid_score_field(scores)
        if invalid is not None:
            raise InvalidScoreError(invalid, scores.get(invalid))

        candidates = self.candidates.rows(room_id)
        window = window_for(candidates)

        if any(str(candidate["user_id"]) == voter_id for candidate in candidates):
            raise CandidatesCannotVoteError()

        role = self.db.get_member_role(voter_id, room_id)
        policy.ensure_can(role, policy.SUBMIT_VOTE, "You must be a member of this room to vote")

        if not any(str(candidate["id"]) == candidate_id for candidate in candidates):
            raise NotFoundError("Candidate")
        if any(candidate["is_selected"] for candidate in candidates):
            raise VotingClosedError()

        current_time = now or now_utc()
        ensure_voting_started(window, current_time)

        payload: dict[str, Any] = {
            "room_id": room_id,
            "voter_id": voter_id,
            "candidate_id": candidate_id,
            "updated_at": isoformat_utc(current_time),
        }
        payload.update({column: scores[column] for column in SCORE_COLUMNS})
        return self.db.upsert_one(VOTE_TABLE, payload, on_conflict=VOTE_CONFLICT_KEY)

    def reset(self, requester_id: str, room_id: str) -> int:
        """Delete every vote in a room so a tied election can run again."""
        role = self.db.get_member_role(requester_id, room_id)
        policy.ensure_can(
            role,
            policy.RESET_VOTES,
            "Access denied: You must be a member of this room",
        )

        removed = self.db.delete(VOTE_TABLE, {"room_id": room_id})
        self.audit.record(
            room_id=room_id,
            user_id=requester_id,
            action="votes_reset",
            resource_type=VOTE_TABLE,
            new_values={
                "reason": "tie_detected",
                "reset_by": requester_id,
                "deleted_votes": len(removed),
            },
        )
        return len(removed)
