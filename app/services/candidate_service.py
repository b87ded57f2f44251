"""LR candidate nomination and removal."""

from __future__ import annotations

import logging
from typing import Any

from app.config import settings
from app.services import policy
from app.services.audit_service import AuditService
from app.services.common import SupabaseService, map_profiles_on_field
from app.utils.errors import (
    AlreadyCandidateError,
    AlreadySelectedError,
    NomineeNotMemberError,
    NotFoundError,
    StoreError,
    VotingInProgressError,
)
from supabase import Client

CANDIDATE_TABLE = "lr_candidate"
VOTE_TABLE = "lr_vote"

logger = logging.getLogger(__name__)


class CandidateService:
    """Track who is standing for LR in each room."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)
        self.audit = AuditService(client)

    def rows(self, room_id: str) -> list[dict[str, Any]]:
        """Return raw candidate rows in nomination order."""
        return self.db.select_many(
            CANDIDATE_TABLE,
            filters={"room_id": room_id},
            order_by="created_at",
        )

    def list_candidates(self, room_id: str) -> list[dict[str, Any]]:
        """Return candidates with their nominee profile attached."""
        candidates = self.rows(room_id)
        profiles = self.db.get_profiles_map(candidate["user_id"] for candidate in candidates)
        return map_profiles_on_field(candidates, profiles)

    def nominate(self, nominator_id: str, room_id: str, user_id: str) -> dict[str, Any]:
        """Nominate ``user_id`` as LR candidate in a room."""
        role = self.db.get_member_role(nominator_id, room_id)
        policy.ensure_can(role, policy.NOMINATE_SELF, "You must be a member of this room")
        if user_id != nominator_id:
            policy.ensure_can(
                role,
                policy.NOMINATE_OTHERS,
                "You can only nominate yourself unless you are an admin or LR",
            )

        if settings.require_nominee_membership and self.db.get_member_role(user_id, room_id) is None:
            raise NomineeNotMemberError()

        existing = self.db.select_many(
            CANDIDATE_TABLE,
            filters={"room_id": room_id, "user_id": user_id},
            columns="id",
            limit=1,
        )
        if existing:
            raise AlreadyCandidateError()

        try:
            candidate = self.db.insert_one(
                CANDIDATE_TABLE,
                {"room_id": room_id, "user_id": user_id, "is_selected": False},
            )
        except StoreError as exc:
            if exc.is_unique_violation:
                raise AlreadyCandidateError() from exc
            raise

        self.audit.record(
            room_id=room_id,
            user_id=nominator_id,
            action="candidate_nominated",
            resource_type=CANDIDATE_TABLE,
            resource_id=str(candidate["id"]),
            new_values={"candidate_user_id": user_id, "nominated_by": nominator_id},
        )
        logger.info("User %s nominated as LR candidate in room %s", user_id, room_id)
        return candidate

    def remove(self, requester_id: str, room_id: str, candidate_id: str) -> None:
        """Withdraw a candidate and the votes cast for them."""
        role = self.db.get_member_role(requester_id, room_id)
        policy.ensure_can(
            role,
            policy.REMOVE_CANDIDATE,
            "Insufficient permissions to remove candidates",
        )

        candidate = self.db.select_one(
            CANDIDATE_TABLE,
            {"id": candidate_id, "room_id": room_id},
            not_found_label="Candidate",
        )
        if candidate["is_selected"]:
            raise AlreadySelectedError()

        vote_count = self.db.count(VOTE_TABLE, {"candidate_id": candidate_id})
        if vote_count and not policy.can(role, policy.REMOVE_CANDIDATE_WITH_VOTES):
            raise VotingInProgressError(vote_count)

        if vote_count:
            self.db.delete(VOTE_TABLE, {"candidate_id": candidate_id})
        removed = self.db.delete(CANDIDATE_TABLE, {"id": candidate_id})
        if not removed:
            raise NotFoundError("Candidate")

        self.audit.record(
            room_id=room_id,
            user_id=requester_id,
            action="lr_candidate_removed",
            resource_type=CANDIDATE_TABLE,
            resource_id=candidate_id,
            old_values={"candidate_user_id": candidate["user_id"], "vote_count": vote_count},
        )
