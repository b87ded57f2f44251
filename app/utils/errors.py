"""Custom exception hierarchy for the LR voting API."""

from __future__ import annotations

import math
from typing import Any


class AppError(Exception):
    """Base application error with a stable machine-readable code."""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error in the API standard shape."""
        payload: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class NotFoundError(AppError):
    """Raised when a requested resource does not exist."""

    def __init__(self, resource: str) -> None:
        super().__init__(message=f"{resource} not found", code="NOT_FOUND", status_code=404)


class AccessDeniedError(AppError):
    """Raised when the user lacks permission for the action."""

    def __init__(self, reason: str = "You don't have permission", code: str = "ACCESS_DENIED") -> None:
        super().__init__(message=reason, code=code, status_code=403)


class ConflictError(AppError):
    """Raised when the room's election state rejects the operation."""

    def __init__(
        self,
        reason: str,
        code: str = "CONFLICT",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=reason, code=code, status_code=409, details=details)


class UnauthorizedError(AppError):
    """Raised when the caller is not authenticated."""

    def __init__(self, reason: str = "Unauthorized") -> None:
        super().__init__(message=reason, code="UNAUTHORIZED", status_code=401)


class InvalidInputError(AppError):
    """Raised for request payload or parameter validation issues."""

    def __init__(
        self,
        reason: str,
        code: str = "INVALID_INPUT",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=reason, code=code, status_code=422, details=details)


class StoreError(AppError):
    """Raised when a Supabase request fails."""

    def __init__(self, reason: str, db_code: str | None = None) -> None:
        super().__init__(message=reason, code="STORE_ERROR", status_code=502)
        self.db_code = db_code

    @property
    def is_unique_violation(self) -> bool:
        return self.db_code == "23505"


def _json_safe(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    return value


class InvalidScoreError(InvalidInputError):
    def __init__(self, field: str, value: Any) -> None:
        super().__init__(
            f"{field} must be between 0 and 5",
            code="INVALID_SCORE",
            details={"field": field, "value": _json_safe(value)},
        )


class NomineeNotMemberError(InvalidInputError):
    def __init__(self) -> None:
        super().__init__("User is not a member of this room", code="NOMINEE_NOT_MEMBER")


class AlreadyCandidateError(ConflictError):
    def __init__(self) -> None:
        super().__init__("User is already a candidate", code="ALREADY_CANDIDATE")


class AlreadySelectedError(ConflictError):
    def __init__(self) -> None:
        super().__init__("Cannot remove the selected LR candidate", code="ALREADY_SELECTED")


class VotingInProgressError(ConflictError):
    def __init__(self, vote_count: int) -> None:
        super().__init__(
            "Cannot remove candidate after voting has started (admin required)",
            code="VOTING_IN_PROGRESS",
            details={"vote_count": vote_count},
        )


class CandidatesCannotVoteError(AccessDeniedError):
    def __init__(self) -> None:
        super().__init__("Candidates cannot vote in their own room", code="CANDIDATES_CANNOT_VOTE")


class NoCandidatesError(ConflictError):
    def __init__(self) -> None:
        super().__init__("No candidates have been nominated yet", code="NO_CANDIDATES")


class VotingNotStartedError(ConflictError):
    def __init__(self, opens_at: str) -> None:
        super().__init__(
            "Voting has not started yet",
            code="VOTING_NOT_STARTED",
            details={"opens_at": opens_at},
        )


class VotingClosedError(ConflictError):
    def __init__(self) -> None:
        super().__init__(
            "Voting is closed - LR has already been selected",
            code="VOTING_CLOSED",
        )


class AlreadyFinalizedError(ConflictError):
    def __init__(self) -> None:
        super().__init__("LR selection is already finalized", code="ALREADY_FINALIZED")


class TieDetectedError(ConflictError):
    """Raised when several candidates share the highest non-zero score."""

    def __init__(self, candidate_ids: list[str], max_score: float) -> None:
        super().__init__(
            f"Cannot finalize: tie detected among {len(candidate_ids)} candidates. "
            "Reset the votes to run the election again.",
            code="TIE_DETECTED",
            details={"tie_detected": True, "top_candidates": candidate_ids, "max_score": max_score},
        )


class NoLeaderError(ConflictError):
    def __init__(self) -> None:
        super().__init__(
            "Cannot finalize: no candidate has received a positive score yet",
            code="NO_LEADER",
        )


class NotLeaderError(ConflictError):
    def __init__(self, leader_id: str) -> None:
        super().__init__(
            "Cannot finalize: candidate is not the current leader",
            code="NOT_LEADER",
            details={"leader_id": leader_id},
        )


class FinalizationFailedError(AppError):
    def __init__(self) -> None:
        super().__init__(
            "Failed to finalize LR selection",
            code="FINALIZATION_FAILED",
            status_code=500,
        )
