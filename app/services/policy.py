"""Room role capabilities for LR election actions."""

from __future__ import annotations

from app.utils.errors import AccessDeniedError

ADMIN = "admin"
LR = "lr"
MEMBER = "member"

NOMINATE_SELF = "nominate_self"
NOMINATE_OTHERS = "nominate_others"
REMOVE_CANDIDATE = "remove_candidate"
REMOVE_CANDIDATE_WITH_VOTES = "remove_candidate_with_votes"
SUBMIT_VOTE = "submit_vote"
RESET_VOTES = "reset_votes"
FINALIZE = "finalize"

_ANY_MEMBER = frozenset({ADMIN, LR, MEMBER})

CAPABILITIES: dict[str, frozenset[str]] = {
    NOMINATE_SELF: _ANY_MEMBER,
    NOMINATE_OTHERS: frozenset({ADMIN, LR}),
    REMOVE_CANDIDATE: frozenset({ADMIN, LR}),
    REMOVE_CANDIDATE_WITH_VOTES: frozenset({ADMIN}),
    SUBMIT_VOTE: _ANY_MEMBER,
    # Tie-breaking resets and finalization are self-service for the whole room.
    RESET_VOTES: _ANY_MEMBER,
    FINALIZE: _ANY_MEMBER,
}


def can(role: str | None, action: str) -> bool:
    """Return whether a room role may perform ``action``.

    ``role`` is None for users who are not members of the room; they have
    no capabilities. Unknown actions are denied.
    """
    if role is None:
        return False
    return role in CAPABILITIES.get(action, frozenset())


def ensure_can(role: str | None, action: str, reason: str) -> None:
    """Raise AccessDeniedError unless ``role`` may perform ``action``."""
    if not can(role, action):
        raise AccessDeniedError(reason)
