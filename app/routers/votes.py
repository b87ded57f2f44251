"""LR voting endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from app.dependencies import get_current_user, get_current_user_id, get_db_client
from app.schemas.vote import VoteCreate
from app.services.election_service import ElectionService
from app.services.vote_service import VoteService
from supabase import Client

router = APIRouter()


@router.get("")
def get_standings(
    room_id: str,
    user: Any = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return current results, the caller's votes and finalized status."""
    service = ElectionService(client)
    return service.standings(room_id, user_id=get_current_user_id(user))


@router.post("")
def submit_vote(
    room_id: str,
    payload: VoteCreate,
    user: Any = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> dict:
    """Cast or update a scored vote for one candidate."""
    service = VoteService(client)
    vote = service.submit(
        voter_id=get_current_user_id(user),
        room_id=room_id,
        candidate_id=payload.candidate_id,
        scores=payload.scores(),
    )
    return {"vote": vote}


@router.post("/reset")
def reset_votes(
    room_id: str,
    user: Any = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> dict:
    """Delete all votes in the room after a tie."""
    service = ElectionService(client)
    return service.reset_votes(requester_id=get_current_user_id(user), room_id=room_id)
