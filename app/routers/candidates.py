"""LR candidate endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from app.dependencies import get_current_user, get_current_user_id, get_db_client
from app.schemas.candidate import CandidateCreate
from app.services.candidate_service import CandidateService
from supabase import Client

router = APIRouter()


@router.get("")
def list_candidates(
    room_id: str,
    user: Any = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> dict:
    """List a room's LR candidates in nomination order."""
    service = CandidateService(client)
    candidates = service.list_candidates(room_id)
    return {"items": candidates, "total": len(candidates)}


@router.post("")
def nominate_candidate(
    room_id: str,
    payload: CandidateCreate,
    user: Any = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> dict:
    """Nominate a room member as LR candidate."""
    service = CandidateService(client)
    candidate = service.nominate(
        nominator_id=get_current_user_id(user),
        room_id=room_id,
        user_id=payload.user_id,
    )
    return {"candidate": candidate}


@router.delete("/{candidate_id}")
def remove_candidate(
    room_id: str,
    candidate_id: str,
    user: Any = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> dict:
    """Withdraw a candidate that has not been selected."""
    service = CandidateService(client)
    service.remove(
        requester_id=get_current_user_id(user),
        room_id=room_id,
        candidate_id=candidate_id,
    )
    return {"success": True}
