"""LR finalization endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from app.dependencies import get_current_user, get_current_user_id, get_db_client
from app.schemas.election import FinalizeRequest
from app.services.election_service import ElectionService
from supabase import Client

router = APIRouter()


@router.post("/finalize")
def finalize_selection(
    room_id: str,
    payload: FinalizeRequest,
    user: Any = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> dict:
    """Commit the winning candidate and promote them to LR."""
    service = ElectionService(client)
    selection = service.finalize(
        actor_id=get_current_user_id(user),
        room_id=room_id,
        candidate_id=payload.candidate_id,
    )
    return {
        "success": True,
        "message": "LR selection finalized successfully",
        "data": selection,
    }
