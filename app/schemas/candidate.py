"""LR candidate schemas."""

from pydantic import BaseModel, Field


class CandidateCreate(BaseModel):
    """Request body for nominating a candidate."""

    user_id: str = Field(..., min_length=1)
