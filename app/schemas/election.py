"""LR finalization schemas."""

from pydantic import BaseModel, Field


class FinalizeRequest(BaseModel):
    """Request body for finalizing the LR selection."""

    candidate_id: str = Field(..., min_length=1)
