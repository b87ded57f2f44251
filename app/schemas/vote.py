"""LR vote schemas."""

from pydantic import BaseModel, Field


class VoteCreate(BaseModel):
    """Request body for casting or updating a scored vote.

    Scores are range-checked by VoteService, which reports INVALID_SCORE.
    """

    candidate_id: str = Field(..., min_length=1)
    technical_score: float
    experience_score: float
    availability_score: float
    communication_score: float
    leadership_score: float

    def scores(self) -> dict[str, float]:
        return self.model_dump(exclude={"candidate_id"})
