"""API router package."""

from app.routers import candidates, lr, votes

__all__ = [
    "candidates",
    "lr",
    "votes",
]
