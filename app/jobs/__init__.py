"""Background job modules for periodic LR election upkeep."""

from app.jobs.lr_revalidation import revalidate_finalized_rooms

__all__ = ["revalidate_finalized_rooms"]
