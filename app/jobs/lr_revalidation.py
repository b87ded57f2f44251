"""Periodic revalidation of finalized LR selections."""

from __future__ import annotations

import logging

from app.services.election_service import ElectionService
from app.utils.supabase_client import get_service_client

logger = logging.getLogger(__name__)


async def revalidate_finalized_rooms() -> None:
    """Clear selections whose turnout or tie conditions no longer hold."""
    client = get_service_client()
    reverted = ElectionService(client).revalidate_selected_rooms()
    logger.info("revalidate_finalized_rooms completed, %s selections reverted", reverted)
