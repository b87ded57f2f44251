"""Best-effort audit trail writes."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.services.common import SupabaseService
from app.utils.errors import StoreError
from supabase import Client

AUDIT_TABLE = "audit_log"

logger = logging.getLogger(__name__)


class AuditService:
    """Append room actions to ``audit_log``.

    Audit failures never fail the action being audited; they are logged and
    dropped.
    """

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def record(
        self,
        room_id: str,
        user_id: str | None,
        action: str,
        resource_type: str,
        resource_id: str | None = None,
        new_values: dict[str, Any] | None = None,
        old_values: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """Insert one audit entry and return it, or None if the write failed."""
        payload = {
            "room_id": room_id,
            "user_id": user_id,
            "action": action,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "new_values": new_values,
            "old_values": old_values,
        }
        try:
            return self.db.insert_one(AUDIT_TABLE, payload)
        except (StoreError, httpx.HTTPError) as exc:
            logger.warning("Failed to write audit entry %s for room %s: %s", action, room_id, exc)
            return None
