"""Shared Supabase data access helpers."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable
from typing import Any

from postgrest import APIError

from app.config import settings
from app.utils.errors import NotFoundError, StoreError
from supabase import Client

MEMBER_TABLE = "mbdf_member"
PROFILE_TABLE = "profiles"
ROLE_PRIORITY = {"admin": 0, "lr": 1, "member": 2}

logger = logging.getLogger(__name__)
_NOT_A_MEMBER = ""
_role_cache: dict[tuple[str, str], tuple[float, str]] = {}
_profile_cache: dict[str, tuple[float, dict[str, Any]]] = {}
_cache_lock = threading.Lock()


def _cache_get(cache: dict[Any, tuple[float, Any]], key: Any) -> Any | None:
    now = time.monotonic()
    with _cache_lock:
        entry = cache.get(key)
        if not entry:
            return None
        expires_at, value = entry
        if expires_at <= now:
            cache.pop(key, None)
            return None
        return value


def _cache_set(
    cache: dict[Any, tuple[float, Any]],
    key: Any,
    value: Any,
    ttl_seconds: int,
) -> None:
    if ttl_seconds <= 0:
        return

    with _cache_lock:
        max_entries = max(100, settings.data_cache_max_entries)
        if len(cache) >= max_entries:
            oldest_key = next(iter(cache))
            cache.pop(oldest_key, None)
        cache[key] = (time.monotonic() + ttl_seconds, value)


def _cache_drop(cache: dict[Any, tuple[float, Any]], key: Any) -> None:
    with _cache_lock:
        cache.pop(key, None)


class SupabaseService:
    """Thin helper wrapper around a Supabase client."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def execute(self, query, default: Any = None) -> Any:
        """Execute a Supabase query and normalize API errors."""
        started = time.perf_counter()
        try:
            response = query.execute()
        except APIError as exc:
            message = getattr(exc, "message", None) or "Database request failed"
            raise StoreError(str(message), db_code=getattr(exc, "code", None)) from exc

        elapsed_ms = (time.perf_counter() - started) * 1000
        threshold_ms = settings.slow_query_log_threshold_ms
        if threshold_ms > 0 and elapsed_ms >= threshold_ms:
            logger.warning("Slow Supabase query %.1fms", elapsed_ms)
        data = response.data
        return default if data is None and default is not None else data

    def select_many(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        columns: str = "*",
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Select many rows from a table with optional filters."""
        query = self.client.table(table).select(columns)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit:
            query = query.limit(limit)
        return self.execute(query, default=[])

    def select_one(
        self,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
        not_found_label: str | None = None,
    ) -> dict[str, Any]:
        """Select a single row and raise NotFoundError when missing."""
        rows = self.select_many(table, filters, columns=columns, limit=1)
        if not rows:
            raise NotFoundError(not_found_label or table)
        return rows[0]

    def count(self, table: str, filters: dict[str, Any] | None = None) -> int:
        """Count rows in a table with optional equality filters."""
        query = self.client.table(table).select("*", count="exact", head=True)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        try:
            response = query.execute()
        except APIError as exc:
            message = getattr(exc, "message", None) or "Database request failed"
            raise StoreError(str(message), db_code=getattr(exc, "code", None)) from exc
        return response.count or 0

    def insert_one(self, table: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return the created object."""
        rows = self.execute(self.client.table(table).insert(payload), default=[])
        if not rows:
            raise StoreError(f"Failed to insert into {table}")
        return rows[0]

    def upsert_one(
        self,
        table: str,
        payload: dict[str, Any],
        on_conflict: str,
    ) -> dict[str, Any]:
        """Insert or overwrite one row keyed by ``on_conflict`` columns."""
        rows = self.execute(
            self.client.table(table).upsert(payload, on_conflict=on_conflict),
            default=[],
        )
        if not rows:
            raise StoreError(f"Failed to upsert into {table}")
        return rows[0]

    def update(
        self,
        table: str,
        filters: dict[str, Any],
        payload: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """Update rows by equality filters and return the updated rows."""
        query = self.client.table(table).update(payload)
        for key, value in filters.items():
            query = query.eq(key, value)
        return self.execute(query, default=[])

    def delete(self, table: str, filters: dict[str, Any]) -> list[dict[str, Any]]:
        """Delete rows by equality filters and return removed rows."""
        query = self.client.table(table).delete()
        for key, value in filters.items():
            query = query.eq(key, value)
        return self.execute(query, default=[])

    def rpc(self, function: str, params: dict[str, Any]) -> Any:
        """Call a Postgres function exposed through PostgREST."""
        return self.execute(self.client.rpc(function, params), default=[])

    def get_member_role(self, user_id: str, room_id: str) -> str | None:
        """Return the user's role in a room, or None for non-members."""
        cache_key = (str(user_id), str(room_id))
        cached_role = _cache_get(_role_cache, cache_key)
        if cached_role is not None:
            return cached_role or None

        rows = self.select_many(
            MEMBER_TABLE,
            filters={"room_id": room_id, "user_id": user_id},
            columns="role",
        )
        roles = sorted((row["role"] for row in rows), key=lambda value: ROLE_PRIORITY.get(value, 99))
        role = roles[0] if roles else None
        _cache_set(
            _role_cache,
            cache_key,
            role or _NOT_A_MEMBER,
            settings.membership_cache_ttl_seconds,
        )
        return role

    def list_member_ids(self, room_id: str) -> set[str]:
        """Return ids of every current member of a room."""
        rows = self.select_many(MEMBER_TABLE, filters={"room_id": room_id}, columns="user_id")
        return {str(row["user_id"]) for row in rows}

    def get_profiles_map(self, user_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        """Fetch display profiles and return an id-keyed mapping."""
        ids = sorted({str(uid) for uid in user_ids})
        if not ids:
            return {}

        result: dict[str, dict[str, Any]] = {}
        missing_ids: list[str] = []
        for user_id in ids:
            cached_profile = _cache_get(_profile_cache, user_id)
            if cached_profile is None:
                missing_ids.append(user_id)
                continue
            result[user_id] = dict(cached_profile)

        if missing_ids:
            rows = self.execute(
                self.client.table(PROFILE_TABLE)
                .select("id,full_name,email")
                .in_("id", missing_ids),
                default=[],
            )
            for row in rows:
                profile_key = str(row["id"])
                result[profile_key] = dict(row)
                _cache_set(
                    _profile_cache,
                    profile_key,
                    dict(row),
                    settings.profile_cache_ttl_seconds,
                )

        return result


def forget_member_role(user_id: str, room_id: str) -> None:
    """Invalidate a cached role lookup after a membership change."""
    _cache_drop(_role_cache, (str(user_id), str(room_id)))


def map_profiles_on_field(
    rows: list[dict[str, Any]],
    profiles: dict[str, dict[str, Any]],
    user_key: str = "user_id",
    out_key: str = "profile",
) -> list[dict[str, Any]]:
    """Attach profile records to rows based on ``user_key``."""
    enriched: list[dict[str, Any]] = []
    for row in rows:
        payload = dict(row)
        payload[out_key] = profiles.get(str(row[user_key]))
        enriched.append(payload)
    return enriched

