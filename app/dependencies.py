"""FastAPI dependency injection helpers."""

from __future__ import annotations

import threading
import time
from typing import Any

from fastapi import Depends, Header

from app.config import settings
from app.utils.errors import UnauthorizedError
from app.utils.supabase_client import get_auth_client, get_service_client
from supabase import Client

_token_cache: dict[str, tuple[float, Any]] = {}
_cache_lock = threading.Lock()


def _cached_user(token: str) -> Any | None:
    now = time.monotonic()
    with _cache_lock:
        entry = _token_cache.get(token)
        if not entry:
            return None
        expires_at, user = entry
        if expires_at <= now:
            _token_cache.pop(token, None)
            return None
        return user


def _remember_user(token: str, user: Any) -> None:
    ttl_seconds = settings.auth_token_cache_ttl_seconds
    if ttl_seconds <= 0:
        return

    with _cache_lock:
        if len(_token_cache) >= max(1, settings.auth_token_cache_max_entries):
            oldest_token = next(iter(_token_cache))
            _token_cache.pop(oldest_token, None)
        _token_cache[token] = (time.monotonic() + ttl_seconds, user)


def get_current_user(
    authorization: str | None = Header(None),
    auth_client: Client = Depends(get_auth_client),
) -> Any:
    """Extract and validate a Supabase JWT from the Authorization header.

    Raises:
        UnauthorizedError: 401 if the header is missing, malformed, or
            the token cannot be validated.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthorizedError("Missing authorization header")

    token = authorization.split(" ", 1)[1]
    cached_user = _cached_user(token)
    if cached_user is not None:
        return cached_user

    try:
        response = auth_client.auth.get_user(token)
    except Exception as exc:
        raise UnauthorizedError("Invalid or expired token") from exc
    if not response or not response.user:
        raise UnauthorizedError("Invalid token")

    _remember_user(token, response.user)
    return response.user


def get_current_user_id(user: Any) -> str:
    """Extract a stable user id string from the Supabase user object."""
    return str(user.id)


def get_db_client() -> Client:
    """Return the privileged Supabase client used by backend services."""
    return get_service_client()
