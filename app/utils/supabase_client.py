"""Supabase client singletons.

The anon client only validates user JWTs. Every table read and write goes
through the service-role client; room-level authorization is enforced by
the services in ``app.services`` rather than by row-level security.
"""

from functools import lru_cache

import httpx
from supabase.lib.client_options import SyncClientOptions

from app.config import settings
from supabase import Client, create_client


def _http_timeout_seconds() -> int:
    return max(1, settings.supabase_postgrest_timeout_seconds)


def _build_http_client() -> httpx.Client:
    max_connections = max(10, settings.supabase_http_max_connections)
    keepalive = max(5, min(max_connections, settings.supabase_http_max_keepalive_connections))
    return httpx.Client(
        timeout=httpx.Timeout(_http_timeout_seconds()),
        limits=httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=keepalive,
        ),
    )


def _create(api_key: str) -> Client:
    timeout_seconds = _http_timeout_seconds()
    options = SyncClientOptions(
        auto_refresh_token=False,
        persist_session=False,
        postgrest_client_timeout=timeout_seconds,
        storage_client_timeout=timeout_seconds,
        function_client_timeout=min(timeout_seconds, 30),
        httpx_client=_build_http_client(),
    )
    return create_client(settings.supabase_url, api_key, options=options)


@lru_cache(maxsize=1)
def get_auth_client() -> Client:
    """Return the anon-key client used to resolve bearer tokens."""
    return _create(settings.supabase_anon_key)


@lru_cache(maxsize=1)
def get_service_client() -> Client:
    """Return the service-role client (bypasses RLS)."""
    return _create(settings.supabase_service_key)
