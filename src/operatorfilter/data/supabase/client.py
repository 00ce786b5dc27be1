"""Supabase async client with connection management."""

from typing import Any

import structlog
from supabase._async.client import AsyncClient
from supabase._async.client import create_client as create_async_client
from supabase.lib.client_options import AsyncClientOptions
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from operatorfilter.config.settings import get_settings
from operatorfilter.core.exceptions import DatabaseConnectionError

log = structlog.get_logger(__name__)


class SupabaseClient:
    """Async Supabase client wrapper.

    Provides:
    - Connection establishment with retry (``connect``)
    - Single-attempt reconnection for callers on the request path
      (``ensure_connected``)
    - Health checks for the ``/api/health`` endpoint

    Example:
        client = SupabaseClient()
        await client.connect()
        rows = await client.client.table("contracts").select("*").execute()
    """

    def __init__(self) -> None:
        """Initialize SupabaseClient from application settings.

        No connection is opened until ``connect`` or ``ensure_connected``
        is awaited.
        """
        self._client: AsyncClient | None = None
        self._settings = get_settings()

    async def _open(self) -> None:
        """Create the async client once.

        Raises:
            DatabaseConnectionError: If the client cannot be created.
        """
        if self._client is not None:
            return

        try:
            options = AsyncClientOptions(schema=self._settings.postgres_schema)
            self._client = await create_async_client(
                self._settings.supabase_url,
                self._settings.supabase_key.get_secret_value(),
                options=options,
            )
            log.info(
                "supabase_connected",
                url=self._settings.supabase_url,
                schema=self._settings.postgres_schema,
            )
        except Exception as e:
            log.error("supabase_connection_failed", error=str(e))
            raise DatabaseConnectionError(f"Supabase: {e}") from e

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        retry=retry_if_exception_type(DatabaseConnectionError),
        reraise=True,
    )
    async def connect(self) -> None:
        """Establish connection to Supabase.

        Retries up to 3 times with exponential backoff (1s, 2s, 4s max).

        Raises:
            DatabaseConnectionError: If connection fails after retries.
        """
        await self._open()

    async def ensure_connected(self) -> None:
        """Connect if a previous attempt failed, without retrying.

        Used on the request path so a store that was down at startup is
        picked up again once it recovers.

        Raises:
            DatabaseConnectionError: If the single attempt fails.
        """
        if self._client is None:
            await self._open()

    async def disconnect(self) -> None:
        """Close Supabase connection."""
        if self._client is not None:
            self._client = None
            log.info("supabase_disconnected")

    @property
    def client(self) -> AsyncClient:
        """Get the underlying Supabase client.

        Returns:
            The connected AsyncClient.

        Raises:
            DatabaseConnectionError: If not connected.
        """
        if self._client is None:
            raise DatabaseConnectionError("Supabase: Client not connected")
        return self._client

    async def health_check(self) -> dict[str, Any]:
        """Check Supabase connection health.

        Returns:
            Dict with ``status`` and ``healthy`` keys, plus ``error`` when
            the auth round-trip failed.
        """
        if self._client is None:
            return {"status": "disconnected", "healthy": False}

        try:
            await self._client.auth.get_session()
            return {"status": "connected", "healthy": True}
        except Exception as e:
            log.error("supabase_health_check_failed", error=str(e))
            return {"status": "error", "healthy": False, "error": str(e)}


# Singleton instance
_supabase_client: SupabaseClient | None = None


def get_supabase_client_instance() -> SupabaseClient:
    """Get or create the Supabase client singleton without connecting it.

    Returns:
        The shared SupabaseClient, connected or not.
    """
    global _supabase_client
    if _supabase_client is None:
        _supabase_client = SupabaseClient()
    return _supabase_client


async def get_supabase_client() -> SupabaseClient:
    """Get the Supabase client singleton, connecting it if needed.

    The instance stays registered when connecting fails, so health checks
    report it and later ``ensure_connected`` calls can recover it.

    Returns:
        Connected SupabaseClient.

    Raises:
        DatabaseConnectionError: If connection fails after retries.
    """
    client = get_supabase_client_instance()
    await client.connect()
    return client


async def close_supabase_client() -> None:
    """Close and clear Supabase client singleton."""
    global _supabase_client
    if _supabase_client is not None:
        await _supabase_client.disconnect()
        _supabase_client = None
