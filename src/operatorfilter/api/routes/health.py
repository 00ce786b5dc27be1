"""Health check endpoint with store and cache status."""

from typing import Any

from fastapi import APIRouter

from operatorfilter.api.dependencies import SettingsDep

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(settings: SettingsDep) -> dict[str, Any]:
    """
    Health check endpoint with Supabase and fast cache status.

    Returns:
        dict with overall status, version, chain id and backend health.
    """
    supabase_health = await _get_supabase_health()
    cache_health = await _get_cache_health()

    all_healthy = supabase_health["healthy"] and cache_health["healthy"]

    return {
        "status": "ok" if all_healthy else "degraded",
        "version": settings.app_version,
        "chain_id": settings.chain_id,
        "backends": {
            "supabase": supabase_health,
            "cache": cache_health,
        },
    }


async def _get_supabase_health() -> dict[str, Any]:
    # Late import to read the current singleton
    import operatorfilter.data.supabase.client as supabase_module  # noqa: PLC0415

    client = supabase_module._supabase_client
    if client is None:
        return {"status": "disconnected", "healthy": False}
    return await client.health_check()


async def _get_cache_health() -> dict[str, Any]:
    import operatorfilter.services.cache.fast_cache as cache_module  # noqa: PLC0415

    cache = cache_module._fast_cache
    if cache is None:
        return {"status": "disconnected", "healthy": False}
    return await cache.health_check()
