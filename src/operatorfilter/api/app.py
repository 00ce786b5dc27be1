"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from operatorfilter.api.routes import health, operator_filter
from operatorfilter.config.logging import configure_logging
from operatorfilter.config.settings import get_settings
from operatorfilter.data.supabase.client import close_supabase_client
from operatorfilter.services.cache.fast_cache import close_fast_cache
from operatorfilter.services.chain.rpc_client import close_rpc_client
from operatorfilter.services.filter.engine import get_filter_engine, reset_filter_engine

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    configure_logging()
    log.info("application_starting")

    try:
        await get_filter_engine()
    except Exception as e:
        log.warning("filter_engine_start_skipped", error=str(e))

    log.info("application_started")

    yield

    log.info("application_stopping")
    reset_filter_engine()
    await close_rpc_client()
    await close_fast_cache()
    await close_supabase_client()
    log.info("application_stopped")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Marketplace operator filter checks for NFT collections",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.include_router(health.router, prefix="/api")
    app.include_router(operator_filter.router, prefix="/api")

    return app
