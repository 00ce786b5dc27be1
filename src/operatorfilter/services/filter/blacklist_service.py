"""Read-through access to registry blacklists.

Lookup order: fast cache, durable store, registry resolver. A resolver
round populates both stores; an explicit refresh always resolves and
overwrites them.
"""

import json

import structlog

from operatorfilter.constants.filter import BLACKLIST_CACHE_PREFIX, BLACKLIST_CACHE_TTL_SECONDS
from operatorfilter.data.supabase.repositories.contract_repo import ContractRepository
from operatorfilter.models.operator import BlacklistResolution
from operatorfilter.services.cache.fast_cache import FastCache
from operatorfilter.services.filter.registry_resolver import RegistryBlacklistResolver

log = structlog.get_logger(__name__)


def blacklist_cache_key(contract: str) -> str:
    return f"{BLACKLIST_CACHE_PREFIX}:{contract}"


class MarketplaceBlacklistService:
    """Cache/store plumbing around ``RegistryBlacklistResolver``."""

    def __init__(
        self,
        cache: FastCache,
        repo: ContractRepository,
        resolver: RegistryBlacklistResolver,
        ttl_seconds: int = BLACKLIST_CACHE_TTL_SECONDS,
    ) -> None:
        self._cache = cache
        self._repo = repo
        self._resolver = resolver
        self._ttl_seconds = ttl_seconds

    async def get_blacklist(self, contract: str, refresh: bool = False) -> list[str]:
        """Get the operators a contract filters through the registries.

        Args:
            contract: Normalized collection address.
            refresh: Force a registry round and overwrite both stores.

        Returns:
            Lowercased operator addresses.
        """
        if refresh:
            return (await self.refresh_blacklist(contract)).operators

        key = blacklist_cache_key(contract)
        cached = await self._cache.get(key)
        if cached is not None:
            try:
                operators: list[str] = json.loads(cached)
                log.debug("blacklist_cache_hit", contract=contract)
                return operators
            except ValueError:
                log.warning("blacklist_cache_corrupt", contract=contract)

        stored = await self._repo.get_filtered_operators(contract)
        if stored is not None:
            log.debug("blacklist_store_hit", contract=contract)
            await self._cache.set(key, json.dumps(stored), self._ttl_seconds)
            return stored

        return (await self.refresh_blacklist(contract)).operators

    async def refresh_blacklist(self, contract: str) -> BlacklistResolution:
        """Resolve the blacklist on-chain and overwrite the store and cache.

        Partial results (a registry failed) are returned but not persisted.
        """
        resolution = await self._resolver.resolve_blacklist(contract)
        if not resolution.complete:
            log.warning(
                "blacklist_partial_not_persisted",
                contract=contract,
                failed_registries=resolution.failed_registries,
            )
            return resolution

        await self._repo.replace_filtered_operators(contract, resolution.operators)
        await self._cache.set(
            blacklist_cache_key(contract),
            json.dumps(resolution.operators),
            self._ttl_seconds,
        )
        log.info(
            "blacklist_refreshed",
            contract=contract,
            operator_count=len(resolution.operators),
        )
        return resolution
