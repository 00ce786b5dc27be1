"""Operator filter decision engine.

Public entry point answering "is contract C filtered against operators O?".
A request is filtered when a static override matches, when any operator
is in the contract's registry blacklist, or when the contract's own
transfer logic blocks one of them. Infrastructure failures on either
path count as "no evidence of blocking".
"""

from collections.abc import Sequence

import structlog

from operatorfilter.config.settings import get_settings
from operatorfilter.constants.networks import get_network_config
from operatorfilter.core.address import normalize_address, normalize_addresses
from operatorfilter.core.exceptions import DatabaseConnectionError, OperatorFilterError
from operatorfilter.data.supabase.client import (
    get_supabase_client,
    get_supabase_client_instance,
)
from operatorfilter.data.supabase.repositories.contract_repo import ContractRepository
from operatorfilter.models.operator import BlacklistResolution, Operator
from operatorfilter.services.cache.fast_cache import get_fast_cache
from operatorfilter.services.chain.contract_reader import ContractReader
from operatorfilter.services.chain.rpc_client import get_rpc_client
from operatorfilter.services.filter.blacklist_service import MarketplaceBlacklistService
from operatorfilter.services.filter.custom_logic import CustomLogicProber
from operatorfilter.services.filter.registry_resolver import RegistryBlacklistResolver
from operatorfilter.services.filter.static_rules import (
    STATIC_RULES,
    StaticRule,
    matches_static_rule,
)

log = structlog.get_logger(__name__)


class FilterDecisionEngine:
    """Combine static overrides, registry blacklists and custom logic.

    Example:
        engine = await get_filter_engine()
        filtered = await engine.is_filtered("0xabc...", ["0xdef..."])
    """

    def __init__(
        self,
        chain_id: int,
        blacklist_service: MarketplaceBlacklistService,
        prober: CustomLogicProber,
        rules: Sequence[StaticRule] = STATIC_RULES,
    ) -> None:
        self.chain_id = chain_id
        self._blacklist = blacklist_service
        self._prober = prober
        self._rules = tuple(rules)

    async def is_filtered(
        self,
        contract: str,
        operators: Sequence[str],
        refresh: bool = False,
    ) -> bool:
        """Check whether ``contract`` filters any of ``operators``.

        Args:
            contract: Collection address.
            operators: Operator addresses checked together.
            refresh: Recompute the registry blacklist before deciding.

        Returns:
            True if any operator is filtered.

        Raises:
            ValidationError: If an address is malformed.
        """
        contract = normalize_address(contract)
        ops = normalize_addresses(operators)
        if not ops:
            return False

        rule = matches_static_rule(self.chain_id, contract, ops, self._rules)
        if rule is not None:
            log.info("operator_filter_static_rule", contract=contract, note=rule.note)
            return True

        blacklist = await self._registry_blacklist(contract, refresh)

        if await self._custom_logic_blocks(contract, ops):
            return True

        return any(op in blacklist for op in ops)

    async def refresh_blacklist(self, contract: str) -> BlacklistResolution:
        """Force a registry round for ``contract`` and overwrite cached copies."""
        return await self._blacklist.refresh_blacklist(normalize_address(contract))

    async def _registry_blacklist(self, contract: str, refresh: bool) -> set[str]:
        try:
            return set(await self._blacklist.get_blacklist(contract, refresh=refresh))
        except OperatorFilterError as e:
            log.warning("registry_blacklist_unavailable", contract=contract, error=str(e))
            return set()

    async def _custom_logic_blocks(self, contract: str, operators: list[str]) -> bool:
        try:
            return await self._prober.is_blocked_by_custom_logic(contract, operators)
        except OperatorFilterError as e:
            log.warning("custom_logic_unavailable", contract=contract, error=str(e))
            return False


# Singleton instance
_filter_engine: FilterDecisionEngine | None = None


async def get_filter_engine() -> FilterDecisionEngine:
    """Get or create the engine singleton wired to the configured backends."""
    global _filter_engine
    if _filter_engine is None:
        settings = get_settings()
        network = get_network_config(settings.chain_id, settings)

        reader = ContractReader(await get_rpc_client())
        cache = await get_fast_cache()

        try:
            supabase = await get_supabase_client()
        except DatabaseConnectionError as e:
            # The repository reconnects on its next call
            log.warning("supabase_connection_deferred", error=str(e))
            supabase = get_supabase_client_instance()

        blacklist_service = MarketplaceBlacklistService(
            cache=cache,
            repo=ContractRepository(supabase),
            resolver=RegistryBlacklistResolver(reader, network),
            ttl_seconds=settings.blacklist_cache_ttl_seconds,
        )
        prober = CustomLogicProber(
            reader,
            cache,
            ttl_seconds=settings.custom_logic_cache_ttl_seconds,
            transient_ttl_seconds=settings.custom_logic_transient_ttl_seconds,
        )
        _filter_engine = FilterDecisionEngine(settings.chain_id, blacklist_service, prober)
        log.info("filter_engine_initialized", chain_id=settings.chain_id, network=network.name)
    return _filter_engine


def reset_filter_engine() -> None:
    """Drop the engine singleton (clients are closed separately)."""
    global _filter_engine
    _filter_engine = None


async def check_marketplace_is_filtered(
    contract: str,
    operators: Sequence[str],
    refresh: bool = False,
) -> bool:
    """Check whether a collection filters any of the given marketplace operators."""
    engine = await get_filter_engine()
    return await engine.is_filtered(contract, operators, refresh=refresh)


async def check_operators_filtered(
    contract: str,
    operators: Sequence[Operator],
    refresh: bool = False,
) -> bool:
    """``check_marketplace_is_filtered`` for labelled ``Operator`` models."""
    return await check_marketplace_is_filtered(
        contract, [op.address for op in operators], refresh=refresh
    )
