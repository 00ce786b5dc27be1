"""Tests for FilterDecisionEngine and the public entry point."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
import respx

from operatorfilter.constants.networks import BLUR_V2_DELEGATE, NetworkConfig
from operatorfilter.core.exceptions import (
    DatabaseConnectionError,
    ExternalServiceError,
    ValidationError,
)
from operatorfilter.data.supabase import client as supabase_module
from operatorfilter.data.supabase.client import get_supabase_client_instance
from operatorfilter.models.operator import Operator
from operatorfilter.services.chain.contract_reader import ContractReader
from operatorfilter.services.chain.rpc_client import EthRPCClient
from operatorfilter.services.filter.blacklist_service import (
    MarketplaceBlacklistService,
    blacklist_cache_key,
)
from operatorfilter.services.filter.custom_logic import CustomLogicProber
from operatorfilter.services.filter.engine import (
    FilterDecisionEngine,
    check_marketplace_is_filtered,
    check_operators_filtered,
    get_filter_engine,
    reset_filter_engine,
)
from operatorfilter.services.filter.registry_resolver import RegistryBlacklistResolver

OPENSEA = "0x000000000000aaeb6d7670e522a718067333cd4e"
BLUR = "0x9dc5ee2d52d014f8b81d662fa8f4ca525f27cd6b"
CONTRACT = "0x" + "c" * 40
SECONDARY = "0x" + "e" * 40
PINNED = "0x0c86cdc978b7d191f11b36731107e924c699af10"
OP_X = "0x" + "1" * 40
OP_Y = "0x" + "2" * 40
OP_Z = "0x" + "3" * 40

NETWORK = NetworkConfig(chain_id=1, name="mainnet", opensea_registry=OPENSEA, blur_registry=BLUR)


def build_engine(chain, cache, repo, chain_id: int = 1) -> FilterDecisionEngine:
    """Wire an engine over the given fakes."""
    blacklist_service = MarketplaceBlacklistService(
        cache=cache,
        repo=repo,
        resolver=RegistryBlacklistResolver(chain, NETWORK),
    )
    prober = CustomLogicProber(chain, cache)
    return FilterDecisionEngine(chain_id, blacklist_service, prober)


@pytest.fixture
def engine(chain, memory_cache, mock_contract_repo) -> FilterDecisionEngine:
    """Engine over scripted chain, in-memory cache and mock store."""
    return build_engine(chain, memory_cache, mock_contract_repo)


def script_registries(chain, opensea: tuple, blur: tuple) -> None:
    chain.respond(OPENSEA, "filteredOperators", [CONTRACT], value=opensea)
    chain.respond(BLUR, "filteredOperators", [CONTRACT], value=blur)


class TestStaticOverride:
    """Static rules short-circuit without I/O."""

    @pytest.mark.asyncio
    async def test_static_rule_returns_true_without_cache_or_chain(
        self, chain, mock_contract_repo
    ) -> None:
        cache = MagicMock()
        cache.get = AsyncMock(return_value=None)
        cache.set = AsyncMock()
        engine = build_engine(chain, cache, mock_contract_repo)

        assert await engine.is_filtered(PINNED, [OP_X, BLUR_V2_DELEGATE]) is True

        cache.get.assert_not_called()
        cache.set.assert_not_called()
        mock_contract_repo.get_filtered_operators.assert_not_called()
        assert chain.calls == []

    @pytest.mark.asyncio
    async def test_static_rule_ignored_on_other_chain(
        self, chain, memory_cache, mock_contract_repo
    ) -> None:
        engine = build_engine(chain, memory_cache, mock_contract_repo, chain_id=137)

        assert await engine.is_filtered(PINNED, [BLUR_V2_DELEGATE]) is False
        assert chain.calls != []


class TestRegistryPath:
    """Registry blacklist decisions."""

    @pytest.mark.asyncio
    async def test_union_blacklist_filters_operator_from_second_registry(
        self, engine, chain
    ) -> None:
        script_registries(chain, opensea=(OP_X,), blur=(OP_Y, OP_X))

        assert await engine.is_filtered(CONTRACT, [OP_Y]) is True

    @pytest.mark.asyncio
    async def test_uppercase_input_is_normalized(self, engine, chain) -> None:
        script_registries(chain, opensea=("0x" + "A" * 40,), blur=())

        mixed_case_contract = "0x" + "C" * 40

        assert await engine.is_filtered(mixed_case_contract, ["0x" + "A" * 40]) is True

    @pytest.mark.asyncio
    async def test_refresh_runs_one_registry_round_and_overwrites_stores(
        self, engine, chain, memory_cache, mock_contract_repo
    ) -> None:
        await memory_cache.set(blacklist_cache_key(CONTRACT), f'["{OP_Z}"]', 3600)
        script_registries(chain, opensea=(OP_X,), blur=())

        assert await engine.is_filtered(CONTRACT, [OP_Z], refresh=True) is False

        assert chain.count("filteredOperators") == 2
        mock_contract_repo.replace_filtered_operators.assert_awaited_once_with(CONTRACT, [OP_X])
        assert await memory_cache.get(blacklist_cache_key(CONTRACT)) == f'["{OP_X}"]'

    @pytest.mark.asyncio
    async def test_consecutive_calls_are_idempotent_and_hit_cache(self, engine, chain) -> None:
        script_registries(chain, opensea=(OP_X,), blur=())

        first = await engine.is_filtered(CONTRACT, [OP_X, OP_Y])
        second = await engine.is_filtered(CONTRACT, [OP_X, OP_Y])

        assert first is second is True
        assert chain.count("filteredOperators") == 2
        assert chain.count("getWhitelistedOperators") == 1


class TestCustomLogicPath:
    """Custom logic is always consulted and ORed in."""

    @pytest.mark.asyncio
    async def test_custom_logic_blocks_when_registries_are_empty(self, engine, chain) -> None:
        script_registries(chain, opensea=(), blur=())
        chain.respond(CONTRACT, "registry", value=SECONDARY)
        chain.respond(SECONDARY, "isAllowedOperator", [OP_X], value=False)

        assert await engine.is_filtered(CONTRACT, [OP_X]) is True

    @pytest.mark.asyncio
    async def test_custom_logic_consulted_even_when_blacklisted(self, engine, chain) -> None:
        script_registries(chain, opensea=(OP_X,), blur=())

        assert await engine.is_filtered(CONTRACT, [OP_X]) is True
        assert chain.count("getWhitelistedOperators") == 1


class TestNegativeAndFailOpen:
    """Nothing blocks, or every source fails."""

    @pytest.mark.asyncio
    async def test_no_restrictions_anywhere_is_not_filtered(self, engine, chain) -> None:
        script_registries(chain, opensea=(), blur=())

        assert await engine.is_filtered(CONTRACT, [OP_X, OP_Y, OP_Z]) is False

    @pytest.mark.asyncio
    async def test_every_chain_call_failing_is_not_filtered(self, engine, chain) -> None:
        assert await engine.is_filtered(CONTRACT, [OP_X]) is False

    @pytest.mark.asyncio
    async def test_blacklist_service_error_fails_open(self, chain, memory_cache) -> None:
        blacklist_service = MagicMock()
        blacklist_service.get_blacklist = AsyncMock(
            side_effect=ExternalServiceError(service="rpc", message="down")
        )
        engine = FilterDecisionEngine(1, blacklist_service, CustomLogicProber(chain, memory_cache))

        assert await engine.is_filtered(CONTRACT, [OP_X]) is False

    @pytest.mark.asyncio
    async def test_empty_operator_set_is_not_filtered(self, engine, chain) -> None:
        assert await engine.is_filtered(CONTRACT, []) is False
        assert chain.calls == []

    @pytest.mark.asyncio
    async def test_malformed_address_raises_validation_error(self, engine) -> None:
        with pytest.raises(ValidationError):
            await engine.is_filtered("0x1234", [OP_X])


class TestEntryPoint:
    """Tests for the module-level entry points."""

    @pytest.mark.asyncio
    async def test_check_marketplace_is_filtered_delegates_to_engine(self) -> None:
        engine = MagicMock()
        engine.is_filtered = AsyncMock(return_value=True)

        with patch(
            "operatorfilter.services.filter.engine.get_filter_engine",
            AsyncMock(return_value=engine),
        ):
            result = await check_marketplace_is_filtered(CONTRACT, [OP_X], refresh=True)

        assert result is True
        engine.is_filtered.assert_awaited_once_with(CONTRACT, [OP_X], refresh=True)

    @pytest.mark.asyncio
    async def test_check_operators_filtered_extracts_addresses(self) -> None:
        engine = MagicMock()
        engine.is_filtered = AsyncMock(return_value=False)
        operators = [
            Operator(address=OP_X, marketplace="seaport-v1.5"),
            Operator(address=OP_Y, marketplace="blur-v2"),
        ]

        with patch(
            "operatorfilter.services.filter.engine.get_filter_engine",
            AsyncMock(return_value=engine),
        ):
            assert await check_operators_filtered(CONTRACT, operators) is False

        engine.is_filtered.assert_awaited_once_with(CONTRACT, [OP_X, OP_Y], refresh=False)


class TestMalformedNodeReplies:
    """Garbage from the chain endpoint fails open instead of raising."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            [{"jsonrpc": "2.0", "id": 1, "result": "0x"}],
            {"jsonrpc": "2.0", "id": 1, "result": "0x0"},
        ],
    )
    async def test_is_filtered_resolves_to_false(
        self, body, memory_cache, mock_contract_repo
    ) -> None:
        """
        Given: A node that answers every eth_call with an unusable body
        When: is_filtered runs against the real RPC client
        Then: The verdict is False and nothing is persisted
        """
        rpc = EthRPCClient(rpc_url="http://localhost:8545")
        engine = build_engine(ContractReader(rpc), memory_cache, mock_contract_repo)

        with respx.mock() as mock:
            mock.post(url__startswith="http://localhost:8545").mock(
                return_value=httpx.Response(200, json=body)
            )

            assert await engine.is_filtered(CONTRACT, [OP_X]) is False

        mock_contract_repo.replace_filtered_operators.assert_not_called()
        await rpc.close()


class TestEngineWiring:
    """Tests for get_filter_engine()."""

    @pytest.fixture(autouse=True)
    def reset_singletons(self):
        reset_filter_engine()
        supabase_module._supabase_client = None
        yield
        reset_filter_engine()
        supabase_module._supabase_client = None

    @pytest.mark.asyncio
    async def test_store_down_at_startup_uses_shared_reconnecting_client(
        self, memory_cache
    ) -> None:
        with (
            patch("operatorfilter.services.filter.engine.get_rpc_client", AsyncMock()),
            patch(
                "operatorfilter.services.filter.engine.get_fast_cache",
                AsyncMock(return_value=memory_cache),
            ),
            patch(
                "operatorfilter.data.supabase.client.SupabaseClient.connect",
                new_callable=AsyncMock,
                side_effect=DatabaseConnectionError("Supabase: down"),
            ),
        ):
            engine = await get_filter_engine()

        assert engine._blacklist._repo._client is get_supabase_client_instance()
