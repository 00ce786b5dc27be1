"""Shared pytest fixtures for operator filter tests.

This module provides fixtures for:
- Test environment variables
- An in-memory fast cache
- A scripted contract reader that records every on-chain call

Usage:
    @pytest.mark.asyncio
    async def test_something(chain):
        chain.respond(REGISTRY, "filteredOperators", [CONTRACT], value=[OPERATOR])
"""

import os
from collections.abc import Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from operatorfilter.core.exceptions import CallFailureKind
from operatorfilter.services.cache.fast_cache import MemoryFastCache
from operatorfilter.services.chain.contract_reader import (
    CallFailed,
    CallOk,
    CallResult,
    ContractInterface,
)

# =============================================================================
# Environment Configuration
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> Generator[None, None, None]:
    """Set required environment variables for settings."""
    original_env = os.environ.copy()

    os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
    os.environ.setdefault("SUPABASE_KEY", "test-key")
    os.environ.setdefault("ETH_RPC_URL", "http://localhost:8545")
    os.environ.setdefault("CHAIN_ID", "1")

    yield

    os.environ.clear()
    os.environ.update(original_env)


# =============================================================================
# Fakes
# =============================================================================


class ScriptedContractReader:
    """Contract reader answering from a response table.

    Unscripted calls fail as reverts, the way a missing function does.
    """

    def __init__(self) -> None:
        self.responses: dict[tuple[str, str, tuple[Any, ...]], CallResult] = {}
        self.calls: list[tuple[str, str, tuple[Any, ...]]] = []

    @staticmethod
    def _key(
        address: str, function_name: str, args: list[Any] | None
    ) -> tuple[str, str, tuple[Any, ...]]:
        normalized = tuple(a.lower() if isinstance(a, str) else a for a in (args or []))
        return (address.lower(), function_name, normalized)

    def respond(
        self,
        address: str,
        function_name: str,
        args: list[Any] | None = None,
        *,
        value: Any = None,
        failure: CallFailureKind | None = None,
    ) -> None:
        result: CallResult = (
            CallFailed(kind=failure, reason=f"scripted {failure.value}")
            if failure is not None
            else CallOk(value=value)
        )
        self.responses[self._key(address, function_name, args)] = result

    async def call(
        self,
        address: str,
        interface: ContractInterface,
        function_name: str,
        args: list[Any] | None = None,
    ) -> CallResult:
        key = self._key(address, function_name, args)
        self.calls.append(key)
        return self.responses.get(
            key, CallFailed(kind=CallFailureKind.REVERTED, reason="execution reverted")
        )

    def count(self, function_name: str) -> int:
        return sum(1 for _, name, _ in self.calls if name == function_name)


@pytest.fixture
def chain() -> ScriptedContractReader:
    """Scripted on-chain reads."""
    return ScriptedContractReader()


@pytest.fixture
def memory_cache() -> MemoryFastCache:
    """Fresh in-process fast cache."""
    return MemoryFastCache()


@pytest.fixture
def mock_contract_repo() -> MagicMock:
    """Mock ContractRepository with an empty store."""
    repo = MagicMock()
    repo.get_filtered_operators = AsyncMock(return_value=None)
    repo.replace_filtered_operators = AsyncMock(return_value=True)
    return repo
