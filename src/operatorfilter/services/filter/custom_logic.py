"""Custom-logic probing for collections outside the registry scheme.

Some collections validate transfers themselves, either through an explicit
whitelist accessor (ERC721-C ``getWhitelistedOperators``) or through a
delegated registry (``registry()`` + ``isAllowedOperator``). Callers do not
know which one a collection implements, so the protocols are attempted in
order and the first BLOCKED verdict wins.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

import structlog

from operatorfilter.constants.filter import (
    ALLOWED_FLAG,
    BLOCKED_FLAG,
    CUSTOM_LOGIC_CACHE_PREFIX,
    CUSTOM_LOGIC_CACHE_TTL_SECONDS,
    CUSTOM_LOGIC_TRANSIENT_TTL_SECONDS,
)
from operatorfilter.core.address import serialize_operators
from operatorfilter.services.cache.fast_cache import FastCache
from operatorfilter.services.chain.contract_reader import CallFailed, ContractReader
from operatorfilter.services.chain.interfaces import (
    CUSTOM_LOGIC_COLLECTION,
    OPERATOR_ALLOW_REGISTRY,
)

log = structlog.get_logger(__name__)

ZERO_ADDRESS = "0x" + "0" * 40


class ProbeProtocol(str, Enum):
    """On-chain protocols a collection may use to restrict operators."""

    WHITELIST_FUNCTION = "whitelist-function"
    REGISTRY_INDIRECTION = "registry-indirection"


class Evidence(str, Enum):
    """Tri-state answer of a single protocol attempt."""

    BLOCKED = "blocked"
    NOT_BLOCKED = "not_blocked"
    NO_EVIDENCE = "no_evidence"


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of one protocol attempt.

    Attributes:
        evidence: What the attempt established.
        transient: True when no evidence was produced because of a
            failure that could succeed on retry (transport, node error).
    """

    evidence: Evidence
    transient: bool = False

    @classmethod
    def from_failure(cls, failure: CallFailed) -> "ProbeOutcome":
        return cls(Evidence.NO_EVIDENCE, transient=failure.kind.is_transient)


def custom_logic_cache_key(contract: str, operators: Sequence[str]) -> str:
    return f"{CUSTOM_LOGIC_CACHE_PREFIX}:{contract}:{serialize_operators(list(operators))}"


class CustomLogicProber:
    """Decide whether a collection's own transfer logic blocks any operator.

    Verdicts are cached per exact ``(contract, operators)`` request. A
    negative verdict reached only because a call failed transiently is
    cached for ``transient_ttl_seconds`` instead of the full window.
    Concurrent requests for the same key share one in-flight probe.
    """

    def __init__(
        self,
        reader: ContractReader,
        cache: FastCache,
        ttl_seconds: int = CUSTOM_LOGIC_CACHE_TTL_SECONDS,
        transient_ttl_seconds: int = CUSTOM_LOGIC_TRANSIENT_TTL_SECONDS,
        protocols: Sequence[ProbeProtocol] = (
            ProbeProtocol.WHITELIST_FUNCTION,
            ProbeProtocol.REGISTRY_INDIRECTION,
        ),
    ) -> None:
        self._reader = reader
        self._cache = cache
        self._ttl_seconds = ttl_seconds
        self._transient_ttl_seconds = transient_ttl_seconds
        self._protocols = tuple(protocols)
        self._inflight: dict[str, asyncio.Task[bool]] = {}

    async def is_blocked_by_custom_logic(self, contract: str, operators: Sequence[str]) -> bool:
        """Check whether ``contract`` blocks any of ``operators`` via custom logic."""
        key = custom_logic_cache_key(contract, operators)

        cached = await self._cache.get(key)
        if cached is not None:
            return cached == BLOCKED_FLAG

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._probe_and_cache(key, contract, list(operators)))
            self._inflight[key] = task
            task.add_done_callback(lambda _: self._inflight.pop(key, None))
        return await asyncio.shield(task)

    async def _probe_and_cache(self, key: str, contract: str, operators: list[str]) -> bool:
        log.info("custom_logic_probe_started", contract=contract, operators=operators)

        transient = False
        for protocol in self._protocols:
            outcome = await self._attempt(protocol, contract, operators)
            log.debug(
                "custom_logic_protocol_attempted",
                contract=contract,
                protocol=protocol.value,
                evidence=outcome.evidence.value,
            )
            if outcome.evidence is Evidence.BLOCKED:
                await self._cache.set(key, BLOCKED_FLAG, self._ttl_seconds)
                log.info("custom_logic_blocked", contract=contract, protocol=protocol.value)
                return True
            transient = transient or outcome.transient

        ttl = self._ttl_seconds
        if transient:
            ttl = self._transient_ttl_seconds
            log.warning(
                "custom_logic_transient_negative",
                contract=contract,
                ttl_seconds=ttl,
            )
        await self._cache.set(key, ALLOWED_FLAG, ttl)
        return False

    async def _attempt(
        self, protocol: ProbeProtocol, contract: str, operators: list[str]
    ) -> ProbeOutcome:
        if protocol is ProbeProtocol.WHITELIST_FUNCTION:
            return await self._probe_whitelist(contract, operators)
        return await self._probe_registry(contract, operators)

    async def _probe_whitelist(self, contract: str, operators: list[str]) -> ProbeOutcome:
        result = await self._reader.call(
            contract, CUSTOM_LOGIC_COLLECTION, "getWhitelistedOperators"
        )
        if isinstance(result, CallFailed):
            return ProbeOutcome.from_failure(result)

        whitelist = {op.lower() for op in result.value}
        if any(op not in whitelist for op in operators):
            return ProbeOutcome(Evidence.BLOCKED)
        return ProbeOutcome(Evidence.NOT_BLOCKED)

    async def _probe_registry(self, contract: str, operators: list[str]) -> ProbeOutcome:
        result = await self._reader.call(contract, CUSTOM_LOGIC_COLLECTION, "registry")
        if isinstance(result, CallFailed):
            return ProbeOutcome.from_failure(result)

        registry = str(result.value).lower()
        if registry == ZERO_ADDRESS:
            return ProbeOutcome(Evidence.NO_EVIDENCE)

        checks = await asyncio.gather(
            *(
                self._reader.call(registry, OPERATOR_ALLOW_REGISTRY, "isAllowedOperator", [op])
                for op in operators
            )
        )
        failures = [c for c in checks if isinstance(c, CallFailed)]
        if failures:
            return ProbeOutcome(
                Evidence.NO_EVIDENCE,
                transient=any(f.kind.is_transient for f in failures),
            )

        if any(not c.value for c in checks):
            return ProbeOutcome(Evidence.BLOCKED)
        return ProbeOutcome(Evidence.NOT_BLOCKED)
