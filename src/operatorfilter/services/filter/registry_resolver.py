"""Registry-derived operator blacklists.

Reads ``filteredOperators(contract)`` from every operator filter registry
deployed on the configured network and unions the results.
"""

import asyncio

import structlog

from operatorfilter.constants.networks import NetworkConfig
from operatorfilter.models.operator import BlacklistResolution
from operatorfilter.services.chain.contract_reader import CallFailed, ContractReader
from operatorfilter.services.chain.interfaces import OPERATOR_FILTER_REGISTRY

log = structlog.get_logger(__name__)


class RegistryBlacklistResolver:
    """Compute the full blacklist of a contract from the filter registries.

    Registries are queried concurrently. A failing registry contributes
    nothing and is reported in ``failed_registries`` so callers can avoid
    persisting a partial result.
    """

    def __init__(self, reader: ContractReader, network: NetworkConfig) -> None:
        self._reader = reader
        self._network = network

    async def resolve_blacklist(self, contract: str) -> BlacklistResolution:
        """Union the filtered operators of every registry for ``contract``."""
        registries = self._network.registries
        results = await asyncio.gather(
            *(
                self._reader.call(
                    address, OPERATOR_FILTER_REGISTRY, "filteredOperators", [contract]
                )
                for address in registries.values()
            )
        )

        operators: list[str] = []
        failed: list[str] = []
        for label, result in zip(registries, results, strict=True):
            if isinstance(result, CallFailed):
                log.warning(
                    "registry_read_failed",
                    registry=label,
                    contract=contract,
                    kind=result.kind.value,
                    reason=result.reason,
                )
                failed.append(label)
                continue
            operators.extend(op.lower() for op in result.value)

        # dict.fromkeys dedupes while keeping first-seen order
        resolution = BlacklistResolution(
            contract=contract,
            operators=list(dict.fromkeys(operators)),
            failed_registries=failed,
        )
        log.debug(
            "registry_blacklist_resolved",
            contract=contract,
            operator_count=len(resolution.operators),
            failed_registries=failed,
        )
        return resolution
