"""Contract repository for Supabase.

Durable store of the registry-derived operator blacklist, one row per
collection address.

Table schema expected:
    contracts (
        address BYTEA PRIMARY KEY,
        filtered_operators JSONB,
        updated_at TIMESTAMPTZ DEFAULT NOW()
    )
"""

from datetime import UTC, datetime

import structlog

from operatorfilter.constants.filter import CONTRACTS_TABLE
from operatorfilter.core.address import to_bytea
from operatorfilter.data.supabase.client import SupabaseClient

log = structlog.get_logger(__name__)


class ContractRepository:
    """Repository for the ``filtered_operators`` column of the contracts table.

    Rows are replaced wholesale on refresh, never merged.

    Example:
        client = await get_supabase_client()
        repo = ContractRepository(client)
        operators = await repo.get_filtered_operators("0xabc...")
    """

    TABLE_NAME = CONTRACTS_TABLE

    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    async def get_filtered_operators(self, contract: str) -> list[str] | None:
        """Get the stored blacklist for a contract.

        Args:
            contract: Normalized collection address.

        Returns:
            Stored operator list, or None when no row/value exists or the
            store is unavailable.
        """
        try:
            await self._client.ensure_connected()
            result = await (
                self._client.client.table(self.TABLE_NAME)
                .select("filtered_operators")
                .eq("address", to_bytea(contract))
                .maybe_single()
                .execute()
            )
        except Exception as e:
            log.warning(
                "contract_filtered_operators_get_failed",
                contract=contract,
                error=str(e),
            )
            return None

        # maybe_single() returns None instead of a response when no row matches
        row = result.data if result is not None else None
        if not row or row.get("filtered_operators") is None:
            return None
        return [str(op).lower() for op in row["filtered_operators"]]

    async def replace_filtered_operators(self, contract: str, operators: list[str]) -> bool:
        """Overwrite the stored blacklist for a contract.

        Args:
            contract: Normalized collection address.
            operators: Full replacement operator list.

        Returns:
            True when the write succeeded.
        """
        record = {
            "address": to_bytea(contract),
            "filtered_operators": operators,
            "updated_at": datetime.now(UTC).isoformat(),
        }
        try:
            await self._client.ensure_connected()
            await (
                self._client.client.table(self.TABLE_NAME)
                .upsert(record, on_conflict="address")
                .execute()
            )
        except Exception as e:
            log.error(
                "contract_filtered_operators_replace_failed",
                contract=contract,
                error=str(e),
            )
            return False

        log.info(
            "contract_filtered_operators_replaced",
            contract=contract,
            operator_count=len(operators),
        )
        return True
