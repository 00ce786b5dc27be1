"""EVM JSON-RPC client for read-only contract calls.

The client extends BaseAPIClient to inherit:
- Automatic retry with exponential backoff
- Circuit breaker pattern for failure protection
- Proper resource cleanup
"""

from itertools import count

import structlog

from operatorfilter.config.settings import get_settings
from operatorfilter.core.exceptions import (
    CallFailureKind,
    ChainCallError,
    CircuitBreakerOpenError,
    ExternalServiceError,
)
from operatorfilter.services.base import BaseAPIClient

log = structlog.get_logger(__name__)

# JSON-RPC error code geth/erigon/anvil use for "execution reverted"
_REVERT_ERROR_CODE = 3


def _is_revert(error: dict) -> bool:
    message = str(error.get("message", "")).lower()
    return error.get("code") == _REVERT_ERROR_CODE or "revert" in message


class EthRPCClient(BaseAPIClient):
    """Client for ``eth_call`` against the configured chain endpoint.

    Example:
        client = EthRPCClient()
        data = await client.eth_call("0x0000...", "0x...")
        await client.close()
    """

    def __init__(self, rpc_url: str | None = None) -> None:
        settings = get_settings()
        url = rpc_url or settings.eth_rpc_url
        super().__init__(
            base_url=url,
            timeout=settings.rpc_timeout_seconds,
            headers={"Content-Type": "application/json"},
            circuit_breaker_threshold=settings.circuit_breaker_threshold,
            circuit_breaker_cooldown=settings.circuit_breaker_cooldown,
        )
        self._ids = count(1)
        log.debug("eth_rpc_client_initialized", base_url=url)

    async def eth_call(self, to: str, data: str, block: str = "latest") -> bytes:
        """Execute a read-only call and return the raw return data.

        Args:
            to: Contract address.
            data: 0x-prefixed calldata (selector + encoded arguments).
            block: Block tag to execute against.

        Returns:
            Raw bytes returned by the call (possibly empty).

        Raises:
            ChainCallError: If the call reverted, the node returned an
                error, or the transport failed after retries.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": "eth_call",
            "params": [{"to": to, "data": data}, block],
        }

        try:
            response = await self.post("", json=payload)
            body = response.json()
        except (ExternalServiceError, CircuitBreakerOpenError) as e:
            status_code = getattr(e, "status_code", None)
            kind = (
                CallFailureKind.RPC_ERROR
                if status_code is not None and 400 <= status_code < 500
                else CallFailureKind.TRANSPORT
            )
            log.warning("eth_call_transport_failed", to=to, error=str(e))
            raise ChainCallError(str(e), kind=kind, address=to) from e
        except ValueError as e:
            raise ChainCallError(
                f"Invalid JSON-RPC response: {e}",
                kind=CallFailureKind.RPC_ERROR,
                address=to,
            ) from e

        if not isinstance(body, dict):
            raise ChainCallError(
                f"Unexpected JSON-RPC response: {body!r}",
                kind=CallFailureKind.RPC_ERROR,
                address=to,
            )

        error = body.get("error")
        if error is not None:
            kind = CallFailureKind.REVERTED if _is_revert(error) else CallFailureKind.RPC_ERROR
            log.debug("eth_call_error", to=to, kind=kind.value, error=error.get("message"))
            raise ChainCallError(
                str(error.get("message", "eth_call failed")),
                kind=kind,
                address=to,
            )

        result = body.get("result")
        if not isinstance(result, str) or not result.startswith("0x"):
            raise ChainCallError(
                f"Unexpected eth_call result: {result!r}",
                kind=CallFailureKind.RPC_ERROR,
                address=to,
            )
        try:
            return bytes.fromhex(result[2:])
        except ValueError as e:
            raise ChainCallError(
                f"Non-hex eth_call result: {result!r}",
                kind=CallFailureKind.RPC_ERROR,
                address=to,
            ) from e


# Singleton instance
_rpc_client: EthRPCClient | None = None


async def get_rpc_client() -> EthRPCClient:
    """Get or create the RPC client singleton."""
    global _rpc_client
    if _rpc_client is None:
        _rpc_client = EthRPCClient()
    return _rpc_client


async def close_rpc_client() -> None:
    """Close and clear the RPC client singleton."""
    global _rpc_client
    if _rpc_client is not None:
        await _rpc_client.close()
        _rpc_client = None
