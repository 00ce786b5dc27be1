"""Unit tests for the EVM JSON-RPC client.

Tests cover:
- eth_call success and payload shape
- Revert and node error classification
- Transport failures after retries
"""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import respx

from operatorfilter.core.exceptions import CallFailureKind, ChainCallError
from operatorfilter.services.chain.rpc_client import EthRPCClient

RPC_URL = "http://localhost:8545"
TARGET = "0x" + "c" * 40


@pytest.fixture
def rpc_client() -> EthRPCClient:
    """RPC client pointed at a mocked endpoint."""
    return EthRPCClient(rpc_url=RPC_URL)


class TestEthCall:
    """Tests for EthRPCClient.eth_call()."""

    @pytest.mark.asyncio
    async def test_returns_raw_bytes(self, rpc_client: EthRPCClient) -> None:
        with respx.mock() as mock:
            route = mock.post(url__startswith=RPC_URL).mock(
                return_value=httpx.Response(
                    200, json={"jsonrpc": "2.0", "id": 1, "result": "0x01ff"}
                )
            )

            result = await rpc_client.eth_call(TARGET, "0xdeadbeef")

        assert result == b"\x01\xff"
        payload = json.loads(route.calls.last.request.content)
        assert payload["method"] == "eth_call"
        assert payload["params"] == [{"to": TARGET, "data": "0xdeadbeef"}, "latest"]
        await rpc_client.close()

    @pytest.mark.asyncio
    async def test_revert_error_is_classified(self, rpc_client: EthRPCClient) -> None:
        body = {"jsonrpc": "2.0", "id": 1, "error": {"code": 3, "message": "execution reverted"}}
        with respx.mock() as mock:
            mock.post(url__startswith=RPC_URL).mock(return_value=httpx.Response(200, json=body))

            with pytest.raises(ChainCallError) as exc_info:
                await rpc_client.eth_call(TARGET, "0x")

        assert exc_info.value.kind is CallFailureKind.REVERTED
        assert exc_info.value.address == TARGET
        await rpc_client.close()

    @pytest.mark.asyncio
    async def test_revert_detected_from_message(self, rpc_client: EthRPCClient) -> None:
        body = {"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "Reverted"}}
        with respx.mock() as mock:
            mock.post(url__startswith=RPC_URL).mock(return_value=httpx.Response(200, json=body))

            with pytest.raises(ChainCallError) as exc_info:
                await rpc_client.eth_call(TARGET, "0x")

        assert exc_info.value.kind is CallFailureKind.REVERTED
        await rpc_client.close()

    @pytest.mark.asyncio
    async def test_other_node_error_is_rpc_error(self, rpc_client: EthRPCClient) -> None:
        body = {"jsonrpc": "2.0", "id": 1, "error": {"code": -32005, "message": "limit exceeded"}}
        with respx.mock() as mock:
            mock.post(url__startswith=RPC_URL).mock(return_value=httpx.Response(200, json=body))

            with pytest.raises(ChainCallError) as exc_info:
                await rpc_client.eth_call(TARGET, "0x")

        assert exc_info.value.kind is CallFailureKind.RPC_ERROR
        assert exc_info.value.kind.is_transient is True
        await rpc_client.close()

    @pytest.mark.asyncio
    async def test_server_errors_become_transport_failure(self, rpc_client: EthRPCClient) -> None:
        with (
            respx.mock() as mock,
            patch("operatorfilter.services.base.asyncio.sleep", new_callable=AsyncMock),
        ):
            route = mock.post(url__startswith=RPC_URL).mock(return_value=httpx.Response(503))

            with pytest.raises(ChainCallError) as exc_info:
                await rpc_client.eth_call(TARGET, "0x")

        assert exc_info.value.kind is CallFailureKind.TRANSPORT
        assert route.call_count == 3
        await rpc_client.close()

    @pytest.mark.asyncio
    async def test_malformed_result_is_rpc_error(self, rpc_client: EthRPCClient) -> None:
        with respx.mock() as mock:
            mock.post(url__startswith=RPC_URL).mock(
                return_value=httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": None})
            )

            with pytest.raises(ChainCallError) as exc_info:
                await rpc_client.eth_call(TARGET, "0x")

        assert exc_info.value.kind is CallFailureKind.RPC_ERROR
        await rpc_client.close()

    @pytest.mark.asyncio
    async def test_non_hex_result_is_rpc_error(self, rpc_client: EthRPCClient) -> None:
        with respx.mock() as mock:
            mock.post(url__startswith=RPC_URL).mock(
                return_value=httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0x0"})
            )

            with pytest.raises(ChainCallError) as exc_info:
                await rpc_client.eth_call(TARGET, "0x")

        assert exc_info.value.kind is CallFailureKind.RPC_ERROR
        await rpc_client.close()

    @pytest.mark.asyncio
    async def test_non_object_body_is_rpc_error(self, rpc_client: EthRPCClient) -> None:
        with respx.mock() as mock:
            mock.post(url__startswith=RPC_URL).mock(
                return_value=httpx.Response(200, json=[{"jsonrpc": "2.0", "id": 1}])
            )

            with pytest.raises(ChainCallError) as exc_info:
                await rpc_client.eth_call(TARGET, "0x")

        assert exc_info.value.kind is CallFailureKind.RPC_ERROR
        await rpc_client.close()
