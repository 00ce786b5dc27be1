"""EVM chain access: JSON-RPC client and typed contract reads."""

from operatorfilter.services.chain.contract_reader import (
    CallFailed,
    CallOk,
    CallResult,
    ContractInterface,
    ContractReader,
    FunctionSpec,
)
from operatorfilter.services.chain.rpc_client import EthRPCClient

__all__ = [
    "CallFailed",
    "CallOk",
    "CallResult",
    "ContractInterface",
    "ContractReader",
    "EthRPCClient",
    "FunctionSpec",
]
