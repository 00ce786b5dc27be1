"""Read-only contract calls returning typed results.

``ContractReader.call`` never raises for chain failures: every revert,
node error, transport error or undecodable response becomes a
``CallFailed`` value, so callers can apply fail-open policies uniformly.
"""

import re
from dataclasses import dataclass
from typing import Any, Protocol

import structlog
from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import function_signature_to_4byte_selector

from operatorfilter.core.exceptions import CallFailureKind, ChainCallError, ValidationError

log = structlog.get_logger(__name__)

_SIGNATURE_RE = re.compile(
    r"^\s*function\s+(?P<name>\w+)\s*\((?P<inputs>[^)]*)\)"
    r"[^(]*?(?:returns\s*\((?P<outputs>[^)]*)\))?\s*$"
)


def _param_types(params: str | None) -> tuple[str, ...]:
    if not params or not params.strip():
        return ()
    # "address operator" -> "address"
    return tuple(p.strip().split()[0] for p in params.split(","))


@dataclass(frozen=True)
class FunctionSpec:
    """ABI description of one contract function."""

    name: str
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)

    @classmethod
    def parse(cls, human_readable: str) -> "FunctionSpec":
        """Parse ``function name(type a, ...) view returns (type)``."""
        match = _SIGNATURE_RE.match(human_readable)
        if match is None:
            raise ValidationError(f"Unparseable function signature: {human_readable!r}")
        return cls(
            name=match.group("name"),
            inputs=_param_types(match.group("inputs")),
            outputs=_param_types(match.group("outputs")),
        )


class ContractInterface:
    """A named set of functions a contract is expected to expose.

    Example:
        iface = ContractInterface(["function registry() view returns (address)"])
        iface["registry"].selector
    """

    def __init__(self, signatures: list[str]) -> None:
        self._functions = {spec.name: spec for spec in map(FunctionSpec.parse, signatures)}

    def __getitem__(self, name: str) -> FunctionSpec:
        try:
            return self._functions[name]
        except KeyError:
            raise ValidationError(f"Function {name!r} not in interface") from None

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def encode_call(self, name: str, args: list[Any]) -> str:
        """Build 0x-prefixed calldata for a function call."""
        spec = self[name]
        try:
            encoded = encode(list(spec.inputs), list(args))
        except (EncodingError, TypeError, ValueError) as e:
            raise ValidationError(f"Cannot encode arguments for {spec.signature}: {e}") from e
        return "0x" + (spec.selector + encoded).hex()

    def decode_result(self, name: str, data: bytes) -> Any:
        """Decode return data; single outputs are unwrapped."""
        spec = self[name]
        values = decode(list(spec.outputs), data)
        return values[0] if len(values) == 1 else values


@dataclass(frozen=True)
class CallOk:
    """Successful call result."""

    value: Any
    ok: bool = True


@dataclass(frozen=True)
class CallFailed:
    """Failed call result with its failure category."""

    kind: CallFailureKind
    reason: str
    ok: bool = False


CallResult = CallOk | CallFailed


class EthCaller(Protocol):
    """Transport able to execute ``eth_call``."""

    async def eth_call(self, to: str, data: str, block: str = "latest") -> bytes: ...


class ContractReader:
    """Thin read-only invocation layer over an ``eth_call`` transport."""

    def __init__(self, rpc: EthCaller) -> None:
        self._rpc = rpc

    async def call(
        self,
        address: str,
        interface: ContractInterface,
        function_name: str,
        args: list[Any] | None = None,
    ) -> CallResult:
        """Call ``function_name`` on ``address`` and decode the result.

        Args:
            address: Contract address.
            interface: Interface declaring the function.
            function_name: Function to call.
            args: Positional arguments.

        Returns:
            CallOk with the decoded value, or CallFailed.

        Raises:
            ValidationError: If the arguments cannot be encoded.
        """
        calldata = interface.encode_call(function_name, args or [])

        try:
            raw = await self._rpc.eth_call(address, calldata)
        except ChainCallError as e:
            return CallFailed(kind=e.kind, reason=str(e))

        try:
            return CallOk(value=interface.decode_result(function_name, raw))
        except DecodingError as e:
            # Empty return data usually means the function does not exist
            log.debug(
                "contract_call_decode_failed",
                address=address,
                function=function_name,
                error=str(e),
            )
            return CallFailed(kind=CallFailureKind.DECODE, reason=str(e))
