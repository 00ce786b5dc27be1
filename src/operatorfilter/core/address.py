"""EVM address normalization helpers."""

import json
import re
from collections.abc import Iterable

from operatorfilter.core.exceptions import ValidationError

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_valid_address(address: str) -> bool:
    """Check whether a string is a 0x-prefixed 20-byte hex address."""
    return isinstance(address, str) and bool(_ADDRESS_RE.match(address))


def normalize_address(address: str) -> str:
    """Lowercase an EVM address after validating its format.

    Raises:
        ValidationError: If the address is malformed.
    """
    if not is_valid_address(address):
        raise ValidationError(f"Invalid EVM address: {address!r}")
    return address.lower()


def normalize_addresses(addresses: Iterable[str]) -> list[str]:
    """Normalize addresses, keeping the caller's order."""
    return [normalize_address(a) for a in addresses]


def to_bytea(address: str) -> str:
    """Encode an address in Postgres bytea hex input form (``\\x...``)."""
    return "\\x" + normalize_address(address)[2:]


def serialize_operators(operators: list[str]) -> str:
    """Canonical compact JSON form of an operator list, used in cache keys."""
    return json.dumps(operators, separators=(",", ":"))
