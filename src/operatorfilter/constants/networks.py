"""Chain-specific operator filter registry addresses.

OpenSea's OperatorFilterRegistry is deployed at the same address on every
supported network. Blur's registry only exists on Ethereum mainnet.
"""

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Final

from operatorfilter.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from operatorfilter.config.settings import Settings

OPENSEA_OPERATOR_FILTER_REGISTRY: Final[str] = "0x000000000000aaeb6d7670e522a718067333cd4e"
BLUR_OPERATOR_FILTER_REGISTRY: Final[str] = "0x9dc5ee2d52d014f8b81d662fa8f4ca525f27cd6b"

# Blur v2 delegate on mainnet, used by the static override rules
BLUR_V2_DELEGATE: Final[str] = "0x2f18f339620a63e43f0839eeb18d7de1e1be4dfb"


@dataclass(frozen=True)
class NetworkConfig:
    """Operator filter registries known for one chain.

    Attributes:
        chain_id: EVM chain id.
        name: Human readable network name.
        opensea_registry: OpenSea operator filter registry, if deployed.
        blur_registry: Blur operator filter registry, if deployed.
    """

    chain_id: int
    name: str
    opensea_registry: str | None = None
    blur_registry: str | None = None

    @property
    def registries(self) -> dict[str, str]:
        """Registry label -> address for every registry deployed on this chain."""
        found = {
            "opensea": self.opensea_registry,
            "blur": self.blur_registry,
        }
        return {label: address for label, address in found.items() if address}


NETWORKS: Final[dict[int, NetworkConfig]] = {
    1: NetworkConfig(
        chain_id=1,
        name="mainnet",
        opensea_registry=OPENSEA_OPERATOR_FILTER_REGISTRY,
        blur_registry=BLUR_OPERATOR_FILTER_REGISTRY,
    ),
    5: NetworkConfig(
        chain_id=5, name="goerli", opensea_registry=OPENSEA_OPERATOR_FILTER_REGISTRY
    ),
    10: NetworkConfig(
        chain_id=10, name="optimism", opensea_registry=OPENSEA_OPERATOR_FILTER_REGISTRY
    ),
    137: NetworkConfig(
        chain_id=137, name="polygon", opensea_registry=OPENSEA_OPERATOR_FILTER_REGISTRY
    ),
    8453: NetworkConfig(
        chain_id=8453, name="base", opensea_registry=OPENSEA_OPERATOR_FILTER_REGISTRY
    ),
    42161: NetworkConfig(
        chain_id=42161, name="arbitrum", opensea_registry=OPENSEA_OPERATOR_FILTER_REGISTRY
    ),
    11155111: NetworkConfig(
        chain_id=11155111, name="sepolia", opensea_registry=OPENSEA_OPERATOR_FILTER_REGISTRY
    ),
}


def get_network_config(chain_id: int, settings: "Settings | None" = None) -> NetworkConfig:
    """Resolve the registry configuration for a chain.

    Args:
        chain_id: EVM chain id.
        settings: Optional settings whose registry overrides take precedence.

    Returns:
        NetworkConfig with overrides applied.

    Raises:
        ConfigurationError: If the chain is unknown and no override is given.
    """
    network = NETWORKS.get(chain_id)
    opensea = settings.opensea_registry_address if settings else None
    blur = settings.blur_registry_address if settings else None

    if network is None:
        if not (opensea or blur):
            raise ConfigurationError(f"No operator filter registries for chain {chain_id}")
        network = NetworkConfig(chain_id=chain_id, name=f"chain-{chain_id}")

    if opensea:
        network = replace(network, opensea_registry=opensea)
    if blur:
        network = replace(network, blur_registry=blur)
    return network
