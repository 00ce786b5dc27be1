"""Contract interfaces consulted by operator filter checks."""

from operatorfilter.services.chain.contract_reader import ContractInterface

# OpenSea / Blur operator filter registries
OPERATOR_FILTER_REGISTRY = ContractInterface(
    [
        "function filteredOperators(address registrant) external view returns (address[])",
    ]
)

# Collections with their own transfer validation (ERC721-C style whitelist
# or a delegated operator registry)
CUSTOM_LOGIC_COLLECTION = ContractInterface(
    [
        "function registry() view returns (address)",
        "function getWhitelistedOperators() view returns (address[])",
    ]
)

OPERATOR_ALLOW_REGISTRY = ContractInterface(
    [
        "function isAllowedOperator(address operator) external view returns (bool)",
    ]
)
