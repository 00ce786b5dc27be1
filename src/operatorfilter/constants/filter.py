"""Operator filter constants."""

from typing import Final

# Fast cache key families
BLACKLIST_CACHE_PREFIX: Final[str] = "blacklist"
CUSTOM_LOGIC_CACHE_PREFIX: Final[str] = "custom-logic"

# Cache expiry (24h for both families)
BLACKLIST_CACHE_TTL_SECONDS: Final[int] = 24 * 3600
CUSTOM_LOGIC_CACHE_TTL_SECONDS: Final[int] = 24 * 3600
CUSTOM_LOGIC_TRANSIENT_TTL_SECONDS: Final[int] = 300

# Custom-logic cache flags
BLOCKED_FLAG: Final[str] = "1"
ALLOWED_FLAG: Final[str] = "0"

# In-process fast cache bounds
MEMORY_CACHE_MAX_SIZE: Final[int] = 50_000

# Durable store
CONTRACTS_TABLE: Final[str] = "contracts"
