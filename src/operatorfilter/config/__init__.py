"""Configuration module for the operator filter service.

Usage:
    from operatorfilter.config import get_settings

    settings = get_settings()  # Cached singleton
    print(settings.chain_id)

Note:
    We intentionally don't export a module-level `settings` instance
    because that would fail on import if required env vars aren't set.
"""

from operatorfilter.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
