"""Operator filter decision services."""

from operatorfilter.services.filter.engine import (
    FilterDecisionEngine,
    check_marketplace_is_filtered,
    check_operators_filtered,
    get_filter_engine,
)

__all__ = [
    "FilterDecisionEngine",
    "check_marketplace_is_filtered",
    "check_operators_filtered",
    "get_filter_engine",
]
