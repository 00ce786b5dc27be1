"""Hardcoded operator filter overrides.

A rule marks a collection as filtered for any request that includes one
of the rule's operators, without consulting caches or the chain.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Final

from operatorfilter.constants.networks import BLUR_V2_DELEGATE


@dataclass(frozen=True)
class StaticRule:
    """Unconditional "filtered" verdict for one (chain, contract) pair."""

    chain_id: int
    contract: str
    operators: frozenset[str]
    note: str = ""

    def matches(self, chain_id: int, contract: str, operators: Sequence[str]) -> bool:
        return (
            chain_id == self.chain_id
            and contract == self.contract
            and any(op in self.operators for op in operators)
        )


STATIC_RULES: Final[tuple[StaticRule, ...]] = (
    StaticRule(
        chain_id=1,
        contract="0x0c86cdc978b7d191f11b36731107e924c699af10",
        operators=frozenset({BLUR_V2_DELEGATE}),
        note="Collection blocks Blur v2 without using a filter registry",
    ),
)


def matches_static_rule(
    chain_id: int,
    contract: str,
    operators: Sequence[str],
    rules: Sequence[StaticRule] = STATIC_RULES,
) -> StaticRule | None:
    """Return the first rule matching the request, if any."""
    for rule in rules:
        if rule.matches(chain_id, contract, operators):
            return rule
    return None
