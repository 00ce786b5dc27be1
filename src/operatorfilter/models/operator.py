"""Operator and blacklist Pydantic models."""

from pydantic import BaseModel, Field, field_validator

from operatorfilter.core.address import normalize_address


class Operator(BaseModel):
    """A marketplace operator address with the order kind it routes.

    The marketplace label is opaque to filtering decisions.

    Example:
        op = Operator(address="0x1E0049783F008A0085193E00003D00cd54003c71", marketplace="seaport")
    """

    address: str = Field(description="Operator contract address (lowercased)")
    marketplace: str = Field(description="Order kind routed through this operator")

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        """Validate and lowercase the operator address."""
        return normalize_address(v)


class BlacklistResolution(BaseModel):
    """Outcome of reading every operator filter registry for a contract.

    Attributes:
        contract: Collection address.
        operators: Deduplicated, lowercased union of filtered operators.
        failed_registries: Labels of registries whose read failed.
    """

    contract: str
    operators: list[str] = Field(default_factory=list)
    failed_registries: list[str] = Field(default_factory=list)

    @property
    def complete(self) -> bool:
        """True when every registry answered."""
        return not self.failed_registries
