"""Operator filter API routes."""

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel

from operatorfilter.api.dependencies import FilterEngineDep
from operatorfilter.core.address import normalize_address, normalize_addresses
from operatorfilter.core.exceptions import ValidationError

router = APIRouter(prefix="/contracts", tags=["operator-filter"])


class OperatorFilterResponse(BaseModel):
    """Filtering verdict for a set of operators."""

    contract: str
    operators: list[str]
    filtered: bool


class BlacklistRefreshResponse(BaseModel):
    """Registry blacklist after a forced refresh."""

    contract: str
    operators: list[str]
    complete: bool
    failed_registries: list[str]


@router.get("/{contract}/operator-filter", response_model=OperatorFilterResponse)
async def get_operator_filter(
    contract: str,
    engine: FilterEngineDep,
    operators: list[str] = Query(...),
    refresh: bool = False,
) -> OperatorFilterResponse:
    """
    Check whether a collection filters any of the given operators.

    Pass ``refresh=true`` to recompute the registry blacklist first.
    """
    try:
        contract = normalize_address(contract)
        ops = normalize_addresses(operators)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e

    filtered = await engine.is_filtered(contract, ops, refresh=refresh)
    return OperatorFilterResponse(contract=contract, operators=ops, filtered=filtered)


@router.post("/{contract}/operator-filter/refresh", response_model=BlacklistRefreshResponse)
async def refresh_operator_filter(
    contract: str,
    engine: FilterEngineDep,
) -> BlacklistRefreshResponse:
    """Recompute a collection's registry blacklist and overwrite cached copies."""
    try:
        resolution = await engine.refresh_blacklist(contract)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e

    return BlacklistRefreshResponse(
        contract=resolution.contract,
        operators=resolution.operators,
        complete=resolution.complete,
        failed_registries=resolution.failed_registries,
    )
