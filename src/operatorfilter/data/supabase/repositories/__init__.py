"""Repository pattern implementations."""

from operatorfilter.data.supabase.repositories.contract_repo import ContractRepository

__all__ = ["ContractRepository"]
