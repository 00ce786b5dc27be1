"""Supabase data access layer."""

from operatorfilter.data.supabase.client import (
    SupabaseClient,
    close_supabase_client,
    get_supabase_client,
    get_supabase_client_instance,
)

__all__ = [
    "SupabaseClient",
    "close_supabase_client",
    "get_supabase_client",
    "get_supabase_client_instance",
]
