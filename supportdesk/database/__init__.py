"""
Database module for SupportDesk.

Provides the Supabase client and the backend accessor used by all services.
"""

from supportdesk.database.supabase_client import SupabaseClientSingleton
from supportdesk.database.backend import SupabaseBackend
from supportdesk.database.errors import BackendError, ConflictError, NotFoundError
from supportdesk.utils.constants import Credentials


async def get_supabase_client():
    """
    Get the Supabase client instance.

    Returns:
        Supabase AsyncClient instance
    """
    return await SupabaseClientSingleton.get_instance()


async def get_backend() -> SupabaseBackend:
    """
    Get a backend accessor bound to the shared Supabase client.

    Returns:
        SupabaseBackend instance
    """
    client = await get_supabase_client()
    return SupabaseBackend(client, attachments_bucket=Credentials().ATTACHMENTS_BUCKET)


__all__ = [
    'SupabaseClientSingleton',
    'SupabaseBackend',
    'BackendError',
    'ConflictError',
    'NotFoundError',
    'get_supabase_client',
    'get_backend',
]
