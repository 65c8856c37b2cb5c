"""
Supabase Backend - Table, storage and error translation primitives.

Every query the services issue goes through this class:
- Equality filters, set-membership filters, ordering and limits
- Inserts, single-row inserts with conflict detection, updates
- Blob uploads to a storage bucket

Errors from postgrest, storage and the HTTP transport are translated into
the BackendError family so services only ever handle one exception type.
"""

import logging
from typing import Optional, Dict, Any, List, Iterable, Tuple

from postgrest.exceptions import APIError

from supportdesk.database.errors import BackendError, ConflictError, NotFoundError
from supportdesk.utils.constants import UNIQUE_VIOLATION_CODE

logger = logging.getLogger(__name__)


class SupabaseBackend:
    """
    Thin async accessor over a Supabase AsyncClient.

    No joins are used; callers batch related rows with select_in and
    assemble views themselves.
    """

    def __init__(self, supabase_client, attachments_bucket: str = "attachments"):
        """
        Initialize the backend.

        Args:
            supabase_client: Supabase AsyncClient
            attachments_bucket: Storage bucket used for attachment blobs
        """
        self.supabase = supabase_client
        self.attachments_bucket = attachments_bucket

    async def _execute(self, query, action: str):
        """Run a query builder and translate failures."""
        try:
            return await query.execute()
        except APIError as e:
            code = getattr(e, "code", None)
            message = getattr(e, "message", None) or str(e)
            if code == UNIQUE_VIOLATION_CODE:
                raise ConflictError(f"{action}: {message}", code=code) from e
            raise BackendError(f"{action}: {message}", code=code) from e
        except BackendError:
            raise
        except Exception as e:
            raise BackendError(f"{action}: {e}") from e

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, Any]] = None,
        in_filter: Optional[Tuple[str, Iterable[Any]]] = None,
        order_by: Optional[str] = None,
        desc: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Select rows from a table.

        Args:
            table: Table name
            columns: Columns to select (default "*")
            filters: Equality filters as {column: value}
            in_filter: Set-membership filter as (column, values)
            order_by: Column to order by
            desc: Order descending
            limit: Maximum rows to return

        Returns:
            List of row dicts (empty when nothing matched)
        """
        if in_filter is not None:
            in_column, in_values = in_filter
            in_values = list(in_values)
            # An empty IN () can never match
            if not in_values:
                return []

        query = self.supabase.table(table).select(columns)

        for column, value in (filters or {}).items():
            query = query.eq(column, value)

        if in_filter is not None:
            query = query.in_(in_column, in_values)

        if order_by:
            query = query.order(order_by, desc=desc)

        if limit is not None:
            query = query.limit(limit)

        result = await self._execute(query, f"select from {table}")
        return result.data or []

    async def select_eq(self, table: str, column: str, value: Any, **kwargs) -> List[Dict[str, Any]]:
        """Select rows where column == value."""
        return await self.select(table, filters={column: value}, **kwargs)

    async def select_in(self, table: str, column: str, values: Iterable[Any], **kwargs) -> List[Dict[str, Any]]:
        """Select rows where column is one of values."""
        return await self.select(table, in_filter=(column, values), **kwargs)

    async def fetch_one(self, table: str, column: str, value: Any) -> Optional[Dict[str, Any]]:
        """Fetch a single row by equality, or None if it does not exist."""
        rows = await self.select(table, filters={column: value}, limit=1)
        return rows[0] if rows else None

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a row and return it as stored."""
        result = await self._execute(
            self.supabase.table(table).insert(row), f"insert into {table}"
        )
        if not result.data:
            raise BackendError(f"insert into {table}: no row returned")
        return result.data[0]

    async def insert_single(self, table: str, row: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Insert a row and return it, or None when the backend returned nothing.

        Raises:
            ConflictError: A row with the same identity already exists
        """
        result = await self._execute(
            self.supabase.table(table).insert(row), f"insert into {table}"
        )
        return result.data[0] if result.data else None

    async def update(self, table: str, column: str, value: Any, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update the row where column == value and return it.

        Raises:
            NotFoundError: No row matched
        """
        query = self.supabase.table(table).update(fields).eq(column, value)
        result = await self._execute(query, f"update {table}")
        if not result.data:
            raise NotFoundError(f"update {table}: no row with {column}={value}")
        return result.data[0]

    async def store_blob(self, path: str, data: bytes, bucket: Optional[str] = None) -> str:
        """Upload bytes to storage and return the stored path."""
        bucket = bucket or self.attachments_bucket
        try:
            await self.supabase.storage.from_(bucket).upload(path, data)
        except Exception as e:
            raise BackendError(f"upload to {bucket}/{path}: {e}") from e
        return path
