# -*- coding: utf-8 -*-
"""
Shared test fixtures for the SupportDesk test suite.

Provides a chained Supabase client mock for the backend accessor tests and
an in-memory backend for the service and session tests. The in-memory
backend yields to the event loop on every call so concurrent coroutines
interleave the way they would against a real server.
"""

import asyncio
import itertools
import pytest
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List
from unittest.mock import MagicMock, AsyncMock

from supportdesk.database.errors import BackendError, ConflictError, NotFoundError
from supportdesk.service.profile_service import ProfileService
from supportdesk.service.ticket_service import TicketService
from supportdesk.service.message_service import MessageService


# =============================================================================
# DATABASE MOCKS
# =============================================================================

@pytest.fixture
def mock_supabase():
    """Create a mock Supabase AsyncClient with chained query support."""
    mock = MagicMock()
    tables = {}

    def create_table_mock(table_name):
        if table_name in tables:
            return tables[table_name]
        table = MagicMock()
        # Support full chaining: .select().eq().in_().order().limit().insert().update()
        for method in ['select', 'eq', 'in_', 'order', 'limit', 'insert', 'update']:
            getattr(table, method).return_value = table
        table.execute = AsyncMock(return_value=MagicMock(data=[]))
        tables[table_name] = table
        return table

    mock.table = MagicMock(side_effect=create_table_mock)
    mock.storage.from_.return_value.upload = AsyncMock(return_value=MagicMock())
    return mock


# =============================================================================
# IN-MEMORY BACKEND
# =============================================================================

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)

UNIQUE_COLUMNS = {
    'profiles': 'id',
}


class InMemoryBackend:
    """
    Stand-in for SupabaseBackend backed by lists of dicts.

    Failures are injected with fail(operation, table); operation is one of
    select, insert, update, store_blob (select also covers select_eq,
    select_in and fetch_one).
    """

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            'profiles': [],
            'tickets': [],
            'messages': [],
            'attachments': [],
        }
        self.blobs: Dict[str, bytes] = {}
        self.failures = set()
        self.calls: List[tuple] = []
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)

    # -------------------------------------------------------------------------
    # Test helpers
    # -------------------------------------------------------------------------

    def fail(self, operation: str, table: str) -> None:
        self.failures.add((operation, table))

    def _check(self, operation: str, table: str) -> None:
        self.calls.append((operation, table))
        if (operation, table) in self.failures:
            raise BackendError(f"simulated {operation} failure on {table}")

    def next_timestamp(self) -> str:
        return (BASE_TIME + timedelta(minutes=next(self._clock))).isoformat()

    def seed(self, table: str, **row) -> Dict[str, Any]:
        row.setdefault('id', f"{table[:-1]}-{next(self._ids)}")
        if 'created_at' not in row:
            row['created_at'] = self.next_timestamp()
        if table in ('tickets', 'profiles'):
            row.setdefault('updated_at', row['created_at'])
        self.tables[table].append(dict(row))
        return dict(row)

    def count(self, table: str, **filters) -> int:
        return len([r for r in self.tables[table] if all(r.get(k) == v for k, v in filters.items())])

    # -------------------------------------------------------------------------
    # SupabaseBackend interface
    # -------------------------------------------------------------------------

    async def select(self, table, columns="*", filters=None, in_filter=None,
                     order_by=None, desc=False, limit=None):
        await asyncio.sleep(0)
        if in_filter is not None:
            in_column, in_values = in_filter
            in_values = list(in_values)
            if not in_values:
                return []
        self._check('select', table)

        rows = [dict(r) for r in self.tables[table]]
        for column, value in (filters or {}).items():
            rows = [r for r in rows if r.get(column) == value]
        if in_filter is not None:
            rows = [r for r in rows if r.get(in_column) in in_values]
        if order_by:
            rows = sorted(rows, key=lambda r: r.get(order_by) or '', reverse=desc)
        if limit is not None:
            rows = rows[:limit]
        if columns != "*":
            wanted = [c.strip() for c in columns.split(',')]
            rows = [{c: r.get(c) for c in wanted} for r in rows]
        return rows

    async def select_eq(self, table, column, value, **kwargs):
        return await self.select(table, filters={column: value}, **kwargs)

    async def select_in(self, table, column, values, **kwargs):
        return await self.select(table, in_filter=(column, values), **kwargs)

    async def fetch_one(self, table, column, value):
        rows = await self.select(table, filters={column: value}, limit=1)
        return rows[0] if rows else None

    async def insert(self, table, row):
        await asyncio.sleep(0)
        self._check('insert', table)
        row = dict(row)
        unique = UNIQUE_COLUMNS.get(table)
        if unique and any(r.get(unique) == row.get(unique) for r in self.tables[table]):
            raise ConflictError(f"duplicate key value violates unique constraint on {table}", code='23505')
        row.setdefault('id', f"{table[:-1]}-{next(self._ids)}")
        row.setdefault('created_at', self.next_timestamp())
        if table in ('tickets', 'profiles'):
            row.setdefault('updated_at', row['created_at'])
        self.tables[table].append(row)
        return dict(row)

    async def insert_single(self, table, row):
        return await self.insert(table, row)

    async def update(self, table, column, value, fields):
        await asyncio.sleep(0)
        self._check('update', table)
        for row in self.tables[table]:
            if row.get(column) == value:
                row.update(fields)
                return dict(row)
        raise NotFoundError(f"update {table}: no row with {column}={value}")

    async def store_blob(self, path, data, bucket=None):
        await asyncio.sleep(0)
        self._check('store_blob', bucket or 'attachments')
        self.blobs[path] = data
        return path


@pytest.fixture
def backend():
    """Empty in-memory backend."""
    return InMemoryBackend()


@pytest.fixture
def profile_service(backend):
    return ProfileService(backend)


@pytest.fixture
def ticket_service(backend, profile_service):
    return TicketService(backend, profile_service)


@pytest.fixture
def message_service(backend, ticket_service):
    return MessageService(backend, ticket_service)


# =============================================================================
# SEEDED DATA
# =============================================================================

@pytest.fixture
def seeded(backend):
    """
    Two customers and an admin with tickets in every status.

    Returns a dict of the seeded rows keyed by a readable name.
    """
    alice = backend.seed('profiles', id='alice', email='alice@example.com',
                         full_name='Alice Customer', user_type='customer')
    bob = backend.seed('profiles', id='bob', email='bob@example.com',
                       full_name=None, user_type='customer')
    admin = backend.seed('profiles', id='admin', email='admin@example.com',
                         full_name='Ada Admin', user_type='admin')

    t_open = backend.seed('tickets', subject='Cannot log in', customer_id='alice',
                          status='open', priority='high', category='Account',
                          assigned_to='admin')
    t_pending = backend.seed('tickets', subject='Invoice question', customer_id='bob',
                             status='pending', priority='low', category='Billing',
                             assigned_to=None)
    t_resolved = backend.seed('tickets', subject='Feature idea', customer_id='alice',
                              status='resolved', priority='medium', category='Feature Request',
                              assigned_to=None)

    m1 = backend.seed('messages', ticket_id=t_open['id'], sender_id='alice', content='I cannot log in')
    m2 = backend.seed('messages', ticket_id=t_open['id'], sender_id='admin', content='Try resetting')
    m3 = backend.seed('messages', ticket_id=t_pending['id'], sender_id='bob', content='Why was I charged?')
    a1 = backend.seed('attachments', message_id=m1['id'], name='screenshot.png',
                      file_path=f"{m1['id']}/screenshot.png", size=2048)

    return {
        'alice': alice, 'bob': bob, 'admin': admin,
        't_open': t_open, 't_pending': t_pending, 't_resolved': t_resolved,
        'm1': m1, 'm2': m2, 'm3': m3, 'a1': a1,
    }


# =============================================================================
# AUTH MOCKS
# =============================================================================

@pytest.fixture
def mock_auth_client():
    """Supabase client mock exposing an async auth API with a listener list."""
    client = MagicMock()
    auth = client.auth
    auth.listeners = []

    def on_auth_state_change(callback):
        auth.listeners.append(callback)
        subscription = MagicMock()
        subscription.unsubscribe.side_effect = lambda: auth.listeners.remove(callback)
        return subscription

    auth.on_auth_state_change = MagicMock(side_effect=on_auth_state_change)
    auth.get_session = AsyncMock(return_value=None)
    auth.sign_up = AsyncMock()
    auth.sign_in_with_password = AsyncMock()
    auth.sign_out = AsyncMock()
    auth.reset_password_for_email = AsyncMock()

    def emit(event, session):
        for listener in list(auth.listeners):
            listener(event, session)

    auth.emit = emit
    return client


@pytest.fixture
def no_profile_delay(monkeypatch):
    """Skip the pre-fetch delay so session tests stay fast."""
    monkeypatch.setattr('supportdesk.session.coordinator.PROFILE_FETCH_DELAY', 0)
