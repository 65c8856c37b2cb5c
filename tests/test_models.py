# -*- coding: utf-8 -*-
"""
Model, Config and Helper Tests.

Run with: pytest tests/test_models.py -v
"""

import logging
import pytest
from datetime import datetime

from supportdesk.database.errors import BackendError
from supportdesk.models import Attachment, Message, Profile, Ticket
from supportdesk.utils.async_helpers import best_effort, degrade
from supportdesk.utils.constants import Credentials
from supportdesk.utils.logging_config import setup_logging


# =============================================================================
# MODELS
# =============================================================================

class TestModels:

    def test_from_dict_parses_timestamps(self):
        ticket = Ticket.from_dict({
            'id': 't1',
            'subject': 'Printer on fire',
            'customer_id': 'alice',
            'status': 'pending',
            'priority': 'high',
            'created_at': '2024-01-01T10:00:00Z',
        })

        assert isinstance(ticket.created_at, datetime)
        assert ticket.created_at.tzinfo is not None
        assert ticket.status_display == 'Pending'
        assert ticket.priority_display == 'High'

    def test_from_dict_of_nothing(self):
        assert Ticket.from_dict(None) is None
        assert Profile.from_dict({}) is None

    def test_related_fields_are_not_written_back(self):
        ticket = Ticket.from_dict({'id': 't1', 'subject': 'x', 'customer_id': 'alice', 'message_count': 9})
        ticket.customer = Profile.from_dict({'id': 'alice', 'email': 'alice@example.com'})

        row = ticket.to_dict()

        assert ticket.message_count == 0
        assert 'customer' not in row
        assert 'message_count' not in row
        assert row['subject'] == 'x'

    def test_to_view_nests_related_data(self):
        ticket = Ticket.from_dict({'id': 't1', 'subject': 'x', 'customer_id': 'alice'})
        ticket.customer = Profile.from_dict({'id': 'alice', 'email': 'alice@example.com'})
        message = Message.from_dict({'id': 'm1', 'ticket_id': 't1', 'sender_id': 'alice', 'content': 'hi'})
        message.attachments = [Attachment.from_dict({'id': 'a1', 'message_id': 'm1', 'name': 'f.txt'})]
        ticket.messages = [message]
        ticket.last_message = message
        ticket.message_count = 1

        view = ticket.to_view()

        assert view['customer']['email'] == 'alice@example.com'
        assert view['assigned_to_profile'] is None
        assert view['messages'][0]['attachments'][0]['name'] == 'f.txt'
        assert view['last_message']['content'] == 'hi'
        assert view['message_count'] == 1

    def test_profile_role_and_display_name(self):
        admin = Profile.from_dict({'id': 'u1', 'email': 'boss@example.com', 'user_type': 'admin', 'role': 'x'})
        plain = Profile.from_dict({'id': 'u2', 'email': 'c@example.com'})

        assert admin.role == 'admin'
        assert admin.is_admin
        assert admin.display_name == 'boss@example.com'
        assert plain.role == 'customer'

    def test_attachment_storage_path(self):
        assert Attachment.storage_path('m1', 'report.pdf') == 'm1/report.pdf'


# =============================================================================
# CONFIGURATION
# =============================================================================

class TestCredentials:

    def test_missing_supabase_settings(self, monkeypatch):
        monkeypatch.delenv('SUPABASE_URL', raising=False)
        monkeypatch.delenv('SUPABASE_KEY', raising=False)
        monkeypatch.delenv('SUPABASE_ANON_KEY', raising=False)

        with pytest.raises(ValueError, match='SUPABASE_URL'):
            Credentials().validate_required_credentials()

    def test_anon_key_fallback(self, monkeypatch):
        monkeypatch.setenv('SUPABASE_URL', 'https://project.supabase.co')
        monkeypatch.delenv('SUPABASE_KEY', raising=False)
        monkeypatch.setenv('SUPABASE_ANON_KEY', 'anon-key')

        credentials = Credentials()
        credentials.validate_required_credentials()

        assert credentials.SUPABASE_KEY == 'anon-key'

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv('ATTACHMENTS_BUCKET', raising=False)
        monkeypatch.delenv('SUPPORTDESK_LOG_LEVEL', raising=False)

        credentials = Credentials()

        assert credentials.ATTACHMENTS_BUCKET == 'attachments'
        assert credentials.LOG_LEVEL == 'INFO'


# =============================================================================
# LOGGING
# =============================================================================

class TestLogging:

    @pytest.fixture(autouse=True)
    def clean_logger(self):
        logger = logging.getLogger('supportdesk')
        saved = list(logger.handlers)
        logger.handlers = []
        yield
        for handler in logger.handlers:
            handler.close()
        logger.handlers = saved

    def test_rotating_file_handler(self, tmp_path):
        log_file = tmp_path / 'logs' / 'supportdesk.log'

        logger = setup_logging(level='debug', log_file=str(log_file))
        logger.info('hello from the test')
        for handler in logger.handlers:
            handler.flush()

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        assert 'hello from the test' in log_file.read_text(encoding='utf-8')

    def test_handlers_added_once(self, monkeypatch):
        monkeypatch.delenv('SUPPORTDESK_LOG_FILE', raising=False)

        setup_logging()
        logger = setup_logging()

        assert len(logger.handlers) == 1


# =============================================================================
# PARTIAL FAILURE HELPERS
# =============================================================================

async def _ok():
    return 'value'


async def _broken():
    raise BackendError('boom')


async def _bug():
    raise KeyError('not a backend failure')


class TestFailureHelpers:

    @pytest.mark.asyncio
    async def test_degrade(self):
        assert await degrade(_ok(), 'default', 'thing') == 'value'
        assert await degrade(_broken(), 'default', 'thing') == 'default'

    @pytest.mark.asyncio
    async def test_best_effort(self):
        assert await best_effort(_ok(), 'thing') == 'value'
        assert await best_effort(_broken(), 'thing') is None

    @pytest.mark.asyncio
    async def test_programming_errors_propagate(self):
        with pytest.raises(KeyError):
            await degrade(_bug(), None, 'thing')
        with pytest.raises(KeyError):
            await best_effort(_bug(), 'thing')
