"""
Service layer: profile access and ticket/message aggregation.
"""

from supportdesk.service.profile_service import ProfileService
from supportdesk.service.ticket_service import TicketService, sort_tickets, ALL_STATUSES
from supportdesk.service.message_service import MessageService

__all__ = [
    'ProfileService',
    'TicketService',
    'MessageService',
    'sort_tickets',
    'ALL_STATUSES',
]
