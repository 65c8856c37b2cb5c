"""
Models package for SupportDesk.
"""

from supportdesk.models.base_model import BaseModel
from supportdesk.models.profile import Profile, UserRole
from supportdesk.models.ticket import Ticket, TicketStatus, TicketPriority
from supportdesk.models.message import Message, Attachment

__all__ = [
    # Base
    'BaseModel',

    # Profiles
    'Profile',
    'UserRole',

    # Tickets
    'Ticket',
    'TicketStatus',
    'TicketPriority',

    # Messages
    'Message',
    'Attachment',
]
