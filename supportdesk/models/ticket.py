from enum import Enum
from typing import Optional, Dict, Any, List
from datetime import datetime

from supportdesk.models.base_model import BaseModel


class TicketStatus(Enum):
    OPEN = "open"
    PENDING = "pending"
    RESOLVED = "resolved"


class TicketPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Ticket(BaseModel):
    """
    Represents a customer support ticket.
    Maps to the tickets table.
    """

    RELATED_FIELDS = (
        'customer', 'assigned_to_profile', 'messages',
        'message_count', 'last_message', 'unread',
    )

    def __init__(self):
        self.id: str = None
        self.subject: str = None
        self.customer_id: str = None
        self.status: str = TicketStatus.OPEN.value
        self.priority: str = TicketPriority.MEDIUM.value
        self.category: Optional[str] = None
        self.assigned_to: Optional[str] = None
        self.created_at: Optional[datetime] = None
        self.updated_at: Optional[datetime] = None

        # Related data (populated when needed)
        self.customer = None
        self.assigned_to_profile = None
        self.messages: List = []
        self.message_count: int = 0
        self.last_message = None
        self.unread: bool = False

    @property
    def is_resolved(self) -> bool:
        """Check if ticket is resolved."""
        return self.status == TicketStatus.RESOLVED.value

    @property
    def status_display(self) -> str:
        """Get human-readable status."""
        return self.status.title() if self.status else ''

    @property
    def priority_display(self) -> str:
        """Get human-readable priority."""
        return self.priority.title() if self.priority else 'Medium'

    def to_view(self) -> Dict[str, Any]:
        """Enriched representation with related profiles and messages."""
        data = self.to_dict()
        data['customer'] = self.customer.to_dict() if self.customer else None
        data['assigned_to_profile'] = (
            self.assigned_to_profile.to_dict() if self.assigned_to_profile else None
        )
        data['messages'] = [m.to_view() for m in self.messages]
        data['message_count'] = self.message_count
        data['last_message'] = self.last_message.to_view() if self.last_message else None
        data['unread'] = self.unread
        return data
