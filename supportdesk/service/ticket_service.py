"""
Ticket Service - Builds enriched ticket views from normalized tables.

The backend offers no joins, so every read follows the same shape:
fetch the primary rows, collect distinct foreign keys, batch-fetch the
related rows by set membership, build a lookup and decorate.

Related data is auxiliary: a failed profile, count, last-message or
attachment lookup degrades that field to None/0/[] and never drops a ticket.
The ticket rows themselves are essential and failures propagate.
"""

import asyncio
import logging
from collections import Counter, defaultdict
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, Iterable

from supportdesk.database.backend import SupabaseBackend
from supportdesk.models.message import Message, Attachment
from supportdesk.models.profile import Profile, UserRole
from supportdesk.models.ticket import Ticket, TicketStatus, TicketPriority
from supportdesk.service.profile_service import ProfileService
from supportdesk.utils.async_helpers import degrade, best_effort
from supportdesk.utils.constants import TICKETS_TABLE, MESSAGES_TABLE, ATTACHMENTS_TABLE

logger = logging.getLogger(__name__)

# Sentinel status filter meaning "no filter"
ALL_STATUSES = "all"

PRIORITY_ORDER = {'high': 0, 'medium': 1, 'low': 2}
STATUS_ORDER = {'open': 0, 'pending': 1, 'resolved': 2}


def _timestamp(value: Any) -> float:
    if isinstance(value, datetime):
        return value.timestamp()
    return float('-inf')


def sort_tickets(tickets: List[Ticket], sort_by: str = 'date') -> List[Ticket]:
    """
    Sort tickets for a list view.

    Args:
        tickets: Tickets as fetched
        sort_by: 'date' (most recently updated first), 'priority' (high first)
            or 'status' (open, pending, resolved)

    Returns:
        New sorted list. Ties keep their fetched order; values outside the
        known enumerations sort last.
    """
    if sort_by == 'date':
        return sorted(tickets, key=lambda t: _timestamp(t.updated_at), reverse=True)
    if sort_by == 'priority':
        return sorted(tickets, key=lambda t: PRIORITY_ORDER.get(t.priority, len(PRIORITY_ORDER)))
    if sort_by == 'status':
        return sorted(tickets, key=lambda t: STATUS_ORDER.get(t.status, len(STATUS_ORDER)))
    raise ValueError(f"Unknown sort order: {sort_by}")


class TicketService:
    def __init__(self, backend: SupabaseBackend, profile_service: Optional[ProfileService] = None):
        self.backend = backend
        self.profiles = profile_service or ProfileService(backend)

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_tickets(
        self,
        role: str,
        current_user_id: str,
        status_filter: Optional[str] = None,
    ) -> List[Ticket]:
        """
        List tickets visible to the current user, most recently updated first.

        Args:
            role: 'admin' sees every ticket, 'customer' only their own
            current_user_id: ID of the signed-in user
            status_filter: Optional status; None or 'all' disables the filter

        Returns:
            Tickets decorated with customer, assigned_to_profile,
            message_count and last_message. messages is left empty.

        Raises:
            ValueError: Unknown role or status filter
            BackendError: The ticket rows could not be fetched
        """
        role = UserRole(role).value

        filters: Dict[str, Any] = {}
        if role == UserRole.CUSTOMER.value:
            filters['customer_id'] = current_user_id
        if status_filter and status_filter != ALL_STATUSES:
            filters['status'] = TicketStatus(status_filter).value

        rows = await self.backend.select(
            TICKETS_TABLE, filters=filters, order_by='updated_at', desc=True
        )
        tickets = [Ticket.from_dict(row) for row in rows]
        if not tickets:
            return []

        ticket_ids = [t.id for t in tickets]
        customer_ids = {t.customer_id for t in tickets}
        assignee_ids = {t.assigned_to for t in tickets if t.assigned_to}

        customers, assignees, counts, last_messages = await asyncio.gather(
            degrade(self.profiles.get_profiles(customer_ids), {}, "customer profiles"),
            degrade(self.profiles.get_profiles(assignee_ids), {}, "assignee profiles"),
            degrade(self._count_messages(ticket_ids), {}, "message counts"),
            self._last_messages(ticket_ids),
        )

        # Resolve senders of last messages, reusing profiles already loaded
        known: Dict[str, Profile] = {**customers, **assignees}
        missing = {m.sender_id for m in last_messages.values() if m.sender_id not in known}
        if missing:
            known.update(await degrade(
                self.profiles.get_profiles(missing), {}, "last message senders"
            ))
        for message in last_messages.values():
            message.sender = known.get(message.sender_id)

        for ticket in tickets:
            ticket.customer = customers.get(ticket.customer_id)
            ticket.assigned_to_profile = assignees.get(ticket.assigned_to) if ticket.assigned_to else None
            ticket.message_count = counts.get(ticket.id, 0)
            ticket.last_message = last_messages.get(ticket.id)
            ticket.messages = []
            ticket.unread = False

        return tickets

    async def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        """
        Get one ticket with its full, decorated message thread.

        Returns:
            The enriched ticket, or None if no such ticket exists

        Raises:
            BackendError: The ticket row could not be fetched
        """
        row = await self.backend.fetch_one(TICKETS_TABLE, 'id', ticket_id)
        if row is None:
            logger.info(f"Ticket {ticket_id} not found")
            return None

        ticket = Ticket.from_dict(row)

        customer, assignee, messages = await asyncio.gather(
            degrade(self.profiles.get_profile(ticket.customer_id), None, "customer profile"),
            self._assignee(ticket),
            degrade(self.get_messages(ticket_id), [], f"messages for ticket {ticket_id}"),
        )

        ticket.customer = customer
        ticket.assigned_to_profile = assignee
        ticket.messages = messages
        ticket.message_count = len(messages)
        ticket.last_message = messages[-1] if messages else None
        ticket.unread = False
        return ticket

    async def get_messages(self, ticket_id: str) -> List[Message]:
        """
        Get a ticket's messages in creation order with senders and attachments.

        Raises:
            BackendError: The message rows could not be fetched
        """
        rows = await self.backend.select_eq(
            MESSAGES_TABLE, 'ticket_id', ticket_id, order_by='created_at'
        )
        messages = [Message.from_dict(row) for row in rows]
        if not messages:
            return []

        senders, attachments = await asyncio.gather(
            degrade(self.profiles.get_profiles(m.sender_id for m in messages), {}, "sender profiles"),
            degrade(self._attachments_by_message(m.id for m in messages), {}, "attachments"),
        )

        for message in messages:
            message.sender = senders.get(message.sender_id)
            message.attachments = attachments.get(message.id, [])

        return messages

    async def _assignee(self, ticket: Ticket) -> Optional[Profile]:
        if not ticket.assigned_to:
            return None
        return await degrade(
            self.profiles.get_profile(ticket.assigned_to), None, "assignee profile"
        )

    async def _count_messages(self, ticket_ids: List[str]) -> Dict[str, int]:
        rows = await self.backend.select_in(
            MESSAGES_TABLE, 'ticket_id', ticket_ids, columns='ticket_id'
        )
        return dict(Counter(row['ticket_id'] for row in rows))

    async def _last_message(self, ticket_id: str) -> Optional[Message]:
        rows = await self.backend.select_eq(
            MESSAGES_TABLE, 'ticket_id', ticket_id,
            order_by='created_at', desc=True, limit=1,
        )
        return Message.from_dict(rows[0]) if rows else None

    async def _last_messages(self, ticket_ids: List[str]) -> Dict[str, Message]:
        """Latest message per ticket, one ordered query per ticket."""
        results = await asyncio.gather(*[
            degrade(self._last_message(ticket_id), None, f"last message for ticket {ticket_id}")
            for ticket_id in ticket_ids
        ])
        return {
            ticket_id: message
            for ticket_id, message in zip(ticket_ids, results)
            if message is not None
        }

    async def _attachments_by_message(self, message_ids: Iterable[str]) -> Dict[str, List[Attachment]]:
        rows = await self.backend.select_in(ATTACHMENTS_TABLE, 'message_id', message_ids)
        grouped: Dict[str, List[Attachment]] = defaultdict(list)
        for row in rows:
            grouped[row['message_id']].append(Attachment.from_dict(row))
        return dict(grouped)

    # =========================================================================
    # Writes
    # =========================================================================

    async def create_ticket(
        self,
        subject: str,
        customer_id: str,
        priority: str,
        category: str,
        initial_message: str = "",
    ) -> Ticket:
        """
        Create a ticket in the open state, with an optional first message.

        The first message is best-effort: if it cannot be stored the ticket
        is still returned.

        Raises:
            ValueError: Missing subject or unknown priority
            BackendError: The ticket could not be created
        """
        if not subject or not subject.strip():
            raise ValueError("Subject is required")

        row = await self.backend.insert(TICKETS_TABLE, {
            'subject': subject,
            'customer_id': customer_id,
            'priority': TicketPriority(priority).value,
            'category': category,
            'status': TicketStatus.OPEN.value,
        })
        ticket = Ticket.from_dict(row)
        logger.info(f"Created ticket {ticket.id} for customer {customer_id}")

        if initial_message:
            await best_effort(
                self.backend.insert(MESSAGES_TABLE, {
                    'ticket_id': ticket.id,
                    'sender_id': customer_id,
                    'content': initial_message,
                }),
                f"initial message for ticket {ticket.id}",
            )

        return ticket

    async def update_ticket(self, ticket_id: str, fields: Optional[Dict[str, Any]] = None) -> Ticket:
        """
        Apply field changes and refresh updated_at.

        An empty update only bumps the timestamp.

        Raises:
            ValueError: Unknown status or priority
            NotFoundError: No ticket with this ID
            BackendError: The write was rejected
        """
        updates = dict(fields or {})
        if 'status' in updates:
            updates['status'] = TicketStatus(updates['status']).value
        if 'priority' in updates:
            updates['priority'] = TicketPriority(updates['priority']).value
        updates['updated_at'] = datetime.now(timezone.utc).isoformat()

        row = await self.backend.update(TICKETS_TABLE, 'id', ticket_id, updates)
        return Ticket.from_dict(row)
