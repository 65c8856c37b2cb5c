import logging
from typing import Optional

from supportdesk.database.backend import SupabaseBackend
from supportdesk.database.errors import BackendError
from supportdesk.models.message import Message, Attachment
from supportdesk.models.profile import UserRole
from supportdesk.models.ticket import Ticket, TicketStatus
from supportdesk.service.ticket_service import TicketService
from supportdesk.utils.async_helpers import best_effort
from supportdesk.utils.constants import MESSAGES_TABLE, ATTACHMENTS_TABLE

logger = logging.getLogger(__name__)


class MessageService:
    def __init__(self, backend: SupabaseBackend, ticket_service: Optional[TicketService] = None):
        self.backend = backend
        self.tickets = ticket_service or TicketService(backend)

    async def create_message(self, ticket_id: str, sender_id: str, content: str) -> Message:
        """
        Add a message to a ticket.

        The ticket's updated_at is refreshed afterwards as a best-effort
        side effect; if that fails the message is still returned.

        Raises:
            BackendError: The message could not be stored
        """
        row = await self.backend.insert(MESSAGES_TABLE, {
            'ticket_id': ticket_id,
            'sender_id': sender_id,
            'content': content,
        })
        message = Message.from_dict(row)

        await best_effort(
            self.tickets.update_ticket(ticket_id, {}),
            f"timestamp refresh for ticket {ticket_id}",
        )

        return message

    async def reply_to_ticket(self, ticket: Ticket, sender_id: str, sender_role: str, content: str) -> Message:
        """
        Post a reply from the thread view.

        A customer replying to a resolved ticket reopens it before the
        message is recorded.

        Raises:
            ValueError: Empty reply
            BackendError: Reopening the ticket or storing the message failed
        """
        if not content or not content.strip():
            raise ValueError("Reply content is required")

        if ticket.is_resolved and sender_role == UserRole.CUSTOMER.value:
            reopened = await self.tickets.update_ticket(ticket.id, {'status': TicketStatus.OPEN.value})
            ticket.status = reopened.status
            ticket.updated_at = reopened.updated_at
            logger.info(f"Ticket {ticket.id} reopened by customer reply")

        message = await self.create_message(ticket.id, sender_id, content)
        ticket.messages = list(ticket.messages) + [message]
        ticket.message_count = len(ticket.messages)
        ticket.last_message = message
        return message

    async def upload_attachment(
        self,
        file_bytes: bytes,
        file_name: str,
        file_size: int,
        message_id: str,
    ) -> Attachment:
        """
        Store a file and record it against a message.

        The blob is written first; if the record insert then fails the blob
        stays in storage.

        Raises:
            BackendError: The upload or the record insert failed
        """
        file_path = Attachment.storage_path(message_id, file_name)
        await self.backend.store_blob(file_path, file_bytes)

        try:
            row = await self.backend.insert(ATTACHMENTS_TABLE, {
                'message_id': message_id,
                'name': file_name,
                'file_path': file_path,
                'size': file_size,
            })
        except BackendError:
            logger.error(f"Attachment record for {file_path} failed, blob left in storage")
            raise

        return Attachment.from_dict(row)
