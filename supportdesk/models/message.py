from typing import Optional, Dict, Any, List
from datetime import datetime

from supportdesk.models.base_model import BaseModel


class Message(BaseModel):
    """
    Represents a message in a ticket thread.
    Maps to the messages table.
    """

    RELATED_FIELDS = ('sender', 'attachments')

    def __init__(self):
        self.id: str = None
        self.ticket_id: str = None
        self.sender_id: str = None
        self.content: str = None
        self.created_at: Optional[datetime] = None

        # Related data (populated when needed)
        self.sender = None
        self.attachments: List['Attachment'] = []

    def to_view(self) -> Dict[str, Any]:
        data = self.to_dict()
        data['sender'] = self.sender.to_dict() if self.sender else None
        data['attachments'] = [a.to_dict() for a in self.attachments]
        return data


class Attachment(BaseModel):
    """
    Represents a file attached to a message.
    Maps to the attachments table; the blob lives in storage at file_path.
    """

    def __init__(self):
        self.id: str = None
        self.message_id: str = None
        self.name: str = None
        self.file_path: str = None
        self.size: int = 0
        self.created_at: Optional[datetime] = None

    @staticmethod
    def storage_path(message_id: str, file_name: str) -> str:
        return f"{message_id}/{file_name}"
