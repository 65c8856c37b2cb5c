from enum import Enum
from typing import Optional
from datetime import datetime

from supportdesk.models.base_model import BaseModel


class UserRole(Enum):
    """Roles a profile can hold."""
    ADMIN = "admin"
    CUSTOMER = "customer"


class Profile(BaseModel):
    """
    Identity record for an authenticated user.
    Maps to the profiles table; the role lives in the user_type column.
    """

    def __init__(self):
        self.id: str = None
        self.email: str = None
        self.full_name: Optional[str] = None
        self.avatar_url: Optional[str] = None
        self.user_type: str = UserRole.CUSTOMER.value
        self.created_at: Optional[datetime] = None
        self.updated_at: Optional[datetime] = None

    @property
    def role(self) -> Optional[str]:
        return self.user_type or None

    @property
    def is_admin(self) -> bool:
        return self.user_type == UserRole.ADMIN.value

    @property
    def display_name(self) -> str:
        """Full name, falling back to the email address."""
        return self.full_name or self.email or ''
