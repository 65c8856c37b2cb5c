import logging
from typing import Dict, Iterable, Optional
from datetime import datetime, timezone

from supportdesk.database.backend import SupabaseBackend
from supportdesk.database.errors import ConflictError
from supportdesk.models.profile import Profile, UserRole
from supportdesk.utils.constants import PROFILES_TABLE

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, backend: SupabaseBackend):
        self.backend = backend
        self.table_name = PROFILES_TABLE

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        """Get a profile by user ID, or None if none exists."""
        row = await self.backend.fetch_one(self.table_name, "id", user_id)
        if row is None:
            logger.debug(f"No profile found for user {user_id}")
            return None
        return Profile.from_dict(row)

    async def get_profiles(self, user_ids: Iterable[str]) -> Dict[str, Profile]:
        """Batch-fetch profiles and return them keyed by ID."""
        ids = {user_id for user_id in user_ids if user_id}
        rows = await self.backend.select_in(self.table_name, "id", ids)
        return {row["id"]: Profile.from_dict(row) for row in rows}

    async def create_profile(self, user_id: str, email: str, role: str) -> Optional[Profile]:
        """
        Create a profile, adopting the existing row if one is already there.

        A unique violation means a concurrent sign-in created the row between
        our check and our insert; the row it created is returned.

        Raises:
            ValueError: role is not a known role
            BackendError: the insert failed for any other reason
        """
        role = UserRole(role).value

        existing = await self.get_profile(user_id)
        if existing:
            logger.info(f"Profile already exists for user {user_id}, returning existing profile")
            return existing

        try:
            row = await self.backend.insert_single(self.table_name, {
                "id": user_id,
                "email": email,
                "user_type": role,
            })
        except ConflictError:
            logger.info(f"Profile for user {user_id} was created concurrently, fetching it again")
            return await self.get_profile(user_id)

        return Profile.from_dict(row)

    async def update_profile(self, user_id: str, **fields) -> Profile:
        """
        Update profile fields in place.

        Raises:
            ValueError: user_type is not a known role
            NotFoundError: no profile with this ID
        """
        if "user_type" in fields:
            fields["user_type"] = UserRole(fields["user_type"]).value

        fields["updated_at"] = datetime.now(timezone.utc).isoformat()
        row = await self.backend.update(self.table_name, "id", user_id, fields)
        return Profile.from_dict(row)
