"""
Session Coordinator - Owns auth session, profile and role for the process.

Lifecycle:
- start(): read the current session, resolve its profile, mark the
  coordinator ready (always, even if resolution failed), then subscribe to
  auth state changes unless close() ran in the meantime. A second start()
  while one is in flight is a no-op.
- Each auth event replaces the session and re-resolves or clears the profile.
- close(): release the auth subscription exactly once.

Profile provisioning is idempotent: two near-simultaneous first sign-ins
race on the insert, and the loser adopts the winner's row instead of failing.

Construct one coordinator at start-up and pass it to whatever needs it.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional, Set

from supabase import AuthError

from supportdesk.database.errors import BackendError
from supportdesk.models.profile import Profile, UserRole
from supportdesk.service.profile_service import ProfileService
from supportdesk.session.navigation import (
    NavigationIntent,
    NO_REDIRECT,
    compute_navigation_intent,
)
from supportdesk.utils.constants import Credentials

logger = logging.getLogger(__name__)

# Small pause before the first profile fetch; lowers the odds of two
# first-sign-in paths inserting at once. Conflicts are still handled.
PROFILE_FETCH_DELAY = 0.05


class SessionError(Exception):
    """An auth operation (sign up/in/out, password reset) failed."""


class SessionCoordinator:
    def __init__(
        self,
        supabase_client,
        profile_service: ProfileService,
        navigator: Optional[Callable[[str], None]] = None,
        location: str = '/',
        site_url: Optional[str] = None,
    ):
        """
        Initialize the coordinator.

        Args:
            supabase_client: Supabase AsyncClient (only .auth is used)
            profile_service: Profile fetch/create access
            navigator: Called with a path whenever a redirect is due
            location: Current path of the app
            site_url: Base URL for password reset links
        """
        self.auth = supabase_client.auth
        self.profiles = profile_service
        self.navigator = navigator
        self.location = location or '/'
        self.site_url = site_url or Credentials().SITE_URL

        self.session = None
        self.user = None
        self.profile: Optional[Profile] = None
        self.role: Optional[str] = None
        self.initialized = False
        self.loading = True
        self.navigation_intent: NavigationIntent = NO_REDIRECT

        self._subscription = None
        self._starting = False
        self._closed = False
        self._pending: Set[asyncio.Task] = set()

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None and self.user is not None

    def snapshot(self) -> Dict[str, Any]:
        """Current state for consumers."""
        return {
            "is_authenticated": self.is_authenticated,
            "user_id": self.user.id if self.user else None,
            "profile": self.profile.to_dict() if self.profile else None,
            "role": self.role,
            "initialized": self.initialized,
            "loading": self.loading,
        }

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Bootstrap from the stored session, then follow auth events."""
        if self._starting or self._subscription is not None or self._closed:
            return
        self._starting = True

        try:
            session = await self.auth.get_session()
            self._set_session(session)

            if self.user:
                await self.resolve_profile(self.user.id, self.user.email)
        except Exception as e:
            logger.error(f"Error initializing auth state: {e}")
        finally:
            self.initialized = True
            self.loading = False
            self._starting = False

        # close() ran while bootstrapping
        if self._closed:
            logger.info("Session coordinator closed during start, not subscribing")
            return

        self._subscription = self.auth.on_auth_state_change(self._on_auth_state_change)
        logger.info(f"Session coordinator ready (authenticated={self.is_authenticated}, role={self.role})")
        self._refresh_navigation()

    async def close(self) -> None:
        """Release the auth subscription and wait for in-flight event handling."""
        if self._closed:
            return
        self._closed = True

        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def __aenter__(self) -> "SessionCoordinator":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _on_auth_state_change(self, event, session) -> None:
        # Listeners are invoked synchronously; handle the event on the loop
        if self._closed:
            return
        task = asyncio.get_running_loop().create_task(self._handle_auth_event(event, session))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _handle_auth_event(self, event, session) -> None:
        logger.info(f"Auth event: {event}")
        self._set_session(session)

        if self.user:
            if self.profile is not None and self.profile.id != self.user.id:
                self.profile = None
                self.role = None
            await self.resolve_profile(self.user.id, self.user.email)
        else:
            self.profile = None
            self.role = None

        self._refresh_navigation()

    def _set_session(self, session) -> None:
        self.session = session
        self.user = getattr(session, "user", None) if session else None

    # =========================================================================
    # Profile resolution
    # =========================================================================

    async def resolve_profile(self, user_id: str, email: Optional[str]) -> Optional[Profile]:
        """
        Fetch the user's profile, creating a customer profile if none exists.

        Never raises: an authenticated user without a profile is a valid
        state and leaves profile/role unset.
        """
        await asyncio.sleep(PROFILE_FETCH_DELAY)

        profile = await self._fetch_profile(user_id)

        if profile is None and email:
            logger.info(f"No profile found for {user_id}, creating one with default customer type")
            try:
                profile = await self.profiles.create_profile(user_id, email, UserRole.CUSTOMER.value)
            except BackendError as e:
                logger.error(f"Error creating profile for {user_id}: {e}")
                profile = None

            if profile is None:
                # Another path may have created it, or the insert is not visible yet
                profile = await self._fetch_profile(user_id)

        if profile is None:
            logger.warning(f"Could not resolve a profile for user {user_id}")
            return None

        self._adopt_profile(user_id, profile)
        return profile

    async def _fetch_profile(self, user_id: str) -> Optional[Profile]:
        try:
            return await self.profiles.get_profile(user_id)
        except BackendError as e:
            logger.error(f"Error fetching profile for {user_id}: {e}")
            return None

    def _adopt_profile(self, user_id: str, profile: Profile) -> None:
        # A resolution that finishes after sign-out or a user switch is stale
        if not self.user or self.user.id != user_id:
            logger.info(f"Discarding profile for {user_id}, session has changed")
            return
        self.profile = profile
        self.role = profile.role
        self._refresh_navigation()

    # =========================================================================
    # Navigation
    # =========================================================================

    def set_location(self, path: str) -> NavigationIntent:
        """Record a location change and apply any redirect it triggers."""
        self.location = path or '/'
        return self._refresh_navigation()

    def _refresh_navigation(self) -> NavigationIntent:
        if not self.initialized or self.loading:
            return NO_REDIRECT

        intent = compute_navigation_intent(self.is_authenticated, self.role, self.location)
        self.navigation_intent = intent
        if intent.should_redirect:
            self._navigate(intent.redirect_to)
        return intent

    def _navigate(self, path: str) -> None:
        # navigation_intent keeps the intent that caused this redirect
        if path == self.location:
            return
        logger.debug(f"Redirecting from {self.location} to {path}")
        self.location = path
        if self.navigator:
            self.navigator(path)

    # =========================================================================
    # Auth operations
    # =========================================================================

    async def sign_up(self, email: str, password: str, role: str) -> Optional[Profile]:
        """
        Create credentials and a profile with the requested role.

        Does not sign the user in.

        Raises:
            ValueError: Unknown role
            SessionError: Sign-up or profile setup failed
        """
        role = UserRole(role).value

        self.loading = True
        try:
            response = await self.auth.sign_up({"email": email, "password": password})
            user = getattr(response, "user", None)
            if not user:
                return None

            profile = await self.profiles.create_profile(user.id, email, role)
            if profile is None:
                raise SessionError("Account created but profile setup failed")

            logger.info(f"Created {role} account for {email}")
            return profile
        except AuthError as e:
            logger.error(f"Error signing up: {e}")
            raise SessionError(str(e) or "Error creating account") from e
        except BackendError as e:
            logger.error(f"Account created but profile setup failed: {e}")
            raise SessionError("Account created but profile setup failed") from e
        finally:
            self.loading = False
            self._refresh_navigation()

    async def sign_in(self, email: str, password: str) -> None:
        """
        Authenticate with email and password.

        Session state is updated by the auth event stream, not here.

        Raises:
            SessionError: Sign-in was rejected
        """
        self.loading = True
        try:
            await self.auth.sign_in_with_password({"email": email, "password": password})
            logger.info(f"Signed in {email}")
        except AuthError as e:
            logger.error(f"Error signing in: {e}")
            raise SessionError(str(e) or "Error signing in") from e
        finally:
            self.loading = False
            self._refresh_navigation()

    async def sign_out(self) -> None:
        """
        End the session and go back to the login page.

        Raises:
            SessionError: Sign-out was rejected
        """
        self.loading = True
        try:
            await self.auth.sign_out()
            logger.info("Signed out")
        except AuthError as e:
            logger.error(f"Error signing out: {e}")
            raise SessionError(str(e) or "Error signing out") from e
        else:
            # The SIGNED_OUT event will clear these too
            self._set_session(None)
            self.profile = None
            self.role = None
            self._navigate('/')
        finally:
            self.loading = False
            self._refresh_navigation()

    async def send_password_reset(self, email: str, redirect_to: Optional[str] = None) -> None:
        """
        Email a password reset link.

        Raises:
            SessionError: The request was rejected
        """
        redirect_to = redirect_to or f"{self.site_url.rstrip('/')}/#/"
        try:
            await self.auth.reset_password_for_email(email, {"redirect_to": redirect_to})
        except AuthError as e:
            logger.error(f"Error sending reset email: {e}")
            raise SessionError(str(e) or "Failed to send password reset email") from e

    async def update_profile(self, full_name: Optional[str] = None, avatar_url: Optional[str] = None) -> Profile:
        """
        Update the signed-in user's profile and adopt the stored row.

        Raises:
            SessionError: Nobody is signed in
            BackendError: The update failed
        """
        if not self.user:
            raise SessionError("Not signed in")

        fields = {}
        if full_name is not None:
            fields["full_name"] = full_name
        if avatar_url is not None:
            fields["avatar_url"] = avatar_url

        profile = await self.profiles.update_profile(self.user.id, **fields)
        self._adopt_profile(self.user.id, profile)
        return profile
