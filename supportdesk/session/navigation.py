"""Where the app should send the user, given auth state, role and location."""

from dataclasses import dataclass
from typing import Optional

from supportdesk.utils.constants import PUBLIC_PATHS


@dataclass(frozen=True)
class NavigationIntent:
    redirect_to: Optional[str] = None

    @property
    def should_redirect(self) -> bool:
        return self.redirect_to is not None


NO_REDIRECT = NavigationIntent()


def is_public_path(path: str) -> bool:
    if path == '/':
        return True
    return any(path.startswith(p) for p in PUBLIC_PATHS if p != '/')


def _within(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + '/')


def compute_navigation_intent(authenticated: bool, role: Optional[str], path: str) -> NavigationIntent:
    """
    Pure routing decision.

    - Signed out on a non-public path: go to the login page at '/'.
    - Signed in with a known role on '/' or outside '/{role}': go to '/{role}'.
    - Anything else: stay.
    """
    path = path or '/'

    if not authenticated:
        if not is_public_path(path):
            return NavigationIntent('/')
        return NO_REDIRECT

    if role:
        home = f'/{role}'
        if path == '/' or not _within(path, home):
            return NavigationIntent(home)

    return NO_REDIRECT
