"""
Session module: auth state, profile provisioning and navigation intent.
"""

from supportdesk.session.coordinator import SessionCoordinator, SessionError, PROFILE_FETCH_DELAY
from supportdesk.session.navigation import NavigationIntent, compute_navigation_intent, is_public_path

__all__ = [
    'SessionCoordinator',
    'SessionError',
    'PROFILE_FETCH_DELAY',
    'NavigationIntent',
    'compute_navigation_intent',
    'is_public_path',
]
