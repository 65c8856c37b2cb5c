"""
Helpers that make partial-failure policy explicit at the call site.

- degrade(): auxiliary lookups whose failure falls back to a default
- best_effort(): secondary side effects whose failure is logged, never raised
"""

import logging
from typing import Any, Awaitable, Optional, TypeVar

from supportdesk.database.errors import BackendError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def degrade(awaitable: Awaitable[T], default: T, what: str) -> T:
    """Await an auxiliary lookup, returning default if the backend fails."""
    try:
        return await awaitable
    except BackendError as e:
        logger.warning(f"Could not load {what}, using default: {e}")
        return default


async def best_effort(awaitable: Awaitable[Any], what: str) -> Optional[Any]:
    """Await a secondary operation; failures are logged and swallowed."""
    try:
        return await awaitable
    except BackendError as e:
        logger.warning(f"Best-effort {what} failed: {e}")
        return None
