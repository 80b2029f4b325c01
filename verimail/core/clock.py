"""Injectable UTC clock.

Components that compare against "now" take a ``clock`` callable so expiry
and window boundaries can be tested at exact instants.
"""

from collections.abc import Callable
from datetime import UTC, datetime

type Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)
