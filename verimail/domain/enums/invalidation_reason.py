"""Why an unused token stopped being valid."""

from enum import Enum


class InvalidationReason(str, Enum):
    """Recorded alongside `invalidated_at`."""

    SUPERSEDED = "superseded"  # a newer token was issued
    REVOKED = "revoked"  # administrative action
