"""User model backing the identity store adapter.

Only the fields the verification core reads or writes are mapped.
"""

from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from verimail.infrastructure.persistence.base import BaseMutableModel
from verimail.infrastructure.persistence.types import UTCDateTime


class UserModel(BaseMutableModel):
    """Registered account."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Normalized (lowercase) email address",
    )

    confirmed_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
        default=None,
        comment="When the email address was verified",
    )

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, confirmed={self.confirmed_at is not None})>"
