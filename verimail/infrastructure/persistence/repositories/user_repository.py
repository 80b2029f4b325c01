"""UserRepository - SQLAlchemy implementation of the identity store port.

The verification core only reads users and sets ``confirmed_at``.
"""

from datetime import datetime
from typing import Any, cast
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from verimail.core.enums import ErrorCode
from verimail.core.result import Failure, Result, Success
from verimail.domain.errors import StorageError
from verimail.domain.protocols.identity_store_protocol import SubjectData
from verimail.infrastructure.persistence.models.user import UserModel


def _to_data(model: UserModel) -> SubjectData:
    """Convert database model to domain DTO."""
    return SubjectData(
        id=model.id,
        email=model.email,
        confirmed_at=model.confirmed_at,
    )


def _storage_error(operation: str, error: Exception) -> StorageError:
    return StorageError(
        code=ErrorCode.STORAGE_ERROR,
        message=f"Identity store {operation} failed",
        operation=operation,
        details={"error_type": type(error).__name__},
    )


class UserRepository:
    """SQLAlchemy implementation of IdentityStoreProtocol.

    Attributes:
        session: SQLAlchemy async session for database operations.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def find_by_email(self, email: str) -> Result[SubjectData | None, StorageError]:
        """Find user by email (case-insensitive).

        Args:
            email: Email address.

        Returns:
            Success(SubjectData | None) or Failure(StorageError).
        """
        stmt = (
            select(UserModel)
            .where(UserModel.email == email.lower())
            .execution_options(populate_existing=True)
        )
        try:
            model = (await self.session.execute(stmt)).scalar_one_or_none()
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            return Failure(error=_storage_error("find_by_email", e))
        return Success(value=_to_data(model) if model else None)

    async def find_by_id(self, subject_id: UUID) -> Result[SubjectData | None, StorageError]:
        """Find user by id."""
        stmt = (
            select(UserModel)
            .where(UserModel.id == subject_id)
            .execution_options(populate_existing=True)
        )
        try:
            model = (await self.session.execute(stmt)).scalar_one_or_none()
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            return Failure(error=_storage_error("find_by_id", e))
        return Success(value=_to_data(model) if model else None)

    async def mark_confirmed(
        self, subject_id: UUID, at: datetime
    ) -> Result[bool, StorageError]:
        """Set confirmed_at unless already set.

        The ``confirmed_at IS NULL`` guard makes retries harmless: the
        subject is confirmed exactly once.

        Args:
            subject_id: User id.
            at: Confirmation time (UTC).

        Returns:
            Success(True) if this call confirmed the user, Success(False)
            otherwise, or Failure(StorageError).
        """
        try:
            result = await self.session.execute(
                update(UserModel)
                .where(UserModel.id == subject_id)
                .where(UserModel.confirmed_at.is_(None))
                .values(confirmed_at=at)
                .execution_options(synchronize_session=False)
            )
            confirmed = (cast(Any, result).rowcount or 0) == 1
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            return Failure(error=_storage_error("mark_confirmed", e))
        return Success(value=confirmed)
