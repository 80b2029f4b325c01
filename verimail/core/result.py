"""Result types for railway-oriented programming.

Operations that can fail return a Result instead of raising. Callers
pattern-match on the outcome, which keeps every failure branch explicit
and testable.

Usage:
    def consume(secret: str) -> Result[VerificationTokenData, TokenConsumeError]:
        if not secret:
            return Failure(error=TokenConsumeError(...))
        return Success(value=token)

    match await store.consume(secret):
        case Success(value=token):
            ...
        case Failure(error=error):
            ...
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")  # Success type
E = TypeVar("E")  # Error type


@dataclass(frozen=True, slots=True, kw_only=True)
class Success(Generic[T]):
    """Represents a successful operation result.

    Attributes:
        value: The successful result value.
    """

    value: T


@dataclass(frozen=True, slots=True, kw_only=True)
class Failure(Generic[E]):
    """Represents a failed operation result.

    Attributes:
        error: The error that occurred.
    """

    error: E


type Result[T, E] = Success[T] | Failure[E]
