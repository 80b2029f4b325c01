"""LoggerProtocol definition for structured logging.

Backend-agnostic port for the structured log side channel. Audit write
failures, limiter outages and mail failures are reported here.

Log Levels:
    - DEBUG: Diagnostic detail (dev only)
    - INFO: Normal verification events
    - WARNING: Degraded service (limiter unavailable, mail retry advised)
    - ERROR: Operation failed, service continues
    - CRITICAL: Inconsistent state needing attention

Security:
    - NEVER log raw verification tokens; log ``token_preview`` (8 chars)
      or ``token_id``
    - Email addresses are logged only at INFO and above when needed to
      trace delivery

Usage:
    logger: LoggerProtocol = get_logger()
    logger.info("verification_token_issued", subject_id=str(subject_id))

    request_logger = logger.bind(source_ip=source_ip)
    request_logger.warning("resend_rate_limited", retry_after=1800)
"""

from __future__ import annotations

from typing import Any, Protocol


class LoggerProtocol(Protocol):
    """Protocol for structured logging adapters.

    All calls are structured: message plus key-value context.
    """

    def debug(self, message: str, /, **context: Any) -> None:
        """Log a debug-level message."""
        ...

    def info(self, message: str, /, **context: Any) -> None:
        """Log an info-level message."""
        ...

    def warning(self, message: str, /, **context: Any) -> None:
        """Log a warning-level message."""
        ...

    def error(
        self, message: str, /, *, error: Exception | None = None, **context: Any
    ) -> None:
        """Log an error-level message with optional exception details.

        Args:
            message: Human-readable message.
            error: Exception whose type and text are added to the context.
            **context: Structured key-value context fields.
        """
        ...

    def critical(
        self, message: str, /, *, error: Exception | None = None, **context: Any
    ) -> None:
        """Log a critical-level message with optional exception details."""
        ...

    def bind(self, **context: Any) -> LoggerProtocol:
        """Return a logger that includes ``context`` in every entry."""
        ...
