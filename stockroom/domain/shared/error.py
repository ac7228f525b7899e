"""Error hierarchy for Stockroom.

Error layers:
- StockroomError: Base class for all Stockroom errors
- DomainError: Business rule violations, validation failures
- InfrastructureError: System-level failures like remote API or network issues

Adapters translate transport failures into InfrastructureError subclasses so the
domain never sees httpx exceptions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from stockroom.domain.user.model.reconciliation import ReconciliationReport


class StockroomError(Exception):
    """Base class for all Stockroom errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors (business logic violations)
# =============================================================================


class DomainError(StockroomError):
    """Base class for domain/business errors."""


class NotFoundError(DomainError):
    """Resource not found."""


class ValidationError(DomainError):
    """Input validation failed."""

    def __init__(self, message: str, field: str | None = None, code: str | None = None) -> None:
        super().__init__(message, code=code or "VALIDATION_ERROR")
        self.field = field


class InvalidStateError(DomainError):
    """Operation not allowed in current state."""


class ConflictError(DomainError):
    """Resource already exists (e.g. duplicate active assignment)."""


class AuthorizationError(DomainError):
    """User not authorized for this operation."""


class PartialFailureError(DomainError):
    """Some relationship changes in a batch, or their audit entries, were not applied."""

    def __init__(
        self, report: "ReconciliationReport", history_errors: list[str] | None = None
    ) -> None:
        not_applied = report.failed + report.skipped
        self.history_errors = list(history_errors or [])
        parts = []
        if not_applied:
            listed = ", ".join(str(o.operation) for o in not_applied)
            parts.append(f"{len(not_applied)} assignment change(s) not applied: {listed}")
        if self.history_errors:
            parts.append(
                f"{len(self.history_errors)} history entr"
                f"{'y' if len(self.history_errors) == 1 else 'ies'} not recorded: "
                + "; ".join(self.history_errors)
            )
        super().__init__(". ".join(parts), code="partial_failure")
        self.report = report


# =============================================================================
# Infrastructure Errors (system-level failures)
# =============================================================================


class InfrastructureError(StockroomError):
    """Base class for infrastructure/system errors."""


class TransportError(InfrastructureError):
    """Opaque failure of a remote repository call (timeout, 5xx, connection)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, code="transport_error")
        self.status_code = status_code


class HistoryRecordingError(InfrastructureError):
    """One or more history entries could not be persisted."""

    def __init__(self, recorded: list[Any], failures: list[tuple[Any, StockroomError]]) -> None:
        super().__init__(
            f"{len(failures)} history entr{'y' if len(failures) == 1 else 'ies'} not recorded",
            code="history_not_recorded",
        )
        self.recorded = recorded
        self.failures = failures


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""
