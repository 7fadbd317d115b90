"""
Service layer exceptions.

Every failure the gateway can report is a ``ServiceError`` tagged with an
``ErrorKind``. Subclasses exist so call sites can write natural ``except``
clauses; translation to boundary outcomes looks only at ``kind``.
"""

from dataclasses import dataclass, field
from enum import Enum


class ErrorKind(str, Enum):
    """Error taxonomy shared by the client, service and boundary layers."""

    NOT_FOUND = "NOT_FOUND"
    VALIDATION_FAILURE = "VALIDATION_FAILURE"
    RATE_LIMITED = "RATE_LIMITED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    DELETION_CONFLICT = "DELETION_CONFLICT"
    UNEXPECTED = "UNEXPECTED"


@dataclass(frozen=True)
class ErrorEnvelope:
    """Structured, transport-neutral description of a failure."""

    kind: ErrorKind
    retryable: bool
    message: str
    upstream_status: int | None = None
    retry_after: float | None = None
    field_errors: dict[str, str] = field(default_factory=dict)


class ServiceError(Exception):
    """Base exception for service layer errors."""

    kind: ErrorKind = ErrorKind.UNEXPECTED
    # Whether the retrying client may repeat the upstream call
    retryable: bool = False

    def __init__(
        self,
        message: str,
        upstream_status: int | None = None,
        retry_after: float | None = None,
        field_errors: dict[str, str] | None = None,
    ):
        self.message = message
        self.upstream_status = upstream_status
        self.retry_after = retry_after
        self.field_errors = dict(field_errors or {})
        super().__init__(message)

    @property
    def envelope(self) -> ErrorEnvelope:
        return ErrorEnvelope(
            kind=self.kind,
            retryable=self.retryable,
            message=self.message,
            upstream_status=self.upstream_status,
            retry_after=self.retry_after,
            field_errors=dict(self.field_errors),
        )


class NotFoundError(ServiceError):
    """Requested employee is not in the current snapshot."""

    kind = ErrorKind.NOT_FOUND


class ValidationError(ServiceError):
    """Input rejected before reaching the upstream."""

    kind = ErrorKind.VALIDATION_FAILURE


class RateLimitError(ServiceError):
    """Upstream answered 429. Absorbed by the retrying client."""

    kind = ErrorKind.RATE_LIMITED
    retryable = True

    def __init__(self, message: str = "Rate limited", retry_after: float | None = None):
        super().__init__(message, upstream_status=429, retry_after=retry_after)


class ServiceUnavailableError(ServiceError):
    """Retries exhausted; the caller should come back after ``retry_after``."""

    kind = ErrorKind.SERVICE_UNAVAILABLE


class UpstreamError(ServiceError):
    """Non-retryable upstream failure: client-class status, bad body, timeout."""

    kind = ErrorKind.UPSTREAM_ERROR


class UpstreamServerError(UpstreamError):
    """Upstream answered 5xx. Retried with the same policy as 429."""

    retryable = True


class DeletionConflictError(ServiceError):
    """Upstream refused a delete-by-name; the outcome is ambiguous."""

    kind = ErrorKind.DELETION_CONFLICT


class UnexpectedError(ServiceError):
    """Anything outside the taxonomy. Its message is never shown to callers."""

    kind = ErrorKind.UNEXPECTED
