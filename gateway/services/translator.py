"""
Maps service errors to boundary-facing outcomes.

``OUTCOMES`` is the single source of truth for how each ErrorKind is
presented; the HTTP layer only copies the result onto a response.
"""

import math
from dataclasses import dataclass, field

from gateway.services.errors import ErrorKind, ServiceError, UnexpectedError

SANITIZED_MESSAGE = "An unexpected error occurred"


@dataclass(frozen=True)
class _Rule:
    status_code: int
    error: str
    retry_hint: bool = False
    sanitize: bool = False
    message_prefix: str = ""


OUTCOMES: dict[ErrorKind, _Rule] = {
    ErrorKind.NOT_FOUND: _Rule(404, "Not Found"),
    ErrorKind.VALIDATION_FAILURE: _Rule(400, "Bad Request"),
    ErrorKind.RATE_LIMITED: _Rule(429, "Too Many Requests", retry_hint=True),
    ErrorKind.SERVICE_UNAVAILABLE: _Rule(503, "Service Unavailable", retry_hint=True),
    ErrorKind.UPSTREAM_ERROR: _Rule(502, "Bad Gateway", message_prefix="External service error: "),
    ErrorKind.DELETION_CONFLICT: _Rule(500, "Internal Server Error"),
    ErrorKind.UNEXPECTED: _Rule(500, "Internal Server Error", sanitize=True),
}


@dataclass(frozen=True)
class ErrorOutcome:
    """What the boundary should report for a failure."""

    kind: ErrorKind
    status_code: int
    error: str
    message: str
    retry_after: int | None = None
    field_errors: dict[str, str] = field(default_factory=dict)

    def to_body(self) -> dict:
        body = {
            "status": self.status_code,
            "error": self.error,
            "message": self.message,
        }
        if self.field_errors:
            body["field_errors"] = dict(self.field_errors)
        return body


def translate_error(exc: BaseException, default_retry_after: int) -> ErrorOutcome:
    """
    Translate any exception; anything outside the taxonomy is UNEXPECTED.

    ``default_retry_after`` is ``Settings.default_retry_after``, used when a
    retryable outcome carries no hint of its own.
    """
    if not isinstance(exc, ServiceError):
        exc = UnexpectedError(str(exc))

    envelope = exc.envelope
    rule = OUTCOMES[envelope.kind]

    if rule.sanitize:
        message = SANITIZED_MESSAGE
    elif envelope.kind is ErrorKind.VALIDATION_FAILURE and envelope.field_errors:
        message = ", ".join(f"{name}: {msg}" for name, msg in envelope.field_errors.items())
    else:
        message = f"{rule.message_prefix}{envelope.message}"

    retry_after = None
    if rule.retry_hint:
        retry_after = (
            max(1, math.ceil(envelope.retry_after))
            if envelope.retry_after
            else default_retry_after
        )

    return ErrorOutcome(
        kind=envelope.kind,
        status_code=rule.status_code,
        error=rule.error,
        message=message,
        retry_after=retry_after,
        field_errors=dict(envelope.field_errors),
    )
