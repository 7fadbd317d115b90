"""
Global exception handlers for the employee API.

- ServiceError -> outcome from the translator table
- RequestValidationError -> VALIDATION_FAILURE with per-field messages
- Exception (catch-all) -> UNEXPECTED, never leaks internal details
"""

from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gateway.context import UNKNOWN_CONTEXT, RequestContext
from gateway.services.errors import ErrorKind, ServiceError, ValidationError
from gateway.services.translator import ErrorOutcome, translate_error

CORRELATION_HEADER = "X-Correlation-ID"


def request_context(request: Request) -> RequestContext:
    return getattr(request.state, "ctx", None) or UNKNOWN_CONTEXT


def register_error_handlers(app: FastAPI, default_retry_after: int) -> None:
    """Register all global error handlers on the FastAPI app.

    Args:
        app: FastAPI app
        default_retry_after: Settings.default_retry_after
    """

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        ctx = request_context(request)
        outcome = translate_error(exc, default_retry_after)
        _log_outcome(ctx, outcome, exc)
        return _to_response(ctx, outcome)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        ctx = request_context(request)
        error = ValidationError("Validation failed", field_errors=_field_errors(exc))
        outcome = translate_error(error, default_retry_after)
        _log_outcome(ctx, outcome, error)
        return _to_response(ctx, outcome)

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        ctx = request_context(request)
        ctx.log.opt(exception=exc).error(
            f"Unhandled exception on {request.url.path}: {type(exc).__name__}"
        )
        return _to_response(ctx, translate_error(exc, default_retry_after))


def _field_errors(exc: RequestValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "path", "query")]
        name = ".".join(loc) or "body"
        errors.setdefault(name, error.get("msg", "invalid value"))
    return errors


def _log_outcome(ctx: RequestContext, outcome: ErrorOutcome, exc: ServiceError) -> None:
    message = f"{outcome.kind.value} ({outcome.status_code}): {exc.message}"
    if outcome.kind is ErrorKind.UNEXPECTED:
        ctx.log.opt(exception=exc).error(message)
    elif outcome.status_code >= 500:
        ctx.log.error(message)
    else:
        ctx.log.warning(message)


def _to_response(ctx: RequestContext, outcome: ErrorOutcome) -> JSONResponse:
    body = outcome.to_body()
    body["timestamp"] = datetime.now(timezone.utc).isoformat()
    body["correlation_id"] = ctx.correlation_id

    headers = {CORRELATION_HEADER: ctx.correlation_id}
    if outcome.retry_after is not None:
        headers["Retry-After"] = str(outcome.retry_after)

    return JSONResponse(status_code=outcome.status_code, content=body, headers=headers)
