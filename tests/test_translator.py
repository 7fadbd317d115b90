"""
Tests for the error taxonomy and its translation to boundary outcomes.
"""

import pytest

from gateway.services.errors import (
    DeletionConflictError,
    ErrorKind,
    NotFoundError,
    RateLimitError,
    ServiceUnavailableError,
    UnexpectedError,
    UpstreamError,
    UpstreamServerError,
    ValidationError,
)
from gateway.services.translator import OUTCOMES, SANITIZED_MESSAGE, translate_error
from gateway.settings import Settings

RETRY_AFTER = Settings().default_retry_after


class TestErrorEnvelope:
    """Every ServiceError carries a structured envelope."""

    def test_envelope_fields(self):
        error = ServiceUnavailableError("down", upstream_status=429, retry_after=2.0)

        envelope = error.envelope

        assert envelope.kind is ErrorKind.SERVICE_UNAVAILABLE
        assert envelope.retryable is False
        assert envelope.upstream_status == 429
        assert envelope.retry_after == 2.0
        assert envelope.message == "down"

    def test_rate_limit_is_retryable(self):
        assert RateLimitError().envelope.retryable is True
        assert RateLimitError().upstream_status == 429

    def test_server_error_shares_upstream_kind(self):
        error = UpstreamServerError("500", upstream_status=500)

        assert error.kind is ErrorKind.UPSTREAM_ERROR
        assert error.retryable is True
        assert isinstance(error, UpstreamError)

    def test_every_kind_has_an_outcome(self):
        assert set(OUTCOMES) == set(ErrorKind)


class TestTranslateError:
    """Kind -> status, title, message, retry hint."""

    @pytest.mark.parametrize(
        "error, status, title",
        [
            (NotFoundError("Employee not found with id: x"), 404, "Not Found"),
            (ValidationError("bad"), 400, "Bad Request"),
            (RateLimitError(), 429, "Too Many Requests"),
            (ServiceUnavailableError("down"), 503, "Service Unavailable"),
            (UpstreamError("Client error"), 502, "Bad Gateway"),
            (DeletionConflictError("Failed to delete"), 500, "Internal Server Error"),
            (UnexpectedError("secret"), 500, "Internal Server Error"),
        ],
    )
    def test_status_mapping(self, error, status, title):
        outcome = translate_error(error, RETRY_AFTER)

        assert outcome.status_code == status
        assert outcome.error == title
        assert outcome.kind is error.kind

    def test_not_found_has_no_retry_hint(self):
        assert translate_error(NotFoundError("gone"), RETRY_AFTER).retry_after is None

    def test_service_unavailable_uses_error_hint(self):
        outcome = translate_error(ServiceUnavailableError("down", retry_after=2.3), RETRY_AFTER)

        assert outcome.retry_after == 3

    def test_retry_hint_defaults_to_settings_value(self):
        assert translate_error(ServiceUnavailableError("down"), RETRY_AFTER).retry_after == 5

    def test_retry_hint_follows_configured_default(self):
        settings = Settings(RETRY_AFTER_DEFAULT=9)

        outcome = translate_error(RateLimitError(), settings.default_retry_after)

        assert outcome.retry_after == 9

    def test_default_is_required(self):
        with pytest.raises(TypeError):
            translate_error(RateLimitError())  # type: ignore[call-arg]

    def test_validation_lists_field_messages(self):
        error = ValidationError(
            "Validation failed",
            field_errors={"name": "must not be blank", "age": "too young"},
        )

        outcome = translate_error(error, RETRY_AFTER)

        assert outcome.message == "name: must not be blank, age: too young"
        assert outcome.to_body()["field_errors"] == {
            "name": "must not be blank",
            "age": "too young",
        }

    def test_upstream_message_is_prefixed(self):
        outcome = translate_error(UpstreamError("Client error while creating employee: bad"), RETRY_AFTER)

        assert outcome.message.startswith("External service error: ")

    def test_unexpected_message_is_sanitized(self):
        outcome = translate_error(UnexpectedError("password=hunter2"), RETRY_AFTER)

        assert outcome.message == SANITIZED_MESSAGE
        assert "hunter2" not in str(outcome.to_body())

    def test_foreign_exception_is_unexpected(self):
        outcome = translate_error(KeyError("internal detail"), RETRY_AFTER)

        assert outcome.kind is ErrorKind.UNEXPECTED
        assert outcome.status_code == 500
        assert outcome.message == SANITIZED_MESSAGE
