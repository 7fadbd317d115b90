"""
Tests for UpstreamClient: one upstream call per operation, classified results.
"""

import json
import uuid

import httpx
import pytest

from gateway.services.client import UpstreamClient
from gateway.services.errors import (
    RateLimitError,
    UpstreamError,
    UpstreamServerError,
)
from tests.conftest import BASE_URL, employee_payload


def ok(data, status: str = "Successfully processed request.") -> httpx.Response:
    return httpx.Response(200, json={"data": data, "status": status})


class TestListAll:
    """GET /employee."""

    async def test_returns_employees(self, upstream, upstream_client):
        employee_id = uuid.uuid4()
        upstream.queue(ok([employee_payload("John Doe", employee_id=employee_id)]))

        result = await upstream_client.list_all()

        assert len(result) == 1
        assert result[0].id == employee_id
        assert result[0].name == "John Doe"
        assert result[0].email == "john@company.com"
        assert upstream.requests[0].method == "GET"
        assert str(upstream.requests[0].url) == "http://upstream.test/api/v1/employee"

    async def test_trailing_slash_is_stripped_from_base_url(self, upstream):
        upstream.queue(ok([]))
        client = UpstreamClient(BASE_URL + "/", transport=httpx.MockTransport(upstream))

        try:
            await client.list_all()
        finally:
            await client.close()

        assert str(upstream.requests[0].url) == BASE_URL

    async def test_null_data_returns_empty_list(self, upstream, upstream_client):
        upstream.queue(ok(None))

        assert await upstream_client.list_all() == []

    async def test_429_raises_rate_limit(self, upstream, upstream_client):
        upstream.queue(httpx.Response(429, text="Rate limited", headers={"Retry-After": "7"}))

        with pytest.raises(RateLimitError) as exc_info:
            await upstream_client.list_all()

        assert exc_info.value.retryable is True
        assert exc_info.value.retry_after == 7.0
        assert "Rate limited" in exc_info.value.message
        assert upstream.call_count == 1

    async def test_other_4xx_is_non_retryable(self, upstream, upstream_client):
        upstream.queue(httpx.Response(400, text="Bad request"))

        with pytest.raises(UpstreamError) as exc_info:
            await upstream_client.list_all()

        assert not isinstance(exc_info.value, UpstreamServerError)
        assert exc_info.value.retryable is False
        assert exc_info.value.upstream_status == 400
        assert "Client error" in exc_info.value.message

    async def test_5xx_is_retryable_server_error(self, upstream, upstream_client):
        upstream.queue(httpx.Response(503, text="down"))

        with pytest.raises(UpstreamServerError) as exc_info:
            await upstream_client.list_all()

        assert exc_info.value.retryable is True
        assert exc_info.value.upstream_status == 503

    async def test_malformed_json_is_upstream_error(self, upstream, upstream_client):
        upstream.queue(httpx.Response(200, content=b"{not json"))

        with pytest.raises(UpstreamError) as exc_info:
            await upstream_client.list_all()

        assert exc_info.value.retryable is False
        assert "Malformed" in exc_info.value.message

    async def test_wrong_shape_is_upstream_error(self, upstream, upstream_client):
        upstream.queue(ok([{"employee_name": "no id"}]))

        with pytest.raises(UpstreamError) as exc_info:
            await upstream_client.list_all()

        assert "Unparseable" in exc_info.value.message

    async def test_timeout_is_not_retryable(self, upstream, upstream_client):
        upstream.queue(httpx.ReadTimeout("slow"))

        with pytest.raises(UpstreamError) as exc_info:
            await upstream_client.list_all()

        assert exc_info.value.retryable is False
        assert "timed out" in exc_info.value.message

    async def test_connection_error_is_upstream_error(self, upstream, upstream_client):
        upstream.queue(httpx.ConnectError("refused"))

        with pytest.raises(UpstreamError):
            await upstream_client.list_all()


class TestCreate:
    """POST /employee."""

    async def test_returns_created_employee(self, upstream, upstream_client, create_request):
        employee_id = uuid.uuid4()
        upstream.queue(ok(employee_payload("New Employee", 55000, employee_id=employee_id)))

        result = await upstream_client.create(create_request)

        assert result.id == employee_id
        assert result.name == "New Employee"
        body = json.loads(upstream.requests[0].content)
        assert body == {"name": "New Employee", "salary": 55000, "age": 25, "title": "Developer"}

    async def test_null_data_is_upstream_error(self, upstream, upstream_client, create_request):
        upstream.queue(ok(None))

        with pytest.raises(UpstreamError) as exc_info:
            await upstream_client.create(create_request)

        assert "Failed to create employee" in exc_info.value.message

    async def test_429_raises_rate_limit(self, upstream, upstream_client, create_request):
        upstream.queue(httpx.Response(429, text="Rate limited"))

        with pytest.raises(RateLimitError):
            await upstream_client.create(create_request)


class TestDeleteByName:
    """DELETE /employee with a name body."""

    async def test_true_when_deleted(self, upstream, upstream_client):
        upstream.queue(ok(True))

        assert await upstream_client.delete_by_name("John Doe") is True

        request = upstream.requests[0]
        assert request.method == "DELETE"
        assert json.loads(request.content) == {"name": "John Doe"}

    async def test_false_when_upstream_reports_false(self, upstream, upstream_client):
        upstream.queue(ok(False))

        assert await upstream_client.delete_by_name("Ghost") is False

    async def test_non_boolean_data_is_false(self, upstream, upstream_client):
        upstream.queue(ok("yes"))

        assert await upstream_client.delete_by_name("John Doe") is False
