"""
UpstreamClient - async HTTP client for the upstream Employee API.

Issues exactly one upstream call per operation and classifies the outcome
into the service error taxonomy. Retrying is layered on top by
``RetryingClient``; this class never repeats a call.
"""

from typing import Any, TypeVar

import httpx
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from gateway.context import UNKNOWN_CONTEXT, RequestContext
from gateway.models import ApiResponse, CreateEmployeeRequest, Employee
from gateway.services.errors import (
    RateLimitError,
    UpstreamError,
    UpstreamServerError,
)

T = TypeVar("T")


class UpstreamClient:
    """
    Thin client over the upstream ``/employee`` resource.

    Usage:
        async with UpstreamClient("http://localhost:8112/api/v1/employee") as client:
            employees = await client.list_all()
            created = await client.create(CreateEmployeeRequest(...))
            deleted = await client.delete_by_name(created.name)

    The upstream has no by-id endpoints: list, create and delete-by-name are
    all it offers, and all of them use the collection URL.
    """

    def __init__(
        self,
        base_url: str,
        connect_timeout: float = 5.0,
        read_timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = httpx.Timeout(read_timeout, connect=connect_timeout)
        self._transport = transport

        # HTTP client (lazy initialization)
        self._http_client: httpx.AsyncClient | None = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._http_client

    async def list_all(self, ctx: RequestContext | None = None) -> list[Employee]:
        """Fetch every employee. A null ``data`` field yields an empty list."""
        ctx = ctx or UNKNOWN_CONTEXT
        ctx.log.info("Fetching all employees from upstream")

        payload = await self._execute_request(
            method="GET",
            json_data=None,
            operation="fetching all employees",
            ctx=ctx,
        )
        response = self._parse(payload, ApiResponse[list[Employee]], "fetching all employees")
        return list(response.data) if response.data is not None else []

    async def create(
        self,
        request: CreateEmployeeRequest,
        ctx: RequestContext | None = None,
    ) -> Employee:
        """Create an employee upstream and return the stored record."""
        ctx = ctx or UNKNOWN_CONTEXT
        ctx.log.info(f"Creating employee name={request.name}")

        payload = await self._execute_request(
            method="POST",
            json_data=request.model_dump(),
            operation="creating employee",
            ctx=ctx,
        )
        response = self._parse(payload, ApiResponse[Employee], "creating employee")
        if response.data is None:
            raise UpstreamError("Failed to create employee - no data returned")
        return response.data

    async def delete_by_name(self, name: str, ctx: RequestContext | None = None) -> bool:
        """
        Delete by name. Returns True only when upstream reports ``data: true``.

        A False result is ambiguous: the name may never have existed, may
        already be gone, or may have been renamed concurrently.
        """
        ctx = ctx or UNKNOWN_CONTEXT
        ctx.log.info(f"Deleting employee name={name}")

        payload = await self._execute_request(
            method="DELETE",
            json_data={"name": name},
            operation="deleting employee",
            ctx=ctx,
        )
        response = self._parse(payload, ApiResponse[Any], "deleting employee")
        return response.data is True

    async def _execute_request(
        self,
        method: str,
        json_data: dict[str, Any] | None,
        operation: str,
        ctx: RequestContext,
    ) -> Any:
        """Execute the actual HTTP request and return the decoded JSON body."""
        client = await self._get_http_client()

        try:
            response = await client.request(
                method=method,
                url=self._base_url,
                json=json_data,
            )

        except httpx.TimeoutException as e:
            ctx.log.error(f"Timed out while {operation}: {type(e).__name__}")
            raise UpstreamError(f"Request timed out while {operation}") from e

        except httpx.RequestError as e:
            ctx.log.error(f"Transport error while {operation}: {e}")
            raise UpstreamError(f"Transport error while {operation}: {e}") from e

        self._raise_for_status(response, operation, ctx)

        try:
            return response.json()
        except ValueError as e:
            ctx.log.error(f"Malformed response body while {operation}")
            raise UpstreamError(
                f"Malformed response while {operation}",
                upstream_status=response.status_code,
            ) from e

    def _raise_for_status(
        self,
        response: httpx.Response,
        operation: str,
        ctx: RequestContext,
    ) -> None:
        """Map a non-2xx response onto the error taxonomy."""
        status = response.status_code
        if response.is_success:
            return

        body = response.text[:200]

        if status == 429:
            ctx.log.warning(f"Rate limited while {operation}")
            raise RateLimitError(
                f"Rate limited: {body or 'Too many requests'}",
                retry_after=_parse_retry_after(response),
            )

        if 400 <= status < 500:
            ctx.log.warning(f"Client error {status} while {operation}")
            raise UpstreamError(
                f"Client error while {operation}: {body or 'Unknown client error'}",
                upstream_status=status,
            )

        if status >= 500:
            ctx.log.error(f"Server error {status} while {operation}")
            raise UpstreamServerError(
                f"Server error while {operation}: {body or 'Unknown server error'}",
                upstream_status=status,
            )

        raise UpstreamError(
            f"Unexpected status {status} while {operation}",
            upstream_status=status,
        )

    @staticmethod
    def _parse(payload: Any, model: type[T], operation: str) -> T:
        try:
            return model.model_validate(payload)
        except PydanticValidationError as e:
            logger.error(f"Unparseable payload while {operation}: {e.error_count()} errors")
            raise UpstreamError(f"Unparseable response while {operation}") from e

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.debug("UpstreamClient closed")

    async def __aenter__(self) -> "UpstreamClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()


def _parse_retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None
