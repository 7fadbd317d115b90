"""
RetryingClient - bounded exponential backoff around an upstream client.

Per call:
- Attempt(n): issue one upstream call
- Transient failure (429, 5xx) and attempts left: Wait(delay(n)), then Attempt(n+1)
- Transient failure on the last attempt: Exhausted -> ServiceUnavailableError
- Non-retryable failure: Failed -> original error propagates unchanged
- Success: Succeeded

delay(n) = base_delay * multiplier ** n, optionally capped at max_delay.
Waiting suspends the coroutine (asyncio.sleep); no thread is held.
"""

import asyncio
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol, TypeVar

from gateway.context import UNKNOWN_CONTEXT, RequestContext
from gateway.models import CreateEmployeeRequest, Employee
from gateway.services.errors import ServiceError, ServiceUnavailableError

T = TypeVar("T")


class EmployeeApi(Protocol):
    """Contract shared by the raw and retrying upstream clients."""

    async def list_all(self, ctx: RequestContext | None = None) -> list[Employee]: ...

    async def create(
        self, request: CreateEmployeeRequest, ctx: RequestContext | None = None
    ) -> Employee: ...

    async def delete_by_name(self, name: str, ctx: RequestContext | None = None) -> bool: ...

    async def close(self) -> None: ...


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration. ``max_attempts`` counts upstream calls, not retries."""

    max_attempts: int = 3
    base_delay: float = 0.5  # seconds
    multiplier: float = 2.0
    max_delay: float | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0 or self.multiplier <= 0:
            raise ValueError("base_delay must be >= 0 and multiplier > 0")

    def delay(self, attempt: int) -> float:
        """Backoff before the attempt following ``attempt`` (0-based)."""
        delay = self.base_delay * self.multiplier**attempt
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay


@dataclass
class RetryState:
    """Progress of one retried call. Discarded when the call finishes."""

    attempt: int = 0
    next_delay: float = 0.0


class RetryingClient:
    """
    Wraps an ``EmployeeApi`` and retries transient failures.

    Usage:
        client = RetryingClient(UpstreamClient(base_url), RetryPolicy(max_attempts=3))
        employees = await client.list_all(ctx)

    Rate limiting never escapes this class: a 429 is either retried away or
    converted into ``ServiceUnavailableError`` once attempts are exhausted.
    """

    def __init__(
        self,
        client: EmployeeApi,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._client = client
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def list_all(self, ctx: RequestContext | None = None) -> list[Employee]:
        return await self._call(
            "list_all",
            lambda: self._client.list_all(ctx),
            ctx,
        )

    async def create(
        self,
        request: CreateEmployeeRequest,
        ctx: RequestContext | None = None,
    ) -> Employee:
        return await self._call(
            "create",
            lambda: self._client.create(request, ctx),
            ctx,
        )

    async def delete_by_name(self, name: str, ctx: RequestContext | None = None) -> bool:
        return await self._call(
            "delete_by_name",
            lambda: self._client.delete_by_name(name, ctx),
            ctx,
        )

    async def _call(
        self,
        operation: str,
        call: Callable[[], Awaitable[T]],
        ctx: RequestContext | None,
    ) -> T:
        log = (ctx or UNKNOWN_CONTEXT).log
        policy = self._policy
        state = RetryState()

        while True:
            try:
                result = await call()
            except ServiceError as e:
                if not e.retryable:
                    raise

                state.next_delay = policy.delay(state.attempt)
                if state.attempt + 1 >= policy.max_attempts:
                    log.error(
                        f"All {policy.max_attempts} attempts exhausted for {operation}: {e.message}"
                    )
                    raise ServiceUnavailableError(
                        "Employee service temporarily unavailable after retries",
                        upstream_status=e.upstream_status,
                        retry_after=_retry_hint(state.next_delay, e.retry_after),
                    ) from e

                log.warning(
                    f"Transient failure on {operation} "
                    f"(attempt {state.attempt + 1}/{policy.max_attempts}), "
                    f"retrying in {state.next_delay:.2f}s: {e.message}"
                )
                await self._sleep(state.next_delay)
                state.attempt += 1
                continue

            if state.attempt:
                log.info(f"{operation} succeeded after {state.attempt + 1} attempts")
            return result

    async def close(self) -> None:
        await self._client.close()


def _retry_hint(next_delay: float, upstream_hint: float | None) -> float:
    """Whole seconds, at least 1, the caller should wait before trying again."""
    return float(max(1, math.ceil(max(next_delay, upstream_hint or 0.0))))
