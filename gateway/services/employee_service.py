"""
EmployeeService - composes the snapshot cache, the retrying upstream client
and the aggregation functions behind one contract.

Reads go through the cache; writes go straight to the upstream and then
invalidate the cache. This is the only place that knows both paths.
"""

from datetime import timedelta
from uuid import UUID

from gateway.context import UNKNOWN_CONTEXT, RequestContext
from gateway.models import CreateEmployeeRequest, Employee
from gateway.services import aggregation
from gateway.services.cache import SnapshotCache
from gateway.services.client import UpstreamClient
from gateway.services.errors import DeletionConflictError, NotFoundError
from gateway.services.retry import EmployeeApi, RetryingClient, RetryPolicy
from gateway.settings import Settings, global_settings
from gateway.utils import unexpected_guard


class EmployeeService:
    """
    Employee operations over an unreliable upstream.

    Usage:
        service = build_employee_service()
        names = await service.top_ten_names(ctx)
        deleted_name = await service.delete_by_id(employee_id, ctx)
    """

    def __init__(
        self,
        client: EmployeeApi,
        cache: SnapshotCache,
        top_n: int = aggregation.DEFAULT_TOP_N,
    ):
        self._client = client
        self._cache = cache
        self._top_n = top_n

    @property
    def cache(self) -> SnapshotCache:
        return self._cache

    @unexpected_guard
    async def list_all(self, ctx: RequestContext | None = None) -> list[Employee]:
        ctx = ctx or UNKNOWN_CONTEXT
        snapshot = await self._cache.get_or_populate(lambda: self._client.list_all(ctx))
        return list(snapshot.entries)

    @unexpected_guard
    async def search(self, query: str | None, ctx: RequestContext | None = None) -> list[Employee]:
        ctx = ctx or UNKNOWN_CONTEXT
        ctx.log.debug(f"Searching employees by name={query!r}")
        return aggregation.search(await self.list_all(ctx), query)

    @unexpected_guard
    async def get_by_id(self, employee_id: UUID, ctx: RequestContext | None = None) -> Employee:
        ctx = ctx or UNKNOWN_CONTEXT
        # The upstream has no by-id lookup; resolve against the snapshot
        employee = aggregation.find_by_id(await self.list_all(ctx), employee_id)
        if employee is None:
            ctx.log.warning(f"Employee not found id={employee_id}")
            raise NotFoundError(f"Employee not found with id: {employee_id}")
        return employee

    @unexpected_guard
    async def highest_salary(self, ctx: RequestContext | None = None) -> int:
        """Highest salary, or 0 when no employee has one."""
        return aggregation.highest_salary(await self.list_all(ctx))

    @unexpected_guard
    async def top_ten_names(self, ctx: RequestContext | None = None) -> list[str]:
        return aggregation.top_n(await self.list_all(ctx), self._top_n)

    @unexpected_guard
    async def create(
        self,
        request: CreateEmployeeRequest,
        ctx: RequestContext | None = None,
    ) -> Employee:
        ctx = ctx or UNKNOWN_CONTEXT
        employee = await self._client.create(request, ctx)
        await self._cache.invalidate()
        ctx.log.info(f"Created employee id={employee.id} name={employee.name}")
        return employee

    @unexpected_guard
    async def delete_by_id(self, employee_id: UUID, ctx: RequestContext | None = None) -> str:
        """
        Delete an employee by id and return the deleted name.

        The upstream can only delete by name, so the id is first resolved
        against the current snapshot. Between that lookup and the delete
        another caller may rename or delete the same employee, or create a
        new one with the same name; the upstream offers no compare-and-swap
        to close that window. A ``False`` from the upstream is therefore
        reported as DeletionConflictError and never retried, and the cache
        is left as it was.
        """
        ctx = ctx or UNKNOWN_CONTEXT
        employee = await self.get_by_id(employee_id, ctx)

        if employee.name is None:
            raise DeletionConflictError(
                f"Employee id={employee_id} has no name and cannot be deleted upstream"
            )

        ctx.log.info(f"Deleting employee id={employee_id} name={employee.name}")
        deleted = await self._client.delete_by_name(employee.name, ctx)
        if not deleted:
            ctx.log.error(f"Upstream refused delete id={employee_id} name={employee.name}")
            raise DeletionConflictError(
                f"Failed to delete employee id={employee_id} name={employee.name}"
            )

        await self._cache.invalidate()
        return employee.name

    async def close(self) -> None:
        await self._cache.close()
        await self._client.close()


def build_employee_service(settings: Settings | None = None) -> EmployeeService:
    """Wire UpstreamClient -> RetryingClient -> EmployeeService from settings."""
    settings = settings or global_settings

    upstream = UpstreamClient(
        base_url=settings.employee_api_base_url,
        connect_timeout=settings.connect_timeout,
        read_timeout=settings.read_timeout,
    )
    client = RetryingClient(
        upstream,
        RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_delay,
            multiplier=settings.retry_multiplier,
            max_delay=settings.retry_max_delay,
        ),
    )
    cache = SnapshotCache(
        ttl=timedelta(seconds=settings.cache_ttl_seconds),
        debug=settings.debug,
    )
    return EmployeeService(client, cache, top_n=settings.top_n)
