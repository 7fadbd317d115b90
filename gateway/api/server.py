"""FastAPI server exposing the employee gateway."""

from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

from fastapi import FastAPI, Request
from loguru import logger

from gateway.api.error_handlers import (
    CORRELATION_HEADER,
    register_error_handlers,
    request_context,
)
from gateway.context import RequestContext
from gateway.models import CreateEmployeeRequest, Employee
from gateway.services.employee_service import EmployeeService, build_employee_service
from gateway.services.errors import ValidationError
from gateway.settings import Settings, global_settings


class EmployeeServer:
    """HTTP server translating REST calls into EmployeeService operations."""

    PREFIX = "/api/v1/employee"

    def __init__(self, service: EmployeeService, settings: Settings):
        self.service = service
        self.settings = settings
        self.app = FastAPI(title="Employee Gateway", lifespan=self.lifespan)

        register_error_handlers(self.app, settings.default_retry_after)
        self.app.middleware("http")(self.correlation_middleware)

        # Register routes; literal paths before the /{employee_id} catch-all
        self.app.get("/health")(self.health_check)
        self.app.get(self.PREFIX)(self.get_all_employees)
        self.app.get(self.PREFIX + "/search/{search_string}")(self.search_employees)
        self.app.get(self.PREFIX + "/highestSalary")(self.get_highest_salary)
        self.app.get(self.PREFIX + "/topTenHighestEarningEmployeeNames")(
            self.get_top_ten_names
        )
        self.app.get(self.PREFIX + "/{employee_id}")(self.get_employee_by_id)
        self.app.post(self.PREFIX)(self.create_employee)
        self.app.delete(self.PREFIX + "/{employee_id}")(self.delete_employee_by_id)

    @asynccontextmanager
    async def lifespan(self, app: FastAPI):
        logger.info(f"Employee gateway started, upstream={self.settings.employee_api_base_url}")
        yield
        await self.service.close()
        logger.info("Employee gateway stopped")

    async def correlation_middleware(self, request: Request, call_next):
        """Attach a RequestContext and echo its correlation id."""
        ctx = RequestContext.from_header(request.headers.get(CORRELATION_HEADER))
        request.state.ctx = ctx
        ctx.log.info(f"Processing request: {request.method} {request.url.path}")

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = ctx.correlation_id
        return response

    async def get_all_employees(self, request: Request) -> list[Employee]:
        return await self.service.list_all(request_context(request))

    async def search_employees(self, search_string: str, request: Request) -> list[Employee]:
        return await self.service.search(search_string, request_context(request))

    async def get_employee_by_id(self, employee_id: str, request: Request) -> Employee:
        return await self.service.get_by_id(_parse_id(employee_id), request_context(request))

    async def get_highest_salary(self, request: Request) -> int:
        return await self.service.highest_salary(request_context(request))

    async def get_top_ten_names(self, request: Request) -> list[str]:
        return await self.service.top_ten_names(request_context(request))

    async def create_employee(
        self, employee_input: CreateEmployeeRequest, request: Request
    ) -> Employee:
        return await self.service.create(employee_input, request_context(request))

    async def delete_employee_by_id(self, employee_id: str, request: Request) -> str:
        return await self.service.delete_by_id(_parse_id(employee_id), request_context(request))

    async def health_check(self) -> dict[str, Any]:
        """Health check endpoint."""
        return {
            "status": "ok",
            "service": "employee-gateway",
            "cache": self.service.cache.get_stats().to_dict(),
            "dedup": self.service.cache.get_dedup_stats().to_dict(),
        }


def _parse_id(raw: str) -> UUID:
    try:
        return UUID(raw)
    except ValueError as e:
        raise ValidationError(f"Invalid employee id: {raw}") from e


def create_app(
    service: EmployeeService | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create the FastAPI app.

    Args:
        service: EmployeeService to expose (built from settings when omitted)
        settings: Settings instance (defaults to the global settings)

    Returns:
        FastAPI app
    """
    settings = settings or global_settings
    server = EmployeeServer(service or build_employee_service(settings), settings)
    return server.app
