"""
Test configuration and fixtures
"""

import uuid
from typing import Any

import httpx
import pytest

from gateway.models import CreateEmployeeRequest, Employee
from gateway.services.client import UpstreamClient

BASE_URL = "http://upstream.test/api/v1/employee"


def employee_payload(
    name: str | None = "John Doe",
    salary: int | None = 50000,
    age: int | None = 30,
    title: str | None = "Engineer",
    employee_id: uuid.UUID | None = None,
) -> dict[str, Any]:
    """Employee in upstream wire format."""
    return {
        "id": str(employee_id or uuid.uuid4()),
        "employee_name": name,
        "employee_salary": salary,
        "employee_age": age,
        "employee_title": title,
        "employee_email": f"{(name or 'anon').split()[0].lower()}@company.com",
    }


def make_employee(name: str | None = "John Doe", salary: int | None = 50000, **kwargs) -> Employee:
    return Employee.model_validate(employee_payload(name=name, salary=salary, **kwargs))


class ScriptedUpstream:
    """
    httpx.MockTransport handler that replays queued responses in order.

    The last queued item repeats once the queue is down to one. Items may be
    httpx.Response objects or exceptions to raise.
    """

    def __init__(self):
        self._script: list[httpx.Response | Exception] = []
        self.requests: list[httpx.Request] = []

    def queue(self, *items: httpx.Response | Exception) -> "ScriptedUpstream":
        self._script.extend(items)
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._script:
            raise AssertionError("No scripted upstream response left")
        item = self._script.pop(0) if len(self._script) > 1 else self._script[0]
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def call_count(self) -> int:
        return len(self.requests)


class FakeEmployeeApi:
    """In-memory stand-in for the retrying client, counting every call."""

    def __init__(self, employees: list[Employee] | None = None):
        self.employees = list(employees or [])
        self.list_calls = 0
        self.create_calls = 0
        self.delete_calls: list[str] = []
        self.delete_result: bool | None = None
        self.list_error: Exception | None = None
        self.closed = False

    async def list_all(self, ctx=None) -> list[Employee]:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return list(self.employees)

    async def create(self, request: CreateEmployeeRequest, ctx=None) -> Employee:
        self.create_calls += 1
        employee = make_employee(
            name=request.name, salary=request.salary, age=request.age, title=request.title
        )
        self.employees.append(employee)
        return employee

    async def delete_by_name(self, name: str, ctx=None) -> bool:
        self.delete_calls.append(name)
        if self.delete_result is not None:
            return self.delete_result
        before = len(self.employees)
        self.employees = [e for e in self.employees if e.name != name]
        return len(self.employees) < before

    async def close(self) -> None:
        self.closed = True


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def upstream() -> ScriptedUpstream:
    return ScriptedUpstream()


@pytest.fixture
async def upstream_client(upstream: ScriptedUpstream):
    client = UpstreamClient(BASE_URL, transport=httpx.MockTransport(upstream))
    yield client
    await client.close()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def create_request() -> CreateEmployeeRequest:
    return CreateEmployeeRequest(name="New Employee", salary=55000, age=25, title="Developer")
