"""
Employee data types using Pydantic models.

Upstream payloads prefix every field except ``id`` with ``employee_``; the
models accept either spelling and serialise with the upstream names.
"""

from typing import Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")


class Employee(BaseModel):
    """One directory entry. Immutable once parsed."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: UUID
    name: str | None = Field(default=None, alias="employee_name")
    salary: int | None = Field(default=None, ge=0, alias="employee_salary")
    age: int | None = Field(default=None, alias="employee_age")
    title: str | None = Field(default=None, alias="employee_title")
    email: str | None = Field(default=None, alias="employee_email")


class CreateEmployeeRequest(BaseModel):
    """Input for creating an employee upstream."""

    model_config = ConfigDict(frozen=True)

    name: str
    salary: int = Field(gt=0)
    age: int = Field(ge=16, le=75)
    title: str

    @field_validator("name", "title")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be blank")
        return value


class ApiResponse(BaseModel, Generic[T]):
    """Envelope the upstream wraps around every payload."""

    data: T | None = None
    status: str | None = None
    error: str | None = None
