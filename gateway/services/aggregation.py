"""
Read-side aggregation over an in-memory employee sequence.

Pure functions: no I/O, no state, inputs are never modified.
"""

from typing import Iterable, Sequence
from uuid import UUID

from gateway.models import Employee

DEFAULT_TOP_N = 10


def _fold(value: str) -> str:
    # casefold() applies Unicode default case folding, independent of locale
    return value.casefold()


def search(entries: Sequence[Employee], query: str | None) -> list[Employee]:
    """
    Case-insensitive substring match on name.

    A None or blank query returns every entry unfiltered. Entries without a
    name never match a non-blank query.
    """
    if query is None or not query.strip():
        return list(entries)

    needle = _fold(query)
    return [e for e in entries if e.name is not None and needle in _fold(e.name)]


def highest_salary(entries: Iterable[Employee]) -> int:
    """
    Largest non-null salary.

    Returns 0 when there is no salary data at all. That 0 is a "no data"
    sentinel, not an observed salary; callers must not treat it as one.
    """
    return max((e.salary for e in entries if e.salary is not None), default=0)


def top_n(entries: Sequence[Employee], n: int = DEFAULT_TOP_N) -> list[str]:
    """
    Names of the ``n`` best-paid employees, highest salary first.

    Entries with a null salary or null name are skipped. Ties keep their
    original order (sorted() is stable).
    """
    if n <= 0:
        return []

    ranked = sorted(
        (e for e in entries if e.salary is not None and e.name is not None),
        key=lambda e: e.salary,
        reverse=True,
    )
    return [e.name for e in ranked[:n]]


def find_by_id(entries: Iterable[Employee], employee_id: UUID) -> Employee | None:
    """Linear scan; None when absent."""
    return next((e for e in entries if e.id == employee_id), None)
