"""
HTTP boundary for the employee gateway.
"""

from gateway.api.error_handlers import CORRELATION_HEADER, register_error_handlers
from gateway.api.server import EmployeeServer, create_app

__all__ = [
    "CORRELATION_HEADER",
    "EmployeeServer",
    "create_app",
    "register_error_handlers",
]
