"""
Database Operation Exceptions.

Database operations raise these (and never log); the service layer catches
them and decides how to report.

Usage:
    try:
        cur.execute(query, params)
    except (psycopg.Error, KeyError, ValueError) as e:
        raise ProfileOperationError(
            "Failed to retrieve profile", operation="get_profile"
        ) from e
"""

from typing import Any, Dict, Optional


class DatabaseOperationError(Exception):
    """
    Base exception for all database operation failures.
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.details = details or {}

    def __str__(self):
        if self.operation:
            return f"{self.operation}: {super().__str__()}"
        return super().__str__()


class ProfileOperationError(DatabaseOperationError):
    """Profile lookup or write errors."""

    pass


class AsyncUploadOperationError(DatabaseOperationError):
    """Async upload job queue errors."""

    pass
