"""
Utilities module: Exceptions, schemas.
"""

from shared.utils.exceptions import (
    AppException,
    NotFoundError,
    ValidationError,
    InvalidTransitionError,
    DatabaseError,
)

__all__ = [
    # exceptions
    "AppException",
    "NotFoundError",
    "ValidationError",
    "InvalidTransitionError",
    "DatabaseError",
]
