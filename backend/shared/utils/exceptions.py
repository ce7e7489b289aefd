"""
Centralized exceptions for consistent error handling.
Every error carries the HTTP status an outer API layer should answer with.

Usage:
    from shared.utils.exceptions import NotFoundError, ValidationError, DatabaseError

    raise NotFoundError("Order", order_id)
    raise ValidationError("No valid fields to update")
    raise DatabaseError("order creation", error=str(exc))
"""

from fastapi import HTTPException, status
from typing import Any

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom exceptions should inherit from this class
    to ensure consistent logging and response format.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Order", 123)
        raise NotFoundError("Table", table_number, venue_id=venue_id)
    """

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        if entity_id is not None:
            detail = f"{entity} with ID {entity_id} not found"
        else:
            detail = f"{entity} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            log_level="warning",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


class OrderNotFoundError(NotFoundError):
    """Order not found."""

    def __init__(self, order_id: int | None = None, **log_context: Any):
        super().__init__("Order", order_id, **log_context)


class OrderItemNotFoundError(NotFoundError):
    """Standard or custom order item not found."""

    def __init__(self, item_id: int | None = None, kind: str = "STANDARD", **log_context: Any):
        entity = "Custom Order Item" if kind == "CUSTOM" else "Order Item"
        super().__init__(entity, item_id, **log_context)


class TableNotFoundError(NotFoundError):
    """No active table matches the number presented by the client."""

    def __init__(self, table_number: str, **log_context: Any):
        AppException.__init__(
            self,
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Table '{table_number}' not found",
            log_level="warning",
            entity="Table",
            table_number=table_number,
            **log_context,
        )
        self.table_number = table_number


class StallNotFoundError(NotFoundError):
    """Stall not found or inactive."""

    def __init__(self, stall_id: int | None = None, **log_context: Any):
        super().__init__("Stall", stall_id, **log_context)


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    Usage:
        raise ValidationError("Quantity must be positive")
        raise ValidationError("Invalid quantity", field="quantity", value=-1)
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class InvalidTransitionError(ValidationError):
    """Invalid status transition, e.g. advancing an item already in a final status."""

    def __init__(
        self,
        entity: str,
        from_status: str,
        to_status: str | None = None,
        action: str = "advance",
        **log_context: Any,
    ):
        if to_status is None and action == "advance":
            detail = f"{entity} is already in final status '{from_status}'"
        elif to_status is None:
            detail = f"Cannot {action} {entity} from status '{from_status}'"
        else:
            detail = f"Invalid transition from '{from_status}' to '{to_status}' for {entity}"
        super().__init__(
            detail, entity=entity, from_status=from_status, to_status=to_status, action=action, **log_context
        )
        self.from_status = from_status
        self.to_status = to_status


class NoUpdatableFieldsError(ValidationError):
    """Update payload carried no recognized fields."""

    def __init__(self, entity: str, **log_context: Any):
        super().__init__("No valid fields to update", entity=entity, **log_context)


# =============================================================================
# 500 Internal Server Errors
# =============================================================================


class InternalError(AppException):
    """
    Internal server error (500).

    Usage:
        raise InternalError("Failed to build order view", order_id=123)
    """

    def __init__(self, detail: str = "Internal server error", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            log_level="error",
            **log_context,
        )


class DatabaseError(InternalError):
    """Database operation failed. The transaction has been rolled back."""

    def __init__(self, operation: str, **log_context: Any):
        detail = f"Database error during {operation}. Please try again."
        super().__init__(detail, operation=operation, **log_context)
        self.operation = operation
