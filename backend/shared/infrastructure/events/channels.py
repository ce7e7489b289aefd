"""
Redis Channel Naming.

Standardized channel names with ID validation.
"""

from __future__ import annotations


def _validate_positive_id(id_value: int, name: str) -> None:
    """Validate that ID is a positive integer."""
    if not isinstance(id_value, int) or id_value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {id_value}")


def channel_stall_kitchen(stall_id: int) -> str:
    """Channel for the kitchen display of one stall."""
    _validate_positive_id(stall_id, "stall_id")
    return f"stall:{stall_id}:kitchen"


def channel_table(table_id: int) -> str:
    """Channel for guests seated at a table."""
    _validate_positive_id(table_id, "table_id")
    return f"table:{table_id}"


def channel_user(user_id: int) -> str:
    """Channel for direct user notifications."""
    _validate_positive_id(user_id, "user_id")
    return f"user:{user_id}"
