"""
Event Schema.

Defines the unified Event dataclass for all notifications.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class Event:
    """
    Unified event schema for all notifications.

    The 'entity' field contains event-specific data (IDs, statuses).
    Listeners route on 'type' and read the identifiers they care about.
    """

    type: str
    order_id: int | None = None
    item_id: int | None = None
    table_id: int | None = None
    stall_id: int | None = None
    user_id: int | None = None
    entity: dict[str, Any] = field(default_factory=dict)
    request_id: str | None = None
    ts: str | None = None
    v: int = 1  # Schema version for future compatibility

    def __post_init__(self) -> None:
        """Validate event fields after initialization."""
        if not self.type or not isinstance(self.type, str):
            raise ValueError("Event type must be a non-empty string")

        for name in ("order_id", "item_id", "table_id", "stall_id", "user_id"):
            value = getattr(self, name)
            if value is not None and (not isinstance(value, int) or value <= 0):
                raise ValueError(f"Event {name} must be a positive integer or None")

        if self.entity is not None and not isinstance(self.entity, dict):
            raise ValueError("Event entity must be a dict or None")

    def to_json(self) -> str:
        """Serialize event to JSON string."""
        data = asdict(self)
        data["entity"] = data["entity"] or {}
        data["ts"] = data["ts"] or datetime.now(timezone.utc).isoformat()
        return json.dumps(data, ensure_ascii=False, default=str)

    @classmethod
    def from_json(cls, json_str: str) -> "Event":
        """Deserialize event from JSON string. Validation runs in __post_init__."""
        data = json.loads(json_str)
        return cls(**data)
