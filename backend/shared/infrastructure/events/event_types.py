"""
Event Type Constants.

Defines all event types published to listeners (kitchen displays, guests).
"""

# =============================================================================
# Order lifecycle events
# Flow: PENDING → COMPLETED | CANCELLED (derived from item statuses)
# =============================================================================

ORDER_CREATED = "ORDER_CREATED"
ORDER_STATUS_CHANGED = "ORDER_STATUS_CHANGED"
ORDER_UPDATED = "ORDER_UPDATED"
ORDER_DELETED = "ORDER_DELETED"

# =============================================================================
# Item events
# Flow: INCOMING → PREPARING → SERVED, CANCELLED from any non-terminal status
# =============================================================================

ORDER_ITEM_STATUS_CHANGED = "ORDER_ITEM_STATUS_CHANGED"
CUSTOM_ORDER_ITEM_CREATED = "CUSTOM_ORDER_ITEM_CREATED"
CUSTOM_ORDER_ITEM_STATUS_CHANGED = "CUSTOM_ORDER_ITEM_STATUS_CHANGED"

# =============================================================================
# Size limits
# =============================================================================

MAX_EVENT_SIZE = 64 * 1024  # 64 KB
