"""
Domain Services - application layer of the ordering engine.

Structure:
    Caller (HTTP layer, worker, script)
        ↓
    Service (business logic, owns the transaction)  ← YOU ARE HERE
        ↓
    Repository (data access)
        ↓
    Model (entity)

Usage:
    from ordering.services.domain import OrderService

    service = OrderService(db)
    order = service.create_order(request)
"""

from .rollup import OrderRollupEngine, RollupResult, compute_order_status
from .order_service import OrderService, compute_line_subtotal
from .order_item_service import OrderItemStatusService, OrderItemService
from .custom_order_item_service import CustomOrderItemService

__all__ = [
    "OrderRollupEngine",
    "RollupResult",
    "compute_order_status",
    "OrderService",
    "compute_line_subtotal",
    "OrderItemStatusService",
    "OrderItemService",
    "CustomOrderItemService",
]
