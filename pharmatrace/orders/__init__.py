"""Orders — заказы над отгрузками и их жизненный цикл."""

from .workflow import (
    create_order,
    deliver_order,
    dispatch_order,
    distribute_shipment,
    get_order,
)

__all__ = [
    "create_order",
    "get_order",
    "dispatch_order",
    "deliver_order",
    "distribute_shipment",
]
