"""Queries — листинги, статистика и поиск по текущему состоянию."""

from .index import SecondaryIndex, SecondaryIndexError
from .listings import (
    STATISTICS_KEYS,
    find_documents,
    find_entities,
    get_all_items,
    get_all_orders,
    get_available_boxes,
    get_available_cartons,
    get_available_shipments,
    get_available_strips,
    get_item,
    get_orders_by_recipient,
    get_statistics,
    search_items,
)

__all__ = [
    "SecondaryIndex",
    "SecondaryIndexError",
    "STATISTICS_KEYS",
    "find_documents",
    "find_entities",
    "get_available_strips",
    "get_available_boxes",
    "get_available_cartons",
    "get_available_shipments",
    "get_all_items",
    "get_item",
    "get_all_orders",
    "get_orders_by_recipient",
    "get_statistics",
    "search_items",
]
