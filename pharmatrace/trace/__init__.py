"""Trace — реконструкция цепочек предков и потомков (два режима)."""

from .history import (
    find_by_creation_tx,
    find_item_by_creation_tx,
    get_item_history,
    get_transaction_history,
    latest_from_history,
    ordered_history,
    trace_from_history,
)
from .results import (
    HistoryRecord,
    HistoryTrace,
    ItemRecord,
    ScanResult,
    TransactionInfo,
    TxTraceResult,
)
from .scan import scan

__all__ = [
    # Current-state walk
    "scan",
    "ScanResult",
    # History-based walk
    "trace_from_history",
    "latest_from_history",
    "ordered_history",
    "get_transaction_history",
    "get_item_history",
    "HistoryRecord",
    "ItemRecord",
    "HistoryTrace",
    # Transaction lookup
    "find_by_creation_tx",
    "find_item_by_creation_tx",
    "TransactionInfo",
    "TxTraceResult",
]
