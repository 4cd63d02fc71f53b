"""Ledger — порт хоста ledger и эталонная реализация в памяти."""

from .memory import InMemoryLedger, LedgerTransaction
from .port import HistoryEntry, LedgerError, LedgerPort, TransactionConflict

__all__ = [
    "LedgerPort",
    "HistoryEntry",
    "LedgerError",
    "TransactionConflict",
    "InMemoryLedger",
    "LedgerTransaction",
]
