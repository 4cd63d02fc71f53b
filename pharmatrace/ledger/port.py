"""
Ledger Port — интерфейс хоста, который потребляет ядро

Хост (ledger платформа) обеспечивает:
- атомарные изолированные транзакции над key → value хранилищем
- append-only историю изменений по каждому ключу
- id и timestamp текущей транзакции

Ядро не обращается к хосту ни через что, кроме этого интерфейса.
Один экземпляр порта = одна транзакция хоста.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator, Mapping, Optional, Tuple


# =============================================================================
# EXCEPTIONS
# =============================================================================


class LedgerError(Exception):
    """Ошибка хоста ledger (не доменная)."""


class TransactionConflict(LedgerError):
    """
    MVCC конфликт: ключ, прочитанный транзакцией, был закоммичен другой
    транзакцией до её коммита. Все записи транзакции отброшены.
    """

    def __init__(self, tx_id: str, key: str):
        self.tx_id = tx_id
        self.key = key
        super().__init__(f"transaction {tx_id}: MVCC read conflict on key {key}")


# =============================================================================
# HISTORY ENTRY
# =============================================================================


@dataclass(frozen=True)
class HistoryEntry:
    """Одна запись истории ключа."""

    tx_id: str
    timestamp: datetime
    is_delete: bool  # tombstone
    value: Optional[bytes]

    # Порядковый номер коммита в хосте (для сортировки, если порядок не гарантирован)
    seq: int = 0


# =============================================================================
# PORT
# =============================================================================


class LedgerPort(ABC):
    """
    Порт транзакции ledger.

    Предусловие истории: history(key) отдаёт записи newest-first.
    Реализация, которая не может это гарантировать, выставляет
    history_newest_first = False, и ядро отсортирует записи само.
    """

    history_newest_first: bool = True

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Текущее значение ключа или None."""

    @abstractmethod
    def put(self, key: str, value: bytes) -> None:
        """Запись значения ключа (видна после коммита транзакции)."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Административное удаление ключа. В истории остаётся tombstone."""

    @abstractmethod
    def query(self, selector: Mapping[str, Any]) -> Iterator[Tuple[str, bytes]]:
        """
        Запрос по равенству плоских атрибутов записи (docType, boxId, ...).

        Args:
            selector: {"docType": "box", "cartonId": ""}

        Yields:
            (key, value) для каждой подходящей записи
        """

    @abstractmethod
    def history(self, key: str) -> Iterator[HistoryEntry]:
        """Полная история ключа."""

    @abstractmethod
    def current_tx_id(self) -> str:
        """Id текущей транзакции."""

    @abstractmethod
    def current_tx_timestamp(self) -> datetime:
        """Timestamp текущей транзакции (одинаков для всех записей транзакции)."""
