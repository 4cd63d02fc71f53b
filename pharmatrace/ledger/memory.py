"""
InMemoryLedger — эталонный хост ledger в памяти

Модель транзакций повторяет поведение Fabric peer:
- чтения видят закоммиченное состояние (собственные незакоммиченные записи
  транзакции в get/query/history не видны)
- записи буферизуются и применяются атомарно при коммите
- любое исключение внутри транзакции отбрасывает все её записи
- при коммите проверяются версии прочитанных ключей (MVCC); если ключ
  успел измениться, транзакция отклоняется с TransactionConflict

Используется в тестах и как reference-адаптер. Сам по себе не является
частью доменного ядра.
"""

import hashlib
import logging
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from pharmatrace.core.domain.codec import decode_document
from pharmatrace.core.errors import InvalidInput
from pharmatrace.ledger.port import HistoryEntry, LedgerError, LedgerPort, TransactionConflict

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_tx_id() -> str:
    # 64 hex символа, как у Fabric tx id
    return hashlib.sha256(uuid.uuid4().bytes).hexdigest()


class InMemoryLedger:
    """
    Хост ledger в памяти.

    Args:
        clock: Источник timestamp транзакций (по умолчанию UTC now)
        tx_id_factory: Генератор id транзакций
        history_newest_first: Порядок, в котором history() отдаёт записи
    """

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        tx_id_factory: Optional[Callable[[], str]] = None,
        history_newest_first: bool = True,
    ):
        self._clock = clock or _utc_now
        self._tx_id_factory = tx_id_factory or _new_tx_id
        self.history_newest_first = history_newest_first

        self._state: Dict[str, bytes] = {}
        self._versions: Dict[str, int] = {}
        self._history: Dict[str, List[HistoryEntry]] = {}
        self._seq = 0
        self._commit_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def begin(self, tx_id: Optional[str] = None) -> "LedgerTransaction":
        """Открыть транзакцию. Коммит/отмена — явно через commit()/abort()."""
        return LedgerTransaction(self, tx_id or self._tx_id_factory(), self._clock())

    @contextmanager
    def transaction(self, tx_id: Optional[str] = None) -> Iterator["LedgerTransaction"]:
        """
        Транзакция как контекст: коммит при нормальном выходе,
        отмена всех записей при исключении.
        """
        tx = self.begin(tx_id)
        try:
            yield tx
        except BaseException:
            tx.abort()
            raise
        tx.commit()

    # -------------------------------------------------------------------------
    # Committed state (host-side access)
    # -------------------------------------------------------------------------

    def committed_value(self, key: str) -> Optional[bytes]:
        return self._state.get(key)

    def committed_keys(self) -> List[str]:
        return sorted(self._state)

    def _version(self, key: str) -> int:
        return self._versions.get(key, 0)

    def _history_entries(self, key: str) -> List[HistoryEntry]:
        return list(self._history.get(key, ()))

    def _apply(self, tx: "LedgerTransaction") -> None:
        with self._commit_lock:
            for key, version in tx.read_versions.items():
                if self._version(key) != version:
                    raise TransactionConflict(tx.tx_id, key)

            for key, value in tx.writes.items():
                self._seq += 1
                entry = HistoryEntry(
                    tx_id=tx.tx_id,
                    timestamp=tx.timestamp,
                    is_delete=value is None,
                    value=value,
                    seq=self._seq,
                )
                self._history.setdefault(key, []).append(entry)
                self._versions[key] = self._version(key) + 1
                if value is None:
                    self._state.pop(key, None)
                else:
                    self._state[key] = value

        logger.debug("committed tx %s: %d key(s)", tx.tx_id, len(tx.writes))


class LedgerTransaction(LedgerPort):
    """Одна транзакция InMemoryLedger, реализует LedgerPort."""

    def __init__(self, ledger: InMemoryLedger, tx_id: str, timestamp: datetime):
        self._ledger = ledger
        self.tx_id = tx_id
        self.timestamp = timestamp
        self.history_newest_first = ledger.history_newest_first

        self.read_versions: Dict[str, int] = {}
        self.writes: Dict[str, Optional[bytes]] = {}
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise LedgerError(f"transaction {self.tx_id} is already closed")

    # -------------------------------------------------------------------------
    # LedgerPort
    # -------------------------------------------------------------------------

    def get(self, key: str) -> Optional[bytes]:
        self._check_open()
        # Первое чтение фиксирует версию для MVCC проверки
        self.read_versions.setdefault(key, self._ledger._version(key))
        return self._ledger.committed_value(key)

    def put(self, key: str, value: bytes) -> None:
        self._check_open()
        if not key:
            raise InvalidInput("ledger key must be non-empty")
        if not isinstance(value, (bytes, bytearray)):
            raise LedgerError(f"value for {key} must be bytes, got {type(value).__name__}")
        self.writes[key] = bytes(value)

    def delete(self, key: str) -> None:
        self._check_open()
        self.writes[key] = None

    def query(self, selector: Mapping[str, Any]) -> Iterator[Tuple[str, bytes]]:
        self._check_open()
        for key in self._ledger.committed_keys():
            value = self._ledger.committed_value(key)
            if value is None:
                continue
            document = decode_document(value)
            if all(document.get(field) == expected for field, expected in selector.items()):
                yield key, value

    def history(self, key: str) -> Iterator[HistoryEntry]:
        self._check_open()
        entries = self._ledger._history_entries(key)
        if self.history_newest_first:
            entries.reverse()
        return iter(entries)

    def current_tx_id(self) -> str:
        return self.tx_id

    def current_tx_timestamp(self) -> datetime:
        return self.timestamp

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def commit(self) -> None:
        """
        Применить записи.

        Raises:
            TransactionConflict: Если прочитанный ключ успел измениться
        """
        self._check_open()
        self._closed = True
        self._ledger._apply(self)

    def abort(self) -> None:
        """Отбросить все записи транзакции."""
        if not self._closed:
            logger.debug("aborted tx %s: %d pending write(s) discarded", self.tx_id, len(self.writes))
        self._closed = True
        self.writes.clear()
