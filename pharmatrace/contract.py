"""
PharmaContract — фасад вызываемых операций

Каждый изменяющий вызов фасада — одна транзакция хоста: ledger.transaction()
коммитит записи при успехе и отбрасывает их все при любом исключении.
Чтения (трассировки, листинги, get_*) открывают транзакцию через
ledger.begin() и всегда завершают её abort(): они ничего не коммитят и не
проходят MVCC проверку, поэтому конкурентная запись их не отклоняет.
Доменное ядро состояния не хранит; всё состояние живёт в ledger.

Списки id детей принимаются сериализованным JSON массивом
('["S1","S2"]') или уже разобранным списком.
"""

from contextlib import AbstractContextManager
from typing import Any, Dict, List, Optional, Protocol, Union

from pharmatrace import containment, orders, queries, trace
from pharmatrace.config import DEFAULT_CONFIG, PharmaTraceConfig
from pharmatrace.core.domain.entities import Box, Carton, Entity, Order, Shipment, Strip
from pharmatrace.ledger.port import LedgerPort
from pharmatrace.queries.index import SecondaryIndex
from pharmatrace.trace.results import HistoryRecord, HistoryTrace, ItemRecord, ScanResult, TxTraceResult


IdList = Union[str, List[str]]


class LedgerHost(Protocol):
    """Хост, открывающий транзакции (InMemoryLedger или адаптер платформы)."""

    def begin(self) -> LedgerPort:
        """Открытая транзакция; вызывающий завершает её commit() или abort()."""
        ...

    def transaction(self) -> AbstractContextManager:
        ...


class PharmaContract:
    """
    Операции трассировки упаковки поверх ledger хоста.

    Args:
        ledger: Хост с методами begin() и transaction()
        config: Настройки ядра (по умолчанию DEFAULT_CONFIG)
        index: Необязательный вторичный индекс для листингов
    """

    def __init__(
        self,
        ledger: LedgerHost,
        config: Optional[PharmaTraceConfig] = None,
        index: Optional[SecondaryIndex] = None,
    ):
        self.ledger = ledger
        self.config = config or DEFAULT_CONFIG
        self.index = index

    def _run(self, operation, *args, **kwargs):
        with self.ledger.transaction() as ctx:
            return operation(ctx, *args, **kwargs)

    def _read(self, operation, *args):
        ctx = self.ledger.begin()
        try:
            return operation(ctx, *args)
        finally:
            ctx.abort()

    # =========================================================================
    # CONTAINMENT
    # =========================================================================

    def create_strip(
        self, strip_id: str, batch_number: str, medicine_type: str, mfg_date: str, exp_date: str
    ) -> Strip:
        return self._run(containment.create_strip, strip_id, batch_number, medicine_type, mfg_date, exp_date)

    def seal_box(self, box_id: str, strip_ids: IdList) -> Box:
        return self._run(containment.seal_box, box_id, strip_ids, self.config)

    def seal_carton(self, carton_id: str, box_ids: IdList) -> Carton:
        return self._run(containment.seal_carton, carton_id, box_ids, self.config)

    def seal_shipment(self, shipment_id: str, carton_ids: IdList) -> Shipment:
        return self._run(containment.seal_shipment, shipment_id, carton_ids, self.config)

    # =========================================================================
    # ORDERS
    # =========================================================================

    def distribute_shipment(self, shipment_id: str, distributor: str) -> Shipment:
        return self._run(orders.distribute_shipment, shipment_id, distributor, self.config)

    def create_order(
        self,
        order_id: str,
        shipment_ids: IdList,
        sender_id: str,
        sender_org: str,
        receiver_id: str,
        receiver_org: str,
    ) -> Order:
        return self._run(
            orders.create_order,
            order_id,
            shipment_ids,
            sender_id,
            sender_org,
            receiver_id,
            receiver_org,
            self.config,
        )

    def dispatch_order(self, order_id: str) -> Order:
        return self._run(orders.dispatch_order, order_id, self.config)

    def deliver_order(self, order_id: str) -> Order:
        return self._run(orders.deliver_order, order_id, self.config)

    def get_order(self, order_id: str) -> Order:
        return self._read(orders.get_order, order_id, self.config)

    # =========================================================================
    # TRACE
    # =========================================================================

    def scan(self, item_id: str) -> ScanResult:
        """Быстрая трассировка по текущему состоянию."""
        return self._read(trace.scan, item_id, self.config)

    def trace_from_history(self, item_id: str) -> HistoryTrace:
        """Полная трассировка по истории ключей."""
        return self._read(trace.trace_from_history, item_id, self.config)

    def find_by_creation_tx(self, tx_id: str) -> TxTraceResult:
        """Трассировка по id транзакции, создавшей запись."""
        return self._read(trace.find_by_creation_tx, tx_id, self.config)

    def get_transaction_history(self, item_id: str) -> List[HistoryRecord]:
        return self._read(trace.get_transaction_history, item_id, self.config)

    def get_item_history(self, item_id: str) -> ItemRecord:
        return self._read(trace.get_item_history, item_id, self.config)

    # =========================================================================
    # LISTINGS
    # =========================================================================

    def get_item(self, item_id: str) -> Entity:
        return self._read(queries.get_item, item_id, self.index, self.config)

    def get_available_strips(self) -> List[Strip]:
        return self._read(queries.get_available_strips, self.index, self.config)

    def get_available_boxes(self) -> List[Box]:
        return self._read(queries.get_available_boxes, self.index, self.config)

    def get_available_cartons(self) -> List[Carton]:
        return self._read(queries.get_available_cartons, self.index, self.config)

    def get_available_shipments(self) -> List[Shipment]:
        return self._read(queries.get_available_shipments, self.index, self.config)

    def get_all_items(self, doc_type: str) -> List[Entity]:
        return self._read(queries.get_all_items, doc_type, self.index, self.config)

    def get_all_orders(self) -> List[Order]:
        return self._read(queries.get_all_orders, self.index, self.config)

    def get_orders_by_recipient(self, recipient: str) -> List[Order]:
        return self._read(queries.get_orders_by_recipient, recipient, self.index, self.config)

    def get_statistics(self) -> Dict[str, int]:
        return self._read(queries.get_statistics, self.index)

    def search_items(self, term: str) -> List[Dict[str, Any]]:
        return self._read(queries.search_items, term, self.index)
