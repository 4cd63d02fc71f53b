"""
Trace Results — модели результатов трассировки

Immutable Pydantic модели. JSON вид (by_alias) совместим с ответами,
которые отдаёт внешний слой: itemType, searchedItem, transactionInfo...
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from pharmatrace.core.domain.entities import DocType, Entity


_FROZEN = {"frozen": True, "populate_by_name": True}


# =============================================================================
# CURRENT-STATE SCAN
# =============================================================================


class ScanResult(BaseModel):
    """
    Результат scan(): запись + предки (ближайший первым) + потомки.

    Потомки — только непосредственные дети; для order — его shipments.
    """

    item_type: DocType = Field(..., alias="itemType")
    item: Entity
    ancestors: List[Entity] = Field(default_factory=list)
    descendants: List[Entity] = Field(default_factory=list)

    model_config = _FROZEN

    @property
    def parent(self) -> Optional[Entity]:
        return self.ancestors[0] if len(self.ancestors) > 0 else None

    @property
    def grand_parent(self) -> Optional[Entity]:
        return self.ancestors[1] if len(self.ancestors) > 1 else None

    @property
    def root(self) -> Optional[Entity]:
        return self.ancestors[2] if len(self.ancestors) > 2 else None

    @property
    def ancestor_ids(self) -> List[str]:
        return [a.id for a in self.ancestors]

    @property
    def descendant_ids(self) -> List[str]:
        return [d.id for d in self.descendants]


# =============================================================================
# HISTORY-BASED TRACE
# =============================================================================


class HistoryRecord(BaseModel):
    """Одна запись истории ключа в JSON-совместимом виде."""

    tx_id: str = Field(..., alias="txId")
    timestamp: datetime
    is_delete: bool = Field(False, alias="isDelete")
    value: Optional[Dict[str, Any]] = None

    model_config = _FROZEN


class ItemRecord(BaseModel):
    """Запись с последним значением, восстановленным из истории, и самой историей."""

    item_id: str = Field(..., alias="itemId")
    item_type: DocType = Field(..., alias="itemType")
    current: Entity
    history: List[HistoryRecord] = Field(default_factory=list)

    model_config = _FROZEN


class HistoryTrace(BaseModel):
    """
    Результат trace_from_history().

    parents — цепочка вверх до заказа (ближайший первым).
    children — всё поддерево, обход в глубину (родитель перед своими детьми).
    """

    searched_item: ItemRecord = Field(..., alias="searchedItem")
    parents: List[ItemRecord] = Field(default_factory=list)
    children: List[ItemRecord] = Field(default_factory=list)

    model_config = _FROZEN

    @property
    def parent_ids(self) -> List[str]:
        return [p.item_id for p in self.parents]

    @property
    def child_ids(self) -> List[str]:
        return [c.item_id for c in self.children]


# =============================================================================
# TRANSACTION LOOKUP
# =============================================================================


class TransactionInfo(BaseModel):
    """Транзакция, найденная по id, и значение, которое она записала."""

    tx_id: str = Field(..., alias="txId")
    timestamp: Optional[datetime] = None
    item_id: str = Field(..., alias="itemId")
    item_type: DocType = Field(..., alias="itemType")
    is_delete: bool = Field(False, alias="isDelete")
    value: Optional[Dict[str, Any]] = None

    model_config = _FROZEN


class TxTraceResult(BaseModel):
    """Результат find_by_creation_tx()."""

    transaction_info: TransactionInfo = Field(..., alias="transactionInfo")
    traceability: HistoryTrace

    # Найдено медленным поиском по истории (записи без creationTxId)
    via_legacy_scan: bool = Field(False, alias="viaLegacyScan")

    model_config = _FROZEN
