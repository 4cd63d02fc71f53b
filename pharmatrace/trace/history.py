"""
History-Based Walk — трассировка по полной истории ключей

Медленный, но аудит-полный режим. Последнее значение ключа не читается
из текущего состояния, а восстанавливается из его истории изменений:
первая запись, не являющаяся tombstone, при условии что история отдаётся
newest-first. Если порт не гарантирует порядок (history_newest_first=False)
или конфиг не доверяет ему, записи сортируются по seq/timestamp.

Обход:
- предки: цепочка полей родителя вверх до заказа
  (strip → box → carton → shipment → order)
- потомки: всё поддерево в глубину; для order это shipments с их
  cartons, boxes и strips

Глубина ограничена пятью уровнями иерархии, поэтому обход всегда
завершается. Отсутствующие или неразбираемые предки/потомки
пропускаются (best-effort); одна испорченная ревизия не прерывает обход.

Поиск по id транзакции создания:
1. PRIMARY: запрос по неизменяемому полю creationTxId во всех видах
2. FALLBACK (записи, созданные до появления creationTxId): полный обход
   истории каждой записи каждого вида. Это полный скан ledger, медленный
   путь, а не регрессия.
"""

import logging
from typing import List, Optional, Tuple

from pharmatrace.config import DEFAULT_CONFIG, PharmaTraceConfig
from pharmatrace.core.domain.codec import decode_document, entity_from_document
from pharmatrace.core.domain.entities import HIERARCHY, DocType, doc_type_of
from pharmatrace.core.errors import InvalidInput, NotFound
from pharmatrace.ledger.port import HistoryEntry, LedgerPort
from pharmatrace.trace.results import (
    HistoryRecord,
    HistoryTrace,
    ItemRecord,
    TransactionInfo,
    TxTraceResult,
)

logger = logging.getLogger(__name__)


# =============================================================================
# HISTORY READING
# =============================================================================


def ordered_history(
    ctx: LedgerPort, item_id: str, config: PharmaTraceConfig = DEFAULT_CONFIG
) -> List[HistoryEntry]:
    """
    История ключа, newest-first.

    Порядок порта используется как есть, если порт его гарантирует и конфиг
    ему доверяет; иначе записи сортируются по seq (затем timestamp) по убыванию.
    """
    entries = list(ctx.history(item_id))
    if ctx.history_newest_first and config.trust_history_order:
        return entries

    logger.debug("history of %s: port order not trusted, sorting %d entries", item_id, len(entries))
    return sorted(entries, key=lambda e: (e.seq, e.timestamp), reverse=True)


def _to_record(item_id: str, entry: HistoryEntry) -> HistoryRecord:
    value = None
    if entry.value is not None and not entry.is_delete:
        try:
            value = decode_document(entry.value)
        except InvalidInput as e:
            # Ревизия остаётся в аудит-следе без значения
            logger.warning("history of %s: tx %s value is not decodable: %s", item_id, entry.tx_id, e)
    return HistoryRecord(
        tx_id=entry.tx_id,
        timestamp=entry.timestamp,
        is_delete=entry.is_delete,
        value=value,
    )


def get_transaction_history(
    ctx: LedgerPort, item_id: str, config: PharmaTraceConfig = DEFAULT_CONFIG
) -> List[HistoryRecord]:
    """Аудит-след ключа (newest-first), включая tombstones."""
    return [_to_record(item_id, e) for e in ordered_history(ctx, item_id, config)]


def latest_from_history(
    ctx: LedgerPort, item_id: str, config: PharmaTraceConfig = DEFAULT_CONFIG
) -> ItemRecord:
    """
    Последнее значение ключа, восстановленное только из истории.

    Args:
        ctx: Транзакция хоста
        item_id: Ключ

    Returns:
        ItemRecord: последнее значение + вся история

    Raises:
        NotFound: В истории нет ни одного разбираемого значения
        InvalidInput: Последнее значение нарушает контракт вида

    Ревизии, которые не являются JSON, остаются в истории с value=None;
    последним значением считается первое разбираемое.
    """
    history = get_transaction_history(ctx, item_id, config)

    latest = next((r.value for r in history if not r.is_delete and r.value is not None), None)
    if latest is None:
        raise NotFound(item_id, f"item {item_id} not found in ledger history")

    current = entity_from_document(latest, validate=config.validate_contracts)
    return ItemRecord(
        item_id=item_id,
        item_type=doc_type_of(current),
        current=current,
        history=history,
    )


def get_item_history(
    ctx: LedgerPort, item_id: str, config: PharmaTraceConfig = DEFAULT_CONFIG
) -> ItemRecord:
    """Только аудит-след записи, без обхода иерархии."""
    return latest_from_history(ctx, item_id, config)


# =============================================================================
# TRAVERSAL
# =============================================================================


def _try_record(ctx: LedgerPort, item_id: str, config: PharmaTraceConfig) -> Optional[ItemRecord]:
    try:
        return latest_from_history(ctx, item_id, config)
    except NotFound:
        logger.debug("history trace: referenced item %s is missing, skipped", item_id)
        return None
    except InvalidInput as e:
        logger.warning("history trace: referenced item %s is not decodable, skipped: %s", item_id, e)
        return None


def _parents(ctx: LedgerPort, record: ItemRecord, config: PharmaTraceConfig) -> List[ItemRecord]:
    parents: List[ItemRecord] = []
    parent_id = record.current.parent_id
    while parent_id:
        parent = _try_record(ctx, parent_id, config)
        if parent is None:
            break
        parents.append(parent)
        parent_id = parent.current.parent_id
    return parents


def _descendants(ctx: LedgerPort, record: ItemRecord, config: PharmaTraceConfig) -> List[ItemRecord]:
    descendants: List[ItemRecord] = []
    for child_id in record.current.child_ids:
        child = _try_record(ctx, child_id, config)
        if child is None:
            continue
        descendants.append(child)
        descendants.extend(_descendants(ctx, child, config))
    return descendants


def trace_from_history(
    ctx: LedgerPort, item_id: str, config: PharmaTraceConfig = DEFAULT_CONFIG
) -> HistoryTrace:
    """
    Полная трассировка записи по истории.

    Raises:
        NotFound: У записи нет ни одного значения в истории
    """
    searched = latest_from_history(ctx, item_id, config)
    parents = _parents(ctx, searched, config)
    children = _descendants(ctx, searched, config)

    logger.debug(
        "history trace %s (%s): %d parent(s), %d descendant(s)",
        item_id,
        searched.item_type.value,
        len(parents),
        len(children),
    )
    return HistoryTrace(searched_item=searched, parents=parents, children=children)


# =============================================================================
# LOOKUP BY CREATION TRANSACTION
# =============================================================================


def find_item_by_creation_tx(ctx: LedgerPort, tx_id: str) -> Optional[Tuple[str, dict]]:
    """
    PRIMARY путь: запись, чьё неизменяемое поле creationTxId равно tx_id.

    Returns:
        (item_id, document) или None
    """
    for doc_type in HIERARCHY:
        for key, raw in ctx.query({"docType": doc_type.value, "creationTxId": tx_id}):
            return key, decode_document(raw)
    return None


def _creation_timestamp(ctx: LedgerPort, item_id: str, tx_id: str):
    for entry in ctx.history(item_id):
        if entry.tx_id == tx_id:
            return entry.timestamp
    return None


def _legacy_scan(
    ctx: LedgerPort, tx_id: str, config: PharmaTraceConfig
) -> Optional[Tuple[str, DocType, HistoryEntry]]:
    for doc_type in config.legacy_scan_order:
        for key, _ in ctx.query({"docType": DocType(doc_type).value}):
            for entry in ctx.history(key):
                if entry.tx_id == tx_id:
                    return key, DocType(doc_type), entry
    return None


def find_by_creation_tx(
    ctx: LedgerPort, tx_id: str, config: PharmaTraceConfig = DEFAULT_CONFIG
) -> TxTraceResult:
    """
    Трассировка по id транзакции.

    Args:
        ctx: Транзакция хоста
        tx_id: Id транзакции (обычно создавшей запись)

    Returns:
        TxTraceResult: сведения о транзакции + полная трассировка по истории

    Raises:
        InvalidInput: Пустой tx_id
        NotFound: Ни одна запись не создана и не изменена этой транзакцией
    """
    if not tx_id:
        raise InvalidInput("transaction id must be non-empty")

    found = find_item_by_creation_tx(ctx, tx_id)
    if found is not None:
        item_id, document = found
        info = TransactionInfo(
            tx_id=tx_id,
            timestamp=_creation_timestamp(ctx, item_id, tx_id),
            item_id=item_id,
            item_type=DocType(document["docType"]),
            is_delete=False,
            value=document,
        )
        return TxTraceResult(
            transaction_info=info,
            traceability=trace_from_history(ctx, item_id, config),
        )

    if not config.legacy_tx_scan:
        raise NotFound(tx_id, f"no item found with creationTxId {tx_id}")

    logger.warning("creationTxId %s not indexed, falling back to full history scan", tx_id)
    legacy = _legacy_scan(ctx, tx_id, config)
    if legacy is None:
        raise NotFound(tx_id, f"transaction {tx_id} not found")

    item_id, doc_type, entry = legacy
    record = _to_record(item_id, entry)
    info = TransactionInfo(
        tx_id=entry.tx_id,
        timestamp=entry.timestamp,
        item_id=item_id,
        item_type=doc_type,
        is_delete=entry.is_delete,
        value=record.value,
    )
    return TxTraceResult(
        transaction_info=info,
        traceability=trace_from_history(ctx, item_id, config),
        via_legacy_scan=True,
    )
