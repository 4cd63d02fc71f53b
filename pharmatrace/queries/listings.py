"""
Listings — выборки по текущему состоянию

Все выборки — запросы по равенству плоских атрибутов (docType, boxId, ...).
Если задан вторичный индекс, запрос сначала идёт в него; при
SecondaryIndexError выборка деградирует до LedgerPort.query с WARNING.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from pharmatrace.config import DEFAULT_CONFIG, PharmaTraceConfig
from pharmatrace.core.domain.codec import decode_document, entity_from_document
from pharmatrace.core.domain.entities import (
    HIERARCHY,
    Box,
    Carton,
    DocType,
    Entity,
    Order,
    Shipment,
    Status,
    Strip,
)
from pharmatrace.core.errors import InvalidInput
from pharmatrace.ledger.port import LedgerPort
from pharmatrace.ledger.records import require_entity
from pharmatrace.queries.index import SecondaryIndex, SecondaryIndexError

logger = logging.getLogger(__name__)

# Ключи get_statistics() в порядке иерархии
STATISTICS_KEYS: Dict[DocType, str] = {
    DocType.STRIP: "strips",
    DocType.BOX: "boxes",
    DocType.CARTON: "cartons",
    DocType.SHIPMENT: "shipments",
    DocType.ORDER: "orders",
}


# =============================================================================
# QUERY CORE
# =============================================================================


def find_documents(
    ctx: LedgerPort,
    selector: Mapping[str, Any],
    index: Optional[SecondaryIndex] = None,
) -> List[Dict[str, Any]]:
    """
    Плоские документы, подходящие под selector.

    Сначала индекс (если задан), затем LedgerPort.query.
    """
    if index is not None:
        try:
            return list(index.find(selector))
        except SecondaryIndexError as e:
            logger.warning("secondary index failed for %s, falling back to ledger query: %s", dict(selector), e)

    return [decode_document(raw) for _, raw in ctx.query(selector)]


def find_entities(
    ctx: LedgerPort,
    selector: Mapping[str, Any],
    index: Optional[SecondaryIndex] = None,
    config: PharmaTraceConfig = DEFAULT_CONFIG,
) -> List[Entity]:
    """Как find_documents, но с разбором в типизированные сущности."""
    return [
        entity_from_document(doc, validate=config.validate_contracts)
        for doc in find_documents(ctx, selector, index)
    ]


# =============================================================================
# AVAILABLE ITEMS
# =============================================================================


def get_available_strips(
    ctx: LedgerPort, index: Optional[SecondaryIndex] = None, config: PharmaTraceConfig = DEFAULT_CONFIG
) -> List[Strip]:
    """Strips, ещё не запечатанные в box."""
    return find_entities(ctx, {"docType": DocType.STRIP.value, "boxId": ""}, index, config)


def get_available_boxes(
    ctx: LedgerPort, index: Optional[SecondaryIndex] = None, config: PharmaTraceConfig = DEFAULT_CONFIG
) -> List[Box]:
    """Boxes, ещё не запечатанные в carton."""
    return find_entities(ctx, {"docType": DocType.BOX.value, "cartonId": ""}, index, config)


def get_available_cartons(
    ctx: LedgerPort, index: Optional[SecondaryIndex] = None, config: PharmaTraceConfig = DEFAULT_CONFIG
) -> List[Carton]:
    """Cartons, ещё не запечатанные в shipment."""
    return find_entities(ctx, {"docType": DocType.CARTON.value, "shipmentId": ""}, index, config)


def get_available_shipments(
    ctx: LedgerPort, index: Optional[SecondaryIndex] = None, config: PharmaTraceConfig = DEFAULT_CONFIG
) -> List[Shipment]:
    """Shipments в статусе CREATED (не заявлены заказом и не переданы дистрибьютору)."""
    return find_entities(
        ctx, {"docType": DocType.SHIPMENT.value, "status": Status.CREATED.value}, index, config
    )


# =============================================================================
# ITEMS / ORDERS
# =============================================================================


def get_all_items(
    ctx: LedgerPort,
    doc_type: str,
    index: Optional[SecondaryIndex] = None,
    config: PharmaTraceConfig = DEFAULT_CONFIG,
) -> List[Entity]:
    """
    Все записи одного вида.

    Raises:
        InvalidInput: Неизвестный docType
    """
    try:
        kind = DocType(doc_type)
    except ValueError:
        raise InvalidInput(f"unknown docType: {doc_type!r}") from None
    return find_entities(ctx, {"docType": kind.value}, index, config)


def get_item(
    ctx: LedgerPort,
    item_id: str,
    index: Optional[SecondaryIndex] = None,
    config: PharmaTraceConfig = DEFAULT_CONFIG,
) -> Entity:
    """
    Любая запись по id.

    Сначала индекс (если задан); при SecondaryIndexError или промахе
    значение читается из ledger.

    Raises:
        NotFound: Ключа нет в ledger
    """
    if index is not None:
        try:
            documents = list(index.find({"id": item_id}))
        except SecondaryIndexError as e:
            logger.warning("secondary index failed for item %s, falling back to ledger: %s", item_id, e)
        else:
            if documents:
                return entity_from_document(documents[0], validate=config.validate_contracts)
            logger.debug("secondary index miss for item %s, reading ledger", item_id)

    return require_entity(ctx, item_id, validate=config.validate_contracts)


def _newest_first(orders: List[Order]) -> List[Order]:
    return sorted(
        orders,
        key=lambda o: o.created_at.timestamp() if o.created_at else float("-inf"),
        reverse=True,
    )


def get_all_orders(
    ctx: LedgerPort, index: Optional[SecondaryIndex] = None, config: PharmaTraceConfig = DEFAULT_CONFIG
) -> List[Order]:
    """Все заказы, новые первыми (по createdAt)."""
    return _newest_first(find_entities(ctx, {"docType": DocType.ORDER.value}, index, config))


def get_orders_by_recipient(
    ctx: LedgerPort,
    recipient: str,
    index: Optional[SecondaryIndex] = None,
    config: PharmaTraceConfig = DEFAULT_CONFIG,
) -> List[Order]:
    """Заказы по отображаемому имени получателя, например 'pharmacy-7 (Org2MSP)'."""
    return find_entities(ctx, {"docType": DocType.ORDER.value, "recipient": recipient}, index, config)


# =============================================================================
# STATISTICS / SEARCH
# =============================================================================


def get_statistics(ctx: LedgerPort, index: Optional[SecondaryIndex] = None) -> Dict[str, int]:
    """Количество записей каждого вида: strips, boxes, cartons, shipments, orders."""
    return {
        STATISTICS_KEYS[doc_type]: len(find_documents(ctx, {"docType": doc_type.value}, index))
        for doc_type in HIERARCHY
    }


def search_items(
    ctx: LedgerPort, term: str, index: Optional[SecondaryIndex] = None
) -> List[Dict[str, Any]]:
    """
    Записи всех видов, id которых содержит term (без учёта регистра).

    Возвращает плоские документы в порядке иерархии видов.
    """
    needle = term.lower()
    results: List[Dict[str, Any]] = []
    for doc_type in HIERARCHY:
        for doc in find_documents(ctx, {"docType": doc_type.value}, index):
            item_id = doc.get("id")
            if isinstance(item_id, str) and needle in item_id.lower():
                results.append(doc)
    return results
