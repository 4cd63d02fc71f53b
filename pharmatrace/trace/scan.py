"""
Current-State Walk — трассировка по текущим указателям

Быстрый режим: читает только последнее закоммиченное значение каждого
затронутого ключа. Предки поднимаются по полям родителя до shipment
(заказ в этом режиме предком не считается), потомки — один уровень.

- strip    → предки box, carton, shipment
- box      → потомки strips; предки carton, shipment
- carton   → потомки boxes; предок shipment
- shipment → потомки cartons
- order    → потомки shipments (без рекурсии)

Отсутствующие дети и предки пропускаются (best-effort), сама запись
обязана существовать.
"""

import logging
from typing import List, Optional

from pharmatrace.config import DEFAULT_CONFIG, PharmaTraceConfig
from pharmatrace.core.domain.entities import Entity, LedgerEntity, Shipment, doc_type_of
from pharmatrace.core.errors import NotFound
from pharmatrace.ledger.port import LedgerPort
from pharmatrace.ledger.records import require_entity
from pharmatrace.trace.results import ScanResult

logger = logging.getLogger(__name__)


def scan(ctx: LedgerPort, item_id: str, config: PharmaTraceConfig = DEFAULT_CONFIG) -> ScanResult:
    """
    Трассировка записи по текущему состоянию.

    Args:
        ctx: Транзакция хоста (только чтение)
        item_id: Id любой записи

    Returns:
        ScanResult

    Raises:
        NotFound: Записи нет
        InvalidInput: Запись не разбирается (неизвестный docType и т.п.)
    """
    item = require_entity(ctx, item_id, validate=config.validate_contracts)
    item_type = doc_type_of(item)

    ancestors = _ancestors(ctx, item, config)
    descendants = _children(ctx, item, config)

    logger.debug(
        "scan %s (%s): %d ancestor(s), %d descendant(s)",
        item_id,
        item_type.value,
        len(ancestors),
        len(descendants),
    )
    return ScanResult(
        item_type=item_type,
        item=item,
        ancestors=ancestors,
        descendants=descendants,
    )


def _ancestors(ctx: LedgerPort, item: LedgerEntity, config: PharmaTraceConfig) -> List[Entity]:
    ancestors: List[Entity] = []
    current = item
    # Ссылка shipment → order в этом режиме не поднимается
    while not isinstance(current, Shipment) and current.parent_id:
        parent = _fetch(ctx, current.parent_id, config)
        if parent is None:
            break
        ancestors.append(parent)
        current = parent
    return ancestors


def _children(ctx: LedgerPort, item: LedgerEntity, config: PharmaTraceConfig) -> List[Entity]:
    children: List[Entity] = []
    for child_id in item.child_ids:
        child = _fetch(ctx, child_id, config)
        if child is not None:
            children.append(child)
    return children


def _fetch(ctx: LedgerPort, item_id: str, config: PharmaTraceConfig) -> Optional[Entity]:
    try:
        return require_entity(ctx, item_id, validate=config.validate_contracts)
    except NotFound:
        logger.debug("scan: referenced item %s is missing, skipped", item_id)
        return None
