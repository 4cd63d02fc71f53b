"""
Containment Engine — запечатывание детей в нового родителя

strip → box → carton → shipment: на каждом уровне одна и та же операция
seal(parent_id, child_ids). Поле родителя у ребёнка переходит из пустого
в непустое ровно один раз; повторное запечатывание — AlreadyAssigned.

Все чтения и записи одной операции выполняются внутри одной транзакции
хоста. Атомарность обеспечивает хост: при ошибке посреди цикла по детям
движок ничего не откатывает сам, транзакция отбрасывается целиком.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Type, Union

from pharmatrace.config import DEFAULT_CONFIG, PharmaTraceConfig
from pharmatrace.core.domain.codec import parse_id_list
from pharmatrace.core.domain.entities import (
    Box,
    Carton,
    DocType,
    LedgerEntity,
    Shipment,
    Status,
    Strip,
)
from pharmatrace.core.domain.status import SEALED_STATUS, check_transition, is_assigned
from pharmatrace.core.errors import AlreadyAssigned, InvalidInput
from pharmatrace.ledger.port import LedgerPort
from pharmatrace.ledger.records import require_absent, require_entity, write_entity

logger = logging.getLogger(__name__)


# =============================================================================
# SEAL LEVELS
# =============================================================================


@dataclass(frozen=True)
class SealLevel:
    """Один уровень иерархии: какой родитель из каких детей."""

    parent_type: DocType
    child_type: DocType
    parent_model: Type[LedgerEntity]
    children_field: str


BOX_LEVEL = SealLevel(DocType.BOX, DocType.STRIP, Box, "strips")
CARTON_LEVEL = SealLevel(DocType.CARTON, DocType.BOX, Carton, "boxes")
SHIPMENT_LEVEL = SealLevel(DocType.SHIPMENT, DocType.CARTON, Shipment, "cartons")


# =============================================================================
# OPERATIONS
# =============================================================================


def create_strip(
    ctx: LedgerPort,
    strip_id: str,
    batch_number: str,
    medicine_type: str,
    mfg_date: str,
    exp_date: str,
) -> Strip:
    """
    Создание блистера — единственный путь появления strip в ledger.

    Raises:
        AlreadyExists: Id уже занят записью любого вида
        InvalidInput: Пустой id
    """
    if not strip_id:
        raise InvalidInput("strip id must be non-empty")
    require_absent(ctx, strip_id, DocType.STRIP)

    now = ctx.current_tx_timestamp()
    strip = Strip(
        id=strip_id,
        batch_number=batch_number,
        medicine_type=medicine_type,
        mfg_date=mfg_date,
        exp_date=exp_date,
        status=Status.CREATED,
        box_id="",
        creation_tx_id=ctx.current_tx_id(),
        created_at=now,
        updated_at=now,
    )
    write_entity(ctx, strip)

    logger.info("created strip %s (batch=%s)", strip_id, batch_number)
    return strip


def seal(
    ctx: LedgerPort,
    level: SealLevel,
    parent_id: str,
    child_ids: Union[str, List[str]],
    config: PharmaTraceConfig = DEFAULT_CONFIG,
) -> LedgerEntity:
    """
    Запечатывание детей в нового родителя.

    Порядок:
    1. parent_id не должен существовать (keyspace общий для всех видов)
    2. Список детей непустой, без повторов
    3. Для каждого ребёнка по порядку: чтение, проверка вида, проверка что
       поле родителя пустое, выставление родителя и статуса, запись
    4. Запись родителя со списком детей ровно в переданном порядке

    Args:
        ctx: Транзакция хоста
        level: Уровень иерархии (BOX_LEVEL / CARTON_LEVEL / SHIPMENT_LEVEL)
        parent_id: Id нового родителя
        child_ids: JSON массив id или список id

    Returns:
        Созданный родитель

    Raises:
        AlreadyExists: parent_id уже занят
        InvalidInput: Неразбираемый, пустой или содержащий повторы список
        NotFound: Ребёнок не существует (или другого вида — KindMismatch)
        AlreadyAssigned: Ребёнок уже запечатан в другого родителя
        InvalidState: Статус ребёнка не допускает запечатывание
    """
    parent_label = level.parent_type.value
    child_label = level.child_type.value

    if not parent_id:
        raise InvalidInput(f"{parent_label} id must be non-empty")
    require_absent(ctx, parent_id, level.parent_type)

    child_ids = parse_id_list(child_ids, child_label)
    if not child_ids:
        raise InvalidInput(f"at least one {child_label} is required to seal {parent_label} {parent_id}")
    if len(set(child_ids)) != len(child_ids):
        raise InvalidInput(f"duplicate {child_label} IDs in {parent_label} {parent_id}")

    tx_id = ctx.current_tx_id()
    now = ctx.current_tx_timestamp()

    for child_id in child_ids:
        _assign_child(ctx, level, child_id, parent_id, now, config)

    parent = level.parent_model(
        id=parent_id,
        status=Status.CREATED,
        creation_tx_id=tx_id,
        created_at=now,
        updated_at=now,
        **{level.children_field: child_ids},
    )
    write_entity(ctx, parent)

    logger.info("sealed %s %s with %d %s(s)", parent_label, parent_id, len(child_ids), child_label)
    return parent


def _assign_child(
    ctx: LedgerPort,
    level: SealLevel,
    child_id: str,
    parent_id: str,
    now: datetime,
    config: PharmaTraceConfig,
) -> None:
    child = require_entity(ctx, child_id, level.child_type, validate=config.validate_contracts)

    if is_assigned(child):
        raise AlreadyAssigned(
            child_id,
            child.parent_id,
            child_type=level.child_type.value,
            parent_type=level.parent_type.value,
        )

    target = SEALED_STATUS[level.child_type]
    check_transition(child, target)

    updated = child.model_copy(
        update={child.PARENT_FIELD: parent_id, "status": target, "updated_at": now}
    )
    write_entity(ctx, updated)


def seal_box(ctx: LedgerPort, box_id: str, strip_ids, config: PharmaTraceConfig = DEFAULT_CONFIG) -> Box:
    """Коробка из блистеров."""
    return seal(ctx, BOX_LEVEL, box_id, strip_ids, config)


def seal_carton(ctx: LedgerPort, carton_id: str, box_ids, config: PharmaTraceConfig = DEFAULT_CONFIG) -> Carton:
    """Картон из коробок."""
    return seal(ctx, CARTON_LEVEL, carton_id, box_ids, config)


def seal_shipment(
    ctx: LedgerPort, shipment_id: str, carton_ids, config: PharmaTraceConfig = DEFAULT_CONFIG
) -> Shipment:
    """Отгрузка из картонов."""
    return seal(ctx, SHIPMENT_LEVEL, shipment_id, carton_ids, config)
