"""
Status Lattice — решётка статусов по видам сущностей

- strip / box / carton: CREATED → SEALED
- shipment:             CREATED → IN_ORDER → SHIPPED
- order:                CREATED → DISPATCHED → DELIVERED

Статус только продвигается вперёд по решётке своего вида. Повторное
выставление того же статуса допустимо (dispatch_order дважды — не ошибка),
шаг вперёд через уровень тоже (deliver без dispatch внешне не запрещён).
Откат назад и статус чужого вида — InvalidState.

Чистые функции, без I/O.
"""

from typing import Dict, Tuple

from pharmatrace.core.domain.entities import DocType, LedgerEntity, Status, doc_type_of
from pharmatrace.core.errors import InvalidState


STATUS_LATTICE: Dict[DocType, Tuple[Status, ...]] = {
    DocType.STRIP: (Status.CREATED, Status.SEALED),
    DocType.BOX: (Status.CREATED, Status.SEALED),
    DocType.CARTON: (Status.CREATED, Status.SEALED),
    DocType.SHIPMENT: (Status.CREATED, Status.IN_ORDER, Status.SHIPPED),
    DocType.ORDER: (Status.CREATED, Status.DISPATCHED, Status.DELIVERED),
}

# Статус, который получает ребёнок при запечатывании в родителя
SEALED_STATUS: Dict[DocType, Status] = {
    DocType.STRIP: Status.SEALED,
    DocType.BOX: Status.SEALED,
    DocType.CARTON: Status.SEALED,
    DocType.SHIPMENT: Status.IN_ORDER,
}


def is_assigned(entity: LedgerEntity) -> bool:
    """
    Назначен ли сущности владеющий родитель.

    Args:
        entity: Любая сущность

    Returns:
        True если поле родителя непустое (для order всегда False)
    """
    return entity.parent_id != ""


def is_valid_transition(doc_type: DocType, current: Status, target: Status) -> bool:
    """
    Допустим ли переход статуса для вида.

    Args:
        doc_type: Вид сущности
        current: Текущий статус
        target: Целевой статус

    Returns:
        True если оба статуса принадлежат решётке вида и target не раньше current
    """
    lattice = STATUS_LATTICE[DocType(doc_type)]
    if current not in lattice or target not in lattice:
        return False
    return lattice.index(target) >= lattice.index(current)


def check_transition(entity: LedgerEntity, target: Status) -> None:
    """
    Проверка перехода для конкретной сущности.

    Raises:
        InvalidState: Если переход нарушает решётку
    """
    if not is_valid_transition(doc_type_of(entity), entity.status, target):
        raise InvalidState(entity.id, entity.status.value, Status(target).value)
