"""Чтение и запись типизированных сущностей через LedgerPort."""

from typing import Optional

from pharmatrace.core.domain.codec import decode_entity, encode_entity
from pharmatrace.core.domain.entities import DocType, Entity, LedgerEntity
from pharmatrace.core.errors import AlreadyExists, KindMismatch, NotFound
from pharmatrace.ledger.port import LedgerPort


def entity_exists(ctx: LedgerPort, item_id: str) -> bool:
    """Есть ли ключ в текущем состоянии (любого вида)."""
    return ctx.get(item_id) is not None


def read_entity(ctx: LedgerPort, item_id: str, validate: bool = True) -> Optional[Entity]:
    """Текущая сущность по id или None."""
    raw = ctx.get(item_id)
    if raw is None:
        return None
    return decode_entity(raw, validate=validate)


def require_entity(
    ctx: LedgerPort,
    item_id: str,
    doc_type: Optional[DocType] = None,
    validate: bool = True,
) -> Entity:
    """
    Текущая сущность по id с проверкой вида.

    Raises:
        NotFound: Ключа нет
        KindMismatch: Запись другого вида
        InvalidInput: Запись не разбирается
    """
    entity = read_entity(ctx, item_id, validate=validate)
    if entity is None:
        label = doc_type.value if doc_type is not None else "item"
        raise NotFound(item_id, f"{label} {item_id} does not exist")
    if doc_type is not None and entity.doc_type != doc_type.value:
        raise KindMismatch(item_id, expected=doc_type.value, actual=entity.doc_type)
    return entity


def require_absent(ctx: LedgerPort, item_id: str, doc_type: DocType) -> None:
    """
    Id свободен во всём keyspace.

    Raises:
        AlreadyExists: Ключ уже занят записью любого вида
    """
    if entity_exists(ctx, item_id):
        raise AlreadyExists(item_id, doc_type.value)


def write_entity(ctx: LedgerPort, entity: LedgerEntity) -> None:
    ctx.put(entity.id, encode_entity(entity))
