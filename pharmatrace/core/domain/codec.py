"""
Codec — сериализация записей ledger

Ledger хранит непрозрачные байты. Здесь единственная граница, где байты
превращаются в типизированные сущности: неизвестный или отсутствующий
docType, нарушение контракта и ошибки Pydantic валидации
превращаются в InvalidInput.
"""

import json
from typing import Any, Dict, List, Union

from jsonschema import ValidationError as SchemaValidationError
from pydantic import ValidationError

from pharmatrace.core.contracts import validate_record, validator_for
from pharmatrace.core.domain.entities import ENTITY_ADAPTER, DocType, Entity, LedgerEntity
from pharmatrace.core.errors import InvalidInput


_DOC_TYPES = frozenset(t.value for t in DocType)


def encode_entity(entity: LedgerEntity) -> bytes:
    """Сущность → байты для Ledger Port (compact JSON, camelCase)."""
    return json.dumps(entity.to_document(), separators=(",", ":")).encode("utf-8")


def decode_document(raw: Union[bytes, str]) -> Dict[str, Any]:
    """
    Байты → плоский документ без привязки к модели.

    Raises:
        InvalidInput: Если байты не являются JSON объектом
    """
    try:
        document = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"record is not valid JSON: {e}")
    if not isinstance(document, dict):
        raise InvalidInput(f"record must be a JSON object, got {type(document).__name__}")
    return document


def entity_from_document(document: Dict[str, Any], validate: bool = True) -> Entity:
    """
    Документ → типизированная сущность.

    Args:
        document: Плоский документ с полем docType
        validate: Проверять JSON Schema контракт вида

    Raises:
        InvalidInput: Неизвестный docType, нарушение контракта или модели
    """
    doc_type = document.get("docType")
    if doc_type not in _DOC_TYPES:
        raise InvalidInput(f"unable to determine item type: docType={doc_type!r}")

    if validate:
        try:
            validate_record(document)
        except SchemaValidationError:
            violations = "; ".join(
                sorted(e.message for e in validator_for(doc_type).iter_errors(document))
            )
            raise InvalidInput(f"{doc_type} {document.get('id')!r} violates contract: {violations}")

    try:
        return ENTITY_ADAPTER.validate_python(document)
    except ValidationError as e:
        raise InvalidInput(f"{doc_type} {document.get('id')!r} is malformed: {e}")


def decode_entity(raw: Union[bytes, str], validate: bool = True) -> Entity:
    """Байты → типизированная сущность (decode_document + entity_from_document)."""
    return entity_from_document(decode_document(raw), validate=validate)


def parse_id_list(value: Union[str, bytes, List[str]], what: str = "item") -> List[str]:
    """
    Список id из аргумента операции.

    Внешний слой передаёт списки как сериализованный JSON массив строк;
    уже разобранный список тоже принимается.

    Args:
        value: '["A1","A2"]' или ["A1", "A2"]
        what: Название вида для сообщений об ошибке

    Returns:
        Список id в исходном порядке

    Raises:
        InvalidInput: Неразбираемый JSON, не массив, элементы не строки или пустые
    """
    if isinstance(value, (str, bytes)):
        try:
            value = json.loads(value)
        except ValueError as e:
            raise InvalidInput(f"failed to parse {what} IDs: {e}")

    if not isinstance(value, list):
        raise InvalidInput(f"failed to parse {what} IDs: expected a JSON array of strings")

    for item_id in value:
        if not isinstance(item_id, str) or not item_id:
            raise InvalidInput(f"failed to parse {what} IDs: invalid id {item_id!r}")

    return list(value)
