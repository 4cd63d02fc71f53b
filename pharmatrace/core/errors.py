"""
Errors — таксономия ошибок pharmatrace

Все ошибки локальные и синхронные: ядро их не ретраит и не глотает.
Любая ошибка посреди операции должна прервать транзакцию хоста целиком,
ядро частичных записей не откатывает само.

Иерархия:
    PharmaTraceError
    ├── NotFound
    │   └── KindMismatch
    │       └── NotAShipment
    ├── AlreadyExists
    ├── AlreadyAssigned
    ├── InvalidInput
    └── InvalidState
"""

from typing import Optional


class PharmaTraceError(Exception):
    """Базовая ошибка доменного ядра."""

    code: str = "ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFound(PharmaTraceError):
    """Идентификатор не разрешается в запись (или запись другого вида)."""

    code = "NOT_FOUND"

    def __init__(self, item_id: str, message: Optional[str] = None):
        self.item_id = item_id
        super().__init__(message or f"item {item_id} does not exist")


class KindMismatch(NotFound):
    """Запись существует, но её docType не совпадает с ожидаемым."""

    code = "KIND_MISMATCH"

    def __init__(self, item_id: str, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(item_id, f"item {item_id} is a {actual}, expected {expected}")


class NotAShipment(KindMismatch):
    """Заказ ссылается на запись, которая не является shipment."""

    code = "NOT_A_SHIPMENT"

    def __init__(self, item_id: str, actual: str):
        super().__init__(item_id, expected="shipment", actual=actual)
        self.message = f"item {item_id} is not a shipment"
        self.args = (self.message,)


class AlreadyExists(PharmaTraceError):
    """Создание id, который уже есть в ledger (keyspace общий для всех видов)."""

    code = "ALREADY_EXISTS"

    def __init__(self, item_id: str, doc_type: str = "item"):
        self.item_id = item_id
        super().__init__(f"{doc_type} {item_id} already exists")


class AlreadyAssigned(PharmaTraceError):
    """Дочерняя запись уже запечатана в другого родителя."""

    code = "ALREADY_ASSIGNED"

    def __init__(self, child_id: str, parent_id: str, child_type: str, parent_type: str):
        self.child_id = child_id
        self.parent_id = parent_id
        super().__init__(f"{child_type} {child_id} is already in {parent_type} {parent_id}")


class InvalidInput(PharmaTraceError):
    """Некорректный аргумент: неразбираемый список id, пустой список и т.п."""

    code = "INVALID_INPUT"


class InvalidState(PharmaTraceError):
    """Нарушение решётки статусов."""

    code = "INVALID_STATE"

    def __init__(self, item_id: str, current: str, target: str):
        self.item_id = item_id
        self.current = current
        self.target = target
        super().__init__(f"item {item_id}: invalid status transition {current} -> {target}")
