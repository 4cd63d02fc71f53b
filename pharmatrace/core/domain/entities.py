"""
Entities — Модели единиц упаковочной иерархии

strip → box → carton → shipment → order

Immutable Pydantic модели. Сериализованный вид — плоский JSON документ
с дискриминатором docType и camelCase полями (совместим с записями,
которые уже лежат в ledger). Любое изменение сущности создаёт новый
экземпляр через model_copy(update=...).

Все сущности разделяют один плоский keyspace: id уникален среди всех видов.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, ClassVar, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator


# =============================================================================
# ENUMS
# =============================================================================


class DocType(str, Enum):
    """Дискриминатор вида записи (поле docType)."""

    STRIP = "strip"
    BOX = "box"
    CARTON = "carton"
    SHIPMENT = "shipment"
    ORDER = "order"


class Status(str, Enum):
    """Статус сущности. Допустимые значения зависят от вида (см. status.py)."""

    CREATED = "CREATED"
    SEALED = "SEALED"  # Запечатана в родителя
    IN_ORDER = "IN_ORDER"  # Shipment включён в заказ
    SHIPPED = "SHIPPED"  # Shipment передан дистрибьютору
    DISPATCHED = "DISPATCHED"
    DELIVERED = "DELIVERED"


# Порядок видов снизу вверх по иерархии
HIERARCHY: tuple = (
    DocType.STRIP,
    DocType.BOX,
    DocType.CARTON,
    DocType.SHIPMENT,
    DocType.ORDER,
)


# =============================================================================
# BASE MODEL
# =============================================================================


class LedgerEntity(BaseModel):
    """
    Общие поля всех записей ledger.

    creation_tx_id выставляется один раз при первой записи и больше не меняется.
    """

    id: str = Field(..., min_length=1, description="Уникальный id (общий keyspace)")
    status: Status = Field(Status.CREATED, description="Текущий статус")
    creation_tx_id: str = Field("", alias="creationTxId", description="Tx, создавшая запись")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    # Имя поля-ссылки на родителя и поля со списком детей (python names)
    PARENT_FIELD: ClassVar[Optional[str]] = None
    CHILDREN_FIELD: ClassVar[Optional[str]] = None

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def parent_id(self) -> str:
        """Id владеющего родителя ('' если не назначен)."""
        if self.PARENT_FIELD is None:
            return ""
        return getattr(self, self.PARENT_FIELD)

    @property
    def child_ids(self) -> List[str]:
        """Упорядоченный список id детей (пустой для strip)."""
        if self.CHILDREN_FIELD is None:
            return []
        return list(getattr(self, self.CHILDREN_FIELD))

    def to_document(self) -> dict:
        """Плоский JSON-совместимый документ в формате ledger."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# ENTITY MODELS
# =============================================================================


class Strip(LedgerEntity):
    """Блистер — минимальная единица. Родитель: box."""

    doc_type: Literal["strip"] = Field("strip", alias="docType")
    batch_number: str = Field("", alias="batchNumber", description="Номер партии")
    medicine_type: str = Field("", alias="medicineType", description="Препарат")
    mfg_date: str = Field("", alias="mfgDate", description="Дата производства")
    exp_date: str = Field("", alias="expDate", description="Срок годности")
    box_id: str = Field("", alias="boxId")

    PARENT_FIELD: ClassVar[Optional[str]] = "box_id"


class Box(LedgerEntity):
    """Коробка с блистерами. Родитель: carton."""

    doc_type: Literal["box"] = Field("box", alias="docType")
    strips: List[str] = Field(default_factory=list)
    carton_id: str = Field("", alias="cartonId")

    PARENT_FIELD: ClassVar[Optional[str]] = "carton_id"
    CHILDREN_FIELD: ClassVar[Optional[str]] = "strips"


class Carton(LedgerEntity):
    """Картон с коробками. Родитель: shipment."""

    doc_type: Literal["carton"] = Field("carton", alias="docType")
    boxes: List[str] = Field(default_factory=list)
    shipment_id: str = Field("", alias="shipmentId")

    PARENT_FIELD: ClassVar[Optional[str]] = "shipment_id"
    CHILDREN_FIELD: ClassVar[Optional[str]] = "boxes"


class Shipment(LedgerEntity):
    """
    Отгрузка с картонами.

    order_id — ссылка заказа на отгрузку. Это метаданные заказа, а не второе
    запечатывание: shipment запечатывается из картонов, заказ её только заявляет.
    """

    doc_type: Literal["shipment"] = Field("shipment", alias="docType")
    cartons: List[str] = Field(default_factory=list)
    order_id: str = Field("", alias="orderId")
    distributor: str = Field("", description="Имя дистрибьютора")
    distributed_at: Optional[datetime] = Field(None, alias="distributedAt")

    PARENT_FIELD: ClassVar[Optional[str]] = "order_id"
    CHILDREN_FIELD: ClassVar[Optional[str]] = "cartons"


class Order(LedgerEntity):
    """Заказ. Содержит только shipments."""

    doc_type: Literal["order"] = Field("order", alias="docType")
    item_type: Literal["shipment"] = Field("shipment", alias="itemType")
    item_ids: List[str] = Field(default_factory=list, alias="itemIds")
    sender_id: str = Field("", alias="senderId")
    sender_org: str = Field("", alias="senderOrg")
    receiver_id: str = Field("", alias="receiverId")
    receiver_org: str = Field("", alias="receiverOrg")
    recipient: str = Field("", description="Отображаемое имя получателя (legacy)")
    dispatched_at: Optional[datetime] = Field(None, alias="dispatchedAt")
    delivered_at: Optional[datetime] = Field(None, alias="deliveredAt")

    CHILDREN_FIELD: ClassVar[Optional[str]] = "item_ids"

    @field_validator("item_ids")
    @classmethod
    def validate_item_ids_unique(cls, v: List[str]) -> List[str]:
        """Один shipment не может входить в заказ дважды."""
        if len(set(v)) != len(v):
            raise ValueError(f"itemIds contains duplicates: {v}")
        return v


# =============================================================================
# TAGGED UNION
# =============================================================================


Entity = Annotated[
    Union[Strip, Box, Carton, Shipment, Order],
    Field(discriminator="doc_type"),
]

ENTITY_ADAPTER: TypeAdapter = TypeAdapter(Entity)

MODEL_BY_DOC_TYPE = {
    DocType.STRIP: Strip,
    DocType.BOX: Box,
    DocType.CARTON: Carton,
    DocType.SHIPMENT: Shipment,
    DocType.ORDER: Order,
}


def doc_type_of(entity: LedgerEntity) -> DocType:
    """Вид сущности как DocType."""
    return DocType(entity.doc_type)
