"""
Order Workflow — заказы над отгрузками

- create_order: заказ заявляет одну или несколько shipments
  (shipment.orderId + статус IN_ORDER)
- dispatch_order / deliver_order: CREATED → DISPATCHED → DELIVERED
- distribute_shipment: передача отгрузки дистрибьютору (SHIPPED)

Идемпотентность dispatch/deliver не навязывается: повторный вызов
перезаписывает timestamp и подтверждает тот же статус. Проверка личности
получателя при доставке — забота внешнего коллаборатора, здесь её нет.
"""

import logging
from typing import List, Union

from pharmatrace.config import DEFAULT_CONFIG, PharmaTraceConfig
from pharmatrace.core.domain.codec import parse_id_list
from pharmatrace.core.domain.entities import DocType, Order, Shipment, Status
from pharmatrace.core.domain.status import check_transition
from pharmatrace.core.errors import AlreadyAssigned, InvalidInput, NotAShipment, NotFound
from pharmatrace.ledger.port import LedgerPort
from pharmatrace.ledger.records import read_entity, require_absent, require_entity, write_entity

logger = logging.getLogger(__name__)


def create_order(
    ctx: LedgerPort,
    order_id: str,
    shipment_ids: Union[str, List[str]],
    sender_id: str,
    sender_org: str,
    receiver_id: str,
    receiver_org: str,
    config: PharmaTraceConfig = DEFAULT_CONFIG,
) -> Order:
    """
    Создание заказа над shipments.

    Ссылка заказа на shipment — дополнительные метаданные, а не второе
    запечатывание shipment (она запечатана из картонов раньше).

    Shipment с уже заполненным orderId не переназначается: у записи не
    больше одного родителя, поэтому повторное заявление отклоняется с
    AlreadyAssigned, а не перезаписывает ссылку на прежний заказ.

    Args:
        ctx: Транзакция хоста
        order_id: Id нового заказа
        shipment_ids: JSON массив id или список id
        sender_id, sender_org: Отправитель
        receiver_id, receiver_org: Получатель

    Returns:
        Созданный заказ

    Raises:
        AlreadyExists: order_id уже занят
        InvalidInput: Неразбираемый, пустой или содержащий повторы список
        NotFound: Shipment не существует
        NotAShipment: Id указывает на запись другого вида
        AlreadyAssigned: Shipment уже заявлена другим заказом
        InvalidState: Статус shipment не допускает IN_ORDER (уже SHIPPED)
    """
    if not order_id:
        raise InvalidInput("order id must be non-empty")
    require_absent(ctx, order_id, DocType.ORDER)

    shipment_ids = parse_id_list(shipment_ids, "shipment")
    if not shipment_ids:
        raise InvalidInput("at least one shipment must be selected")
    if len(set(shipment_ids)) != len(shipment_ids):
        raise InvalidInput(f"duplicate shipment IDs in order {order_id}")

    tx_id = ctx.current_tx_id()
    now = ctx.current_tx_timestamp()

    for shipment_id in shipment_ids:
        shipment = read_entity(ctx, shipment_id, validate=config.validate_contracts)
        if shipment is None:
            raise NotFound(shipment_id, f"shipment {shipment_id} does not exist")
        if not isinstance(shipment, Shipment):
            raise NotAShipment(shipment_id, actual=shipment.doc_type)
        if shipment.order_id:
            raise AlreadyAssigned(shipment_id, shipment.order_id, "shipment", "order")

        check_transition(shipment, Status.IN_ORDER)
        write_entity(
            ctx,
            shipment.model_copy(
                update={"order_id": order_id, "status": Status.IN_ORDER, "updated_at": now}
            ),
        )

    order = Order(
        id=order_id,
        item_ids=shipment_ids,
        sender_id=sender_id,
        sender_org=sender_org,
        receiver_id=receiver_id,
        receiver_org=receiver_org,
        recipient=config.recipient_format.format(receiver_id=receiver_id, receiver_org=receiver_org),
        status=Status.CREATED,
        creation_tx_id=tx_id,
        created_at=now,
        updated_at=now,
    )
    write_entity(ctx, order)

    logger.info(
        "created order %s: %d shipment(s), %s/%s -> %s/%s",
        order_id,
        len(shipment_ids),
        sender_org,
        sender_id,
        receiver_org,
        receiver_id,
    )
    return order


def get_order(ctx: LedgerPort, order_id: str, config: PharmaTraceConfig = DEFAULT_CONFIG) -> Order:
    """Заказ по id (NotFound / KindMismatch)."""
    return require_entity(ctx, order_id, DocType.ORDER, validate=config.validate_contracts)


def dispatch_order(ctx: LedgerPort, order_id: str, config: PharmaTraceConfig = DEFAULT_CONFIG) -> Order:
    """
    Отметка отправки заказа: DISPATCHED + dispatchedAt.

    Raises:
        NotFound: Заказа нет
        InvalidState: Заказ уже доставлен
    """
    order = get_order(ctx, order_id, config)
    check_transition(order, Status.DISPATCHED)

    now = ctx.current_tx_timestamp()
    order = order.model_copy(
        update={"status": Status.DISPATCHED, "dispatched_at": now, "updated_at": now}
    )
    write_entity(ctx, order)

    logger.info("dispatched order %s", order_id)
    return order


def deliver_order(ctx: LedgerPort, order_id: str, config: PharmaTraceConfig = DEFAULT_CONFIG) -> Order:
    """
    Отметка доставки заказа: DELIVERED + deliveredAt.

    Предварительный dispatch не требуется.

    Raises:
        NotFound: Заказа нет
    """
    order = get_order(ctx, order_id, config)
    check_transition(order, Status.DELIVERED)

    now = ctx.current_tx_timestamp()
    order = order.model_copy(
        update={"status": Status.DELIVERED, "delivered_at": now, "updated_at": now}
    )
    write_entity(ctx, order)

    logger.info("delivered order %s", order_id)
    return order


def distribute_shipment(
    ctx: LedgerPort,
    shipment_id: str,
    distributor: str,
    config: PharmaTraceConfig = DEFAULT_CONFIG,
) -> Shipment:
    """
    Передача отгрузки дистрибьютору: SHIPPED + distributor + distributedAt.

    Raises:
        NotFound: Shipment нет (KindMismatch если id другого вида)
        InvalidInput: Пустое имя дистрибьютора
    """
    if not distributor:
        raise InvalidInput("distributor must be non-empty")

    shipment = require_entity(ctx, shipment_id, DocType.SHIPMENT, validate=config.validate_contracts)
    check_transition(shipment, Status.SHIPPED)

    now = ctx.current_tx_timestamp()
    shipment = shipment.model_copy(
        update={
            "status": Status.SHIPPED,
            "distributor": distributor,
            "distributed_at": now,
            "updated_at": now,
        }
    )
    write_entity(ctx, shipment)

    logger.info("distributed shipment %s to %s", shipment_id, distributor)
    return shipment
