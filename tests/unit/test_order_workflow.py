"""
Тесты Order Workflow.

Coverage:
- create_order: IN_ORDER у shipments, recipient, ошибки входа
- dispatch / deliver: решётка статусов, повторный вызов, deliver без dispatch
- distribute_shipment
"""

from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from pharmatrace.config import PharmaTraceConfig
from pharmatrace.containment import create_strip, seal_box, seal_carton, seal_shipment
from pharmatrace.core.domain import Status, decode_entity
from pharmatrace.core.errors import (
    AlreadyAssigned,
    AlreadyExists,
    InvalidInput,
    InvalidState,
    KindMismatch,
    NotAShipment,
    NotFound,
)
from pharmatrace.ledger import InMemoryLedger
from pharmatrace.orders import (
    create_order,
    deliver_order,
    dispatch_order,
    distribute_shipment,
    get_order,
)


@pytest.fixture
def ledger():
    """Ledger с тремя отгрузками SH1..SH3 (по одному картону, коробке и блистеру)."""
    ids = count(1)
    ticks = count(0)
    start = datetime(2024, 5, 1, tzinfo=timezone.utc)
    ledger = InMemoryLedger(
        clock=lambda: start + timedelta(hours=next(ticks)),
        tx_id_factory=lambda: f"tx-{next(ids)}",
    )
    for n in (1, 2, 3):
        with ledger.transaction() as tx:
            create_strip(tx, f"S{n}", "B-7", "Ibuprofen", "2024-01-01", "2026-01-01")
        with ledger.transaction() as tx:
            seal_box(tx, f"B{n}", [f"S{n}"])
        with ledger.transaction() as tx:
            seal_carton(tx, f"C{n}", [f"B{n}"])
        with ledger.transaction() as tx:
            seal_shipment(tx, f"SH{n}", [f"C{n}"])
    return ledger


def _run(ledger, operation, *args, **kwargs):
    with ledger.transaction() as tx:
        return operation(tx, *args, **kwargs)


def _load(ledger, item_id):
    return decode_entity(ledger.committed_value(item_id))


def _order(ledger, order_id="O1", shipment_ids=("SH1", "SH2"), **kwargs):
    return _run(
        ledger,
        create_order,
        order_id,
        list(shipment_ids),
        "mfr-1",
        "Org1MSP",
        "pharmacy-7",
        "Org2MSP",
        **kwargs,
    )


class TestCreateOrder:
    """Создание заказа."""

    def test_create_order(self, ledger):
        order = _order(ledger)

        assert order.item_ids == ["SH1", "SH2"]
        assert order.item_type == "shipment"
        assert order.status == Status.CREATED
        assert order.recipient == "pharmacy-7 (Org2MSP)"
        assert order.sender_org == "Org1MSP"
        assert order.dispatched_at is None

        for shipment_id in ("SH1", "SH2"):
            shipment = _load(ledger, shipment_id)
            assert shipment.order_id == "O1"
            assert shipment.status == Status.IN_ORDER
        assert _load(ledger, "SH3").order_id == ""

    def test_shipment_ids_as_json(self, ledger):
        order = _run(ledger, create_order, "O1", '["SH3"]', "m", "Org1MSP", "r", "Org2MSP")

        assert order.item_ids == ["SH3"]

    def test_custom_recipient_format(self, ledger):
        config = PharmaTraceConfig(recipient_format="{receiver_org}/{receiver_id}")

        order = _order(ledger, config=config)

        assert order.recipient == "Org2MSP/pharmacy-7"

    def test_order_keeps_cartons(self, ledger):
        _order(ledger)

        assert _load(ledger, "SH1").cartons == ["C1"]
        assert _load(ledger, "C1").shipment_id == "SH1"

    def test_duplicate_order(self, ledger):
        _order(ledger, shipment_ids=["SH1"])

        with pytest.raises(AlreadyExists):
            _order(ledger, shipment_ids=["SH2"])

    def test_empty_shipments(self, ledger):
        with pytest.raises(InvalidInput, match="at least one shipment"):
            _order(ledger, shipment_ids=[])

    def test_duplicate_shipments(self, ledger):
        with pytest.raises(InvalidInput, match="duplicate"):
            _order(ledger, shipment_ids=["SH1", "SH1"])

    def test_missing_shipment(self, ledger):
        with pytest.raises(NotFound, match="shipment SH9 does not exist"):
            _order(ledger, shipment_ids=["SH1", "SH9"])

        assert _load(ledger, "SH1").order_id == ""

    def test_not_a_shipment(self, ledger):
        with pytest.raises(NotAShipment, match="is not a shipment") as exc_info:
            _order(ledger, shipment_ids=["C1"])

        assert isinstance(exc_info.value, KindMismatch)
        assert exc_info.value.actual == "carton"

    def test_shipment_in_two_orders(self, ledger):
        _order(ledger, "O1", ["SH1"])

        with pytest.raises(AlreadyAssigned) as exc_info:
            _order(ledger, "O2", ["SH2", "SH1"])

        assert exc_info.value.parent_id == "O1"
        assert _load(ledger, "SH1").order_id == "O1"
        assert ledger.committed_value("O2") is None
        assert _load(ledger, "SH2").status == Status.CREATED

    def test_shipped_shipment_rejected(self, ledger):
        _run(ledger, distribute_shipment, "SH1", "MedLogistics")

        with pytest.raises(InvalidState):
            _order(ledger, shipment_ids=["SH1"])

    def test_get_order(self, ledger):
        created = _order(ledger)

        assert _run(ledger, get_order, "O1") == created
        with pytest.raises(KindMismatch):
            _run(ledger, get_order, "SH1")
        with pytest.raises(NotFound):
            _run(ledger, get_order, "O404")


class TestOrderLifecycle:
    """CREATED → DISPATCHED → DELIVERED."""

    def test_round_trip(self, ledger):
        _order(ledger)

        dispatched = _run(ledger, dispatch_order, "O1")
        delivered = _run(ledger, deliver_order, "O1")

        assert dispatched.status == Status.DISPATCHED
        assert dispatched.dispatched_at is not None
        assert delivered.status == Status.DELIVERED
        assert delivered.delivered_at > delivered.dispatched_at
        assert _load(ledger, "O1").status == Status.DELIVERED

    def test_dispatch_twice_overwrites_timestamp(self, ledger):
        _order(ledger)
        first = _run(ledger, dispatch_order, "O1")
        second = _run(ledger, dispatch_order, "O1")

        assert second.status == Status.DISPATCHED
        assert second.dispatched_at > first.dispatched_at

    def test_deliver_without_dispatch_accepted(self, ledger):
        _order(ledger)

        order = _run(ledger, deliver_order, "O1")

        assert order.status == Status.DELIVERED
        assert order.dispatched_at is None

    def test_dispatch_after_delivery_rejected(self, ledger):
        _order(ledger)
        _run(ledger, deliver_order, "O1")

        with pytest.raises(InvalidState):
            _run(ledger, dispatch_order, "O1")

    def test_creation_tx_id_immutable(self, ledger):
        created = _order(ledger)
        _run(ledger, dispatch_order, "O1")
        _run(ledger, deliver_order, "O1")

        assert _load(ledger, "O1").creation_tx_id == created.creation_tx_id
        assert _load(ledger, "O1").created_at == created.created_at

    def test_missing_order(self, ledger):
        with pytest.raises(NotFound):
            _run(ledger, dispatch_order, "O404")


class TestDistribution:
    """Передача отгрузки дистрибьютору."""

    def test_distribute(self, ledger):
        shipment = _run(ledger, distribute_shipment, "SH1", "MedLogistics")

        assert shipment.status == Status.SHIPPED
        assert shipment.distributor == "MedLogistics"
        assert shipment.distributed_at is not None
        assert shipment.cartons == ["C1"]

    def test_distribute_ordered_shipment(self, ledger):
        _order(ledger, shipment_ids=["SH1"])

        shipment = _run(ledger, distribute_shipment, "SH1", "MedLogistics")

        assert shipment.status == Status.SHIPPED
        assert shipment.order_id == "O1"

    def test_empty_distributor(self, ledger):
        with pytest.raises(InvalidInput):
            _run(ledger, distribute_shipment, "SH1", "")

    def test_distribute_non_shipment(self, ledger):
        with pytest.raises(KindMismatch):
            _run(ledger, distribute_shipment, "C1", "MedLogistics")
