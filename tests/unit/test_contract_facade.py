"""
Тесты фасада PharmaContract.

Coverage:
- Полный путь strip → box → carton → shipment → order → delivery
- Одна операция = одна транзакция; ошибка отбрасывает все записи
- Трассировки и листинги через фасад
- Конфиг и вторичный индекс передаются в операции
- Чтения не коммитятся: конкурентная запись не отклоняет их, но отклоняет изменение
"""

from itertools import count

import pytest

from pharmatrace import DEFAULT_CONFIG, PharmaContract, PharmaTraceConfig
from pharmatrace.core.domain import Status
from pharmatrace.core.errors import AlreadyAssigned, NotFound, PharmaTraceError
from pharmatrace.ledger import InMemoryLedger, LedgerTransaction, TransactionConflict
from pharmatrace.queries import SecondaryIndexError


STRIPS = ["A1", "A2", "A3", "A4", "A5"]


@pytest.fixture
def ledger():
    ids = count(1)
    return InMemoryLedger(tx_id_factory=lambda: f"tx-{next(ids)}")


@pytest.fixture
def contract(ledger):
    return PharmaContract(ledger)


@pytest.fixture
def packed(contract):
    """A1..A5 → B1 → C1 → SH1."""
    for strip_id in STRIPS:
        contract.create_strip(strip_id, "B-001", "Paracetamol", "2024-01-01", "2026-01-01")
    contract.seal_box("B1", '["A1","A2","A3","A4","A5"]')
    contract.seal_carton("C1", '["B1"]')
    contract.seal_shipment("SH1", '["C1"]')
    return contract


class TestFacadeSetup:
    """Конструирование фасада."""

    def test_default_config(self, ledger):
        assert PharmaContract(ledger).config is DEFAULT_CONFIG

    def test_custom_config(self, ledger):
        config = PharmaTraceConfig(validate_contracts=False)

        assert PharmaContract(ledger, config=config).config is config


class TestFacadeLifecycle:
    """Полный жизненный цикл."""

    def test_full_lifecycle(self, packed):
        order = packed.create_order("O1", '["SH1"]', "mfr-1", "Org1MSP", "pharmacy-7", "Org2MSP")
        packed.dispatch_order("O1")
        delivered = packed.deliver_order("O1")

        assert order.recipient == "pharmacy-7 (Org2MSP)"
        assert delivered.status == Status.DELIVERED
        assert packed.get_order("O1").status == Status.DELIVERED
        assert packed.get_item("SH1").status == Status.IN_ORDER

    def test_distribute(self, packed):
        shipment = packed.distribute_shipment("SH1", "MedLogistics")

        assert shipment.status == Status.SHIPPED
        assert packed.get_available_shipments() == []

    def test_each_call_commits(self, packed, ledger):
        assert ledger.committed_value("SH1") is not None
        # 5 strips + box + carton + shipment
        assert len(ledger.committed_keys()) == 8

    def test_failure_discards_writes(self, packed, ledger):
        packed.create_strip("X1", "B-002", "Ibuprofen", "2024-01-01", "2026-01-01")

        with pytest.raises(AlreadyAssigned):
            packed.seal_box("B2", ["X1", "A1"])

        assert ledger.committed_value("B2") is None
        assert packed.get_item("X1").box_id == ""
        assert packed.get_available_strips()[0].id == "X1"

    def test_errors_share_base(self, contract):
        with pytest.raises(PharmaTraceError) as exc_info:
            contract.scan("nope")

        assert isinstance(exc_info.value, NotFound)
        assert exc_info.value.code == "NOT_FOUND"


class TestFacadeTrace:
    """Трассировки через фасад."""

    def test_scan_and_history(self, packed):
        packed.create_order("O1", ["SH1"], "mfr-1", "Org1MSP", "pharmacy-7", "Org2MSP")

        scanned = packed.scan("A3")
        traced = packed.trace_from_history("A3")

        assert scanned.ancestor_ids == ["B1", "C1", "SH1"]
        assert traced.parent_ids == ["B1", "C1", "SH1", "O1"]

    def test_find_by_creation_tx(self, packed):
        box_tx = packed.get_item("B1").creation_tx_id

        result = packed.find_by_creation_tx(box_tx)

        assert result.transaction_info.item_id == "B1"
        assert result.traceability.child_ids == STRIPS

    def test_histories(self, packed):
        history = packed.get_transaction_history("A1")
        record = packed.get_item_history("A1")

        assert [h.value["status"] for h in history] == ["SEALED", "CREATED"]
        assert record.current.box_id == "B1"
        assert history[-1].tx_id == packed.get_item("A1").creation_tx_id


class TestFacadeListings:
    """Листинги через фасад."""

    def test_listings(self, packed):
        packed.create_strip("X1", "B-002", "Ibuprofen", "2024-01-01", "2026-01-01")

        assert [s.id for s in packed.get_available_strips()] == ["X1"]
        assert packed.get_available_boxes() == []
        assert packed.get_available_cartons() == []
        assert [s.id for s in packed.get_available_shipments()] == ["SH1"]
        assert [b.id for b in packed.get_all_items("box")] == ["B1"]
        assert packed.get_all_orders() == []
        assert packed.get_orders_by_recipient("pharmacy-7 (Org2MSP)") == []
        assert packed.get_statistics()["strips"] == 6
        assert [d["id"] for d in packed.search_items("a")] == STRIPS

    def test_index_passed_to_listings(self, ledger):
        calls = []

        class OfflineIndex:
            def find(self, selector):
                calls.append(dict(selector))
                raise SecondaryIndexError("offline")

        contract = PharmaContract(ledger, index=OfflineIndex())
        contract.create_strip("S1", "B", "M", "2024-01-01", "2026-01-01")

        assert [s.id for s in contract.get_available_strips()] == ["S1"]
        assert calls == [{"docType": "strip", "boxId": ""}]


class InterleavingLedger(InMemoryLedger):
    """Ledger, который коммитит конкурентную запись сразу после чтения заданного ключа."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.pending = None

    def begin(self, tx_id=None):
        return InterleavedTransaction(self, tx_id or self._tx_id_factory(), self._clock())


class InterleavedTransaction(LedgerTransaction):
    def get(self, key):
        value = super().get(key)
        pending = self._ledger.pending
        if pending is not None and pending[0] == key:
            self._ledger.pending = None
            pending[1]()
        return value


class TestFacadeConcurrency:
    """Чтения не коммитятся и не отклоняются MVCC."""

    @pytest.fixture
    def contract(self):
        contract = PharmaContract(InterleavingLedger())
        contract.create_strip("A1", "B-001", "Paracetamol", "2024-01-01", "2026-01-01")
        contract.seal_box("B1", ["A1"])
        contract.seal_carton("C1", ["B1"])
        contract.seal_shipment("SH1", ["C1"])
        return contract

    def test_read_survives_concurrent_write(self, contract):
        contract.ledger.pending = ("SH1", lambda: contract.distribute_shipment("SH1", "MedLogistics"))

        scanned = contract.scan("SH1")

        assert scanned.item.id == "SH1"
        assert contract.get_item("SH1").status == Status.SHIPPED

    def test_write_rejected_on_concurrent_write(self, contract):
        contract.ledger.pending = ("SH1", lambda: contract.distribute_shipment("SH1", "MedLogistics"))

        with pytest.raises(TransactionConflict):
            contract.create_order("O1", ["SH1"], "mfr-1", "Org1MSP", "pharmacy-7", "Org2MSP")

        assert contract.ledger.committed_value("O1") is None

    def test_reads_leave_no_history(self, contract):
        before = list(contract.ledger.begin().history("SH1"))

        contract.scan("SH1")
        contract.trace_from_history("A1")
        contract.get_statistics()

        assert list(contract.ledger.begin().history("SH1")) == before
