"""
Tests for packaging hierarchy entities

Проверяется:
- camelCase сериализация и обратный разбор по alias
- дискриминатор docType и tagged union
- parent_id / child_ids для каждого вида
- неизменяемость (frozen) и model_copy
- валидатор уникальности itemIds у заказа
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from pharmatrace.core.domain import (
    ENTITY_ADAPTER,
    HIERARCHY,
    MODEL_BY_DOC_TYPE,
    Box,
    Carton,
    DocType,
    Order,
    Shipment,
    Status,
    Strip,
    doc_type_of,
)


NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def strip():
    return Strip(
        id="S1",
        batch_number="B-001",
        medicine_type="Paracetamol",
        mfg_date="2024-01-01",
        exp_date="2026-01-01",
        creation_tx_id="tx-1",
        created_at=NOW,
        updated_at=NOW,
    )


# =============================================================================
# SERIALIZATION
# =============================================================================


class TestDocumentShape:
    """Плоский JSON документ в формате ledger."""

    def test_strip_document_uses_camel_case(self, strip):
        doc = strip.to_document()

        assert doc["docType"] == "strip"
        assert doc["batchNumber"] == "B-001"
        assert doc["medicineType"] == "Paracetamol"
        assert doc["mfgDate"] == "2024-01-01"
        assert doc["expDate"] == "2026-01-01"
        assert doc["boxId"] == ""
        assert doc["status"] == "CREATED"
        assert doc["creationTxId"] == "tx-1"
        assert "batch_number" not in doc

    def test_timestamps_serialized_as_strings(self, strip):
        doc = strip.to_document()

        assert isinstance(doc["createdAt"], str)
        assert doc["createdAt"].startswith("2024-03-01T12:00:00")

    def test_order_document_fields(self):
        order = Order(
            id="O1",
            item_ids=["SH1"],
            sender_id="mfr",
            sender_org="Org1MSP",
            receiver_id="pharmacy-7",
            receiver_org="Org2MSP",
            recipient="pharmacy-7 (Org2MSP)",
        )
        doc = order.to_document()

        assert doc["docType"] == "order"
        assert doc["itemType"] == "shipment"
        assert doc["itemIds"] == ["SH1"]
        assert doc["receiverOrg"] == "Org2MSP"
        assert doc["dispatchedAt"] is None
        assert doc["deliveredAt"] is None

    def test_round_trip_through_adapter(self, strip):
        parsed = ENTITY_ADAPTER.validate_python(strip.to_document())

        assert isinstance(parsed, Strip)
        assert parsed == strip


# =============================================================================
# TAGGED UNION
# =============================================================================


class TestTaggedUnion:
    """Выбор модели по docType."""

    @pytest.mark.parametrize(
        "doc,model",
        [
            ({"docType": "strip", "id": "S1"}, Strip),
            ({"docType": "box", "id": "B1", "strips": ["S1"]}, Box),
            ({"docType": "carton", "id": "C1", "boxes": ["B1"]}, Carton),
            ({"docType": "shipment", "id": "SH1", "cartons": ["C1"]}, Shipment),
            ({"docType": "order", "id": "O1", "itemIds": ["SH1"]}, Order),
        ],
    )
    def test_discriminator_selects_model(self, doc, model):
        assert isinstance(ENTITY_ADAPTER.validate_python(doc), model)

    def test_unknown_doc_type_rejected(self):
        with pytest.raises(ValidationError):
            ENTITY_ADAPTER.validate_python({"docType": "pallet", "id": "P1"})

    def test_missing_doc_type_rejected(self):
        with pytest.raises(ValidationError):
            ENTITY_ADAPTER.validate_python({"id": "S1"})

    def test_model_registry_covers_hierarchy(self):
        assert set(MODEL_BY_DOC_TYPE) == set(HIERARCHY)
        assert HIERARCHY[0] == DocType.STRIP
        assert HIERARCHY[-1] == DocType.ORDER

    def test_doc_type_of(self, strip):
        assert doc_type_of(strip) is DocType.STRIP
        assert doc_type_of(Box(id="B1")) is DocType.BOX


# =============================================================================
# RELATIONS
# =============================================================================


class TestRelations:
    """parent_id / child_ids по видам."""

    def test_strip_parent_is_box(self, strip):
        assert strip.parent_id == ""
        assert strip.child_ids == []

        sealed = strip.model_copy(update={"box_id": "B1"})
        assert sealed.parent_id == "B1"

    def test_box_relations(self):
        box = Box(id="B1", strips=["S1", "S2"], carton_id="C1")

        assert box.parent_id == "C1"
        assert box.child_ids == ["S1", "S2"]

    def test_carton_relations(self):
        carton = Carton(id="C1", boxes=["B1"], shipment_id="SH1")

        assert carton.parent_id == "SH1"
        assert carton.child_ids == ["B1"]

    def test_shipment_parent_is_order(self):
        shipment = Shipment(id="SH1", cartons=["C1"], order_id="O1")

        assert shipment.parent_id == "O1"
        assert shipment.child_ids == ["C1"]

    def test_order_has_no_parent(self):
        order = Order(id="O1", item_ids=["SH1", "SH2"])

        assert order.parent_id == ""
        assert order.child_ids == ["SH1", "SH2"]

    def test_child_ids_is_a_copy(self):
        box = Box(id="B1", strips=["S1"])
        ids = box.child_ids
        ids.append("S2")

        assert box.strips == ["S1"]


# =============================================================================
# IMMUTABILITY / VALIDATION
# =============================================================================


class TestValidation:
    """Frozen модели и валидаторы."""

    def test_entities_are_frozen(self, strip):
        with pytest.raises(ValidationError):
            strip.status = Status.SEALED

    def test_model_copy_creates_new_instance(self, strip):
        sealed = strip.model_copy(update={"status": Status.SEALED, "box_id": "B1"})

        assert strip.status == Status.CREATED
        assert sealed.status == Status.SEALED
        assert sealed.creation_tx_id == strip.creation_tx_id

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError):
            Strip(id="")

    def test_order_duplicate_item_ids_rejected(self):
        with pytest.raises(ValidationError, match="duplicates"):
            Order(id="O1", item_ids=["SH1", "SH1"])

    def test_populate_by_alias(self):
        box = Box.model_validate({"id": "B1", "cartonId": "C1", "creationTxId": "tx"})

        assert box.carton_id == "C1"
        assert box.creation_tx_id == "tx"
