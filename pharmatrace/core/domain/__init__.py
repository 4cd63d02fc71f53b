"""
Domain models and value objects.

Contains the packaging hierarchy entities (Strip, Box, Carton, Shipment, Order),
the status lattice and the ledger record codec.
"""

from pharmatrace.core.domain.codec import (
    decode_document,
    decode_entity,
    encode_entity,
    entity_from_document,
    parse_id_list,
)
from pharmatrace.core.domain.entities import (
    ENTITY_ADAPTER,
    HIERARCHY,
    MODEL_BY_DOC_TYPE,
    Box,
    Carton,
    DocType,
    Entity,
    LedgerEntity,
    Order,
    Shipment,
    Status,
    Strip,
    doc_type_of,
)
from pharmatrace.core.domain.status import (
    SEALED_STATUS,
    STATUS_LATTICE,
    check_transition,
    is_assigned,
    is_valid_transition,
)

__all__ = [
    # Entities
    "DocType",
    "Status",
    "HIERARCHY",
    "LedgerEntity",
    "Strip",
    "Box",
    "Carton",
    "Shipment",
    "Order",
    "Entity",
    "ENTITY_ADAPTER",
    "MODEL_BY_DOC_TYPE",
    "doc_type_of",
    # Status lattice
    "STATUS_LATTICE",
    "SEALED_STATUS",
    "is_assigned",
    "is_valid_transition",
    "check_transition",
    # Codec
    "encode_entity",
    "decode_entity",
    "decode_document",
    "entity_from_document",
    "parse_id_list",
]
