"""
Contract Validation Module

JSON Schema контракты записей ledger (по одному на вид сущности).
"""

from .validators import (
    BoxValidator,
    CartonValidator,
    ContractValidator,
    OrderValidator,
    SchemaLoader,
    ShipmentValidator,
    StripValidator,
    validate_record,
    validator_for,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "StripValidator",
    "BoxValidator",
    "CartonValidator",
    "ShipmentValidator",
    "OrderValidator",
    # Functions
    "validate_record",
    "validator_for",
]
