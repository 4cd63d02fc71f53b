"""Containment — запечатывание единиц в контейнеры верхнего уровня."""

from .engine import (
    BOX_LEVEL,
    CARTON_LEVEL,
    SHIPMENT_LEVEL,
    SealLevel,
    create_strip,
    seal,
    seal_box,
    seal_carton,
    seal_shipment,
)

__all__ = [
    "SealLevel",
    "BOX_LEVEL",
    "CARTON_LEVEL",
    "SHIPMENT_LEVEL",
    "create_strip",
    "seal",
    "seal_box",
    "seal_carton",
    "seal_shipment",
]
