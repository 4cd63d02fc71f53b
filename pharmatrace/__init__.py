"""pharmatrace — трассировка фармацевтической упаковки на ledger.

strip → box → carton → shipment → order
"""

from pharmatrace.config import DEFAULT_CONFIG, PharmaTraceConfig
from pharmatrace.contract import PharmaContract
from pharmatrace.ledger import InMemoryLedger

__version__ = "0.1.0"

__all__ = [
    "PharmaContract",
    "PharmaTraceConfig",
    "DEFAULT_CONFIG",
    "InMemoryLedger",
]
