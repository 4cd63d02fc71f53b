"""Конфигурация pharmatrace.

Конфиг передаётся явно в фасад (PharmaContract) и дальше в операции,
модульных синглтонов нет.
"""

from dataclasses import dataclass
from typing import Tuple

from pharmatrace.core.domain.entities import DocType


@dataclass(frozen=True)
class PharmaTraceConfig:
    """Настройки ядра.

    - validate_contracts: проверять каждую прочитанную запись JSON Schema контрактом
    - legacy_tx_scan: разрешить медленный поиск по истории в find_by_creation_tx
    - legacy_scan_order: порядок видов при медленном поиске (крупные контейнеры первыми)
    - trust_history_order: считать, что history(key) отдаёт записи newest-first;
      если False — записи сортируются перед выбором последнего значения
    - recipient_format: шаблон отображаемого имени получателя заказа
    """

    validate_contracts: bool = True
    legacy_tx_scan: bool = True
    legacy_scan_order: Tuple[DocType, ...] = (
        DocType.SHIPMENT,
        DocType.CARTON,
        DocType.BOX,
        DocType.STRIP,
        DocType.ORDER,
    )
    trust_history_order: bool = True
    recipient_format: str = "{receiver_id} ({receiver_org})"


DEFAULT_CONFIG = PharmaTraceConfig()
