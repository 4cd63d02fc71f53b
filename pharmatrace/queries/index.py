"""
Secondary Index — необязательный внешний индекс для выборок

Хост может держать рядом с ledger индекс с rich-запросами (например,
CouchDB state database). Индекс ускоряет листинги, статистику и чтение
последнего значения ключа (get_item); операции записи и трассировки его
не используют. Если индекс недоступен, чтения откатываются на ledger.
"""

from typing import Any, Dict, List, Mapping, Protocol, runtime_checkable


class SecondaryIndexError(Exception):
    """Индекс не смог выполнить запрос (недоступен, таймаут и т.п.)."""


@runtime_checkable
class SecondaryIndex(Protocol):
    """Индекс плоских документов ledger."""

    def find(self, selector: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """
        Документы, все атрибуты которых равны значениям selector.

        Raises:
            SecondaryIndexError: Запрос не выполнен
        """
        ...
