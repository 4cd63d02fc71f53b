"""
JSON Schema Contract Validators

Валидация записей ledger против формальных JSON Schema контрактов.
Записи приходят из ledger как непрозрачные байты; контракт проверяется
до построения Pydantic модели, чтобы записи чужого формата
отсекались на границе десериализации.

Схемы (contracts/schema/):
- strip.json
- box.json
- carton.json
- shipment.json
- order.json
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterator

import jsonschema
from jsonschema import Draft202012Validator, ValidationError


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    Загрузчик JSON Schema файлов.

    Схемы лежат в schema/ рядом с этим модулем (ставятся как package data).
    """

    def __init__(self, schema_dir: Path | None = None):
        self._schema_dir = schema_dir or Path(__file__).parent / "schema"
        if not self._schema_dir.exists():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")

        # Кэш загруженных схем
        self._schemas: Dict[str, Dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Загрузка JSON Schema файла.

        Args:
            schema_name: Имя схемы без расширения (например, 'strip')

        Returns:
            Загруженная схема как dict

        Raises:
            FileNotFoundError: Если файл схемы не найден
            ValueError: Если схема сама по себе невалидна
        """
        if schema_name in self._schemas:
            return self._schemas[schema_name]

        schema_path = self._schema_dir / f"{schema_name}.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")

        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)

        # meta-validation
        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e}")

        self._schemas[schema_name] = schema
        return schema


# Схемы неизменяемы, загрузчик только кэширует файлы
_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """
    Базовый валидатор записи одного вида.
    """

    def __init__(self, schema_name: str):
        self.schema_name = schema_name
        self.schema = _SCHEMA_LOADER.load_schema(schema_name)
        self.validator = Draft202012Validator(self.schema)

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Валидация документа против схемы.

        Raises:
            ValidationError: Если документ не соответствует схеме
        """
        self.validator.validate(data)

    def iter_errors(self, data: Dict[str, Any]) -> Iterator[ValidationError]:
        """Итератор по всем ошибкам валидации."""
        return self.validator.iter_errors(data)


class StripValidator(ContractValidator):
    def __init__(self):
        super().__init__("strip")


class BoxValidator(ContractValidator):
    def __init__(self):
        super().__init__("box")


class CartonValidator(ContractValidator):
    def __init__(self):
        super().__init__("carton")


class ShipmentValidator(ContractValidator):
    def __init__(self):
        super().__init__("shipment")


class OrderValidator(ContractValidator):
    def __init__(self):
        super().__init__("order")


_VALIDATORS: Dict[str, ContractValidator] = {
    "strip": StripValidator(),
    "box": BoxValidator(),
    "carton": CartonValidator(),
    "shipment": ShipmentValidator(),
    "order": OrderValidator(),
}


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validator_for(doc_type: str) -> ContractValidator:
    """
    Валидатор для вида записи.

    Raises:
        KeyError: Если docType неизвестен
    """
    return _VALIDATORS[str(doc_type)]


def validate_record(data: Dict[str, Any]) -> None:
    """
    Валидация документа ledger по его docType.

    Args:
        data: Документ с полем docType

    Raises:
        KeyError: Если docType отсутствует или неизвестен
        ValidationError: Если документ не соответствует схеме своего вида
    """
    validator_for(data["docType"]).validate(data)
