"""
TypeValidator - validates and coerces loosely-typed spreadsheet values.
"""

import math
import re
from datetime import date, datetime
from typing import Any

from dateutil import parser as date_parser

from .base_validator import BaseValidator

TRUE_STRINGS = frozenset({"true", "yes", "1"})
FALSE_STRINGS = frozenset({"false", "no", "0", ""})

# 1,234,567.89 style thousands grouping
_GROUPED_NUMBER = re.compile(r"[+-]?\d{1,3}(,\d{3})+(\.\d*)?")

# Missing date components default to the first day of the first month
_DATE_DEFAULT = datetime(2000, 1, 1)


class TypeValidator(BaseValidator):
    """
    Validates that a field can be read as the expected type.

    Spreadsheet cells arrive as text or as native numbers/dates, so every
    type accepts both forms; coerce() returns the typed value.

    Supported types:
    - "integer": numbers or numeric text, truncated toward zero ("156.7" -> 156)
    - "decimal": numbers or numeric text ("$1,299.00" -> 1299.0)
    - "boolean": bool, true/yes/1 and false/no/0/"" (any case), numbers (non-zero is true)
    - "date": date/datetime values or any text python-dateutil can parse
    """

    SUPPORTED_TYPES = ("integer", "decimal", "boolean", "date")

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)

        expected_type = self.parameters.get("expected_type")
        if not expected_type:
            raise ValueError("TypeValidator requires 'expected_type' parameter")

        expected_type = str(expected_type).lower()
        if expected_type not in self.SUPPORTED_TYPES:
            raise ValueError(f"Unsupported type: {expected_type}")

        self.expected_type = expected_type

    def validate(self, value: Any, record: dict[str, Any]) -> None:
        """
        Validate that the value can be coerced to the expected type.

        Args:
            value: The field value to validate
            record: The entire record

        Raises:
            ValidationError: If the value cannot be coerced
        """
        # Skip validation for None (handled by required_field validator)
        if value is None:
            return

        self.coerce(value)

    def coerce(self, value: Any) -> Any:
        """
        Coerce a raw value to the expected type.

        Args:
            value: The raw value

        Returns:
            The coerced value

        Raises:
            ValidationError: If coercion fails
        """
        try:
            if self.expected_type == "integer":
                return int(_parse_number(value))
            if self.expected_type == "decimal":
                return _parse_number(value)
            if self.expected_type == "boolean":
                return _parse_boolean(value)
            return _parse_date(value)
        except (ValueError, TypeError, OverflowError) as e:
            raise self.fail(f"Cannot coerce {type(value).__name__} to {self.expected_type}: {e}")

    @property
    def rule_type(self) -> str:
        return "type_check"


def _parse_number(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError("boolean is not a number")

    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if text.startswith("$"):
            text = text[1:].strip()
        if _GROUPED_NUMBER.fullmatch(text):
            text = text.replace(",", "")
        number = float(text)
    else:
        raise TypeError(f"unsupported value type {type(value).__name__}")

    if not math.isfinite(number):
        raise ValueError(f"{value!r} is not a finite number")
    return number


def _parse_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value

    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
        raise ValueError(f"'{value}' is not a recognised boolean")

    if isinstance(value, int | float):
        if isinstance(value, float) and math.isnan(value):
            raise ValueError("NaN is not a boolean")
        return value != 0

    raise TypeError(f"unsupported value type {type(value).__name__}")


def _parse_date(value: Any) -> date:
    # datetime is a date subclass, check it first
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("empty date string")
        return date_parser.parse(text, default=_DATE_DEFAULT).date()

    raise TypeError(f"unsupported value type {type(value).__name__}")
