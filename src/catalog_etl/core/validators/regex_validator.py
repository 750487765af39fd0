"""
RegexValidator - validates field values against a regular expression pattern.
"""

import re
from re import Pattern
from typing import Any

from .base_validator import BaseValidator


class RegexValidator(BaseValidator):
    """
    Validates that a field value fully matches a regular expression pattern.

    Parameters:
    - pattern: Regular expression pattern
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)

        pattern = self.parameters.get("pattern")
        if not pattern:
            raise ValueError("RegexValidator requires 'pattern' parameter")

        try:
            self.pattern: Pattern = re.compile(pattern)
        except re.error as e:
            raise ValueError(f"Invalid regex pattern: {e}")

    def validate(self, value: Any, record: dict[str, Any]) -> None:
        """
        Validate that the value matches the regex pattern.

        Args:
            value: The field value to validate
            record: The entire record

        Raises:
            ValidationError: If value doesn't match the pattern
        """
        # Skip validation for None (handled by required_field validator)
        if value is None:
            return

        value_str = value if isinstance(value, str) else str(value)

        if not self.pattern.fullmatch(value_str):
            raise self.fail(f"Value '{value_str}' does not match pattern '{self.pattern.pattern}'")

    @property
    def rule_type(self) -> str:
        return "regex"
