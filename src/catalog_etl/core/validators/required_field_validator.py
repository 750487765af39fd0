"""
RequiredFieldValidator - ensures a field is present and not null/blank.
"""

from typing import Any, Dict
from .base_validator import BaseValidator


class RequiredFieldValidator(BaseValidator):
    """
    Validates that a required field is present and not null/blank.

    Fails if:
    - Field is missing from the record
    - Field value is None
    - Field value is a blank string (configurable)
    """

    def __init__(self, field_name: str, parameters: Dict[str, Any] | None = None):
        super().__init__(field_name, parameters)
        self.allow_empty_string = self.parameters.get("allow_empty_string", False)

    def validate(self, value: Any, record: Dict[str, Any]) -> None:
        """
        Validate that the field is present and not null/blank.

        Args:
            value: The field value to validate
            record: The entire record

        Raises:
            ValidationError: If field is missing, None, or blank
        """
        if self.field_name not in record:
            raise self.fail("Field is missing from record")

        if value is None:
            raise self.fail("Field value is null")

        if not self.allow_empty_string and isinstance(value, str) and value.strip() == "":
            raise self.fail("Field value is empty string")

    @property
    def rule_type(self) -> str:
        return "required_field"
