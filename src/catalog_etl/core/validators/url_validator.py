"""
UrlValidator - validates and normalizes absolute http(s) URLs.
"""

from typing import Any

from pydantic import HttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .base_validator import BaseValidator

_HTTP_URL = TypeAdapter(HttpUrl)


class UrlValidator(BaseValidator):
    """
    Validates that a field holds an absolute http(s) URL.

    Values without a scheme are retried with the default scheme prefixed,
    so "www.example.com/a" normalizes to "https://www.example.com/a".

    Parameters:
    - default_scheme: Scheme prefixed on retry (default "https")
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)
        self.default_scheme = self.parameters.get("default_scheme", "https")

    def validate(self, value: Any, record: dict[str, Any]) -> None:
        if value is None:
            return

        self.normalize(value)

    def normalize(self, value: Any) -> str:
        """
        Return the normalized URL string.

        Raises:
            ValidationError: If the value is not a usable URL
        """
        if not isinstance(value, str) or not value.strip():
            raise self.fail("URL must be a non-empty string")

        text = value.strip()
        for candidate in (text, f"{self.default_scheme}://{text}"):
            try:
                return str(_HTTP_URL.validate_python(candidate))
            except PydanticValidationError:
                continue

        raise self.fail(f"'{text}' is not an absolute URL")

    @property
    def rule_type(self) -> str:
        return "url"
