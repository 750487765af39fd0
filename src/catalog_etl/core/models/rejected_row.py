"""
RejectedRow model representing a row excluded by validation, with audit context.
"""

from typing import Any

from pydantic import BaseModel, Field


class RejectedRow(BaseModel):
    """
    A raw row that failed validation.

    Attributes:
        line_number: 1-based source line (header is line 1, first data row is 2)
        raw_payload: The original row exactly as read
        errors: Every rejection reason for the row
    """

    line_number: int = Field(..., ge=2)
    raw_payload: dict[str, Any]
    errors: list[str] = Field(..., min_length=1)

    def audit_line(self) -> str:
        """Render the row as a single audit log line."""
        return f"line {self.line_number}: {', '.join(self.errors)}"

    class Config:
        json_schema_extra = {
            "example": {
                "line_number": 3,
                "raw_payload": {"Title": "Dragon", "ASIN": "", "Author": "Jane"},
                "errors": ["natural_key is required"],
            }
        }
