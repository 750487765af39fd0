"""
Validation outcome models (ephemeral, used during processing).
"""

from typing import List

from pydantic import BaseModel, Field, field_validator

from .clean_record import CleanRecord
from .rejected_row import RejectedRow


class RowValidationResult(BaseModel):
    """
    Outcome of validating a single raw row.

    Attributes:
        ok: Whether the row passed validation
        record: The clean record (present iff ok)
        errors: Rejection reasons (non-empty iff not ok)
    """

    ok: bool
    record: CleanRecord | None = None
    errors: List[str] = Field(default_factory=list)

    @field_validator('errors')
    @classmethod
    def check_ok_consistency(cls, v, info):
        """Validate that ok=True implies errors is empty."""
        if info.data.get('ok') and len(v) > 0:
            raise ValueError("ok=True but errors is not empty")
        return v

    @classmethod
    def accepted(cls, record: CleanRecord) -> "RowValidationResult":
        return cls(ok=True, record=record)

    @classmethod
    def rejected(cls, errors: List[str]) -> "RowValidationResult":
        return cls(ok=False, errors=errors)


class TransformStats(BaseModel):
    """
    Row counts for one validated batch.

    Attributes:
        total_processed: Rows read from the source
        valid_count: Rows that produced a clean record
        rejected_count: Rows rejected by the validator
        success_rate: valid / total as a rounded percentage
    """

    total_processed: int = Field(0, ge=0)
    valid_count: int = Field(0, ge=0)
    rejected_count: int = Field(0, ge=0)
    success_rate: int = Field(0, ge=0, le=100)


class TransformResult(BaseModel):
    """
    Result of validating every row of one source file.
    """

    valid: List[CleanRecord] = Field(default_factory=list)
    rejected: List[RejectedRow] = Field(default_factory=list)
    stats: TransformStats = Field(default_factory=TransformStats)
