"""
Sink load outcome models.
"""

from pydantic import BaseModel, Field


class LoadResult(BaseModel):
    """
    Outcome of upserting one batch into one sink.

    Attributes:
        inserted: Rows that did not exist before
        updated: Rows that already existed under the same composite key
        errors: Batch-level write failures (document sink only)
    """

    inserted: int = Field(0, ge=0)
    updated: int = Field(0, ge=0)
    errors: list[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return self.inserted + self.updated


class DualLoadResult(BaseModel):
    """
    Outcome of loading one batch into both sinks.

    Attributes:
        analytical: Analytical (DuckDB) sink result
        document: Document sink result, None when the sink is skipped
    """

    analytical: LoadResult = Field(default_factory=LoadResult)
    document: LoadResult | None = None

    @property
    def errors(self) -> list[str]:
        errors = list(self.analytical.errors)
        if self.document is not None:
            errors.extend(self.document.errors)
        return errors
