"""
SourceFileInfo model representing metadata derived from a source filename.
"""

from datetime import date

from pydantic import BaseModel, Field


class SourceFileInfo(BaseModel):
    """
    Metadata parsed from a raw spreadsheet filename (immutable).

    Attributes:
        ingestion_date: Date taken from the first 8 filename characters
        category_key: Raw category key, e.g. "_fantasy"
        category_name: Display name for the key (the key itself when unmapped)
    """

    ingestion_date: date
    category_key: str = Field(..., min_length=1)
    category_name: str = Field(..., min_length=1)

    @property
    def stem(self) -> str:
        """Base name used for per-file artifacts (audit log, CSV export)."""
        return f"{self.ingestion_date:%Y%m%d}{self.category_key}"

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "ingestion_date": "2025-08-11",
                "category_key": "_fantasy",
                "category_name": "Fantasy",
            }
        }
