"""
In-batch deduplication on the composite natural key.
"""

from typing import Iterable

from pydantic import BaseModel, Field

from catalog_etl.core.models import CleanRecord, CompositeKey


class DuplicateRecord(BaseModel):
    """
    A record dropped because an earlier record shares its key.

    Attributes:
        key: The colliding composite key
        record: The dropped record
    """

    key: CompositeKey
    record: CleanRecord


class DedupResult(BaseModel):
    """
    Outcome of deduplicating one batch.

    Attributes:
        unique: First occurrence of every key, in input order
        duplicates: Later occurrences, in input order
    """

    unique: list[CleanRecord] = Field(default_factory=list)
    duplicates: list[DuplicateRecord] = Field(default_factory=list)


def dedupe(records: Iterable[CleanRecord]) -> DedupResult:
    """
    Drop records whose (ingestion_date, category, natural_key) was already seen.

    Single pass and stable: the first occurrence wins.

    Args:
        records: Validated records

    Returns:
        DedupResult with unique records and the dropped duplicates
    """
    seen: set[CompositeKey] = set()
    unique: list[CleanRecord] = []
    duplicates: list[DuplicateRecord] = []

    for record in records:
        key = record.composite_key
        if key in seen:
            duplicates.append(DuplicateRecord(key=key, record=record))
            continue
        seen.add(key)
        unique.append(record)

    return DedupResult(unique=unique, duplicates=duplicates)
