"""
Record enrichment: numeric rounding, text normalization and truncation.
"""

import math
import re
import unicodedata
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from catalog_etl.core.models import CleanRecord

MAX_DESCRIPTION_LENGTH = 5000
TRUNCATION_MARKER = "..."

NORMALIZED_TEXT_FIELDS = ("title", "author", "series", "publisher")

_WHITESPACE = re.compile(r"\s+")


def round_half_up(value: float, places: int) -> float:
    """Round with ties away from zero, on the decimal text of the value (4.555 -> 4.56)."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def normalize_text(value: str) -> str:
    """NFC-normalize and collapse runs of whitespace."""
    return _WHITESPACE.sub(" ", unicodedata.normalize("NFC", value)).strip()


def truncate_description(value: str) -> str:
    # Truncating a truncated value yields the same text again
    if len(value) <= MAX_DESCRIPTION_LENGTH:
        return value
    return value[:MAX_DESCRIPTION_LENGTH] + TRUNCATION_MARKER


def enrich_record(record: CleanRecord) -> CleanRecord:
    """
    Return an enriched copy of one record; key fields are never touched.
    """
    update = {}

    if record.price is not None:
        update["price"] = round_half_up(record.price, 2)
    if record.rating is not None:
        update["rating"] = round_half_up(record.rating, 1)
    if record.review_count is not None:
        update["review_count"] = math.floor(record.review_count)

    for field in NORMALIZED_TEXT_FIELDS:
        value = getattr(record, field)
        if value is not None:
            update[field] = normalize_text(value)

    if record.description is not None:
        update["description"] = truncate_description(record.description)

    return record.model_copy(update=update)


def enrich(records: Iterable[CleanRecord]) -> list[CleanRecord]:
    """
    Enrich a batch of records (pure, order preserving, idempotent).

    Args:
        records: Deduplicated records

    Returns:
        Enriched copies in input order
    """
    return [enrich_record(record) for record in records]
