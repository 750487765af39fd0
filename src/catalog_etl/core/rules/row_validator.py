"""
Row validation and transformation.

Turns loosely-typed spreadsheet rows into CleanRecords. Required fields
reject a row; malformed optional fields are dropped from the record and
the row is kept.
"""

import re
from datetime import date
from typing import Any, Iterable

from catalog_etl.core.models import (
    CleanRecord,
    RawRecord,
    RejectedRow,
    RowValidationResult,
    SourceFileInfo,
    TransformResult,
    TransformStats,
)
from catalog_etl.core.models import raw_record as columns
from catalog_etl.core.models.clean_record import (
    MAX_REVIEW_COUNT,
    MAX_SALES_RANK,
    NATURAL_KEY_PATTERN,
)
from catalog_etl.core.validators import (
    BaseValidator,
    RangeValidator,
    RegexValidator,
    RequiredFieldValidator,
    TypeValidator,
    UrlValidator,
    ValidationError,
)
from catalog_etl.observability.logger import get_logger

logger = get_logger(__name__)

# [Author Name](https://author/page)
AUTHOR_LINK_PATTERN = re.compile(r"^\[([^\]]+)\]\(([^)]+)\)$")

TOPIC_TAG_SEPARATOR = "|"
SUBCATEGORY_SEPARATORS = re.compile(r"[,;]")


class RowValidator:
    """
    Validates one raw row against the catalog record contract.

    Field rules are built once per validator and reused for every row.
    validate() is pure: it never raises for bad data and never mutates
    the raw row.
    """

    # (record field, spreadsheet column), in reporting order
    REQUIRED_FIELDS = (
        ("natural_key", columns.NATURAL_KEY),
        ("title", columns.TITLE),
        ("author", columns.AUTHOR),
    )

    TEXT_FIELDS = (
        ("series", columns.SERIES),
        ("publisher", columns.PUBLISHER),
        ("description", columns.DESCRIPTION),
        ("keyphrases", columns.KEYPHRASES),
        ("estimated_pov", columns.ESTIMATED_POV),
    )

    URL_FIELDS = (
        ("media_url", columns.MEDIA_URL),
        ("product_url", columns.PRODUCT_URL),
    )

    BOOLEAN_FIELDS = (
        ("has_supernatural", columns.HAS_SUPERNATURAL),
        ("has_romance", columns.HAS_ROMANCE),
    )

    def __init__(self):
        self.required = {
            field: RequiredFieldValidator(column) for field, column in self.REQUIRED_FIELDS
        }
        self.natural_key_format = RegexValidator(
            columns.NATURAL_KEY, {"pattern": NATURAL_KEY_PATTERN}
        )
        self.url = UrlValidator("url")

        # field -> (column, coercion, range checks)
        self.numeric_rules: dict[str, tuple[str, TypeValidator, list[BaseValidator]]] = {
            "price": (
                columns.PRICE,
                TypeValidator(columns.PRICE, {"expected_type": "decimal"}),
                [RangeValidator(columns.PRICE, {"min": 0})],
            ),
            "rating": (
                columns.RATING,
                TypeValidator(columns.RATING, {"expected_type": "decimal"}),
                [RangeValidator(columns.RATING, {"min": 0, "max": 5})],
            ),
            "review_count": (
                columns.REVIEW_COUNT,
                TypeValidator(columns.REVIEW_COUNT, {"expected_type": "integer"}),
                [RangeValidator(columns.REVIEW_COUNT, {"min": 0, "max": MAX_REVIEW_COUNT})],
            ),
            "sales_rank": (
                columns.SALES_RANK,
                TypeValidator(columns.SALES_RANK, {"expected_type": "integer"}),
                [RangeValidator(columns.SALES_RANK, {"min_exclusive": 0, "max": MAX_SALES_RANK})],
            ),
        }
        self.release_date = TypeValidator(columns.RELEASE_DATE, {"expected_type": "date"})
        self.booleans = {
            field: TypeValidator(column, {"expected_type": "boolean"})
            for field, column in self.BOOLEAN_FIELDS
        }

    def validate(self, raw: RawRecord, file_info: SourceFileInfo) -> RowValidationResult:
        """
        Validate and transform one raw row.

        Args:
            raw: Row as produced by a reader
            file_info: Metadata of the file the row came from

        Returns:
            RowValidationResult with the clean record, or every rejection reason
        """
        errors: list[str] = []
        fields: dict[str, Any] = {
            "ingestion_date": file_info.ingestion_date,
            "category": file_info.category_name,
        }

        for field, column in self.REQUIRED_FIELDS:
            value = raw.get(column)
            try:
                self.required[field].validate(value, raw)
            except ValidationError:
                errors.append(f"{field} is required")
                continue
            fields[field] = _as_text(value)

        natural_key = fields.get("natural_key")
        if natural_key is not None:
            try:
                self.natural_key_format.validate(natural_key, raw)
            except ValidationError:
                errors.append("natural_key must be 1-10 alphanumeric characters")

        author = fields.get("author")
        if author is not None:
            name, url = _split_author(author)
            if not name:
                errors.append("author is required")
            else:
                fields["author"] = name
                fields["author_url"] = self._normalize_url(url, columns.AUTHOR)

        if errors:
            return RowValidationResult.rejected(errors)

        for field, column in self.TEXT_FIELDS:
            fields[field] = _as_text(raw.get(column))

        for field, column in self.URL_FIELDS:
            fields[field] = self._normalize_url(raw.get(column), column)

        for field, (column, coercion, checks) in self.numeric_rules.items():
            fields[field] = self._coerce_optional(raw.get(column), coercion, checks, raw)

        fields["release_date"] = self._coerce_optional(
            raw.get(columns.RELEASE_DATE), self.release_date, [], raw
        )

        for field, column in self.BOOLEAN_FIELDS:
            value = raw.get(column)
            if value is None:
                fields[field] = None
                continue
            try:
                fields[field] = self.booleans[field].coerce(value)
            except ValidationError as e:
                _log_dropped(e)
                fields[field] = None

        fields["topic_tags"] = _split_list(raw.get(columns.TOPIC_TAGS), TOPIC_TAG_SEPARATOR)
        fields["subcategories"] = _split_list(raw.get(columns.SUBCATEGORIES), SUBCATEGORY_SEPARATORS)

        return RowValidationResult.accepted(CleanRecord(**fields))

    def _coerce_optional(
        self,
        value: Any,
        coercion: TypeValidator,
        checks: list[BaseValidator],
        raw: RawRecord,
    ) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None

        try:
            typed = coercion.coerce(value)
            for check in checks:
                check.validate(typed, raw)
        except ValidationError as e:
            _log_dropped(e)
            return None

        return typed

    def _normalize_url(self, value: Any, column: str) -> str | None:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None

        try:
            return self.url.normalize(value)
        except ValidationError as e:
            logger.debug(
                "Dropping invalid URL",
                extra={"column": column, "value": str(value), "reason": e.message},
            )
            return None


def transform_rows(rows: Iterable[RawRecord], file_info: SourceFileInfo) -> TransformResult:
    """
    Validate every row of one source file.

    Rows are numbered as spreadsheet lines: the header is line 1, so the
    first data row is line 2. A row whose validation raises unexpectedly
    is rejected with the exception message and processing continues.

    Args:
        rows: Raw rows in file order
        file_info: Metadata of the source file

    Returns:
        TransformResult with valid records, rejected rows and stats
    """
    validator = RowValidator()
    valid: list[CleanRecord] = []
    rejected: list[RejectedRow] = []

    for index, raw in enumerate(rows):
        line_number = index + 2
        try:
            result = validator.validate(raw, file_info)
        except Exception as e:
            logger.exception("Unexpected error validating row", extra={"line_number": line_number})
            result = RowValidationResult.rejected([f"unexpected error: {e}"])

        if result.ok:
            valid.append(result.record)
            continue

        rejected.append(RejectedRow(line_number=line_number, raw_payload=dict(raw), errors=result.errors))
        logger.warning(
            "Row rejected",
            extra={
                "line_number": line_number,
                "errors": result.errors,
                "category": file_info.category_name,
            },
        )

    total = len(valid) + len(rejected)
    stats = TransformStats(
        total_processed=total,
        valid_count=len(valid),
        rejected_count=len(rejected),
        success_rate=round(len(valid) / total * 100) if total else 0,
    )

    return TransformResult(valid=valid, rejected=rejected, stats=stats)


def _as_text(value: Any) -> str | None:
    """Trimmed text of a cell; None for blank cells."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, date):
        value = value.isoformat()
    return str(value).strip() or None


def _split_author(author: str) -> tuple[str, str | None]:
    match = AUTHOR_LINK_PATTERN.match(author)
    if not match:
        return author, None
    return match.group(1).strip(), match.group(2).strip()


def _split_list(value: Any, separator: str | re.Pattern) -> list[str] | None:
    if not isinstance(value, str):
        return None

    if isinstance(separator, re.Pattern):
        parts = separator.split(value)
    else:
        parts = value.split(separator)

    items = [part.strip() for part in parts if part.strip()]
    return items or None


def _log_dropped(error: ValidationError) -> None:
    logger.debug(
        "Dropping invalid optional field",
        extra={"column": error.field_name, "rule": error.rule_name, "reason": error.message},
    )
