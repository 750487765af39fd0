"""
Filename metadata parsing.

Raw exports are named ``<YYYYMMDD><category_key>_raw_data.<ext>``, e.g.
``20250811_fantasy_raw_data.xlsx`` (category key ``_fantasy``).
"""

import re
from datetime import datetime
from pathlib import PurePath

from catalog_etl.core.errors import FilenameParseError
from catalog_etl.core.models import SourceFileInfo

RAW_DATA_SUFFIX = "_raw_data"

SUPPORTED_EXTENSIONS = (".xlsx", ".xlsm", ".csv")

RAW_FILENAME_PATTERN = re.compile(
    r"^\d{8}.+" + re.escape(RAW_DATA_SUFFIX) + r"\.(xlsx|xlsm|csv)$",
    re.IGNORECASE,
)

CATEGORY_NAMES: dict[str, str] = {
    "_cozy_mystery": "Cozy Mystery",
    "_erotica": "Erotica",
    "_fantasy": "Fantasy",
    "_gay_romance": "Gay Romance",
    "_historical_romance": "Historical Romance",
    "_m_t_s": "Mystery, Thriller & Suspense",
    "_paranormal": "Paranormal Romance",
    "_romance_1hr": "Romance Short Reads (1hr)",
    "_romance": "Romance",
    "_science_fiction": "Science Fiction",
    "_science_fiction_romance": "Science Fiction Romance",
    "_sff": "Science Fiction & Fantasy",
    "_teen_and_ya": "Teen & Young Adult",
    "_urban_fantasy": "Urban Fantasy",
}


def category_key_to_name(key: str) -> str:
    """Map a category key to its display name, falling back to the key."""
    return CATEGORY_NAMES.get(key, key)


def is_raw_data_file(filename: str) -> bool:
    """Whether a filename follows the raw export naming convention."""
    return RAW_FILENAME_PATTERN.match(filename) is not None


def parse_filename(filename: str) -> SourceFileInfo:
    """
    Parse ingestion date and category from a raw export filename.

    Args:
        filename: Bare filename or path; only the final component is used

    Returns:
        SourceFileInfo for the file

    Raises:
        FilenameParseError: If the first 8 characters are not a valid YYYYMMDD date
            or no category key follows the date
    """
    name = PurePath(filename).name

    date_digits = name[:8]
    if len(date_digits) != 8 or not date_digits.isdigit():
        raise FilenameParseError(name, f"expected 8 leading date digits, got '{date_digits}'")

    try:
        ingestion_date = datetime.strptime(date_digits, "%Y%m%d").date()
    except ValueError as e:
        raise FilenameParseError(name, f"invalid ingestion date '{date_digits}': {e}") from e

    remainder = name[8:]
    stem = remainder.rsplit(".", 1)[0]
    if stem.endswith(RAW_DATA_SUFFIX):
        stem = stem[: -len(RAW_DATA_SUFFIX)]

    if not stem:
        raise FilenameParseError(name, "missing category key after date")

    return SourceFileInfo(
        ingestion_date=ingestion_date,
        category_key=stem,
        category_name=category_key_to_name(stem),
    )
