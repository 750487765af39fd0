"""
RawRecord: one loosely-typed spreadsheet row as produced by a reader (ephemeral).

Loose typing stops here; the row validator turns a RawRecord into a
CleanRecord and nothing past it sees these values.
"""

from datetime import date, datetime
from typing import Union

RawValue = Union[str, int, float, bool, date, datetime, None]

RawRecord = dict[str, RawValue]

# Spreadsheet column headers, in export order
TITLE = "Title"
NATURAL_KEY = "ASIN"
AUTHOR = "Author"
SERIES = "Series"
REVIEW_COUNT = "nReviews"
RATING = "reviewAverage"
PRICE = "price"
SALES_RANK = "salesRank"
RELEASE_DATE = "releaseDate"
PUBLISHER = "publisher"
DESCRIPTION = "blurbText"
MEDIA_URL = "coverImage"
PRODUCT_URL = "bookURL"
TOPIC_TAGS = "topicTags"
KEYPHRASES = "blurbKeyphrases"
SUBCATEGORIES = "subcatsList"
ESTIMATED_POV = "estimatedBlurbPOV"
HAS_SUPERNATURAL = "hasSupernatural"
HAS_ROMANCE = "hasRomance"

RAW_COLUMNS = (
    TITLE,
    NATURAL_KEY,
    AUTHOR,
    SERIES,
    REVIEW_COUNT,
    RATING,
    PRICE,
    SALES_RANK,
    RELEASE_DATE,
    PUBLISHER,
    DESCRIPTION,
    MEDIA_URL,
    PRODUCT_URL,
    TOPIC_TAGS,
    KEYPHRASES,
    SUBCATEGORIES,
    ESTIMATED_POV,
    HAS_SUPERNATURAL,
    HAS_ROMANCE,
)
