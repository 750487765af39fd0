"""
CleanRecord model representing a validated, typed catalog record.
"""

from datetime import date

from pydantic import BaseModel, Field

NATURAL_KEY_PATTERN = r"^[A-Za-z0-9]{1,10}$"

# Widths of the INTEGER and BIGINT warehouse columns
MAX_REVIEW_COUNT = 2**31 - 1
MAX_SALES_RANK = 2**63 - 1

CompositeKey = tuple[date, str, str]


class CleanRecord(BaseModel):
    """
    Validated output unit of the row validator.

    Instances are frozen: the enricher and media verifier produce updated
    copies (never touching key fields), and the loaders receive them as-is.

    Attributes:
        ingestion_date: Date from the source filename
        category: Category display name
        natural_key: Catalog identifier (ASIN), 1-10 alphanumeric chars
        title: Book title
        author: Author display name
        author_url: Author page URL (from an embedded hyperlink)
        series: Series name
        price: Price in USD
        rating: Average review rating, 0-5
        review_count: Number of reviews
        sales_rank: Overall sales rank
        release_date: Publication date
        publisher: Publisher name
        description: Blurb text
        media_url: Cover image URL
        product_url: Product page URL
        topic_tags: Ordered topic tags
        subcategories: Ordered subcategory names
        keyphrases: Key phrases extracted from the blurb
        estimated_pov: Estimated narrative point of view
        has_supernatural: Supernatural content flag
        has_romance: Romance content flag
        media_verified: Whether media_url was probed and served an image
    """

    ingestion_date: date
    category: str = Field(..., min_length=1)
    natural_key: str = Field(..., pattern=NATURAL_KEY_PATTERN)
    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)

    author_url: str | None = None
    series: str | None = None
    price: float | None = Field(None, ge=0)
    rating: float | None = Field(None, ge=0, le=5)
    review_count: int | None = Field(None, ge=0, le=MAX_REVIEW_COUNT)
    sales_rank: int | None = Field(None, gt=0, le=MAX_SALES_RANK)
    release_date: date | None = None
    publisher: str | None = None
    description: str | None = None
    media_url: str | None = None
    product_url: str | None = None
    topic_tags: list[str] | None = None
    subcategories: list[str] | None = None
    keyphrases: str | None = None
    estimated_pov: str | None = None
    has_supernatural: bool | None = None
    has_romance: bool | None = None
    media_verified: bool = False

    @property
    def composite_key(self) -> CompositeKey:
        """Uniqueness key shared by both sinks."""
        return (self.ingestion_date, self.category, self.natural_key)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "ingestion_date": "2025-08-11",
                "category": "Fantasy",
                "natural_key": "B0DX8Q1M2K",
                "title": "Dragon Reborn",
                "author": "Jane Doe",
                "author_url": "https://www.amazon.com/stores/Jane-Doe/author/B001",
                "price": 4.99,
                "rating": 4.6,
                "review_count": 156,
                "topic_tags": ["dragons", "magic"],
                "has_romance": True,
                "media_verified": False,
            }
        }
