"""
Row validation rules for catalog records.
"""

from .row_validator import RowValidator, transform_rows

__all__ = [
    "RowValidator",
    "transform_rows",
]
