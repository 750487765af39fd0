"""
Per-file output writers (cleaned CSV export, audit trail).
"""

from .audit_writer import AuditLogWriter
from .csv_writer import write_clean_csv

__all__ = [
    "AuditLogWriter",
    "write_clean_csv",
]
