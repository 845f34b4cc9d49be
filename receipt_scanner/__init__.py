"""
Receipt Scanner

Turns receipt images and PDFs into an editable list of extracted records
(date, company, category, meal type, cost) and exports the original files
as a single archive with descriptive names.
"""

__version__ = "1.0.0"
__author__ = "Receipt Scanner Contributors"

from receipt_scanner.core.models import ReceiptRecord
from receipt_scanner.core.store import ReceiptStore

__all__ = ["ReceiptRecord", "ReceiptStore"]
