"""
Tabular export of the receipt collection.
"""

import csv
from pathlib import Path
from typing import Sequence

from .models import ReceiptRecord
from .utils import money_fmt

FIELDNAMES = ["date", "company_name", "category", "meal_type", "cost", "original_file_name", "mime_type"]


def record_row(record: ReceiptRecord) -> dict:
    return {
        "date": record.date,
        "company_name": record.company_name,
        "category": record.category,
        "meal_type": record.meal_type,
        "cost": f"{record.cost:.2f}",
        "original_file_name": record.original_file_name,
        "mime_type": record.original_file_data.mime_type,
    }


def write_csv(records: Sequence[ReceiptRecord], out_csv: Path):
    """Write receipts to CSV file."""
    with out_csv.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=FIELDNAMES)
        w.writeheader()
        for r in records:
            w.writerow(record_row(r))


def format_table(records: Sequence[ReceiptRecord], cursor: int = -1) -> str:
    """Render the collection as a plain-text table, marking the previewed row."""
    lines = [f"  {'#':>3}  {'Date':<10}  {'Company':<24}  {'Category':<11}  {'Meal':<7}  {'Cost':>10}"]
    for i, r in enumerate(records):
        marker = ">" if i == cursor else " "
        lines.append(
            f"{marker} {i + 1:>3}  {r.date[:10]:<10}  {r.company_name[:24]:<24}  "
            f"{r.category[:11]:<11}  {r.meal_type[:7]:<7}  {money_fmt(r.cost):>10}"
        )
    return "\n".join(lines)
