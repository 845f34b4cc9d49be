"""
Export of original receipt files as a single zip archive.
"""

import binascii
import io
import logging
import zipfile
from pathlib import Path
from typing import Dict, Sequence

from .errors import CapabilityUnavailable, NoRecords, PackagingFailure
from .models import ReceiptRecord
from .utils import file_extension, sanitize_component

logger = logging.getLogger(__name__)

ARCHIVE_NAME = "receipts.zip"


def build_filename(record: ReceiptRecord) -> str:
    """
    Name a record's file as date_company_category_mealType_cost.ext,
    e.g. 2024-01-05_Joes_Caf_Restaurant_Lunch_12_50.jpg
    """
    extension = file_extension(record.original_file_name)
    date = sanitize_component(record.date, keep_hyphen=True)
    company = sanitize_component(record.company_name)
    category = sanitize_component(record.category)
    meal_type = sanitize_component(record.meal_type)
    cost = f"{record.cost:.2f}".replace(".", "_", 1) if record.cost else "0_00"
    return f"{date}_{company}_{category}_{meal_type}_{cost}.{extension}"


class ZipArchiver:
    """Accumulates named blobs into an in-memory zip archive."""

    def available(self) -> bool:
        return True

    def build(self, entries: Dict[str, bytes]) -> bytes:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for name, data in entries.items():
                zf.writestr(name, data)
        return buf.getvalue()


class ArchiveExporter:
    """Packages the collection's original files under sanitized names."""

    def __init__(self, archiver=None):
        self.archiver = archiver if archiver is not None else ZipArchiver()

    def entries(self, records: Sequence[ReceiptRecord]) -> Dict[str, bytes]:
        """Map archive names to original bytes; a repeated name keeps the later record."""
        entries = {}
        for record in records:
            name = build_filename(record)
            if name in entries:
                logger.warning("Archive entry %s appears more than once, keeping the later file", name)
            try:
                entries[name] = record.original_file_data.decode()
            except (binascii.Error, ValueError) as e:
                raise PackagingFailure(f"Could not decode original data for {record.original_file_name}: {e}") from e
        return entries

    def export(self, records: Sequence[ReceiptRecord]) -> bytes:
        if not records:
            raise NoRecords("No files to download.")
        if not self.archiver.available():
            raise CapabilityUnavailable("Archive library is not loaded. Cannot create the download.")

        entries = self.entries(records)
        try:
            return self.archiver.build(entries)
        except Exception as e:
            raise PackagingFailure(f"Failed to create zip file for download: {e}") from e

    def write_archive(self, records: Sequence[ReceiptRecord], out_dir: Path,
                      name: str = ARCHIVE_NAME) -> Path:
        """Export and save the archive into out_dir."""
        data = self.export(records)
        out_dir.mkdir(parents=True, exist_ok=True)
        out_path = out_dir / name
        out_path.write_bytes(data)
        logger.info("Wrote %s (%d file(s))", out_path, len(records))
        return out_path
