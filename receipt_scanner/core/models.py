"""
Data models for receipt processing.
"""

import base64
import mimetypes
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

from .errors import ReadError


@dataclass
class InputFile:
    """A user-selected file, held in memory or read lazily from disk."""
    name: str
    media_type: str
    data: Optional[bytes] = None
    path: Optional[Path] = None

    @classmethod
    def from_path(cls, path: Path) -> "InputFile":
        media_type, _ = mimetypes.guess_type(path.name)
        return cls(name=path.name, media_type=media_type or "application/octet-stream", path=path)

    def read_bytes(self) -> bytes:
        if self.data is not None:
            return self.data
        if self.path is None:
            raise ReadError(f"No data or path for {self.name}")
        try:
            return Path(self.path).read_bytes()
        except OSError as e:
            raise ReadError(f"Failed to read {self.path}: {e}") from e


@dataclass(frozen=True)
class NormalizedPayload:
    """Canonical extraction image plus the untouched source bytes."""
    extraction_image: bytes
    original_bytes: bytes
    original_mime_type: str


@dataclass(frozen=True)
class ReceiptFields:
    """Fields returned by the extraction service."""
    date: str
    company_name: str
    category: str
    meal_type: str
    cost: float


@dataclass(frozen=True)
class OriginalFileData:
    base64: str
    mime_type: str

    def decode(self) -> bytes:
        return base64.b64decode(self.base64)


@dataclass(frozen=True)
class ReceiptRecord:
    """Represents one extracted receipt in the collection."""
    date: str
    company_name: str
    category: str
    meal_type: str
    cost: float
    original_file_data: OriginalFileData
    original_file_name: str
    extraction_image: str

    @classmethod
    def build(cls, fields: ReceiptFields, payload: NormalizedPayload, file_name: str) -> "ReceiptRecord":
        """Combine extracted fields with the normalized payload of their source file."""
        return cls(
            date=fields.date,
            company_name=fields.company_name,
            category=fields.category,
            meal_type=fields.meal_type,
            cost=fields.cost,
            original_file_data=OriginalFileData(
                base64=base64.b64encode(payload.original_bytes).decode("ascii"),
                mime_type=payload.original_mime_type,
            ),
            original_file_name=file_name,
            extraction_image=base64.b64encode(payload.extraction_image).decode("ascii"),
        )

    def to_dict(self):
        """Convert to dictionary using the camelCase keys of the web client."""
        data = asdict(self)
        return {
            "date": data["date"],
            "companyName": data["company_name"],
            "category": data["category"],
            "mealType": data["meal_type"],
            "cost": data["cost"],
            "originalFileData": {
                "base64": data["original_file_data"]["base64"],
                "mimeType": data["original_file_data"]["mime_type"],
            },
            "originalFileName": data["original_file_name"],
            "extractionImage": data["extraction_image"],
        }


@dataclass(frozen=True)
class EditSession:
    """An in-progress inline edit of one field."""
    record_index: int
    field_name: str
    pending_value: str = ""
