"""
Utility functions and constants for receipt processing.
"""

import re
from typing import Optional

# File type constants
IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".gif", ".tif", ".tiff", ".bmp", ".webp", ".heic"}
PDF_EXTS = {".pdf"}

PDF_MIME_TYPE = "application/pdf"
JPEG_MIME_TYPE = "image/jpeg"

# Leading numeric prefix, e.g. "12.5" in "12.50 EUR"
COST_PATTERN = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

# Characters removed outright when building archive filenames
DROPPED_CHARS = {"'", '"', "`", "‘", "’", "“", "”"}


def is_image_type(media_type: Optional[str]) -> bool:
    return bool(media_type) and media_type.lower().startswith("image/")


def is_pdf_type(media_type: Optional[str]) -> bool:
    return bool(media_type) and media_type.lower() == PDF_MIME_TYPE


def parse_cost(raw) -> float:
    """
    Parse user-entered cost text leniently.

    Uses the leading numeric prefix of the text; anything without one
    (including empty input) becomes 0.
    """
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        value = float(raw)
    else:
        m = COST_PATTERN.match(str(raw or ""))
        if not m:
            return 0.0
        value = float(m.group(1))
    if value != value or value in (float("inf"), float("-inf")):
        return 0.0
    return value or 0.0


def sanitize_component(value, keep_hyphen: bool = False) -> str:
    """
    Make one filename component safe.

    ASCII letters and digits are kept (plus '-' when keep_hyphen is set),
    quotes and non-ASCII characters are dropped, everything else becomes '_'.
    """
    out = []
    for ch in str(value):
        if ch.isascii() and ch.isalnum():
            out.append(ch)
        elif keep_hyphen and ch == "-":
            out.append(ch)
        elif ch in DROPPED_CHARS or not ch.isascii():
            continue
        else:
            out.append("_")
    return "".join(out)


def file_extension(name: str) -> str:
    """Return the text after the last '.', or '' when there is none."""
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1]


def money_fmt(v: Optional[float]) -> str:
    """Format amount as currency."""
    return f"${v:,.2f}" if v is not None else ""
