"""
Runtime settings resolved from environment variables.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

PROVIDERS = ("proxy", "openai", "anthropic")

DEFAULT_RENDER_SCALE = 2.0
DEFAULT_JPEG_QUALITY = 80
DEFAULT_TIMEOUT = 60.0


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


@dataclass
class Settings:
    """Settings for the extraction transport and PDF rendering."""
    endpoint: Optional[str] = None
    provider: str = "proxy"
    model: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    render_scale: float = DEFAULT_RENDER_SCALE
    jpeg_quality: int = DEFAULT_JPEG_QUALITY

    @classmethod
    def from_env(cls) -> "Settings":
        provider = os.getenv("EXTRACTION_PROVIDER", "proxy").strip().lower() or "proxy"
        if provider not in PROVIDERS:
            logger.warning("Unknown EXTRACTION_PROVIDER %r, using proxy", provider)
            provider = "proxy"

        quality = int(_env_float("JPEG_QUALITY", DEFAULT_JPEG_QUALITY))
        if not 1 <= quality <= 100:
            logger.warning("JPEG_QUALITY must be 1-100, using %s", DEFAULT_JPEG_QUALITY)
            quality = DEFAULT_JPEG_QUALITY

        scale = _env_float("PDF_RENDER_SCALE", DEFAULT_RENDER_SCALE)
        if scale <= 0:
            logger.warning("PDF_RENDER_SCALE must be positive, using %s", DEFAULT_RENDER_SCALE)
            scale = DEFAULT_RENDER_SCALE

        return cls(
            endpoint=os.getenv("RECEIPT_EXTRACTION_URL") or None,
            provider=provider,
            model=os.getenv("EXTRACTION_MODEL") or None,
            timeout=_env_float("EXTRACTION_TIMEOUT", DEFAULT_TIMEOUT),
            render_scale=scale,
            jpeg_quality=quality,
        )
