"""
Normalization of receipt images and PDFs into a single extraction image.
"""

import io
import logging

from .config import DEFAULT_JPEG_QUALITY, DEFAULT_RENDER_SCALE
from .errors import CapabilityUnavailable, ReceiptScannerError, RenderError, UnsupportedType
from .models import InputFile, NormalizedPayload
from .utils import is_image_type, is_pdf_type

logger = logging.getLogger(__name__)


class PdfRasterizer:
    """Renders PDF pages to JPEG using PyMuPDF and Pillow, imported lazily."""

    def __init__(self):
        self._fitz = None
        self._image = None

    def _lazy_import(self):
        """Lazy import heavy rendering dependencies."""
        if self._fitz is not None:
            return
        import importlib
        try:
            fitz = importlib.import_module("fitz")  # pymupdf
            image = importlib.import_module("PIL.Image")
        except ImportError as e:
            raise CapabilityUnavailable(f"PDF rendering requires pymupdf and Pillow: {e}") from e
        self._fitz, self._image = fitz, image

    def available(self) -> bool:
        try:
            self._lazy_import()
        except CapabilityUnavailable:
            return False
        return True

    def render_page_jpeg(self, data: bytes, page_number: int = 0,
                         scale: float = DEFAULT_RENDER_SCALE,
                         quality: int = DEFAULT_JPEG_QUALITY) -> bytes:
        """Render one page of a PDF byte buffer to JPEG bytes."""
        self._lazy_import()
        fitz, Image = self._fitz, self._image

        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                if page_number >= doc.page_count:
                    raise RenderError(f"PDF has {doc.page_count} page(s), cannot render page {page_number + 1}")
                mat = fitz.Matrix(scale, scale)
                pix = doc[page_number].get_pixmap(matrix=mat, alpha=False)
                png_bytes = pix.tobytes("png")
                pix = None
            with Image.open(io.BytesIO(png_bytes)) as img:
                out = io.BytesIO()
                img.convert("RGB").save(out, format="JPEG", quality=quality)
                return out.getvalue()
        except ReceiptScannerError:
            raise
        except Exception as e:
            raise RenderError(f"Could not render PDF page {page_number + 1}: {e}") from e


class FileNormalizer:
    """Turns one input file into the JPEG payload sent for extraction."""

    def __init__(self, rasterizer=None,
                 scale: float = DEFAULT_RENDER_SCALE,
                 jpeg_quality: int = DEFAULT_JPEG_QUALITY):
        self.rasterizer = rasterizer if rasterizer is not None else PdfRasterizer()
        self.scale = scale
        self.jpeg_quality = jpeg_quality

    def normalize(self, file: InputFile) -> NormalizedPayload:
        """
        Produce the extraction image for a file and keep its original bytes.

        Images pass through untouched. For PDFs only the first page is
        rendered, so pages 2+ of a multi-page receipt never reach extraction.
        """
        if is_image_type(file.media_type):
            data = file.read_bytes()
            return NormalizedPayload(
                extraction_image=data,
                original_bytes=data,
                original_mime_type=file.media_type,
            )

        if is_pdf_type(file.media_type):
            data = file.read_bytes()
            if not self.rasterizer.available():
                raise CapabilityUnavailable("PDF rendering library is not loaded. Cannot process PDF.")
            logger.debug("Rendering first page of %s at %.1fx", file.name, self.scale)
            jpeg = self.rasterizer.render_page_jpeg(
                data, page_number=0, scale=self.scale, quality=self.jpeg_quality)
            return NormalizedPayload(
                extraction_image=jpeg,
                original_bytes=data,
                original_mime_type=file.media_type,
            )

        raise UnsupportedType(f"Unsupported file type: {file.name} ({file.media_type})")
