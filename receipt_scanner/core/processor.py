"""
Main receipt ingestion orchestration.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List

from .errors import (BatchInProgress, CapabilityUnavailable, ExtractionFailure,
                     ReadError, RenderError, UnsupportedType)
from .models import InputFile, ReceiptRecord
from .utils import IMAGE_EXTS, PDF_EXTS

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Records appended and error messages produced by one batch, in order."""
    appended: List[ReceiptRecord] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def discover_files(directory: Path) -> List[InputFile]:
    """Collect receipt images and PDFs from a directory, sorted by name."""
    files = sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() in IMAGE_EXTS.union(PDF_EXTS)
    )
    logger.info("Found %d file(s) in %s", len(files), directory)
    return [InputFile.from_path(p) for p in files]


def describe_failure(file: InputFile, exc: Exception) -> str:
    """Turn a per-file failure into the message shown to the user."""
    if isinstance(exc, UnsupportedType):
        return f"Unsupported file type: {file.name}. Please upload an image (JPEG, PNG) or a PDF."
    if isinstance(exc, ReadError):
        return f"Failed to read file: {file.name}."
    if isinstance(exc, RenderError):
        return f"Failed to render PDF: {file.name} for AI processing. Ensure it is a valid PDF."
    if isinstance(exc, CapabilityUnavailable):
        return f"A required library is not available: {exc}"
    if isinstance(exc, ExtractionFailure):
        return f"Could not extract information from {file.name}. Please check the image or format."
    return f"Failed to process {file.name}. Please ensure images are clear and try again."


class IngestionPipeline:
    """Normalizes, extracts and stores a batch of receipt files one at a time."""

    def __init__(self, store, normalizer, client):
        """
        Initialize the pipeline.

        Args:
            store: ReceiptStore receiving the extracted records
            normalizer: FileNormalizer producing extraction images
            client: ExtractionClient turning images into fields
        """
        self.store = store
        self.normalizer = normalizer
        self.client = client

    def process_file(self, file: InputFile) -> ReceiptRecord:
        """Build the record for a single file. Raises on any failure."""
        logger.info("Processing %s", file.name)
        payload = self.normalizer.normalize(file)
        fields = self.client.extract(payload.extraction_image)
        return ReceiptRecord.build(fields, payload, file.name)

    def ingest(self, files: Iterable[InputFile]) -> BatchResult:
        """
        Process a batch strictly in order, never concurrently.

        A failing file is skipped and its message replaces the store's error;
        later files still run. The busy flag stays set until every file has
        finished.
        """
        if self.store.busy:
            raise BatchInProgress("A batch is already being processed")

        files = list(files)
        result = BatchResult()
        if not files:
            return result

        self.store.set_error(None)
        self.store.set_busy(True)
        try:
            for file in files:
                try:
                    record = self.process_file(file)
                except Exception as e:
                    message = describe_failure(file, e)
                    logger.error("Failed %s: %s", file.name, e)
                    result.errors.append(message)
                    self.store.set_error(message)
                    continue
                self.store.append(record)
                result.appended.append(record)
        finally:
            self.store.set_busy(False)

        logger.info("Batch complete: %d appended, %d failed", len(result.appended), len(result.errors))
        return result
