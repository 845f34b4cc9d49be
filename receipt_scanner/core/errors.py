"""
Error kinds raised by the receipt scanning pipeline.
"""


class ReceiptScannerError(Exception):
    """Base class for all receipt scanner errors."""


class UnsupportedType(ReceiptScannerError, ValueError):
    """The declared media type is neither an image nor a PDF."""


class ReadError(ReceiptScannerError):
    """The bytes of an input file could not be read."""


class RenderError(ReceiptScannerError):
    """A PDF page could not be rasterized."""


class ExtractionFailure(ReceiptScannerError):
    """The extraction service call failed or returned an unusable response."""


class NoRecords(ReceiptScannerError):
    """Export was requested for an empty collection."""


class PackagingFailure(ReceiptScannerError):
    """The archive could not be serialized."""


class CapabilityUnavailable(ReceiptScannerError):
    """A rendering or archival library could not be loaded."""


class BatchInProgress(ReceiptScannerError):
    """A batch was submitted while another one is still running."""
