#!/usr/bin/env python3
"""
Main CLI entrypoint for the receipt scanner.
"""

import argparse
import logging
import sys
from pathlib import Path

from receipt_scanner.core.archive import ArchiveExporter
from receipt_scanner.core.config import PROVIDERS, Settings
from receipt_scanner.core.errors import ReceiptScannerError
from receipt_scanner.core.extraction import ExtractionClient
from receipt_scanner.core.models import InputFile
from receipt_scanner.core.normalizer import FileNormalizer
from receipt_scanner.core.processor import IngestionPipeline, discover_files
from receipt_scanner.core.reporting import format_table, write_csv
from receipt_scanner.core.store import ReceiptStore
from receipt_scanner.core.utils import money_fmt

logger = logging.getLogger("receipt_scanner")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract date, company, category, meal type and cost from receipt images/PDFs "
                    "and download the originals as a renamed zip archive",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scan every receipt in ./incoming using the extraction proxy
  RECEIPT_EXTRACTION_URL=https://example.invalid/extract receipt-scanner

  # Scan specific files and also write a CSV table
  receipt-scanner lunch.jpg taxi.pdf --csv

  # Use an OpenAI vision model instead of the proxy
  receipt-scanner --provider openai --model gpt-4o-mini
        """
    )
    parser.add_argument("files", nargs="*", type=Path,
                        help="Receipt files to scan (default: every image/PDF in --incoming)")
    parser.add_argument("--incoming", default="./incoming", type=Path,
                        help="Folder with receipts, used when no files are given (default: ./incoming)")
    parser.add_argument("--output", default="./output", type=Path,
                        help="Folder for receipts.zip and receipts.csv (default: ./output)")
    parser.add_argument("--csv", action="store_true",
                        help="Also write the extracted table to receipts.csv")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Show detailed processing information for debugging")

    # Extraction configuration
    parser.add_argument("--provider", choices=PROVIDERS,
                        help="Extraction provider (default: proxy, or EXTRACTION_PROVIDER env var)")
    parser.add_argument("--model",
                        help="Model for the openai/anthropic providers (or EXTRACTION_MODEL env var)")
    parser.add_argument("--endpoint",
                        help="Extraction proxy URL (or RECEIPT_EXTRACTION_URL env var)")
    parser.add_argument("--timeout", type=float,
                        help="Extraction request timeout in seconds (or EXTRACTION_TIMEOUT env var)")
    return parser


def resolve_settings(args) -> Settings:
    """CLI flags take precedence over environment variables."""
    settings = Settings.from_env()
    if args.provider:
        settings.provider = args.provider
    if args.model:
        settings.model = args.model
    if args.endpoint:
        settings.endpoint = args.endpoint
    if args.timeout:
        settings.timeout = args.timeout
    return settings


def main(argv=None):
    """Main CLI entrypoint."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    settings = resolve_settings(args)
    try:
        client = ExtractionClient.from_settings(settings)
    except ValueError as e:
        logger.error("%s", e)
        logger.error("Set RECEIPT_EXTRACTION_URL or pass --endpoint")
        return 1

    model_info = f" ({settings.model})" if settings.model else ""
    logger.info("Extraction: %s%s", settings.provider, model_info)

    if args.files:
        files = [InputFile.from_path(p) for p in args.files]
    elif args.incoming.is_dir():
        files = discover_files(args.incoming)
    else:
        logger.error("Incoming folder not found: %s", args.incoming)
        return 1

    if not files:
        print("No receipt files found.")
        return 0

    store = ReceiptStore()
    normalizer = FileNormalizer(scale=settings.render_scale, jpeg_quality=settings.jpeg_quality)
    pipeline = IngestionPipeline(store, normalizer, client)
    result = pipeline.ingest(files)

    if store.records:
        print(format_table(store.records, store.cursor))
        print(f"  Total: {money_fmt(store.total_cost())} across {len(store)} receipt(s)")
    if store.error:
        print(f"[ERROR] {store.error}")
        if len(result.errors) > 1:
            logger.warning("%d file(s) failed in this batch", len(result.errors))

    try:
        ArchiveExporter().write_archive(store.records, args.output)
    except ReceiptScannerError as e:
        logger.error("%s", e)
        return 1

    if args.csv:
        out_csv = args.output / "receipts.csv"
        write_csv(store.records, out_csv)
        logger.info("Wrote %s", out_csv)

    return 0


if __name__ == "__main__":
    sys.exit(main())
