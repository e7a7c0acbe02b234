#!/usr/bin/env python3
"""
Run field extraction over a JSON file of OCR text blocks.

Usage:
    receipt-fields blocks.json
    receipt-fields blocks.json --reference-date 2024-03-01 --log-level DEBUG
"""

import argparse
import json
import logging
import sys
from datetime import date
from typing import List, Optional

from receipt_fields.config import get_settings
from receipt_fields.exceptions import ExtractionInputError
from receipt_fields.services.extractor import ReceiptFieldExtractor

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract date, payee, amount and purpose from OCR text blocks"
    )
    parser.add_argument('blocks', help="JSON file holding an array of text blocks ('-' for stdin)")
    parser.add_argument(
        '--reference-date',
        type=date.fromisoformat,
        default=None,
        help="YYYY-MM-DD; supplies the year of month/day-only dates (default: today)",
    )
    parser.add_argument('--log-level', default=None, help="Logging level (default from settings)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=(args.log_level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.blocks == '-':
            raw_blocks = json.load(sys.stdin)
        else:
            with open(args.blocks, encoding='utf-8') as f:
                raw_blocks = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Could not read text blocks: %s", exc)
        return 2

    if not isinstance(raw_blocks, list):
        logger.error("Text block document must be a JSON array")
        return 2

    extractor = ReceiptFieldExtractor(settings=settings)
    try:
        result = extractor.extract(raw_blocks, reference_date=args.reference_date)
    except ExtractionInputError as exc:
        logger.error("Invalid text blocks: %s", exc)
        return 2

    json.dump(result.to_dict(), sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == '__main__':
    sys.exit(main())
