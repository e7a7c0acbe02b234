"""
Receipt field extraction service.

Turns OCR text blocks into ranked candidates for the four receipt
fields: transaction date, payee, amount and expense purpose.
"""

import logging
import re
from datetime import date
from typing import Any, Callable, Iterable, Optional

from receipt_fields.config import Settings, get_settings
from receipt_fields.models.blocks import ReceiptField, coerce_blocks
from receipt_fields.services.amounts import AmountExtractor
from receipt_fields.services.dates import DEFAULT_ERAS, DateNormalizer
from receipt_fields.services.payees import PayeeEstimator
from receipt_fields.services.purpose import PurposeSummarizer
from receipt_fields.utils.candidates import ExtractionResult, FieldResult, empty_value

logger = logging.getLogger(__name__)


class ReceiptFieldExtractor:
    """
    Extract date, payee, amount and purpose from OCR text blocks.

    The four extractors share no mutable state; an instance can be
    reused across documents and threads.
    """

    def __init__(self, settings: Optional[Settings] = None, eras=DEFAULT_ERAS):
        self.settings = settings or get_settings()
        self.date_normalizer = DateNormalizer(eras=eras, settings=self.settings)
        self.amount_extractor = AmountExtractor(settings=self.settings)
        self.payee_estimator = PayeeEstimator(settings=self.settings)
        self.purpose_summarizer = PurposeSummarizer(settings=self.settings)

    def extract(
        self,
        text_blocks: Iterable[Any],
        reference_date: Optional[date] = None
    ) -> ExtractionResult:
        """
        Extract all four fields.

        Args:
            text_blocks: TextBlocks or raw OCR records (mappings)
            reference_date: Year source for month/day-only dates (today if None)

        Returns:
            ExtractionResult with one FieldResult per field. Empty or
            all-invalid input yields empty results, never an error.

        Raises:
            ExtractionInputError: If text_blocks is None or not a sequence
        """
        blocks = coerce_blocks(text_blocks)

        logger.debug("Extracting receipt fields", extra={"block_count": len(blocks)})

        return ExtractionResult(
            date=self._run(
                ReceiptField.DATE,
                lambda: self.date_normalizer.extract(blocks, reference_date=reference_date),
            ),
            payee=self._run(ReceiptField.PAYEE, lambda: self.payee_estimator.extract(blocks)),
            amount=self._run(ReceiptField.AMOUNT, lambda: self.amount_extractor.extract(blocks)),
            purpose=self._run(ReceiptField.PURPOSE, lambda: self.purpose_summarizer.extract(blocks)),
        )

    def extract_date(self, text_blocks: Iterable[Any], reference_date: Optional[date] = None) -> FieldResult:
        blocks = coerce_blocks(text_blocks)
        return self.date_normalizer.extract(blocks, reference_date=reference_date)

    def extract_amount(self, text_blocks: Iterable[Any]) -> FieldResult:
        return self.amount_extractor.extract(coerce_blocks(text_blocks))

    def extract_payee(self, text_blocks: Iterable[Any]) -> FieldResult:
        return self.payee_estimator.extract(coerce_blocks(text_blocks))

    def extract_purpose(self, text_blocks: Iterable[Any]) -> FieldResult:
        return self.purpose_summarizer.extract(coerce_blocks(text_blocks))

    def _run(self, receipt_field: ReceiptField, extract: Callable[[], FieldResult]) -> FieldResult:
        """One failing field must not take the other three down with it."""
        try:
            return extract()
        except (re.error, ValueError, AttributeError, IndexError, KeyError):
            logger.warning("Error extracting %s", receipt_field.value, exc_info=True)
            return FieldResult(value=empty_value(receipt_field), confidence=0.0)


def extract_fields(
    text_blocks: Iterable[Any],
    reference_date: Optional[date] = None,
    settings: Optional[Settings] = None
) -> ExtractionResult:
    """Convenience wrapper around ReceiptFieldExtractor.extract()."""
    return ReceiptFieldExtractor(settings=settings).extract(text_blocks, reference_date=reference_date)
