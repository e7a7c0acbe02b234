"""
Review session for one open receipt document.

Ties the extractor to a CandidateHistory: every scan feeds the history,
and the reviewer sees fresh candidates with history filling the gaps.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Union

from receipt_fields.config import Settings, get_settings
from receipt_fields.models.blocks import ReceiptField
from receipt_fields.services.extractor import ReceiptFieldExtractor
from receipt_fields.services.history import CandidateHistory
from receipt_fields.utils.candidates import Candidate, ExtractionResult
from receipt_fields.utils.money import normalize_amount
from receipt_fields.utils.scoring import clamp_confidence, rank_candidates, tie_break_for

logger = logging.getLogger(__name__)

_AMOUNT_NOISE = re.compile(r'[¥￥円\s]')


@dataclass
class ScanResult:
    """Extraction output plus the merged candidate list per field."""
    result: ExtractionResult
    candidates: Dict[ReceiptField, List[Candidate]] = field(default_factory=dict)


class ReviewSession:
    """
    Candidate state for one document being reviewed.

    Create one per open document and drop it (or call reset()) when the
    document is closed or a new one is started.
    """

    def __init__(
        self,
        extractor: Optional[ReceiptFieldExtractor] = None,
        history: Optional[CandidateHistory] = None,
        settings: Optional[Settings] = None
    ):
        self.settings = settings or get_settings()
        self.extractor = extractor or ReceiptFieldExtractor(settings=self.settings)
        self.history = history or CandidateHistory(settings=self.settings)

    def scan(self, text_blocks: Iterable[Any], reference_date: Optional[date] = None) -> ScanResult:
        """
        Run an OCR pass through the extractor and record its candidates.

        Returns:
            ScanResult whose candidates are the fresh ones merged with
            history entries for values this pass did not produce
        """
        result = self.extractor.extract(text_blocks, reference_date=reference_date)

        merged = {}
        for receipt_field, field_result in result.items():
            self.history.add(receipt_field, field_result.candidates)
            merged[receipt_field] = self.history.merged(receipt_field, field_result.candidates)

        return ScanResult(result=result, candidates=merged)

    def add_selection(
        self,
        receipt_field: Union[ReceiptField, str],
        value: Union[str, int],
        confidence: float,
        source: Optional[str] = None,
        reference_date: Optional[date] = None
    ) -> Optional[Candidate]:
        """
        Record a candidate picked from a manually selected image region.

        Blank values are ignored. Amounts are normalized to whole yen and
        non-positive amounts are ignored. Dates are normalized to
        YYYY/MM/DD (reference_date supplies the year of month/day-only
        text) and text holding no valid date is ignored.

        Returns:
            The stored candidate, or None if the value was rejected
        """
        receipt_field = ReceiptField(receipt_field)
        original_text = str(value)
        text = original_text.strip()
        if not text:
            return None

        canonical: Union[str, int, None] = text
        if receipt_field == ReceiptField.AMOUNT:
            canonical = value if isinstance(value, int) else normalize_amount(_AMOUNT_NOISE.sub('', text))
            if canonical <= 0:
                logger.debug("Ignored non-positive selected amount", extra={"selected": text})
                return None
        elif receipt_field == ReceiptField.DATE:
            reference_year = (reference_date or date.today()).year
            canonical = self.extractor.date_normalizer.normalize_text(text, reference_year)
            if canonical is None:
                logger.debug("Ignored selected text without a valid date", extra={"selected": text})
                return None

        candidate = Candidate(
            value=canonical,
            confidence=clamp_confidence(confidence),
            original_text=original_text,
            source=source or self.settings.SELECTION_SOURCE,
        )
        self.history.add(receipt_field, [candidate])
        return candidate

    def scan_selection(
        self,
        text_blocks: Iterable[Any],
        reference_date: Optional[date] = None
    ) -> Dict[ReceiptField, Candidate]:
        """
        Extract from the blocks of a selected region.

        The best candidate of each field becomes a selection candidate.
        """
        result = self.extractor.extract(text_blocks, reference_date=reference_date)

        added = {}
        for receipt_field, field_result in result.items():
            if field_result.is_empty:
                continue
            best = field_result.candidates[0]
            candidate = self.add_selection(
                receipt_field, best.value, best.confidence, reference_date=reference_date
            )
            if candidate is not None:
                added[receipt_field] = candidate
        return added

    def candidates(self, receipt_field: Union[ReceiptField, str]) -> List[Candidate]:
        """Everything the session has seen for a field, ranked."""
        receipt_field = ReceiptField(receipt_field)
        return rank_candidates(
            self.history.entries(receipt_field),
            tie_break=tie_break_for(receipt_field),
            tolerance=self.settings.DEDUP_TOLERANCE,
        )

    def reject(self, receipt_field: Union[ReceiptField, str], value: Union[str, int]) -> int:
        """Drop a suggestion the reviewer rejected."""
        return self.history.remove(receipt_field, value)

    def reset(self) -> None:
        """Start over for a new document."""
        self.history.clear()

    def snapshot(self) -> Dict[str, List[dict]]:
        return self.history.snapshot()
