"""
Expense purpose summarization from itemized receipt lines.
"""

import logging
from collections import Counter
from typing import Iterable, List, Optional

from receipt_fields.config import Settings, get_settings
from receipt_fields.models.blocks import ReceiptField, TextBlock
from receipt_fields.utils.candidates import Candidate, FieldResult, empty_value
from receipt_fields.utils.geometry import in_vertical_band
from receipt_fields.utils.patterns import TERM_PATTERN, matches_amount, matches_date

logger = logging.getLogger(__name__)

MIN_LINE_LENGTH = 2
MIN_TERM_LENGTH = 2
MAX_TERMS = 3
TERM_SEPARATOR = '・'
MORE_MARKER = '等'


class PurposeSummarizer:
    """
    Summarize what was bought.

    Item lines from the middle band of the receipt are split into CJK
    and Latin terms; the most frequent terms become a short summary
    such as "コーヒー・サンドイッチ等". The result is approximate, so its
    confidence is fixed at PURPOSE_CONFIDENCE.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def item_lines(self, blocks: Iterable[TextBlock]) -> List[str]:
        lines = []
        for block in blocks:
            text = block.stripped
            if len(text) < MIN_LINE_LENGTH:
                continue
            if matches_date(text) or matches_amount(text):
                continue
            if not in_vertical_band(
                block,
                top=self.settings.ITEM_BAND_TOP,
                bottom=self.settings.ITEM_BAND_BOTTOM,
            ):
                continue
            lines.append(text)
        return lines

    @staticmethod
    def tokenize(line: str) -> List[str]:
        return [term for term in TERM_PATTERN.findall(line) if len(term) >= MIN_TERM_LENGTH]

    @staticmethod
    def top_terms(terms: Iterable[str], limit: int = MAX_TERMS) -> List[str]:
        """Most frequent terms; equal counts keep first-seen order."""
        return [term for term, _ in Counter(terms).most_common(limit)]

    @staticmethod
    def summarize(terms: List[str]) -> str:
        if not terms:
            return ''
        if len(terms) == 1:
            return terms[0]
        if len(terms) == 2:
            return TERM_SEPARATOR.join(terms)
        return TERM_SEPARATOR.join(terms[:2]) + MORE_MARKER

    def extract(self, blocks: Iterable[TextBlock]) -> FieldResult:
        lines = self.item_lines(blocks)
        terms = [term for line in lines for term in self.tokenize(line)]
        summary = self.summarize(self.top_terms(terms))

        if not summary:
            return FieldResult(value=empty_value(ReceiptField.PURPOSE), confidence=0.0)

        confidence = self.settings.PURPOSE_CONFIDENCE
        candidate = Candidate(
            value=summary,
            confidence=confidence,
            original_text=' '.join(lines),
            source='ocr',
        )
        return FieldResult(value=summary, confidence=confidence, candidates=(candidate,))
