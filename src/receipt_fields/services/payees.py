"""
Payee (store / organization name) estimation.
"""

import logging
from typing import Iterable, List, Optional

from receipt_fields.config import Settings, get_settings
from receipt_fields.models.blocks import ReceiptField, TextBlock
from receipt_fields.utils.candidates import Candidate, FieldResult, create_candidate, utc_now
from receipt_fields.utils.patterns import (
    is_payee_skip_word,
    matches_amount,
    matches_date,
    matches_payee_suffix,
)
from receipt_fields.utils.scoring import build_field_result, clamp_confidence

logger = logging.getLogger(__name__)


class PayeeEstimator:
    """
    Identify the store or company a receipt was issued by.

    A block qualifies if it carries an organizational suffix (株式会社,
    商店, 薬局, ...) or if it sits near the top of the image in a large
    font. Scoring is structural only:
    - Base: 0.3
    - Suffix pattern: +0.4
    - Upper part of the image: +0.3
    - Large font: +0.2
    """

    BASE_CONFIDENCE = 0.3
    SUFFIX_BONUS = 0.4
    POSITION_BONUS = 0.3
    FONT_BONUS = 0.2

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def is_excluded(self, text: str) -> bool:
        """Short, numeric, date, amount and header lines are never payees."""
        if len(text) < self.settings.PAYEE_MIN_LENGTH:
            return True
        if text.isdigit():
            return True
        if matches_date(text) or matches_amount(text):
            return True
        return is_payee_skip_word(text)

    def is_upper_block(self, block: TextBlock) -> bool:
        top = block.top
        return top is not None and top < self.settings.PAYEE_TOP_REGION

    def is_large_font(self, block: TextBlock) -> bool:
        return block.font_size is not None and block.font_size > self.settings.LARGE_FONT_SIZE

    def is_potential_payee(self, block: TextBlock) -> bool:
        """Either signal qualifies a block: suffix match, or top position with a large font."""
        text = block.stripped
        if self.is_excluded(text):
            return False
        if matches_payee_suffix(text):
            return True
        return self.is_upper_block(block) and self.is_large_font(block)

    def score(self, block: TextBlock) -> float:
        confidence = self.BASE_CONFIDENCE

        if matches_payee_suffix(block.stripped):
            confidence += self.SUFFIX_BONUS

        if self.is_upper_block(block):
            confidence += self.POSITION_BONUS

        if self.is_large_font(block):
            confidence += self.FONT_BONUS

        return clamp_confidence(confidence)

    def find_candidates(self, blocks: Iterable[TextBlock]) -> List[Candidate]:
        candidates = []
        created_at = utc_now()
        for block in blocks:
            if not self.is_potential_payee(block):
                continue
            text = block.stripped
            candidates.append(create_candidate(
                value=text,
                confidence=self.score(block),
                original_text=text,
                block=block,
                timestamp=created_at,
            ))
        return candidates

    def extract(self, blocks: Iterable[TextBlock]) -> FieldResult:
        return build_field_result(
            ReceiptField.PAYEE,
            self.find_candidates(blocks),
            top_n=self.settings.TOP_CANDIDATES,
            tolerance=self.settings.DEDUP_TOLERANCE,
        )
