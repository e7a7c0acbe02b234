"""
Amount extraction for Japanese receipts.
"""

import logging
import re
from typing import List, Mapping, Optional, Sequence, Tuple

from receipt_fields.config import Settings, get_settings
from receipt_fields.models.blocks import ReceiptField, TextBlock
from receipt_fields.utils.candidates import Candidate, FieldResult, create_candidate, utc_now
from receipt_fields.utils.geometry import find_nearby_blocks
from receipt_fields.utils.money import has_valid_grouping, normalize_amount
from receipt_fields.utils.patterns import (
    AMOUNT_KEYWORDS,
    AMOUNT_PATTERNS,
    PatternSpec,
    has_currency_marker,
)
from receipt_fields.utils.scoring import build_field_result, clamp_confidence

logger = logging.getLogger(__name__)


class AmountExtractor:
    """
    Find yen amounts and score how likely each one is the total paid.

    Scoring factors:
    - Base: 0.3
    - Currency marker (¥, ￥, 円) in the block: +0.2
    - Correct 3-digit grouping of the matched number: +0.1
    - Keyword weight: up to +0.5, the strongest keyword found in the
      block itself or in a block whose center is within
      PROXIMITY_THRESHOLD
    """

    BASE_CONFIDENCE = 0.3
    CURRENCY_BONUS = 0.2
    GROUPING_BONUS = 0.1
    KEYWORD_FACTOR = 0.5

    def __init__(
        self,
        patterns: Tuple[PatternSpec, ...] = AMOUNT_PATTERNS,
        keywords: Mapping[str, float] = AMOUNT_KEYWORDS,
        settings: Optional[Settings] = None
    ):
        self.patterns = tuple(patterns)
        self.keywords = keywords
        self.settings = settings or get_settings()

    def match_amount(self, text: str) -> Optional[Tuple[PatternSpec, re.Match, int]]:
        """
        Apply the pattern table in order.

        Returns:
            (pattern, match, amount) for the first pattern whose match
            normalizes to a positive amount, or None
        """
        for spec in self.patterns:
            match = spec.search(text)
            if not match:
                continue
            amount = normalize_amount(match.group(1))
            if amount > 0:
                return spec, match, amount
        return None

    def keyword_score(self, text: str) -> float:
        """Highest keyword weight contained in text."""
        score = 0.0
        for keyword, weight in self.keywords.items():
            if keyword in text:
                score = max(score, weight)
        return score

    def nearby_keyword_score(self, target: TextBlock, blocks: Sequence[TextBlock]) -> float:
        """Highest keyword weight among blocks spatially near the target."""
        score = 0.0
        for block, _ in find_nearby_blocks(target, blocks, self.settings.PROXIMITY_THRESHOLD):
            score = max(score, self.keyword_score(block.text))
        return score

    def score(self, block: TextBlock, matched_number: str, blocks: Sequence[TextBlock]) -> float:
        confidence = self.BASE_CONFIDENCE

        if has_currency_marker(block.text):
            confidence += self.CURRENCY_BONUS

        if has_valid_grouping(matched_number):
            confidence += self.GROUPING_BONUS

        keyword_score = max(
            self.keyword_score(block.text),
            self.nearby_keyword_score(block, blocks),
        )
        confidence += keyword_score * self.KEYWORD_FACTOR

        return clamp_confidence(confidence)

    def find_candidates(self, blocks: Sequence[TextBlock]) -> List[Candidate]:
        candidates = []
        created_at = utc_now()
        seen_texts = set()

        for block in blocks:
            text = block.text
            if text in seen_texts:
                continue
            seen_texts.add(text)

            result = self.match_amount(text)
            if result is None:
                continue

            spec, match, amount = result
            candidates.append(create_candidate(
                value=amount,
                confidence=self.score(block, match.group(1), blocks),
                original_text=match.group(0),
                block=block,
                timestamp=created_at,
            ))
            logger.debug("Amount candidate", extra={
                "pattern": spec.name,
                "amount": amount,
            })

        return candidates

    def extract(self, blocks: Sequence[TextBlock]) -> FieldResult:
        """
        Extract the amount paid.

        Ties in confidence go to the larger amount, so a total outranks
        the line items and subtotal it sums.
        """
        return build_field_result(
            ReceiptField.AMOUNT,
            self.find_candidates(blocks),
            top_n=self.settings.TOP_CANDIDATES,
            tolerance=self.settings.DEDUP_TOLERANCE,
        )
