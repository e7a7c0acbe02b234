"""
Date normalization for Japanese receipts.

Converts Western (4- and 2-digit year), Japanese era (元号) and
month/day-only dates into canonical YYYY/MM/DD strings. A date that
fails strict calendar validation produces no value at all.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Iterator, List, Optional, Tuple

from receipt_fields.config import Settings, get_settings
from receipt_fields.models.blocks import ReceiptField, TextBlock
from receipt_fields.utils.candidates import Candidate, FieldResult, create_candidate, utc_now
from receipt_fields.utils.patterns import DATE_PATTERNS, DateKind, PatternSpec
from receipt_fields.utils.scoring import build_field_result, clamp_confidence

logger = logging.getLogger(__name__)

MIN_YEAR = 1900
MAX_YEAR = 2100


@dataclass(frozen=True)
class Era:
    """A Japanese calendar era and the names it is written with."""
    name: str
    start_year: int  # Gregorian year of era year 1
    max_year: int    # Last valid era year
    aliases: Tuple[str, ...] = ()

    def matches(self, designator: str) -> bool:
        return designator == self.name or designator in self.aliases

    def to_gregorian(self, era_year: int) -> int:
        return self.start_year + era_year - 1


DEFAULT_ERAS: Tuple[Era, ...] = (
    Era('令和', 2019, 99, ('令', 'R')),  # current era, open-ended
    Era('平成', 1989, 31, ('平', 'H')),
    Era('昭和', 1926, 64, ('昭', 'S')),
    Era('大正', 1912, 15, ('大', 'T')),
)


def _to_int(group: Optional[str]) -> Optional[int]:
    if group is None:
        return None
    if group == '元':
        return 1
    try:
        return int(group)
    except ValueError:
        return None


class DateNormalizer:
    """Find and normalize receipt dates."""

    # Confidence weights
    BASE_CONFIDENCE = 0.5
    UNIT_MARKER_BONUS = 0.3   # 年, 月 and 日 all present
    ERA_BONUS = 0.2
    TOP_POSITION_BONUS = 0.1

    def __init__(
        self,
        eras: Tuple[Era, ...] = DEFAULT_ERAS,
        patterns: Tuple[PatternSpec, ...] = DATE_PATTERNS,
        settings: Optional[Settings] = None
    ):
        self.eras = tuple(eras)
        self.patterns = tuple(patterns)
        self.settings = settings or get_settings()

    def get_era(self, designator: Optional[str]) -> Optional[Era]:
        """Look up an era by full name, abbreviation or Latin initial."""
        if not designator:
            return None
        for era in self.eras:
            if era.matches(designator):
                return era
        return None

    def is_era_name(self, designator: Optional[str]) -> bool:
        return self.get_era(designator) is not None

    def is_valid_era_year(self, designator: str, era_year: int) -> bool:
        """Era years run from 1 (元年) to the era's maximum; there is no year 0."""
        era = self.get_era(designator)
        if era is None:
            return False
        return 1 <= era_year <= era.max_year

    @staticmethod
    def is_valid_date(year: int, month: int, day: int) -> bool:
        """
        Strict calendar check.

        Year must be within [1900, 2100] and the day must exist in that
        month, including leap-year February.
        """
        if not MIN_YEAR <= year <= MAX_YEAR:
            return False
        try:
            date(year, month, day)
        except ValueError:
            return False
        return True

    @staticmethod
    def format_date(year: int, month: int, day: int) -> str:
        return f"{year:04d}/{month:02d}/{day:02d}"

    def normalize(
        self,
        era: Optional[str],
        year: Optional[str],
        month: Optional[str],
        day: Optional[str],
        reference_year: int
    ) -> Optional[str]:
        """
        Convert date components to YYYY/MM/DD.

        Args:
            era: Era designator (令和, 令, R, ...) or None for Western dates
            year: Year digits (4 or 2 digits, or the era year); None for month/day only
            month: Month digits
            day: Day digits
            reference_year: Year assumed for month/day-only dates

        Returns:
            Canonical date string, or None if the input is not a real date
        """
        month_num = _to_int(month)
        day_num = _to_int(day)
        if month_num is None or day_num is None:
            return None

        if era is not None:
            era_info = self.get_era(era)
            era_year = _to_int(year)
            if era_info is None or era_year is None:
                return None
            if not self.is_valid_era_year(era, era_year):
                return None
            full_year = era_info.to_gregorian(era_year)
        elif year is None:
            full_year = reference_year
        else:
            year_num = _to_int(year)
            if year_num is None:
                return None
            if len(year) == 4:
                full_year = year_num
            elif len(year) == 2:
                full_year = 2000 + year_num if year_num < 50 else 1900 + year_num
            else:
                return None

        if not self.is_valid_date(full_year, month_num, day_num):
            return None

        return self.format_date(full_year, month_num, day_num)

    def normalize_match(self, spec: PatternSpec, match: re.Match, reference_year: int) -> Optional[str]:
        """Normalize a match of one of the date patterns."""
        groups = match.groups()
        if spec.kind == DateKind.ERA:
            era, year, month, day = groups
        elif spec.kind == DateKind.MONTH_DAY:
            era, year = None, None
            month, day = groups
        else:
            era = None
            year, month, day = groups
        return self.normalize(era, year, month, day, reference_year)

    def calculate_confidence(self, spec: PatternSpec, match: re.Match, block: TextBlock) -> float:
        """
        Score a normalized date match.

        Scoring factors:
        - Base: 0.5
        - 年, 月 and 日 unit markers in the match: +0.3
        - Era-based date: +0.2
        - Block in the upper part of the image: +0.1
        """
        confidence = self.BASE_CONFIDENCE
        matched = match.group(0)

        if '年' in matched and '月' in matched and '日' in matched:
            confidence += self.UNIT_MARKER_BONUS

        if spec.kind == DateKind.ERA:
            confidence += self.ERA_BONUS

        top = block.top
        if top is not None and top < self.settings.DATE_TOP_REGION:
            confidence += self.TOP_POSITION_BONUS

        return clamp_confidence(confidence)

    def iter_matches(self, text: str) -> Iterator[Tuple[PatternSpec, re.Match]]:
        """
        Yield the first match of each date pattern, in table order.

        A match overlapping text already claimed by an earlier pattern is
        skipped, so the month/day tail of a full date (e.g. "12 / 15" in
        "2023 / 12 / 15") never becomes a second, reference-year date.
        """
        claimed: List[Tuple[int, int]] = []
        for spec in self.patterns:
            match = spec.search(text)
            if not match:
                continue
            start, end = match.span()
            if any(start < taken_end and taken_start < end for taken_start, taken_end in claimed):
                continue
            claimed.append((start, end))
            yield spec, match

    def normalize_text(self, text: str, reference_year: int) -> Optional[str]:
        """First valid date found in a piece of text, as YYYY/MM/DD."""
        for spec, match in self.iter_matches(text):
            value = self.normalize_match(spec, match, reference_year)
            if value is not None:
                return value
        return None

    def find_candidates(self, blocks: Iterable[TextBlock], reference_year: int) -> List[Candidate]:
        """Run every date pattern over every block and keep the valid dates."""
        candidates = []
        created_at = utc_now()
        for block in blocks:
            for spec, match in self.iter_matches(block.text):
                value = self.normalize_match(spec, match, reference_year)
                if value is None:
                    logger.debug("Discarded invalid date", extra={
                        "pattern": spec.name,
                        "matched": match.group(0),
                    })
                    continue

                candidates.append(create_candidate(
                    value=value,
                    confidence=self.calculate_confidence(spec, match, block),
                    original_text=match.group(0),
                    block=block,
                    timestamp=created_at,
                ))
        return candidates

    def extract(self, blocks: Iterable[TextBlock], reference_date: Optional[date] = None) -> FieldResult:
        """
        Extract the transaction date.

        Args:
            blocks: Validated text blocks
            reference_date: Supplies the year for month/day-only dates (today if None)

        Returns:
            FieldResult with up to TOP_CANDIDATES ranked dates
        """
        reference_year = (reference_date or date.today()).year
        return build_field_result(
            ReceiptField.DATE,
            self.find_candidates(blocks, reference_year),
            top_n=self.settings.TOP_CANDIDATES,
            tolerance=self.settings.DEDUP_TOLERANCE,
        )
