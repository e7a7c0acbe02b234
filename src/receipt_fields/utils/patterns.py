"""
Ordered pattern tables for receipt field extraction.

Every table is immutable and order matters: the amount extractor takes
the first amount pattern that yields a positive value, the payee
estimator stops at the first suffix pattern that matches. Keeping the
tables here makes the precedence rules testable on their own.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


class DateKind(Enum):
    """How a date pattern's capture groups are laid out."""
    WESTERN = "western"        # (year4, month, day)
    SHORT_YEAR = "short_year"  # (year2, month, day)
    ERA = "era"                # (era, era_year, month, day)
    MONTH_DAY = "month_day"    # (month, day)


@dataclass(frozen=True)
class PatternSpec:
    """A named regex pattern with example and notes for documentation."""
    name: str
    pattern: str
    example: str
    notes: Optional[str] = None
    kind: Optional[DateKind] = None
    flags: int = 0
    compiled: re.Pattern = field(default=None, init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'compiled', re.compile(self.pattern, self.flags))

    def search(self, text: str) -> Optional[re.Match]:
        return self.compiled.search(text)


ERA_ALIASES = r'令和|平成|昭和|大正|令|平|昭|大|R|H|S|T'

DATE_PATTERNS: Tuple[PatternSpec, ...] = (
    PatternSpec(
        name='western_date',
        pattern=r'(?<!\d)(\d{4})\s*[/\-.年]\s*(\d{1,2})\s*[/\-.月]\s*(\d{1,2})(?!\d)\s*日?',
        example='2023年12月15日',
        notes='4-digit Western year with slash, dash, dot or 年/月/日 units',
        kind=DateKind.WESTERN,
    ),
    PatternSpec(
        name='short_year_date',
        pattern=r'(?<![\d/\-.])(\d{2})[/\-](\d{1,2})[/\-](\d{1,2})(?!\d)',
        example='23/12/15',
        notes='2-digit Western year: < 50 is 20xx, otherwise 19xx',
        kind=DateKind.SHORT_YEAR,
    ),
    PatternSpec(
        name='era_date',
        pattern=(
            r'(?<![A-Za-z])(' + ERA_ALIASES + r')\s*(\d{1,2}|元)\s*年?\s*[/\-.]?\s*'
            r'(\d{1,2})\s*月?\s*[/\-.]?\s*(\d{1,2})(?!\d)\s*日?'
        ),
        example='令和5年12月15日',
        notes='Japanese era name, abbreviation or Latin initial; 元 is era year 1',
        kind=DateKind.ERA,
    ),
    PatternSpec(
        name='month_day',
        pattern=r'(?<![\d/\-.年])(\d{1,2})\s*[月/\-]\s*(\d{1,2})(?![\d/\-])\s*日?',
        example='12月15日',
        notes='Month and day only; year comes from the reference date',
        kind=DateKind.MONTH_DAY,
    ),
)

# Grouped digits use ASCII or full-width commas.
_GROUPED = r'\d{1,3}(?:[,，]\d{3})+'

AMOUNT_PATTERNS: Tuple[PatternSpec, ...] = (
    PatternSpec(
        name='yen_prefixed_grouped',
        pattern=r'[¥￥]\s*(' + _GROUPED + r')(?!\d)',
        example='¥1,650',
    ),
    PatternSpec(
        name='yen_suffixed_grouped',
        pattern=r'(?<![\d,，])(' + _GROUPED + r')\s*円',
        example='1,650円',
    ),
    PatternSpec(
        name='yen_suffixed_plain',
        pattern=r'(?<![\d,，])(\d+)\s*円',
        example='1650円',
    ),
    PatternSpec(
        name='yen_prefixed_plain',
        pattern=r'[¥￥]\s*(\d+)(?!\d)',
        example='¥1650',
    ),
    PatternSpec(
        name='bare_grouped',
        pattern=r'(?<![\d,，])(' + _GROUPED + r')(?![\d,，])',
        example='1,650',
        notes='No currency marker',
    ),
    PatternSpec(
        name='plain_digits',
        pattern=r'(?<![\d,，])(\d+)(?!\d)',
        example='1650',
        notes='Last resort',
    ),
)

# Currency-marked subset, used to recognise amount lines elsewhere.
CURRENCY_AMOUNT_PATTERNS: Tuple[PatternSpec, ...] = AMOUNT_PATTERNS[:4]

NUMERIC_ONLY = re.compile(r'^[\d,，.．\s\-]+$')

CURRENCY_MARKERS = ('¥', '￥', '円')

# Keyword weights for amount lines; the highest weight found wins.
AMOUNT_KEYWORDS: Mapping[str, float] = MappingProxyType({
    '合計': 1.0,
    '税込': 0.9,
    'お会計': 0.9,
    '総額': 0.8,
    '小計': 0.7,
    '計': 0.6,
    '金額': 0.5,
})

LEGAL_ENTITIES = r'株式会社|有限会社|合同会社|合資会社|合名会社'

PAYEE_SUFFIX_PATTERNS: Tuple[PatternSpec, ...] = (
    PatternSpec(
        name='legal_entity_suffix',
        pattern=r'(.+)(' + LEGAL_ENTITIES + r')',
        example='テスト株式会社',
    ),
    PatternSpec(
        name='retail_suffix',
        pattern=r'(.+)(店|商店|薬局|堂|院|館|屋)',
        example='テスト商店',
    ),
    PatternSpec(
        name='legal_entity_prefix',
        pattern=r'(' + LEGAL_ENTITIES + r')(.+)',
        example='株式会社テストレストラン',
    ),
)

# Lines that are never the payee even at the top of a receipt.
PAYEE_SKIP_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r'^\s*(?:領収書|領収証|レシート|お買上げ明細|receipt)\s*$', re.IGNORECASE),
    re.compile(r'(?:様|御中)\s*$'),
)

# Contiguous CJK (hiragana, katakana, kanji) or Latin letter runs.
TERM_PATTERN = re.compile(r'[ぁ-んァ-ヶー一-龠々]+|[A-Za-zＡ-Ｚａ-ｚ]+')


def matches_date(text: str) -> bool:
    return any(spec.search(text) for spec in DATE_PATTERNS)


def matches_amount(text: str) -> bool:
    """True for currency-marked amounts or text made only of digits and separators."""
    if NUMERIC_ONLY.match(text):
        return True
    return any(spec.search(text) for spec in CURRENCY_AMOUNT_PATTERNS)


def has_currency_marker(text: str) -> bool:
    return any(marker in text for marker in CURRENCY_MARKERS)


def matches_payee_suffix(text: str) -> Optional[PatternSpec]:
    """Return the first organizational-suffix pattern matching text."""
    for spec in PAYEE_SUFFIX_PATTERNS:
        if spec.search(text):
            return spec
    return None


def is_payee_skip_word(text: str) -> bool:
    return any(pattern.search(text) for pattern in PAYEE_SKIP_PATTERNS)
