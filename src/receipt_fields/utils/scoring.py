"""
Ranking functions for extraction candidates.

Confidences are scores from 0.0 (worst) to 1.0 (best). Candidates are
ranked by descending confidence; confidences closer than the tie
tolerance are ordered by a per-field tie-break rule.
"""

from enum import Enum
from functools import cmp_to_key
from typing import Callable, Dict, Iterable, List, Optional

from receipt_fields.models.blocks import ReceiptField
from receipt_fields.utils.candidates import Candidate, FieldResult, empty_value

__all__ = [
    'ConfidenceLevel', 'confidence_level', 'clamp_confidence',
    'by_larger_amount', 'by_recency', 'tie_break_for',
    'dedupe_by_value', 'rank_candidates', 'build_field_result',
]

TieBreak = Callable[[Candidate, Candidate], int]

DEFAULT_TIE_TOLERANCE = 0.01


class ConfidenceLevel(Enum):
    """Review badge for a confidence score."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def confidence_level(confidence: float) -> ConfidenceLevel:
    """
    Classify a confidence for display.

    >= 0.8 is HIGH, >= 0.6 is MEDIUM, everything else LOW.
    """
    if confidence >= 0.8:
        return ConfidenceLevel.HIGH
    if confidence >= 0.6:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def clamp_confidence(score: float) -> float:
    """Clamp to [0.0, 1.0] and drop float noise from summed bonuses."""
    return round(max(0.0, min(1.0, score)), 4)


def by_larger_amount(a: Candidate, b: Candidate) -> int:
    """Tie-break: larger amount first."""
    if a.value == b.value:
        return 0
    return -1 if a.value > b.value else 1


def by_recency(a: Candidate, b: Candidate) -> int:
    """Tie-break: newer candidate first; equal timestamps keep input order."""
    if a.timestamp == b.timestamp:
        return 0
    return -1 if a.timestamp > b.timestamp else 1


def tie_break_for(receipt_field: ReceiptField) -> TieBreak:
    if receipt_field == ReceiptField.AMOUNT:
        return by_larger_amount
    return by_recency


def dedupe_by_value(candidates: Iterable[Candidate]) -> List[Candidate]:
    """
    Collapse candidates sharing a value, keeping the most confident one.

    The surviving candidate takes the position of the first occurrence.
    """
    best: Dict[object, Candidate] = {}
    for candidate in candidates:
        current = best.get(candidate.value)
        if current is None or candidate.confidence > current.confidence:
            best[candidate.value] = candidate
    return list(best.values())


def rank_candidates(
    candidates: Iterable[Candidate],
    tie_break: TieBreak = by_recency,
    tolerance: float = DEFAULT_TIE_TOLERANCE,
    top_n: Optional[int] = None
) -> List[Candidate]:
    """
    Sort candidates by descending confidence.

    Args:
        candidates: Candidates to rank
        tie_break: Ordering applied when confidences are within tolerance
        tolerance: Confidence window treated as a tie
        top_n: Number of candidates to keep (all if None)

    Returns:
        Ranked list, best first
    """
    def compare(a: Candidate, b: Candidate) -> int:
        if abs(a.confidence - b.confidence) < tolerance:
            return tie_break(a, b)
        return -1 if a.confidence > b.confidence else 1

    ranked = sorted(candidates, key=cmp_to_key(compare))
    if top_n is not None:
        ranked = ranked[:top_n]
    return ranked


def build_field_result(
    receipt_field: ReceiptField,
    candidates: Iterable[Candidate],
    top_n: int = 3,
    tolerance: float = DEFAULT_TIE_TOLERANCE
) -> FieldResult:
    """
    Build the FieldResult for one field from its raw candidates.

    Duplicate values are collapsed, the rest ranked with the field's
    tie-break rule and cut to top_n.
    """
    ranked = rank_candidates(
        dedupe_by_value(candidates),
        tie_break=tie_break_for(receipt_field),
        tolerance=tolerance,
        top_n=top_n,
    )

    if not ranked:
        return FieldResult(value=empty_value(receipt_field), confidence=0.0)

    best = ranked[0]
    return FieldResult(
        value=best.value,
        confidence=best.confidence,
        candidates=tuple(ranked),
    )
