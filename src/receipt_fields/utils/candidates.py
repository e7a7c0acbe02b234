"""
Candidate dataclasses for extraction results.

Each candidate represents one possible value for a receipt field with
its confidence and provenance. Candidates are immutable; a changed
candidate is a new object created with dataclasses.replace().
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from receipt_fields.models.blocks import BoundingBox, ReceiptField, TextBlock


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Candidate:
    """
    One possible value for a field.

    value is a YYYY/MM/DD string for dates, an int for amounts and free
    text for payee and purpose.
    """
    value: Union[str, int]
    confidence: float
    original_text: str = ""
    source: Optional[str] = None  # "ocr", "history", or a free-form label
    timestamp: datetime = field(default_factory=utc_now)
    is_history: bool = False
    bounding_box: Optional[BoundingBox] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'value': self.value,
            'confidence': self.confidence,
            'original_text': self.original_text,
            'source': self.source,
            'timestamp': self.timestamp.isoformat(),
            'is_history': self.is_history,
            'bounding_box': (
                self.bounding_box.model_dump() if self.bounding_box is not None else None
            ),
        }


@dataclass(frozen=True)
class FieldResult:
    """Best value for one field plus the ranked shortlist it came from."""
    value: Union[str, int]
    confidence: float
    candidates: Tuple[Candidate, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.candidates

    def to_dict(self) -> Dict[str, Any]:
        return {
            'value': self.value,
            'confidence': self.confidence,
            'candidates': [candidate.to_dict() for candidate in self.candidates],
        }


@dataclass(frozen=True)
class ExtractionResult:
    """The four FieldResults of one extraction call."""
    date: FieldResult
    payee: FieldResult
    amount: FieldResult
    purpose: FieldResult

    def get(self, receipt_field: ReceiptField) -> FieldResult:
        return getattr(self, ReceiptField(receipt_field).value)

    def items(self) -> List[Tuple[ReceiptField, FieldResult]]:
        return [(receipt_field, self.get(receipt_field)) for receipt_field in ReceiptField]

    def to_dict(self) -> Dict[str, Any]:
        return {receipt_field.value: result.to_dict() for receipt_field, result in self.items()}


def empty_value(receipt_field: ReceiptField) -> Union[str, int]:
    """Value reported for a field when no candidate was found."""
    return 0 if receipt_field == ReceiptField.AMOUNT else ''


def create_candidate(
    value: Union[str, int],
    confidence: float,
    original_text: str,
    block: Optional[TextBlock] = None,
    timestamp: Optional[datetime] = None
) -> Candidate:
    """
    Create a freshly derived Candidate from a text block.

    Args:
        value: Canonical field value
        confidence: Score in [0.0, 1.0]
        original_text: Raw substring that produced the value
        block: Source block (provenance and bounding box)
        timestamp: Creation instant; candidates of one extraction pass
            share it so that ties keep document order

    Returns:
        Candidate stamped with timestamp, or the current time
    """
    return Candidate(
        value=value,
        confidence=confidence,
        original_text=original_text,
        source=block.source if block is not None else 'ocr',
        timestamp=timestamp or utc_now(),
        bounding_box=block.bounding_box if block is not None else None,
    )
