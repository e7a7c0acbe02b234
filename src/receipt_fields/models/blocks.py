"""
Pydantic models for OCR input blocks.
"""

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError, field_validator

from receipt_fields.exceptions import ExtractionInputError

logger = logging.getLogger(__name__)


class ReceiptField(str, Enum):
    """The four fields extracted from a receipt."""
    DATE = "date"
    PAYEE = "payee"
    AMOUNT = "amount"
    PURPOSE = "purpose"


class BoundingBox(BaseModel):
    """Rectangle in normalized image coordinates (0.0 - 1.0)."""
    x: float = Field(ge=0.0, le=1.0)
    y: float = Field(ge=0.0, le=1.0)
    width: float = Field(default=0.0, ge=0.0, le=1.0)
    height: float = Field(default=0.0, ge=0.0, le=1.0)

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)


class TextBlock(BaseModel):
    """One text fragment recognized by an OCR backend."""
    text: StrictStr
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    bounding_box: Optional[BoundingBox] = Field(default=None, alias="boundingBox")
    font_size: Optional[float] = Field(default=None, gt=0.0, alias="fontSize")
    source: str = "ocr"

    model_config = ConfigDict(frozen=True, allow_inf_nan=False, populate_by_name=True)

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("text is blank")
        return value

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence_default(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("source", mode="before")
    @classmethod
    def _source_default(cls, value: Any) -> Any:
        return "ocr" if value is None else value

    @property
    def stripped(self) -> str:
        return self.text.strip()

    @property
    def top(self) -> Optional[float]:
        """Vertical position of the block's top edge, if known."""
        return self.bounding_box.y if self.bounding_box is not None else None


def coerce_blocks(raw_blocks: Iterable[Any]) -> List[TextBlock]:
    """
    Validate raw OCR output into TextBlocks.

    Args:
        raw_blocks: Sequence of TextBlock instances or mappings

    Returns:
        Valid blocks in input order; malformed records are dropped

    Raises:
        ExtractionInputError: If raw_blocks is None or not a sequence of records
    """
    if raw_blocks is None or isinstance(raw_blocks, (str, bytes, Mapping)):
        raise ExtractionInputError(
            f"text blocks must be a sequence, got {type(raw_blocks).__name__}"
        )

    try:
        items = list(raw_blocks)
    except TypeError as exc:
        raise ExtractionInputError(
            f"text blocks must be a sequence, got {type(raw_blocks).__name__}"
        ) from exc

    blocks: List[TextBlock] = []
    for index, raw in enumerate(items):
        if isinstance(raw, TextBlock):
            blocks.append(raw)
            continue
        try:
            blocks.append(TextBlock.model_validate(raw))
        except ValidationError as exc:
            logger.debug("Dropped invalid text block", extra={
                "block_index": index,
                "error_count": exc.error_count(),
            })

    return blocks
