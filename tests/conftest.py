"""Pytest configuration and shared fixtures for receipt field extraction tests."""

from datetime import date
from typing import List, Optional

import pytest

from receipt_fields.config import Settings
from receipt_fields.models.blocks import BoundingBox, TextBlock

REFERENCE_DATE = date(2024, 6, 1)


def _make_block(
    text: str,
    x: Optional[float] = 0.1,
    y: Optional[float] = 0.5,
    width: float = 0.3,
    height: float = 0.05,
    font_size: Optional[float] = None,
    confidence: float = 0.9,
    source: str = "ocr",
) -> TextBlock:
    box = None
    if x is not None and y is not None:
        box = BoundingBox(x=x, y=y, width=width, height=height)
    return TextBlock(
        text=text,
        confidence=confidence,
        bounding_box=box,
        font_size=font_size,
        source=source,
    )


@pytest.fixture
def settings() -> Settings:
    """Defaults only; ignores any .env file or environment overrides."""
    return Settings(_env_file=None)


@pytest.fixture
def make_block():
    """Factory for TextBlocks with a bounding box at (x, y)."""
    return _make_block


@pytest.fixture
def reference_date() -> date:
    return REFERENCE_DATE


@pytest.fixture
def receipt_blocks() -> List[TextBlock]:
    """A small cafe receipt laid out top to bottom."""
    return [
        _make_block("株式会社テストレストラン", x=0.1, y=0.05, font_size=20),
        _make_block("令和5年12月15日", x=0.1, y=0.12, font_size=12),
        _make_block("コーヒー", x=0.1, y=0.40, font_size=12),
        _make_block("サンドイッチ", x=0.1, y=0.45, font_size=12),
        _make_block("ケーキ", x=0.1, y=0.50, font_size=12),
        _make_block("小計 ¥1,500", x=0.5, y=0.70, font_size=14),
        _make_block("消費税(10%) ¥150", x=0.5, y=0.75, font_size=14),
        _make_block("合計 ¥1,650", x=0.5, y=0.82, font_size=16),
    ]
