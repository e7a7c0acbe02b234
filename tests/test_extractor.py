"""
End-to-end tests for ReceiptFieldExtractor.
"""

import logging
from datetime import date

import pytest

from receipt_fields.exceptions import ExtractionInputError
from receipt_fields.models.blocks import ReceiptField
from receipt_fields.services.extractor import ReceiptFieldExtractor, extract_fields


@pytest.fixture
def extractor(settings):
    return ReceiptFieldExtractor(settings=settings)


class TestFullReceipt:

    def test_all_fields(self, extractor, receipt_blocks, reference_date):
        result = extractor.extract(receipt_blocks, reference_date=reference_date)

        assert result.date.value == "2023/12/15"
        assert result.date.confidence == pytest.approx(1.0)
        assert result.payee.value == "株式会社テストレストラン"
        assert result.payee.confidence >= 0.8
        assert result.amount.value == 1650
        assert result.amount.confidence >= 0.9
        assert result.purpose.value == "コーヒー・サンドイッチ等"
        assert result.purpose.confidence == pytest.approx(0.7)

    def test_candidate_lists_are_bounded(self, extractor, receipt_blocks, reference_date):
        result = extractor.extract(receipt_blocks, reference_date=reference_date)
        for _, field_result in result.items():
            assert len(field_result.candidates) <= 3
            confidences = [c.confidence for c in field_result.candidates]
            assert confidences == sorted(confidences, reverse=True)
            assert all(0.0 <= c <= 1.0 for c in confidences)

    def test_candidates_carry_provenance(self, extractor, receipt_blocks, reference_date):
        result = extractor.extract(receipt_blocks, reference_date=reference_date)
        best = result.amount.candidates[0]
        assert best.source == "ocr"
        assert best.is_history is False
        assert best.bounding_box is not None
        assert best.bounding_box.y == pytest.approx(0.82)

    def test_camel_case_records(self, extractor, reference_date):
        raw = [
            {"text": "さくら薬局", "confidence": 0.9,
             "boundingBox": {"x": 0.1, "y": 0.05, "width": 0.5, "height": 0.05}, "fontSize": 22},
            {"text": "2024年3月20日", "confidence": 0.9,
             "boundingBox": {"x": 0.1, "y": 0.12, "width": 0.4, "height": 0.04}},
            {"text": "合計 ¥2,480", "confidence": 0.9,
             "boundingBox": {"x": 0.5, "y": 0.8, "width": 0.4, "height": 0.05}},
        ]
        result = extractor.extract(raw, reference_date=reference_date)
        assert result.payee.value == "さくら薬局"
        assert result.date.value == "2024/03/20"
        assert result.date.confidence == pytest.approx(0.9)
        assert result.amount.value == 2480

    def test_to_dict(self, extractor, receipt_blocks, reference_date):
        data = extractor.extract(receipt_blocks, reference_date=reference_date).to_dict()
        assert set(data) == {"date", "payee", "amount", "purpose"}
        assert data["amount"]["value"] == 1650
        assert data["amount"]["candidates"][0]["original_text"] == "¥1,650"
        assert isinstance(data["date"]["candidates"][0]["timestamp"], str)


class TestDegenerateInput:

    def test_empty_input(self, extractor):
        result = extractor.extract([])
        assert result.date.value == ''
        assert result.payee.value == ''
        assert result.amount.value == 0
        assert result.purpose.value == ''
        assert all(field_result.is_empty for _, field_result in result.items())

    def test_invalid_blocks_are_dropped(self, extractor, reference_date):
        raw = [
            {"text": ""},
            {"text": 42},
            {"confidence": 0.9},
            {"text": "合計 ¥1,000", "boundingBox": {"x": 0.5, "y": 0.8, "width": 0.3, "height": 0.05}},
        ]
        result = extractor.extract(raw, reference_date=reference_date)
        assert result.amount.value == 1000

    def test_only_invalid_blocks(self, extractor):
        result = extractor.extract([{"text": "   "}, {"text": None}])
        assert result.amount.value == 0
        assert result.date.value == ''

    @pytest.mark.parametrize("raw", [None, "合計 ¥1,000", {"text": "合計 ¥1,000"}])
    def test_not_a_block_sequence(self, extractor, raw):
        with pytest.raises(ExtractionInputError):
            extractor.extract(raw)

    def test_generator_input(self, extractor, make_block):
        result = extractor.extract(block for block in [make_block("¥1,650")])
        assert result.amount.value == 1650

    def test_blocks_without_boxes(self, extractor, make_block):
        result = extractor.extract([
            make_block("山田商店", x=None, y=None),
            make_block("2023/12/15", x=None, y=None),
        ])
        assert result.payee.value == "山田商店"
        assert result.date.confidence == pytest.approx(0.5)

    def test_month_day_without_reference_date(self, extractor, make_block):
        result = extractor.extract([make_block("3月1日")])
        assert result.date.value == f"{date.today().year}/03/01"


class TestFieldIsolation:

    def test_failing_field_degrades_alone(self, extractor, receipt_blocks, reference_date, monkeypatch, caplog):
        def boom(*args, **kwargs):
            raise ValueError("boom")

        monkeypatch.setattr(extractor.payee_estimator, "extract", boom)

        with caplog.at_level(logging.WARNING, logger="receipt_fields.services.extractor"):
            result = extractor.extract(receipt_blocks, reference_date=reference_date)

        assert result.payee.value == ''
        assert result.payee.confidence == 0.0
        assert result.amount.value == 1650
        assert result.date.value == "2023/12/15"
        assert "Error extracting payee" in caplog.text

    @pytest.mark.parametrize("error", [RuntimeError, TypeError, ZeroDivisionError])
    def test_unexpected_errors_propagate(self, extractor, receipt_blocks, monkeypatch, error):
        def boom(*args, **kwargs):
            raise error("boom")

        monkeypatch.setattr(extractor.amount_extractor, "extract", boom)

        with pytest.raises(error):
            extractor.extract(receipt_blocks)

    def test_extractors_are_independent(self, extractor, receipt_blocks, reference_date):
        full = extractor.extract(receipt_blocks, reference_date=reference_date)
        assert extractor.extract_amount(receipt_blocks).value == full.amount.value
        assert extractor.extract_payee(receipt_blocks).value == full.payee.value
        assert extractor.extract_purpose(receipt_blocks).value == full.purpose.value
        assert extractor.extract_date(receipt_blocks, reference_date=reference_date).value == full.date.value

    def test_result_lookup_by_field(self, extractor, receipt_blocks, reference_date):
        result = extractor.extract(receipt_blocks, reference_date=reference_date)
        assert result.get(ReceiptField.AMOUNT) is result.amount
        assert result.get("payee") is result.payee


def test_extract_fields_wrapper(settings, receipt_blocks, reference_date):
    result = extract_fields(receipt_blocks, reference_date=reference_date, settings=settings)
    assert result.amount.value == 1650
