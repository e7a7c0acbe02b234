"""
Tests for payee estimation.
"""

import pytest

from receipt_fields.services.payees import PayeeEstimator
from receipt_fields.utils.patterns import matches_payee_suffix


@pytest.fixture
def estimator(settings):
    return PayeeEstimator(settings=settings)


class TestSuffixPatterns:

    @pytest.mark.parametrize("text,pattern", [
        ("テスト株式会社", 'legal_entity_suffix'),
        ("山田商事有限会社", 'legal_entity_suffix'),
        ("山田商店", 'retail_suffix'),
        ("さくら薬局", 'retail_suffix'),
        ("ブックス渋谷店", 'retail_suffix'),
        ("株式会社テストレストラン", 'legal_entity_prefix'),
        ("合同会社サンプル", 'legal_entity_prefix'),
    ])
    def test_matching_pattern(self, text, pattern):
        assert matches_payee_suffix(text).name == pattern

    @pytest.mark.parametrize("text", ["コーヒー", "Thank you", "株式会社"])
    def test_no_suffix(self, text):
        assert matches_payee_suffix(text) is None


class TestExclusions:

    @pytest.mark.parametrize("text", [
        "A",
        "12345",
        "2023/12/15",
        "令和5年12月15日",
        "¥1,650",
        "1,650円",
        "03-1234-5678",
        "領収書",
        "レシート",
        "Receipt",
        "山田太郎様",
        "経理部御中",
    ])
    def test_excluded(self, estimator, text):
        assert estimator.is_excluded(text)

    @pytest.mark.parametrize("text", ["山田商店", "カフェ・ド・テスト", "コンビニ"])
    def test_not_excluded(self, estimator, text):
        assert not estimator.is_excluded(text)

    def test_excluded_line_never_qualifies(self, estimator, make_block):
        block = make_block("領収書", y=0.02, font_size=24)
        assert not estimator.is_potential_payee(block)


class TestPayeeScoring:

    def test_suffix_top_large_font(self, estimator, make_block):
        result = estimator.extract([make_block("株式会社テストレストラン", y=0.05, font_size=20)])
        assert result.value == "株式会社テストレストラン"
        assert result.confidence == pytest.approx(1.0)

    def test_suffix_at_top(self, estimator, make_block):
        result = estimator.extract([make_block("テスト株式会社", y=0.1, font_size=12)])
        assert result.confidence >= 0.8

    def test_suffix_only(self, estimator, make_block):
        result = estimator.extract([make_block("山田商店", y=0.9, font_size=10)])
        assert result.value == "山田商店"
        assert result.confidence == pytest.approx(0.7)

    def test_position_and_font_only(self, estimator, make_block):
        result = estimator.extract([make_block("カフェ・ド・テスト", y=0.05, font_size=24)])
        assert result.value == "カフェ・ド・テスト"
        assert result.confidence == pytest.approx(0.8)

    def test_top_without_large_font_does_not_qualify(self, estimator, make_block):
        result = estimator.extract([make_block("カフェ・ド・テスト", y=0.05, font_size=12)])
        assert result.is_empty
        assert result.value == ''

    def test_large_font_low_on_page_does_not_qualify(self, estimator, make_block):
        result = estimator.extract([make_block("ありがとうございました", y=0.9, font_size=24)])
        assert result.is_empty

    def test_font_threshold_is_strict(self, estimator, make_block):
        result = estimator.extract([make_block("カフェ・ド・テスト", y=0.05, font_size=16)])
        assert result.is_empty

    def test_text_is_trimmed(self, estimator, make_block):
        result = estimator.extract([make_block("  山田商店  ", y=0.9)])
        assert result.value == "山田商店"
        assert result.candidates[0].original_text == "山田商店"

    def test_repeated_name_reported_once(self, estimator, make_block):
        blocks = [
            make_block("山田商店", y=0.9),
            make_block("山田商店", y=0.05, font_size=20),
        ]
        result = estimator.extract(blocks)
        assert len(result.candidates) == 1
        assert result.confidence == pytest.approx(1.0)

    def test_best_candidate_first(self, estimator, receipt_blocks, make_block):
        blocks = receipt_blocks + [make_block("さくら薬局", y=0.9, font_size=10)]
        result = estimator.extract(blocks)
        assert [c.value for c in result.candidates] == ["株式会社テストレストラン", "さくら薬局"]
