# tests/test_normalizer.py

"""Tests for price, count and rating normalization."""

import unittest

from src.models.product import (
    NormalizedProduct,
    RawExtractionResult,
    SourceStrategy,
)
from src.scrapers.normalizer import (
    is_valid,
    normalize_count,
    normalize_price,
    normalize_rating,
    normalize_raw,
)


class TestNormalizePrice(unittest.TestCase):
    """Price parsing with separators and the thousands heuristic."""

    def test_plain_digits(self) -> None:
        """Whole VND amounts pass through."""
        self.assertEqual(normalize_price("199000"), 199000)

    def test_under_thousand_is_scaled(self) -> None:
        """Prices quoted in thousands are multiplied by 1000."""
        self.assertEqual(normalize_price("199₫"), 199000)

    def test_dot_thousand_separators(self) -> None:
        """Vietnamese dot grouping is stripped."""
        self.assertEqual(normalize_price("1.199.000₫"), 1199000)

    def test_single_group_separator(self) -> None:
        """One separator followed by three digits is a thousands mark."""
        self.assertEqual(normalize_price("199.000 đ"), 199000)
        self.assertEqual(normalize_price("₫250,000"), 250000)

    def test_mixed_separators(self) -> None:
        """The right-most separator is the decimal point."""
        self.assertEqual(normalize_price("1,299.60"), 1300)
        self.assertEqual(normalize_price("1.299,40"), 1299)

    def test_decimal_under_thousand(self) -> None:
        """Fractional thousands are scaled and rounded."""
        self.assertEqual(normalize_price("12.5"), 12500)

    def test_no_digits(self) -> None:
        """Text without digits degrades to zero."""
        for text in ("", "Liên hệ", "₫", None):
            with self.subTest(text=text):
                self.assertEqual(normalize_price(text), 0)

    def test_numeric_input(self) -> None:
        """Structured sources may hand over numbers directly."""
        self.assertEqual(normalize_price(199000.0), 199000)
        self.assertEqual(normalize_price(149), 149000)
        self.assertEqual(normalize_price(-5), 0)

    def test_price_range_uses_lower_bound(self) -> None:
        """Variant ranges read as their first price."""
        self.assertEqual(normalize_price("₫199.000 - ₫250.000"), 199000)
        self.assertEqual(normalize_price("199.000₫ ~ 250.000₫"), 199000)

    def test_label_before_number(self) -> None:
        """Leading text does not affect the first number."""
        self.assertEqual(normalize_price("Giá: 1.199.000₫ (-20%)"), 1199000)

    def test_out_of_range_is_zero(self) -> None:
        """Values beyond a 64-bit integer are unparseable."""
        self.assertEqual(normalize_price("9" * 5000), 0)
        self.assertEqual(normalize_price(10**400), 0)
        self.assertEqual(normalize_price(1e19), 0)

    def test_deterministic(self) -> None:
        """The same text always yields the same price."""
        for text in ("1.199.000₫", "199₫", "abc"):
            with self.subTest(text=text):
                self.assertEqual(normalize_price(text), normalize_price(text))


class TestNormalizeCount(unittest.TestCase):
    """Counts keep only their digits."""

    def test_sold_label(self) -> None:
        """Localized labels and separators are stripped."""
        self.assertEqual(normalize_count("1,234 đã bán"), 1234)

    def test_empty(self) -> None:
        """Empty or missing text is zero."""
        self.assertEqual(normalize_count(""), 0)
        self.assertEqual(normalize_count(None), 0)

    def test_dot_grouping(self) -> None:
        """Dots are grouping marks for counts too."""
        self.assertEqual(normalize_count("Đã bán 12.345"), 12345)

    def test_numeric_input(self) -> None:
        """Integers from structured payloads pass through."""
        self.assertEqual(normalize_count(42), 42)
        self.assertEqual(normalize_count(-3), 0)

    def test_overlong_digit_run_is_zero(self) -> None:
        """Huge digit runs degrade to zero instead of raising."""
        self.assertEqual(normalize_count("9" * 5000 + " đã bán"), 0)
        self.assertEqual(normalize_count("100000000000000000000 đã bán"), 0)
        self.assertEqual(normalize_count(2**70), 0)

    def test_largest_accepted_count(self) -> None:
        """Eighteen digits still fit a 64-bit column."""
        self.assertEqual(
            normalize_count("999999999999999999"), 999999999999999999
        )


class TestNormalizeRating(unittest.TestCase):
    """Ratings take the first number and are not clamped."""

    def test_first_number(self) -> None:
        """'4.8/5' reads as 4.8."""
        self.assertEqual(normalize_rating("4.8/5"), 4.8)

    def test_comma_decimal(self) -> None:
        """Comma decimals are accepted."""
        self.assertEqual(normalize_rating("4,7 sao"), 4.7)

    def test_integer(self) -> None:
        """Whole-star ratings parse as floats."""
        self.assertEqual(normalize_rating("5"), 5.0)

    def test_absent(self) -> None:
        """No number means 0.0."""
        self.assertEqual(normalize_rating("Chưa có đánh giá"), 0.0)
        self.assertEqual(normalize_rating(None), 0.0)

    def test_not_clamped(self) -> None:
        """Out-of-range values are preserved for diagnosis."""
        self.assertEqual(normalize_rating("48"), 48.0)


class TestNormalizeRawAndValidity(unittest.TestCase):
    """Raw field bags become canonical records."""

    def test_document_fields(self) -> None:
        """Text fields are parsed into the canonical types."""
        raw = RawExtractionResult(
            platform="lazada",
            strategy=SourceStrategy.DOCUMENT,
            name="  Tai nghe bluetooth  ",
            price="₫359.000",
            sales="2,1k đã bán",
            rating="4.9",
            reviews="(1.024 đánh giá)",
        )
        product = normalize_raw(raw)
        self.assertEqual(
            product,
            NormalizedProduct(
                name="Tai nghe bluetooth",
                price=359000,
                sales=21,
                rating=4.9,
                reviews=1024,
                platform="lazada",
                source_strategy=SourceStrategy.DOCUMENT,
            ),
        )

    def test_strategy_override(self) -> None:
        """The caller can tag the record explicitly."""
        raw = RawExtractionResult(
            platform="tiki", strategy=SourceStrategy.DOCUMENT, name="x", price="1"
        )
        product = normalize_raw(raw, SourceStrategy.STRUCTURED)
        self.assertEqual(product.source_strategy, SourceStrategy.STRUCTURED)

    def test_missing_fields_default_to_zero(self) -> None:
        """Absent optional fields are zero, not errors."""
        raw = RawExtractionResult(
            platform="tiki", strategy=SourceStrategy.STRUCTURED, name="Sách", price=88000
        )
        product = normalize_raw(raw)
        self.assertEqual((product.sales, product.rating, product.reviews), (0, 0.0, 0))

    def test_validity_requires_name_and_price(self) -> None:
        """Empty names and zero prices are both invalid."""
        base = {
            "sales": 1,
            "rating": 4.0,
            "reviews": 1,
            "platform": "shopee",
            "source_strategy": SourceStrategy.DOCUMENT,
        }
        self.assertTrue(is_valid(NormalizedProduct(name="Áo", price=1000, **base)))
        self.assertFalse(is_valid(NormalizedProduct(name="", price=1000, **base)))
        self.assertFalse(is_valid(NormalizedProduct(name="   ", price=1000, **base)))
        self.assertFalse(is_valid(NormalizedProduct(name="Áo", price=0, **base)))


if __name__ == "__main__":
    unittest.main()
