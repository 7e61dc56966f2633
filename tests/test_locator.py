# tests/test_locator.py

"""Tests for URL to product identifier resolution."""

import unittest

from src.config.platforms import load_platforms
from src.models.product import ProductIdentifier
from src.scrapers.locator import Locator, extract_identifier


class TestLocatorRoundTrip(unittest.TestCase):
    """Every declared pattern yields back the id embedded in a URL."""

    CASES: list[tuple[str, str, str]] = [
        ("shopee", "https://shopee.vn/Ao-thun-basic-i.12345.9876543210", "9876543210"),
        ("shopee", "https://shopee.vn/product-name-i.77.4455", "4455"),
        ("shopee", "https://shopee.vn/product/12345/67890", "67890"),
        ("shopee", "https://shopee.vn/product/1234567890", "1234567890"),
        ("shopee", "https://shopee.vn/item/24680", "24680"),
        ("lazada", "https://www.lazada.vn/products/tai-nghe-i2233445566-s9988.html", "2233445566"),
        ("lazada", "https://www.lazada.vn/products/i123456.html", "123456"),
        ("lazada", "https://www.lazada.vn/i555777", "555777"),
        ("tiktok", "https://shop.tiktok.com/view/product/1729384756", "1729384756"),
        ("tiktok", "https://www.tiktok.com/shop/product/31415926", "31415926"),
        ("tiktok", "https://t.tiktok.com/api/item/detail/?itemId=2718281828", "2718281828"),
        ("tiki", "https://tiki.vn/noi-chien-khong-dau-p12345678.html", "12345678"),
        ("tiki", "https://tiki.vn/dien-thoai.p87654321.html?spid=1", "87654321"),
    ]

    def setUp(self) -> None:
        self.locator = Locator(load_platforms())

    def test_round_trip(self) -> None:
        """Each synthetic URL resolves to its embedded identifier."""
        for platform, url, expected in self.CASES:
            with self.subTest(platform=platform, url=url):
                self.assertEqual(
                    self.locator.locate(url, platform),
                    ProductIdentifier(platform=platform, external_id=expected),
                )


class TestLocatorNotFound(unittest.TestCase):
    """Unresolvable URLs are an expected ``None`` outcome."""

    def setUp(self) -> None:
        self.platforms = load_platforms()
        self.locator = Locator(self.platforms)

    def test_no_pattern_matches(self) -> None:
        """A category page has no product id."""
        self.assertIsNone(
            self.locator.locate("https://shopee.vn/Thoi-Trang-Nam-cat.11035567", "shopee")
        )

    def test_malformed_url(self) -> None:
        """Strings that are not http(s) URLs are rejected."""
        for url in ("not a url", "", "ftp://shopee.vn/product/123", "/product/123"):
            with self.subTest(url=url):
                self.assertIsNone(self.locator.locate(url, "shopee"))

    def test_unknown_platform(self) -> None:
        """Unknown platform tags resolve to nothing."""
        self.assertIsNone(
            self.locator.locate("https://example.com/product/1", "ebay")
        )

    def test_first_declared_pattern_wins(self) -> None:
        """The two-segment Shopee path is preferred over the single one."""
        identifier = extract_identifier(
            "https://shopee.vn/product/111/222", self.platforms["shopee"]
        )
        assert identifier is not None
        self.assertEqual(identifier.external_id, "222")

    def test_deterministic(self) -> None:
        """Repeated calls give identical results."""
        url = "https://tiki.vn/sach-p999.html"
        self.assertEqual(
            self.locator.locate(url, "tiki"), self.locator.locate(url, "tiki")
        )


if __name__ == "__main__":
    unittest.main()
