# src/scrapers/document_extractor.py

"""Scrape product fields from a listing's HTML document.

Marketplace front-ends reshuffle their markup across A/B tests and
redesigns, so every field carries a ranked list of CSS selector
candidates; the first candidate that yields non-empty text wins. Fields
the selectors miss are filled from an embedded schema.org ``Product``
JSON-LD block when the page has one.
"""

import json
from typing import Any

from bs4 import BeautifulSoup, Tag

from src.config.platforms import FIELDS, split_candidate
from src.models.product import RawExtractionResult, SourceStrategy
from src.models.results import Failure, FailureReason
from src.scrapers.base_extractor import BaseExtractor
from src.scrapers.normalizer import is_valid, normalize_raw


def first_match(soup: BeautifulSoup, candidates: tuple[str, ...]) -> str:
    """Return the text of the first candidate that matches non-empty."""
    for candidate in candidates:
        selector, attr = split_candidate(candidate)
        element = soup.select_one(selector)
        if element is None:
            continue
        if attr:
            value = element.get(attr)
            if isinstance(value, list):
                value = " ".join(value)
            text = str(value).strip() if value is not None else ""
        else:
            text = element.get_text(" ", strip=True)
        if text:
            return text
    return ""


def parse_json_ld_product(soup: BeautifulSoup) -> dict[str, Any]:
    """Collect fields from schema.org ``Product`` JSON-LD blocks."""
    for tag in soup.find_all(
        "script", type=lambda t: bool(t) and "ld+json" in t
    ):
        if not isinstance(tag, Tag):
            continue
        try:
            data: Any = json.loads(tag.string or "{}")
        except json.JSONDecodeError:
            continue
        for item in _json_ld_items(data):
            if _is_product(item):
                return _product_fields(item)
    return {}


def _json_ld_items(data: Any) -> list[dict[str, Any]]:
    """Flatten top-level lists and ``@graph`` containers into nodes."""
    items: list[dict[str, Any]] = []
    for node in data if isinstance(data, list) else [data]:
        if not isinstance(node, dict):
            continue
        items.append(node)
        graph = node.get("@graph")
        if isinstance(graph, list):
            items.extend(n for n in graph if isinstance(n, dict))
    return items


def _is_product(item: dict[str, Any]) -> bool:
    kind = item.get("@type")
    if isinstance(kind, list):
        return "Product" in kind
    return kind == "Product"


def _product_fields(item: dict[str, Any]) -> dict[str, Any]:
    offers: Any = item.get("offers") or {}
    if isinstance(offers, list):
        offers = offers[0] if offers else {}
    rating: Any = item.get("aggregateRating") or {}
    if not isinstance(rating, dict):
        rating = {}
    price = None
    if isinstance(offers, dict):
        price = offers.get("price") or offers.get("lowPrice")
    return {
        "name": item.get("name"),
        "price": price,
        "rating": rating.get("ratingValue"),
        "reviews": rating.get("reviewCount") or rating.get("ratingCount"),
    }


class DocumentExtractor(BaseExtractor):
    """Document strategy: fetch the listing page and query its DOM."""

    strategy = SourceStrategy.DOCUMENT

    def extract_fields(
        self, html: str, platform: str,
    ) -> RawExtractionResult:
        """Run the platform's selector candidates over ``html``."""
        config = self.platforms[platform]
        soup = BeautifulSoup(html, "lxml")
        found = {
            field: first_match(soup, config.selectors[field])
            for field in FIELDS
        }

        missing = [field for field, text in found.items() if not text]
        if missing:
            ld = parse_json_ld_product(soup)
            for field in missing:
                value = ld.get(field)
                if value is not None and str(value).strip():
                    found[field] = str(value).strip()
                    self.logger.debug(
                        "[%s] '%s' filled from JSON-LD", platform, field
                    )

        return RawExtractionResult(
            platform=platform,
            strategy=SourceStrategy.DOCUMENT,
            name=found["name"] or None,
            price=found["price"] or None,
            sales=found["sales"] or None,
            rating=found["rating"] or None,
            reviews=found["reviews"] or None,
        )

    def fetch_document(
        self, url: str, platform: str,
    ) -> RawExtractionResult | Failure:
        """Fetch ``url`` and extract raw product fields from its HTML."""
        config = self.platforms.get(platform)
        if config is None:
            return self._failure(
                FailureReason.UNSUPPORTED, f"unknown platform {platform}"
            )

        headers = {**self.settings.DEFAULT_HEADERS}
        if config.homepage:
            headers["Referer"] = config.homepage

        resp = self._fetch_get(url, headers, self.settings.DOCUMENT_TIMEOUT)
        if isinstance(resp, Failure):
            return resp

        raw = self.extract_fields(resp.text, platform)
        if not is_valid(normalize_raw(raw)):
            self.logger.info(
                "[%s] Selectors found no usable name/price on %s "
                "(name=%r, price=%r)",
                platform,
                url,
                raw.name,
                raw.price,
            )
            return self._failure(
                FailureReason.UNPARSEABLE,
                "missing name or price after normalization",
            )

        self.logger.debug("[%s] Document fields for %s: %s", platform, url, raw)
        return raw
