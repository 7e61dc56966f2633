# src/scrapers/normalizer.py

"""Convert scraped price/count/rating values into canonical numbers.

Every function here is total: unparseable input degrades to ``0`` or
``0.0`` and never raises. Rejecting bad records is the caller's job via
:func:`is_valid`.
"""

import math
import re

from src.models.product import (
    NormalizedProduct,
    RawExtractionResult,
    SourceStrategy,
)

# Prices under this are assumed to be quoted in thousands (199 -> 199000)
_THOUSANDS_THRESHOLD = 1000

# Largest value a SQLite INTEGER column holds
_MAX_INT = 2**63 - 1
_MAX_DIGITS = 18

_RATING_RE = re.compile(r"\d+(?:[.,]\d+)?")
_NUMERIC_TOKEN_RE = re.compile(r"\d[\d.,]*")


def _canonical_decimal(text: str) -> str:
    """Reduce the first number in ``text`` to digits and one ``.`` at most.

    ``1.199.000`` and ``1,299`` lose their thousands separators while
    ``12.5`` and ``1.299,50`` keep their decimal part. Only the first
    numeric run counts, so ``₫199.000 - ₫250.000`` reads as ``199000``.
    """
    match = _NUMERIC_TOKEN_RE.search(text)
    if not match:
        return ""
    kept = match.group(0).rstrip(".,")

    last_dot = kept.rfind(".")
    last_comma = kept.rfind(",")
    decimal_sep = ""
    if last_dot >= 0 and last_comma >= 0:
        decimal_sep = "." if last_dot > last_comma else ","
    elif last_dot >= 0 or last_comma >= 0:
        sep = "." if last_dot >= 0 else ","
        tail = kept[kept.rfind(sep) + 1:]
        if kept.count(sep) == 1 and len(tail) != 3:
            decimal_sep = sep

    if not decimal_sep:
        return kept.replace(".", "").replace(",", "")

    whole, _, frac = kept.rpartition(decimal_sep)
    whole = whole.replace(".", "").replace(",", "")
    return f"{whole or '0'}.{frac}"


def _to_number(value: str | float | None) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return 0.0
    else:
        canonical = _canonical_decimal(str(value))
        if not canonical:
            return 0.0
        try:
            number = float(canonical)
        except ValueError:
            return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def normalize_price(value: str | float | None) -> int:
    """Parse a price into whole currency units (e.g. VND).

    ``"199000"`` -> 199000, ``"1.199.000₫"`` -> 1199000, and the
    under-1000 heuristic turns ``"199₫"`` into 199000.
    """
    number = _to_number(value)
    if number <= 0:
        return 0
    if number < _THOUSANDS_THRESHOLD:
        number *= 1000
    price = int(round(number))
    return price if price <= _MAX_INT else 0


def normalize_count(value: str | int | None) -> int:
    """Parse a sales/review count by keeping only its digits.

    Counts too large for a 64-bit integer are treated as unparseable.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return 0
    if isinstance(value, (int, float)):
        count = int(value)
        return count if 0 < count <= _MAX_INT else 0
    digits = re.sub(r"\D", "", str(value))
    if not digits or len(digits) > _MAX_DIGITS:
        return 0
    return int(digits)


def normalize_rating(value: str | float | None) -> float:
    """Parse the first number in a rating string. Not clamped to [0, 5]."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return 0.0
        return 0.0 if math.isnan(number) or math.isinf(number) else number
    match = _RATING_RE.search(str(value))
    if not match:
        return 0.0
    number = float(match.group(0).replace(",", "."))
    return 0.0 if math.isinf(number) else number


def normalize_raw(
    raw: RawExtractionResult,
    strategy: SourceStrategy | None = None,
) -> NormalizedProduct:
    """Map a raw field bag onto the canonical product record."""
    return NormalizedProduct(
        name=(raw.name or "").strip(),
        price=normalize_price(raw.price),
        sales=normalize_count(raw.sales),
        rating=normalize_rating(raw.rating),
        reviews=normalize_count(raw.reviews),
        platform=raw.platform,
        source_strategy=strategy or raw.strategy,
    )


def is_valid(product: NormalizedProduct) -> bool:
    """A record is usable only with a non-empty name and a positive price."""
    return bool(product.name.strip()) and product.price > 0
