# src/models/product.py

"""Product data models for inter-module data flow."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class SourceStrategy(str, Enum):
    """Which extraction strategy produced a product record."""

    STRUCTURED = "structured"
    DOCUMENT = "document"
    SYNTHETIC = "synthetic"


@dataclass(frozen=True)
class ProductIdentifier:
    """A platform-specific product id derived from a listing URL."""

    platform: str
    external_id: str


@dataclass
class RawExtractionResult:
    """Loosely typed field bag produced by one extraction attempt.

    Document extraction yields text; structured extraction may yield
    numbers already scaled to whole currency units.
    """

    platform: str
    strategy: SourceStrategy
    name: str | None = None
    price: str | float | None = None
    sales: str | int | None = None
    rating: str | float | None = None
    reviews: str | int | None = None


@dataclass(frozen=True)
class NormalizedProduct:
    """Canonical product record returned by the acquisition pipeline."""

    name: str
    price: int
    sales: int
    rating: float
    reviews: int
    platform: str
    source_strategy: SourceStrategy

    def to_dict(self) -> dict[str, object]:
        """Serialise to a plain dict for JSON output."""
        return {
            "name": self.name,
            "price": self.price,
            "sales": self.sales,
            "rating": self.rating,
            "reviews": self.reviews,
            "platform": self.platform,
            "source_strategy": self.source_strategy.value,
        }


@dataclass
class TrackedProduct:
    """A product listing a user tracks over time."""

    id: int
    user_id: str
    platform: str
    url: str
    name: str
    external_id: str = ""
    current_price: int = 0
    current_sales: int = 0
    current_rating: float = 0.0
    is_active: bool = True
    created_at: datetime | None = None
    last_scraped_at: datetime | None = None


@dataclass
class Competitor:
    """A rival listing compared against one tracked product."""

    id: int
    tracked_product_id: int
    url: str
    name: str
    platform: str
    latest_price: int = 0
    latest_sales: int = 0
    latest_rating: float = 0.0
    is_active: bool = True
    added_at: datetime | None = None
    last_checked_at: datetime | None = None
