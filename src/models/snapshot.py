# src/models/snapshot.py

"""Time-series snapshot and derived analytics models."""

from dataclasses import asdict, dataclass
from datetime import date
from enum import Enum


class Trend(str, Enum):
    """Direction of sales movement across a snapshot window."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"


@dataclass(frozen=True)
class Snapshot:
    """One daily observation of a tracked product."""

    product_id: int
    price: int
    sales_count: int
    rating: float
    captured_at: date


@dataclass(frozen=True)
class AnalyticsSummary:
    """Trend analytics computed from an ordered snapshot window."""

    price_change_pct: float = 0.0
    sales_change_pct: float = 0.0
    rating_change_abs: float = 0.0
    average_price: float = 0.0
    total_sales: int = 0
    trend: Trend = Trend.STABLE
    sales_velocity: float = 0.0
    price_volatility_pct: float = 0.0
    min_price: int = 0
    max_price: int = 0
    data_points: int = 0

    def to_dict(self) -> dict[str, object]:
        """Serialise to a plain dict for JSON output."""
        data = asdict(self)
        data["trend"] = self.trend.value
        return data
