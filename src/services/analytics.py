# src/services/analytics.py

"""Trend analytics over a product's snapshot history."""

from collections.abc import Sequence

from src.models.snapshot import AnalyticsSummary, Snapshot, Trend

# Sales change (percent) beyond which a trend is up or down
TREND_THRESHOLD_PCT = 10.0


def _pct_change(first: float, last: float) -> float:
    """Percentage change from ``first`` to ``last``; 0 for a zero baseline."""
    if first == 0:
        return 0.0
    return (last - first) * 100 / first


def classify_trend(sales_change_pct: float) -> Trend:
    """Strictly above +10% is up, strictly below -10% is down."""
    if sales_change_pct > TREND_THRESHOLD_PCT:
        return Trend.UP
    if sales_change_pct < -TREND_THRESHOLD_PCT:
        return Trend.DOWN
    return Trend.STABLE


def compute_analytics(snapshots: Sequence[Snapshot]) -> AnalyticsSummary:
    """Summarise an ascending-by-date snapshot window.

    The caller is responsible for ordering; this function never sorts.
    An empty window yields an all-zero summary with a stable trend.
    """
    if not snapshots:
        return AnalyticsSummary()

    first, last = snapshots[0], snapshots[-1]
    prices = [s.price for s in snapshots]
    count = len(snapshots)

    price_change = _pct_change(first.price, last.price)
    sales_change = _pct_change(first.sales_count, last.sales_count)
    average_price = sum(prices) / count
    min_price, max_price = min(prices), max(prices)
    volatility = (
        (max_price - min_price) * 100 / average_price
        if average_price
        else 0.0
    )
    total_sales = last.sales_count

    return AnalyticsSummary(
        price_change_pct=round(price_change, 2),
        sales_change_pct=round(sales_change, 2),
        rating_change_abs=round(last.rating - first.rating, 2),
        average_price=round(average_price, 2),
        total_sales=total_sales,
        trend=classify_trend(sales_change),
        sales_velocity=round(total_sales / count, 1),
        price_volatility_pct=round(volatility, 2),
        min_price=min_price,
        max_price=max_price,
        data_points=count,
    )


def moving_average(values: Sequence[float], window: int) -> list[float]:
    """Trailing rolling mean, with the window clipped at the series start."""
    if window < 1:
        msg = f"window must be >= 1, got {window}"
        raise ValueError(msg)
    result: list[float] = []
    running = 0.0
    for idx, value in enumerate(values):
        running += value
        if idx >= window:
            running -= values[idx - window]
        result.append(running / min(idx + 1, window))
    return result
