# src/services/insights.py

"""Boundary to the AI insight generator.

The generator itself is an external collaborator. This module defines
the protocol it satisfies, builds the well-formed context it receives,
and turns its free-text JSON reply into an :class:`InsightReport`.
"""

import json
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from src.models.product import Competitor, NormalizedProduct, TrackedProduct
from src.models.snapshot import AnalyticsSummary

logger = logging.getLogger("market_tracker.insights")

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

_PRIORITIES = frozenset({"high", "medium", "low"})


class InsightParseError(ValueError):
    """Raised when a generator reply holds no usable JSON object."""


@dataclass(frozen=True)
class Insight:
    """One finding about a product."""

    type: str
    title: str
    description: str
    priority: str = "medium"
    confidence: float = 0.8


@dataclass
class InsightReport:
    """Structured output of one insight generation call."""

    score: int
    insights: list[Insight] = field(
        default_factory=lambda: list[Insight]()
    )
    action_items: list[dict[str, Any]] = field(
        default_factory=lambda: list[dict[str, Any]]()
    )
    summary: str = ""


class InsightGenerator(Protocol):
    """Anything that turns product context into an insight report."""

    def analyze(
        self,
        product: dict[str, Any],
        competitors: Sequence[dict[str, Any]],
    ) -> InsightReport:
        ...


def build_product_context(
    product: NormalizedProduct | TrackedProduct,
    summary: AnalyticsSummary | None = None,
) -> dict[str, Any]:
    """Flatten a product (and optional analytics) into generator input."""
    if isinstance(product, NormalizedProduct):
        context: dict[str, Any] = {
            "name": product.name,
            "platform": product.platform,
            "price": product.price,
            "sales": product.sales,
            "rating": product.rating,
            "reviews": product.reviews,
            "source_strategy": product.source_strategy.value,
        }
    else:
        context = {
            "name": product.name,
            "platform": product.platform,
            "price": product.current_price,
            "sales": product.current_sales,
            "rating": product.current_rating,
            "url": product.url,
        }
    if summary is not None:
        context["analytics"] = summary.to_dict()
    return context


def build_competitor_context(
    competitor: Competitor, product: TrackedProduct,
) -> dict[str, Any]:
    """Describe a competitor relative to the tracked product.

    ``price_diff`` and ``sales_diff`` are competitor minus own value, and
    ``None`` while the tracked product has no value to compare against.
    """
    return {
        "name": competitor.name,
        "platform": competitor.platform,
        "url": competitor.url,
        "price": competitor.latest_price,
        "sales": competitor.latest_sales,
        "rating": competitor.latest_rating,
        "your_price": product.current_price,
        "your_sales": product.current_sales,
        "price_diff": (
            competitor.latest_price - product.current_price
            if product.current_price
            else None
        ),
        "sales_diff": (
            competitor.latest_sales - product.current_sales
            if product.current_sales
            else None
        ),
    }


def _clamp_score(value: Any) -> int:
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError):
        return 0
    return max(0, min(100, score))


def _to_insight(item: dict[str, Any]) -> Insight:
    priority = str(item.get("priority", "medium")).lower()
    try:
        confidence = float(item.get("confidence", 0.8))
    except (TypeError, ValueError):
        confidence = 0.8
    return Insight(
        type=str(item.get("type") or "recommendation"),
        title=str(item.get("title", "")),
        description=str(item.get("description", "")),
        priority=priority if priority in _PRIORITIES else "medium",
        confidence=max(0.0, min(1.0, confidence)),
    )


def _pricing_insight(pricing: dict[str, Any]) -> Insight | None:
    status = pricing.get("status")
    if status not in ("too_high", "too_low"):
        return None
    recommended = pricing.get("recommended")
    suffix = f" Recommended price: {recommended}." if recommended else ""
    return Insight(
        type="warning" if status == "too_high" else "opportunity",
        title=(
            "Price may be too high"
            if status == "too_high"
            else "Room to raise the price"
        ),
        description=f"{pricing.get('reasoning', '')}{suffix}".strip(),
        priority="high",
        confidence=0.85,
    )


def parse_insight_response(text: str) -> InsightReport:
    """Extract an :class:`InsightReport` from a model's text reply.

    Raises:
        InsightParseError: If the reply contains no parseable JSON object.
    """
    match = _JSON_OBJECT_RE.search(text or "")
    if not match:
        raise InsightParseError("Insight reply contains no JSON object")
    try:
        data: Any = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise InsightParseError(f"Insight reply is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise InsightParseError("Insight reply JSON is not an object")

    insights = [
        _to_insight(item)
        for item in data.get("insights") or []
        if isinstance(item, dict)
    ]
    pricing = data.get("pricing")
    if isinstance(pricing, dict):
        extra = _pricing_insight(pricing)
        if extra is not None:
            insights.append(extra)

    action_items = [
        item for item in data.get("action_items") or []
        if isinstance(item, dict)
    ]
    report = InsightReport(
        score=_clamp_score(data.get("overall_score", 0)),
        insights=insights,
        action_items=action_items,
        summary=str(data.get("summary", "")),
    )
    logger.debug(
        "Parsed insight report: score=%d, %d insights, %d actions",
        report.score,
        len(report.insights),
        len(report.action_items),
    )
    return report
