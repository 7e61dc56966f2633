# src/scrapers/structured_extractor.py

"""Fetch product fields from a platform's JSON data endpoint."""

from collections.abc import Mapping
from typing import Any

from src.config.platforms import StructuredEndpoint
from src.models.product import (
    ProductIdentifier,
    RawExtractionResult,
    SourceStrategy,
)
from src.models.results import Failure, FailureReason
from src.scrapers.base_extractor import BaseExtractor


def resolve_path(data: Any, path: str) -> Any:
    """Walk a dotted path such as ``item.item_rating.rating_count.0``.

    Numeric segments index into lists. Returns ``None`` when any segment
    is missing.
    """
    current = data
    for segment in path.split("."):
        if isinstance(current, Mapping):
            current = current.get(segment)
        elif isinstance(current, list) and segment.isdigit():
            index = int(segment)
            current = current[index] if index < len(current) else None
        else:
            return None
        if current is None:
            return None
    return current


def first_value(data: Any, paths: tuple[str, ...]) -> Any:
    """Return the first non-empty value among ``paths``."""
    for path in paths:
        value = resolve_path(data, path)
        if value is not None and value != "":
            return value
    return None


def _scaled(value: Any, scale: float) -> Any:
    """Divide a price reported in platform subunits by ``scale``."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return value
    if isinstance(value, (int, float)):
        return value / scale if scale != 1 else value
    return None


def parse_structured(
    payload: Any,
    endpoint: StructuredEndpoint,
    platform: str,
) -> RawExtractionResult | None:
    """Map a structured response onto raw product fields.

    Returns ``None`` when the payload carries neither a name nor a price.
    """
    fields = endpoint.fields
    name = first_value(payload, fields["name"])
    price = first_value(payload, fields["price"])
    if name is None and price is None:
        return None
    return RawExtractionResult(
        platform=platform,
        strategy=SourceStrategy.STRUCTURED,
        name=str(name) if name is not None else None,
        price=_scaled(price, endpoint.scale),
        sales=first_value(payload, fields["sales"]),
        rating=first_value(payload, fields["rating"]),
        reviews=first_value(payload, fields["reviews"]),
    )


class StructuredExtractor(BaseExtractor):
    """Structured-source strategy: one request to a JSON endpoint."""

    strategy = SourceStrategy.STRUCTURED

    def fetch_structured(
        self, identifier: ProductIdentifier,
    ) -> RawExtractionResult | Failure:
        """Fetch and parse the structured record for ``identifier``."""
        config = self.platforms.get(identifier.platform)
        if config is None or config.structured is None:
            self.logger.debug(
                "[%s] No structured endpoint configured",
                identifier.platform,
            )
            return self._failure(
                FailureReason.UNSUPPORTED,
                f"no structured endpoint for {identifier.platform}",
            )

        endpoint = config.structured
        url = endpoint.url_for(identifier.external_id)
        headers = {**self.settings.API_HEADERS}
        if config.homepage:
            headers["Referer"] = config.homepage

        resp = self._fetch_get(
            url, headers, self.settings.STRUCTURED_TIMEOUT
        )
        if isinstance(resp, Failure):
            return resp

        try:
            payload: Any = resp.json()
        except ValueError as exc:
            self.logger.warning(
                "[%s] Non-JSON structured response from %s",
                identifier.platform,
                url,
            )
            return self._failure(
                FailureReason.UNPARSEABLE, f"invalid JSON: {exc}"
            )

        raw = parse_structured(payload, endpoint, identifier.platform)
        if raw is None:
            self.logger.info(
                "[%s] Structured response for %s has no product fields",
                identifier.platform,
                identifier.external_id,
            )
            return self._failure(
                FailureReason.UNPARSEABLE, "no product fields in response"
            )

        self.logger.debug(
            "[%s] Structured fields for %s: %s",
            identifier.platform,
            identifier.external_id,
            raw,
        )
        return raw
