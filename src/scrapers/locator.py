# src/scrapers/locator.py

"""Resolve a marketplace listing URL to its platform product id."""

import logging
from urllib.parse import urlparse

from src.config.platforms import PlatformConfig, PlatformRegistry
from src.models.product import ProductIdentifier

logger = logging.getLogger("market_tracker.locator")


def extract_identifier(
    url: str, platform: PlatformConfig,
) -> ProductIdentifier | None:
    """Extract the product identifier embedded in ``url``.

    Patterns are tried in declared order against the URL path, then its
    query string. For patterns with several groups the last non-empty
    group is the identifier (e.g. Shopee's ``-i.<shop>.<item>``).

    Returns ``None`` when the URL is not a well-formed http(s) URL or
    when no pattern matches.
    """
    try:
        parsed = urlparse(url.strip())
    except (AttributeError, ValueError):
        return None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        logger.debug("[%s] Not a product URL: %r", platform.tag, url)
        return None

    targets = [parsed.path]
    if parsed.query:
        targets.append(parsed.query)

    for pattern in platform.id_patterns:
        for target in targets:
            match = pattern.search(target)
            if not match:
                continue
            groups = [g for g in match.groups() if g]
            if groups:
                return ProductIdentifier(
                    platform=platform.tag, external_id=groups[-1]
                )

    logger.debug("[%s] No id pattern matched %s", platform.tag, url)
    return None


class Locator:
    """Looks up product ids using an injected platform table."""

    def __init__(self, platforms: PlatformRegistry) -> None:
        self.platforms = platforms

    def locate(self, url: str, platform: str) -> ProductIdentifier | None:
        """Return the identifier for ``url`` or ``None`` if there is none."""
        config = self.platforms.get(platform)
        if config is None:
            return None
        return extract_identifier(url, config)
