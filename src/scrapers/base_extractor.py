# src/scrapers/base_extractor.py

"""Shared HTTP plumbing for the network-backed extraction strategies."""

import logging
from abc import ABC

from curl_cffi import requests as curl_requests

from src.config.platforms import PlatformRegistry
from src.config.settings import Settings
from src.models.product import SourceStrategy
from src.models.results import Failure, FailureReason


class BaseExtractor(ABC):
    """Base class for strategies that issue one GET per attempt.

    Expected failures (network errors, timeouts, non-200 responses,
    block pages) come back as :class:`Failure` values rather than
    exceptions. Retrying is left to the caller.
    """

    strategy: SourceStrategy

    def __init__(
        self,
        platforms: PlatformRegistry,
        session: curl_requests.Session | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.platforms = platforms
        self.settings = settings or Settings()
        self.session = session or curl_requests.Session()
        self.logger = logging.getLogger(
            f"market_tracker.{self.strategy.value}"
        )

    def _failure(self, reason: FailureReason, detail: str = "") -> Failure:
        return Failure(
            strategy=self.strategy.value, reason=reason, detail=detail
        )

    def _blocked_marker(self, text: str) -> str | None:
        """Return the CAPTCHA/challenge marker found in ``text``, if any."""
        if text.lstrip().startswith(("{", "[")):
            return None
        lower = text.lower()
        # Long pages with a body are real content that may mention captcha
        if "<body" in lower and len(text) > 5000:
            return None
        for marker in self.settings.BLOCK_MARKERS:
            if marker in lower:
                return marker
        return None

    def _fetch_get(
        self,
        url: str,
        headers: dict[str, str],
        timeout: float,
    ) -> curl_requests.Response | Failure:
        """Issue a single GET, following up to ``MAX_REDIRECTS`` redirects."""
        try:
            resp = self.session.get(
                url,
                headers=headers,
                timeout=timeout,
                allow_redirects=True,
                max_redirects=self.settings.MAX_REDIRECTS,
            )
        except Exception as exc:
            self.logger.warning(
                "[%s] Request error for %s: %s",
                self.strategy.value,
                url,
                exc,
                exc_info=True,
            )
            return self._failure(FailureReason.TRANSPORT, str(exc))

        if resp.status_code != 200:
            self.logger.warning(
                "[%s] HTTP %d for %s",
                self.strategy.value,
                resp.status_code,
                url,
            )
            return self._failure(
                FailureReason.TRANSPORT, f"HTTP {resp.status_code}"
            )

        marker = self._blocked_marker(resp.text)
        if marker:
            self.logger.warning(
                "[%s] Block page detected for %s (marker: '%s')",
                self.strategy.value,
                url,
                marker,
            )
            return self._failure(
                FailureReason.TRANSPORT, f"blocked page ({marker})"
            )
        return resp
