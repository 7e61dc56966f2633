# src/services/acquisition.py

"""Drives the structured -> document -> synthetic fallback chain."""

import logging

from src.config.platforms import PlatformRegistry, load_platforms
from src.models.product import (
    NormalizedProduct,
    RawExtractionResult,
    SourceStrategy,
)
from src.models.results import AcquisitionFailed, Failure, FailureReason
from src.scrapers.document_extractor import DocumentExtractor
from src.scrapers.locator import Locator
from src.scrapers.normalizer import is_valid, normalize_raw
from src.scrapers.structured_extractor import StructuredExtractor
from src.scrapers.synthetic_generator import SyntheticGenerator

logger = logging.getLogger("market_tracker.acquisition")


class AcquisitionOrchestrator:
    """Acquire one normalized product record per call.

    Strategies run sequentially and each one is tried at most once.
    Expected failures are collected as :class:`Failure` values; only the
    exhaustion of every permitted strategy is reported, as an
    :class:`AcquisitionFailed` result rather than an exception.
    """

    def __init__(
        self,
        platforms: PlatformRegistry | None = None,
        structured: StructuredExtractor | None = None,
        document: DocumentExtractor | None = None,
        synthetic: SyntheticGenerator | None = None,
    ) -> None:
        self.platforms = platforms or load_platforms()
        self.locator = Locator(self.platforms)
        self.structured = structured or StructuredExtractor(self.platforms)
        self.document = document or DocumentExtractor(self.platforms)
        self.synthetic = synthetic or SyntheticGenerator()

    def _accept(
        self,
        outcome: RawExtractionResult | Failure,
        strategy: SourceStrategy,
        attempts: list[Failure],
    ) -> NormalizedProduct | None:
        """Normalize a strategy outcome, recording it if unusable."""
        if isinstance(outcome, Failure):
            attempts.append(outcome)
            return None
        product = normalize_raw(outcome, strategy)
        if not is_valid(product):
            attempts.append(
                Failure(
                    strategy=strategy.value,
                    reason=FailureReason.UNPARSEABLE,
                    detail=(
                        f"invalid record (name={product.name!r}, "
                        f"price={product.price})"
                    ),
                )
            )
            return None
        return product

    def acquire(
        self,
        url: str,
        platform: str,
        allow_synthetic: bool = False,
    ) -> NormalizedProduct | AcquisitionFailed:
        """Return the first valid record for ``url`` on ``platform``.

        Synthetic data is only produced when ``allow_synthetic`` is set
        and both network strategies failed.
        """
        attempts: list[Failure] = []

        if platform not in self.platforms:
            attempts.append(
                Failure(
                    strategy=SourceStrategy.STRUCTURED.value,
                    reason=FailureReason.UNSUPPORTED,
                    detail=f"unknown platform {platform}",
                )
            )
            failed = AcquisitionFailed(
                url=url, platform=platform, attempts=attempts
            )
            logger.warning("%s", failed.summary())
            return failed

        identifier = self.locator.locate(url, platform)
        if identifier is None:
            logger.info("[%s] No product id in %s", platform, url)
            attempts.append(
                Failure(
                    strategy=SourceStrategy.STRUCTURED.value,
                    reason=FailureReason.UNSUPPORTED,
                    detail="no product identifier in URL",
                )
            )
        else:
            product = self._accept(
                self.structured.fetch_structured(identifier),
                SourceStrategy.STRUCTURED,
                attempts,
            )
            if product is not None:
                logger.info(
                    "[%s] Acquired %s via structured source",
                    platform,
                    identifier.external_id,
                )
                return product

        product = self._accept(
            self.document.fetch_document(url, platform),
            SourceStrategy.DOCUMENT,
            attempts,
        )
        if product is not None:
            logger.info("[%s] Acquired %s via document", platform, url)
            return product

        if allow_synthetic:
            logger.warning(
                "[%s] Real strategies failed for %s, using synthetic data",
                platform,
                url,
            )
            return self.synthetic.generate_mock(platform)

        failed = AcquisitionFailed(
            url=url, platform=platform, attempts=attempts
        )
        logger.warning("%s", failed.summary())
        return failed
