# src/services/tracker.py

"""Batch refresh of tracked products and on-demand analytics."""

import asyncio
import logging
import sqlite3
from collections import defaultdict
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from src.config.settings import Settings
from src.models.product import Competitor, NormalizedProduct, TrackedProduct
from src.models.results import AcquisitionFailed
from src.models.snapshot import AnalyticsSummary
from src.services.acquisition import AcquisitionOrchestrator
from src.services.analytics import compute_analytics
from src.storage.snapshot_store import SnapshotStore

logger = logging.getLogger("market_tracker.tracker")

_PERSIST_ERRORS = (sqlite3.Error, OverflowError)


@dataclass
class RefreshReport:
    """Outcome of one batch refresh, keyed by product or competitor id."""

    refreshed: list[int] = field(default_factory=lambda: list[int]())
    failed: dict[int, AcquisitionFailed] = field(
        default_factory=lambda: dict[int, AcquisitionFailed]()
    )
    errors: dict[int, str] = field(
        default_factory=lambda: dict[int, str]()
    )

    @property
    def ok(self) -> bool:
        return not self.failed and not self.errors


@dataclass(frozen=True)
class _Target:
    id: int
    url: str
    platform: str


class ProductTracker:
    """Refreshes tracked products concurrently and persists snapshots.

    Different products are acquired in parallel; each platform is capped
    at ``MAX_CONCURRENCY_PER_PLATFORM`` in-flight acquisitions.
    """

    def __init__(
        self,
        store: SnapshotStore,
        orchestrator: AcquisitionOrchestrator | None = None,
    ) -> None:
        self.settings = Settings()
        self.store = store
        self._orchestrator = orchestrator

    @property
    def orchestrator(self) -> AcquisitionOrchestrator:
        """The acquisition pipeline, built on first use."""
        if self._orchestrator is None:
            self._orchestrator = AcquisitionOrchestrator()
        return self._orchestrator

    async def _refresh(
        self,
        targets: Sequence[_Target],
        persist: Callable[[int, NormalizedProduct], object],
        allow_synthetic: bool,
    ) -> RefreshReport:
        report = RefreshReport()
        if not targets:
            return report

        limits: defaultdict[str, asyncio.Semaphore] = defaultdict(
            lambda: asyncio.Semaphore(
                self.settings.MAX_CONCURRENCY_PER_PLATFORM
            )
        )

        async def run_one(
            target: _Target,
        ) -> NormalizedProduct | AcquisitionFailed:
            async with limits[target.platform]:
                # Cancelling stops the wait only; the worker thread keeps
                # its request until the per-request timeout expires.
                return await asyncio.to_thread(
                    self.orchestrator.acquire,
                    target.url,
                    target.platform,
                    allow_synthetic,
                )

        outcomes = await asyncio.gather(
            *(run_one(t) for t in targets), return_exceptions=True
        )

        for target, outcome in zip(targets, outcomes):
            if isinstance(outcome, AcquisitionFailed):
                report.failed[target.id] = outcome
            elif isinstance(outcome, NormalizedProduct):
                try:
                    await asyncio.to_thread(persist, target.id, outcome)
                except _PERSIST_ERRORS as exc:
                    report.errors[target.id] = f"could not store result: {exc}"
                    logger.error(
                        "Failed to persist refresh of %d: %s",
                        target.id,
                        exc,
                        exc_info=True,
                    )
                    continue
                report.refreshed.append(target.id)
            elif isinstance(outcome, BaseException):
                report.errors[target.id] = str(outcome)
                logger.error(
                    "Unexpected error refreshing %d: %s",
                    target.id,
                    outcome,
                    exc_info=outcome,
                )
        return report

    async def refresh_all(
        self,
        user_id: str,
        allow_synthetic: bool = False,
    ) -> RefreshReport:
        """Acquire every active product of ``user_id`` once."""
        products = self.store.list_products(user_id)
        report = await self._refresh(
            [_Target(p.id, p.url, p.platform) for p in products],
            self.store.record_acquisition,
            allow_synthetic,
        )
        logger.info(
            "Refresh for %s: %d refreshed, %d failed, %d errors",
            user_id,
            len(report.refreshed),
            len(report.failed),
            len(report.errors),
        )
        return report

    async def refresh_competitors(
        self,
        product_id: int,
        allow_synthetic: bool = False,
    ) -> RefreshReport:
        """Acquire every active competitor of one tracked product."""
        competitors = self.store.list_competitors(product_id)
        report = await self._refresh(
            [_Target(c.id, c.url, c.platform) for c in competitors],
            self.store.update_competitor,
            allow_synthetic,
        )
        logger.info(
            "Competitor refresh for product %d: %d refreshed, %d failed",
            product_id,
            len(report.refreshed),
            len(report.failed) + len(report.errors),
        )
        return report

    def track(
        self,
        user_id: str,
        url: str,
        platform: str,
        allow_synthetic: bool = False,
    ) -> TrackedProduct | AcquisitionFailed:
        """Acquire a new listing and start tracking it with a first snapshot."""
        outcome = self.orchestrator.acquire(url, platform, allow_synthetic)
        if isinstance(outcome, AcquisitionFailed):
            return outcome
        identifier = self.orchestrator.locator.locate(url, platform)
        tracked = self.store.add_product(
            user_id=user_id,
            platform=platform,
            url=url,
            name=outcome.name,
            external_id=identifier.external_id if identifier else "",
        )
        self.store.record_acquisition(tracked.id, outcome)
        return self.store.get_product(tracked.id) or tracked

    def add_competitor(
        self,
        product_id: int,
        url: str,
        platform: str,
        name: str | None = None,
        allow_synthetic: bool = False,
    ) -> Competitor | AcquisitionFailed | None:
        """Acquire a rival listing and attach it to a tracked product.

        Returns ``None`` when ``product_id`` is not tracked.
        """
        if self.store.get_product(product_id) is None:
            return None
        outcome = self.orchestrator.acquire(url, platform, allow_synthetic)
        if isinstance(outcome, AcquisitionFailed):
            return outcome
        return self.store.add_competitor(
            product_id, url, platform, name or outcome.name, outcome
        )

    def analytics_for(
        self,
        product_id: int,
        days: int | None = None,
        today: date | None = None,
    ) -> AnalyticsSummary:
        """Compute analytics over the last ``days`` calendar days.

        The window includes ``today``, so ``days=1`` covers today only.
        """
        window = days if days is not None else self.settings.HISTORY_DAYS
        end = today or datetime.now().date()
        since = end - timedelta(days=max(window, 1) - 1)
        snapshots = sorted(
            self.store.get_snapshots(product_id, since),
            key=lambda s: s.captured_at,
        )
        return compute_analytics(snapshots)
