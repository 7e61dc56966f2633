# src/cli/runner.py

"""Headless CLI commands built on the acquisition pipeline."""

import json
import logging

from rich.console import Console
from rich.table import Table

from src.config.platforms import PlatformConfigError, load_platforms
from src.models.product import Competitor, NormalizedProduct, TrackedProduct
from src.models.results import AcquisitionFailed
from src.models.snapshot import AnalyticsSummary
from src.services.acquisition import AcquisitionOrchestrator
from src.services.insights import build_competitor_context
from src.services.tracker import ProductTracker
from src.storage.snapshot_store import SnapshotStore

logger = logging.getLogger("market_tracker.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def _build_orchestrator() -> AcquisitionOrchestrator | None:
    try:
        return AcquisitionOrchestrator(load_platforms())
    except PlatformConfigError as exc:
        logger.critical("Invalid platform table: %s", exc)
        _err.print(f"[red]Invalid platform table: {exc}[/red]")
        return None


def _print_failure(failed: AcquisitionFailed) -> None:
    _err.print("[red]Could not retrieve product data.[/red]")
    for attempt in failed.attempts:
        _err.print(f"[dim]  {attempt}[/dim]")


def _print_product(product: NormalizedProduct) -> None:
    """Render a Rich table for one product record."""
    table = Table(
        title=product.name,
        show_header=False,
        title_style="bold cyan",
    )
    table.add_column("Field", style="dim")
    table.add_column("Value", justify="right")
    table.add_row("Platform", product.platform)
    table.add_row("Price", f"{product.price:,} ₫")
    table.add_row("Sold", f"{product.sales:,}")
    table.add_row("Rating", f"{product.rating:.1f}")
    table.add_row("Reviews", f"{product.reviews:,}")
    table.add_row("Source", product.source_strategy.value)
    Console().print(table)


def _print_products(products: list[TrackedProduct]) -> None:
    table = Table(title="Tracked products", title_style="bold cyan")
    table.add_column("ID", style="dim", width=5)
    table.add_column("Name", max_width=50)
    table.add_column("Platform", style="magenta")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Sold", justify="right")
    table.add_column("Last scraped", style="dim")
    for p in products:
        table.add_row(
            str(p.id),
            p.name[:50],
            p.platform,
            f"{p.current_price:,}" if p.current_price else "N/A",
            f"{p.current_sales:,}",
            p.last_scraped_at.strftime("%Y-%m-%d %H:%M")
            if p.last_scraped_at
            else "—",
        )
    Console().print(table)


def _print_analytics(product_id: int, summary: AnalyticsSummary) -> None:
    table = Table(
        title=f"Analytics for product {product_id}",
        show_header=False,
        title_style="bold cyan",
    )
    table.add_column("Metric", style="dim")
    table.add_column("Value", justify="right")
    for key, value in summary.to_dict().items():
        table.add_row(key.replace("_", " "), str(value))
    Console().print(table)


def run_fetch(
    url: str,
    platform: str,
    allow_synthetic: bool,
    output_format: str,
) -> int:
    """Acquire one listing and print it. Returns an exit code."""
    orchestrator = _build_orchestrator()
    if orchestrator is None:
        return 1
    outcome = orchestrator.acquire(url, platform, allow_synthetic)
    if isinstance(outcome, AcquisitionFailed):
        _print_failure(outcome)
        return 1
    if output_format == "table":
        _print_product(outcome)
    else:
        print(json.dumps(outcome.to_dict(), ensure_ascii=False, indent=2))
    return 0


def run_track(
    url: str,
    platform: str,
    user_id: str,
    allow_synthetic: bool,
) -> int:
    """Start tracking a listing with its first snapshot."""
    orchestrator = _build_orchestrator()
    if orchestrator is None:
        return 1
    store = SnapshotStore()
    try:
        tracker = ProductTracker(store, orchestrator)
        outcome = tracker.track(user_id, url, platform, allow_synthetic)
        if isinstance(outcome, AcquisitionFailed):
            _print_failure(outcome)
            return 1
        _err.print(
            f"[green]Tracking product {outcome.id}: {outcome.name}[/green]"
        )
        return 0
    finally:
        store.close()


async def run_refresh(user_id: str, allow_synthetic: bool) -> int:
    """Refresh every active product of a user."""
    orchestrator = _build_orchestrator()
    if orchestrator is None:
        return 1
    store = SnapshotStore()
    try:
        tracker = ProductTracker(store, orchestrator)
        report = await tracker.refresh_all(user_id, allow_synthetic)
        for product_id, failed in report.failed.items():
            _err.print(
                f"[yellow]Product {product_id}: {failed.summary()}[/yellow]"
            )
        for product_id, message in report.errors.items():
            _err.print(f"[red]Product {product_id}: {message}[/red]")
        _print_products(store.list_products(user_id))
        _err.print(
            f"[dim]{len(report.refreshed)} refreshed, "
            f"{len(report.failed) + len(report.errors)} failed[/dim]"
        )
        return 0 if report.ok else 1
    finally:
        store.close()


def run_analytics(product_id: int, days: int, output_format: str) -> int:
    """Print analytics for one tracked product."""
    store = SnapshotStore()
    try:
        if store.get_product(product_id) is None:
            _err.print(f"[red]Unknown product id {product_id}[/red]")
            return 1
        tracker = ProductTracker(store, orchestrator=None)
        summary = tracker.analytics_for(product_id, days)
        if output_format == "table":
            _print_analytics(product_id, summary)
        else:
            print(json.dumps(summary.to_dict(), indent=2))
        return 0
    finally:
        store.close()


def _print_competitors(
    product: TrackedProduct, competitors: list[Competitor]
) -> None:
    table = Table(
        title=f"Competitors of {product.name[:40]}", title_style="bold cyan"
    )
    table.add_column("ID", style="dim", width=5)
    table.add_column("Name", max_width=40)
    table.add_column("Platform", style="magenta")
    table.add_column("Price", justify="right", style="green")
    table.add_column("vs yours", justify="right")
    table.add_column("Sold", justify="right")
    table.add_column("Rating", justify="right")
    for c in competitors:
        context = build_competitor_context(c, product)
        diff = context["price_diff"]
        table.add_row(
            str(c.id),
            c.name[:40],
            c.platform,
            f"{c.latest_price:,}" if c.latest_price else "N/A",
            f"{diff:+,}" if diff is not None else "—",
            f"{c.latest_sales:,}",
            f"{c.latest_rating:.1f}",
        )
    Console().print(table)


def run_competitor_add(
    product_id: int,
    url: str,
    platform: str,
    name: str | None,
    allow_synthetic: bool,
) -> int:
    """Acquire a rival listing and attach it to a tracked product."""
    orchestrator = _build_orchestrator()
    if orchestrator is None:
        return 1
    store = SnapshotStore()
    try:
        tracker = ProductTracker(store, orchestrator)
        outcome = tracker.add_competitor(
            product_id, url, platform, name, allow_synthetic
        )
        if outcome is None:
            _err.print(f"[red]Unknown product id {product_id}[/red]")
            return 1
        if isinstance(outcome, AcquisitionFailed):
            _print_failure(outcome)
            return 1
        _err.print(
            f"[green]Competitor {outcome.id} added: {outcome.name}[/green]"
        )
        return 0
    finally:
        store.close()


def run_competitor_list(product_id: int, output_format: str) -> int:
    """Print the active competitors of a tracked product."""
    store = SnapshotStore()
    try:
        product = store.get_product(product_id)
        if product is None:
            _err.print(f"[red]Unknown product id {product_id}[/red]")
            return 1
        competitors = store.list_competitors(product_id)
        if output_format == "table":
            _print_competitors(product, competitors)
        else:
            print(
                json.dumps(
                    [build_competitor_context(c, product) for c in competitors],
                    ensure_ascii=False,
                    indent=2,
                )
            )
        return 0
    finally:
        store.close()


async def run_competitor_refresh(product_id: int, allow_synthetic: bool) -> int:
    """Re-acquire every active competitor of a tracked product."""
    store = SnapshotStore()
    try:
        product = store.get_product(product_id)
        if product is None:
            _err.print(f"[red]Unknown product id {product_id}[/red]")
            return 1
        orchestrator = _build_orchestrator()
        if orchestrator is None:
            return 1
        tracker = ProductTracker(store, orchestrator)
        report = await tracker.refresh_competitors(product_id, allow_synthetic)
        for competitor_id, failed in report.failed.items():
            _err.print(
                f"[yellow]Competitor {competitor_id}: {failed.summary()}[/yellow]"
            )
        for competitor_id, message in report.errors.items():
            _err.print(f"[red]Competitor {competitor_id}: {message}[/red]")
        _print_competitors(product, store.list_competitors(product_id))
        return 0 if report.ok else 1
    finally:
        store.close()
