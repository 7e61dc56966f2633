# main.py

"""Entry point for the market_tracker command line."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging
from src.config.settings import Settings

logger = logging.getLogger("market_tracker.main")

PLATFORM_CHOICES = ["shopee", "lazada", "tiktok", "tiki"]


def _add_synthetic_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--allow-synthetic",
        action="store_true",
        default=Settings.ALLOW_SYNTHETIC_DEFAULT,
        dest="allow_synthetic",
        help="Fall back to generated data when scraping fails (dev only).",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="market_tracker",
        description="Track marketplace listings and their sales trends.",
        epilog=f"Platforms: {', '.join(PLATFORM_CHOICES)}",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    fetch = sub.add_parser("fetch", help="Fetch one listing and print it.")
    fetch.add_argument("url")
    fetch.add_argument(
        "-p", "--platform", required=True, choices=PLATFORM_CHOICES
    )
    fetch.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    _add_synthetic_flag(fetch)

    track = sub.add_parser("track", help="Start tracking a listing.")
    track.add_argument("url")
    track.add_argument(
        "-p", "--platform", required=True, choices=PLATFORM_CHOICES
    )
    track.add_argument("-u", "--user", default="local", dest="user_id")
    _add_synthetic_flag(track)

    refresh = sub.add_parser(
        "refresh", help="Take a snapshot of every tracked listing."
    )
    refresh.add_argument("-u", "--user", default="local", dest="user_id")
    _add_synthetic_flag(refresh)

    analytics = sub.add_parser(
        "analytics", help="Show trend analytics for a tracked listing."
    )
    analytics.add_argument("product_id", type=int)
    analytics.add_argument(
        "--days", type=int, default=Settings.HISTORY_DAYS
    )
    analytics.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="table",
        dest="output_format",
    )

    competitors = sub.add_parser(
        "competitors", help="Manage rival listings of a tracked product."
    )
    comp_sub = competitors.add_subparsers(dest="action", required=True)

    comp_add = comp_sub.add_parser("add", help="Attach a rival listing.")
    comp_add.add_argument("product_id", type=int)
    comp_add.add_argument("url")
    comp_add.add_argument(
        "-p", "--platform", required=True, choices=PLATFORM_CHOICES
    )
    comp_add.add_argument("-n", "--name", default=None)
    _add_synthetic_flag(comp_add)

    comp_list = comp_sub.add_parser(
        "list", help="Compare rival listings with the tracked product."
    )
    comp_list.add_argument("product_id", type=int)
    comp_list.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="table",
        dest="output_format",
    )

    comp_refresh = comp_sub.add_parser(
        "refresh", help="Re-acquire every rival listing."
    )
    comp_refresh.add_argument("product_id", type=int)
    _add_synthetic_flag(comp_refresh)
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and dispatch to the matching runner command."""
    log_file = setup_logging()
    logger.info("market_tracker starting, log file: %s", log_file)

    args = _build_parser().parse_args(argv)

    from src.cli import runner

    try:
        if args.command == "fetch":
            exit_code = runner.run_fetch(
                args.url,
                args.platform,
                args.allow_synthetic,
                args.output_format,
            )
        elif args.command == "track":
            exit_code = runner.run_track(
                args.url, args.platform, args.user_id, args.allow_synthetic
            )
        elif args.command == "refresh":
            exit_code = asyncio.run(
                runner.run_refresh(args.user_id, args.allow_synthetic)
            )
        elif args.command == "analytics":
            exit_code = runner.run_analytics(
                args.product_id, args.days, args.output_format
            )
        elif args.action == "add":
            exit_code = runner.run_competitor_add(
                args.product_id,
                args.url,
                args.platform,
                args.name,
                args.allow_synthetic,
            )
        elif args.action == "list":
            exit_code = runner.run_competitor_list(
                args.product_id, args.output_format
            )
        else:
            exit_code = asyncio.run(
                runner.run_competitor_refresh(
                    args.product_id, args.allow_synthetic
                )
            )
    except Exception:
        logger.critical("Fatal error in '%s'", args.command, exc_info=True)
        raise
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
