# tests/test_cli.py

"""Tests for the argument parser and headless runner commands."""

import json
import unittest
from datetime import datetime
from unittest.mock import MagicMock, patch

from main import _build_parser
from src.cli import runner
from src.models.product import NormalizedProduct, SourceStrategy
from src.models.results import AcquisitionFailed, Failure, FailureReason
from src.storage.snapshot_store import SnapshotStore

PRODUCT = NormalizedProduct(
    name="Áo thun",
    price=199000,
    sales=120,
    rating=4.6,
    reviews=30,
    platform="shopee",
    source_strategy=SourceStrategy.STRUCTURED,
)


class TestParser(unittest.TestCase):
    """Sub-command parsing."""

    def test_fetch_defaults(self) -> None:
        """Fetch prints JSON and keeps synthetic data off by default."""
        args = _build_parser().parse_args(
            ["fetch", "https://shopee.vn/a-i.1.2", "-p", "shopee"]
        )
        self.assertEqual(args.command, "fetch")
        self.assertEqual(args.output_format, "json")
        self.assertFalse(args.allow_synthetic)

    def test_allow_synthetic_flag(self) -> None:
        """The opt-in flag is explicit."""
        args = _build_parser().parse_args(["refresh", "--allow-synthetic"])
        self.assertTrue(args.allow_synthetic)
        self.assertEqual(args.user_id, "local")

    def test_unknown_platform_rejected(self) -> None:
        """Only configured platforms are accepted."""
        with self.assertRaises(SystemExit), patch("sys.stderr"):
            _build_parser().parse_args(["fetch", "https://x", "-p", "ebay"])

    def test_analytics_args(self) -> None:
        """Analytics takes a product id and a window."""
        args = _build_parser().parse_args(["analytics", "7", "--days", "14"])
        self.assertEqual((args.product_id, args.days), (7, 14))


class TestRunFetch(unittest.TestCase):
    """The fetch command."""

    @patch("src.cli.runner.AcquisitionOrchestrator")
    def test_prints_json(self, mock_cls: MagicMock) -> None:
        """Successful fetches print the record as JSON."""
        mock_cls.return_value.acquire.return_value = PRODUCT
        with patch("builtins.print") as mock_print:
            code = runner.run_fetch("https://shopee.vn/a-i.1.2", "shopee", False, "json")
        self.assertEqual(code, 0)
        printed = json.loads(mock_print.call_args.args[0])
        self.assertEqual(printed["price"], 199000)
        self.assertEqual(printed["source_strategy"], "structured")

    @patch("src.cli.runner.AcquisitionOrchestrator")
    def test_failure_exit_code(self, mock_cls: MagicMock) -> None:
        """Exhausted acquisitions exit non-zero."""
        mock_cls.return_value.acquire.return_value = AcquisitionFailed(
            url="https://tiki.vn/x",
            platform="tiki",
            attempts=[Failure("document", FailureReason.TRANSPORT, "HTTP 403")],
        )
        with patch.object(runner, "_err"):
            code = runner.run_fetch("https://tiki.vn/x", "tiki", False, "json")
        self.assertEqual(code, 1)


class TestRunAnalytics(unittest.TestCase):
    """The analytics command reads from the configured store."""

    def test_unknown_product(self) -> None:
        """Missing ids exit non-zero."""
        with patch.object(runner, "_err"):
            self.assertEqual(runner.run_analytics(404, 30, "json"), 1)

    def test_json_output(self) -> None:
        """Known products print their summary."""
        store = SnapshotStore()
        pid = store.add_product("local", "shopee", "https://shopee.vn/a-i.1.2", "Áo").id
        store.record_acquisition(pid, PRODUCT, captured_at=datetime.now())
        store.close()

        with patch("builtins.print") as mock_print:
            code = runner.run_analytics(pid, 30, "json")
        self.assertEqual(code, 0)
        data = json.loads(mock_print.call_args.args[0])
        self.assertEqual(data["data_points"], 1)
        self.assertEqual(data["trend"], "stable")


class TestCompetitorCommands(unittest.TestCase):
    """The competitors add/list commands."""

    def setUp(self) -> None:
        store = SnapshotStore()
        self.pid = store.add_product(
            "local", "shopee", "https://shopee.vn/a-i.1.2", "Áo"
        ).id
        store.record_acquisition(self.pid, PRODUCT, captured_at=datetime.now())
        store.close()

    def test_parser(self) -> None:
        """Competitor actions take the tracked product id first."""
        args = _build_parser().parse_args(
            ["competitors", "add", "3", "https://tiki.vn/x-p1.html", "-p", "tiki"]
        )
        self.assertEqual((args.command, args.action), ("competitors", "add"))
        self.assertEqual(args.product_id, 3)
        self.assertIsNone(args.name)

    @patch("src.cli.runner.AcquisitionOrchestrator")
    def test_add_then_list_json(self, mock_cls: MagicMock) -> None:
        """Added competitors are listed with price differences."""
        rival = NormalizedProduct(
            name="Áo khác",
            price=179000,
            sales=80,
            rating=4.2,
            reviews=5,
            platform="tiki",
            source_strategy=SourceStrategy.DOCUMENT,
        )
        mock_cls.return_value.acquire.return_value = rival
        with patch.object(runner, "_err"):
            code = runner.run_competitor_add(
                self.pid, "https://tiki.vn/ao-p5.html", "tiki", None, False
            )
        self.assertEqual(code, 0)

        with patch("builtins.print") as mock_print:
            code = runner.run_competitor_list(self.pid, "json")
        self.assertEqual(code, 0)
        listed = json.loads(mock_print.call_args.args[0])
        self.assertEqual(len(listed), 1)
        self.assertEqual(listed[0]["name"], "Áo khác")
        self.assertEqual(listed[0]["price_diff"], -20000)

    @patch("src.cli.runner.AcquisitionOrchestrator")
    def test_add_to_unknown_product(self, mock_cls: MagicMock) -> None:
        """Unknown product ids exit non-zero without fetching."""
        with patch.object(runner, "_err"):
            code = runner.run_competitor_add(
                404, "https://tiki.vn/ao-p5.html", "tiki", None, False
            )
        self.assertEqual(code, 1)
        mock_cls.return_value.acquire.assert_not_called()

    def test_list_unknown_product(self) -> None:
        """Listing for a missing product exits non-zero."""
        with patch.object(runner, "_err"):
            self.assertEqual(runner.run_competitor_list(404, "json"), 1)



if __name__ == "__main__":
    unittest.main()
