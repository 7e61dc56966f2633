# src/storage/snapshot_store.py

"""SQLite-backed store for tracked products and their daily snapshots."""

import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Any

from src.config.settings import Settings
from src.models.product import Competitor, NormalizedProduct, TrackedProduct
from src.models.snapshot import Snapshot

logger = logging.getLogger("market_tracker.storage")

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS tracked_products (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id         TEXT    NOT NULL,
    platform        TEXT    NOT NULL,
    url             TEXT    NOT NULL,
    external_id     TEXT    NOT NULL DEFAULT '',
    name            TEXT    NOT NULL,
    current_price   INTEGER NOT NULL DEFAULT 0,
    current_sales   INTEGER NOT NULL DEFAULT 0,
    current_rating  REAL    NOT NULL DEFAULT 0,
    is_active       INTEGER NOT NULL DEFAULT 1,
    created_at      TEXT    NOT NULL,
    last_scraped_at TEXT,
    UNIQUE (user_id, url)
);

CREATE TABLE IF NOT EXISTS product_snapshots (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id    INTEGER NOT NULL
                  REFERENCES tracked_products(id) ON DELETE CASCADE,
    price         INTEGER NOT NULL,
    sales_count   INTEGER NOT NULL,
    rating        REAL    NOT NULL,
    snapshot_date TEXT    NOT NULL,
    UNIQUE (product_id, snapshot_date)
);

CREATE INDEX IF NOT EXISTS idx_snapshots_product_date
    ON product_snapshots(product_id, snapshot_date);

CREATE TABLE IF NOT EXISTS competitors (
    id                 INTEGER PRIMARY KEY AUTOINCREMENT,
    tracked_product_id INTEGER NOT NULL
                       REFERENCES tracked_products(id) ON DELETE CASCADE,
    url                TEXT    NOT NULL,
    name               TEXT    NOT NULL,
    platform           TEXT    NOT NULL,
    latest_price       INTEGER NOT NULL DEFAULT 0,
    latest_sales       INTEGER NOT NULL DEFAULT 0,
    latest_rating      REAL    NOT NULL DEFAULT 0,
    is_active          INTEGER NOT NULL DEFAULT 1,
    added_at           TEXT    NOT NULL,
    last_checked_at    TEXT,
    UNIQUE (tracked_product_id, url)
);
"""

_PRODUCT_COLUMNS = (
    "id, user_id, platform, url, external_id, name, current_price, "
    "current_sales, current_rating, is_active, created_at, last_scraped_at"
)

_COMPETITOR_COLUMNS = (
    "id, tracked_product_id, url, name, platform, latest_price, "
    "latest_sales, latest_rating, is_active, added_at, last_checked_at"
)


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _row_to_product(row: tuple[Any, ...]) -> TrackedProduct:
    return TrackedProduct(
        id=row[0],
        user_id=row[1],
        platform=row[2],
        url=row[3],
        external_id=row[4],
        name=row[5],
        current_price=row[6],
        current_sales=row[7],
        current_rating=row[8],
        is_active=bool(row[9]),
        created_at=_parse_ts(row[10]),
        last_scraped_at=_parse_ts(row[11]),
    )


def _row_to_competitor(row: tuple[Any, ...]) -> Competitor:
    return Competitor(
        id=row[0],
        tracked_product_id=row[1],
        url=row[2],
        name=row[3],
        platform=row[4],
        latest_price=row[5],
        latest_sales=row[6],
        latest_rating=row[7],
        is_active=bool(row[8]),
        added_at=_parse_ts(row[9]),
        last_checked_at=_parse_ts(row[10]),
    )


class SnapshotStore:
    """Persistent record store for tracked products and snapshots.

    Snapshots are unique per ``(product_id, day)``; writing a second
    snapshot for the same day overwrites the first.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        path = db_path or Settings.DB_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.executescript(_SCHEMA)
        logger.debug("SnapshotStore opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # ── Products ─────────────────────────────────────────

    def add_product(
        self,
        user_id: str,
        platform: str,
        url: str,
        name: str,
        external_id: str = "",
    ) -> TrackedProduct:
        """Start tracking ``url`` for ``user_id``. Re-adding reactivates it."""
        now = datetime.now().isoformat()
        self._conn.execute(
            "INSERT INTO tracked_products "
            "(user_id, platform, url, external_id, name, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(user_id, url) DO UPDATE SET "
            "is_active = 1, name = excluded.name",
            (user_id, platform, url, external_id, name, now),
        )
        self._conn.commit()
        row = self._conn.execute(
            f"SELECT {_PRODUCT_COLUMNS} FROM tracked_products "
            "WHERE user_id = ? AND url = ?",
            (user_id, url),
        ).fetchone()
        product = _row_to_product(row)
        logger.info(
            "Tracking product %d (%s) for user %s",
            product.id,
            platform,
            user_id,
        )
        return product

    def get_product(self, product_id: int) -> TrackedProduct | None:
        """Return the tracked product or ``None`` if it does not exist."""
        row = self._conn.execute(
            f"SELECT {_PRODUCT_COLUMNS} FROM tracked_products WHERE id = ?",
            (product_id,),
        ).fetchone()
        return _row_to_product(row) if row else None

    def list_products(
        self, user_id: str, active_only: bool = True,
    ) -> list[TrackedProduct]:
        """Return a user's tracked products, newest first."""
        query = (
            f"SELECT {_PRODUCT_COLUMNS} FROM tracked_products "
            "WHERE user_id = ?"
        )
        if active_only:
            query += " AND is_active = 1"
        query += " ORDER BY created_at DESC, id DESC"
        rows = self._conn.execute(query, (user_id,)).fetchall()
        return [_row_to_product(r) for r in rows]

    def set_active(self, product_id: int, active: bool) -> bool:
        """Pause or resume tracking. Returns False for unknown ids."""
        cur = self._conn.execute(
            "UPDATE tracked_products SET is_active = ? WHERE id = ?",
            (1 if active else 0, product_id),
        )
        self._conn.commit()
        return cur.rowcount > 0

    # ── Snapshots ────────────────────────────────────────

    def upsert_snapshot(self, snapshot: Snapshot) -> None:
        """Insert the day's snapshot, replacing any earlier one that day."""
        with self._conn:
            self._write_snapshot(snapshot)

    def _write_snapshot(self, snapshot: Snapshot) -> None:
        self._conn.execute(
            "INSERT INTO product_snapshots "
            "(product_id, price, sales_count, rating, snapshot_date) "
            "VALUES (?, ?, ?, ?, ?) "
            "ON CONFLICT(product_id, snapshot_date) DO UPDATE SET "
            "price = excluded.price, "
            "sales_count = excluded.sales_count, "
            "rating = excluded.rating",
            (
                snapshot.product_id,
                snapshot.price,
                snapshot.sales_count,
                snapshot.rating,
                snapshot.captured_at.isoformat(),
            ),
        )

    def get_snapshots(
        self, product_id: int, since: date | None = None,
    ) -> list[Snapshot]:
        """Return a product's snapshots from ``since`` on, oldest first."""
        query = (
            "SELECT product_id, price, sales_count, rating, snapshot_date "
            "FROM product_snapshots WHERE product_id = ?"
        )
        params: list[object] = [product_id]
        if since is not None:
            query += " AND snapshot_date >= ?"
            params.append(since.isoformat())
        query += " ORDER BY snapshot_date ASC"
        rows = self._conn.execute(query, params).fetchall()
        return [
            Snapshot(
                product_id=r[0],
                price=r[1],
                sales_count=r[2],
                rating=r[3],
                captured_at=date.fromisoformat(r[4]),
            )
            for r in rows
        ]

    def record_acquisition(
        self,
        product_id: int,
        product: NormalizedProduct,
        captured_at: datetime | None = None,
    ) -> Snapshot:
        """Persist a fresh acquisition as current values plus a snapshot.

        Both writes happen in one transaction; on error neither is kept.
        """
        now = captured_at or datetime.now()
        snapshot = Snapshot(
            product_id=product_id,
            price=product.price,
            sales_count=product.sales,
            rating=product.rating,
            captured_at=now.date(),
        )
        with self._conn:
            self._conn.execute(
                "UPDATE tracked_products SET name = ?, current_price = ?, "
                "current_sales = ?, current_rating = ?, last_scraped_at = ? "
                "WHERE id = ?",
                (
                    product.name,
                    product.price,
                    product.sales,
                    product.rating,
                    now.isoformat(),
                    product_id,
                ),
            )
            self._write_snapshot(snapshot)
        logger.info(
            "Recorded snapshot for product %d on %s (price=%d, sales=%d)",
            product_id,
            snapshot.captured_at,
            snapshot.price,
            snapshot.sales_count,
        )
        return snapshot

    # ── Competitors ──────────────────────────────────────

    def add_competitor(
        self,
        tracked_product_id: int,
        url: str,
        platform: str,
        name: str,
        product: NormalizedProduct | None = None,
    ) -> Competitor | None:
        """Attach a competitor listing to a tracked product.

        ``product`` seeds the latest values when the listing was already
        acquired. Re-adding the same URL reactivates it. Returns ``None``
        when the tracked product does not exist.
        """
        if self.get_product(tracked_product_id) is None:
            logger.warning(
                "Cannot add competitor to unknown product %d",
                tracked_product_id,
            )
            return None
        now = datetime.now().isoformat()
        self._conn.execute(
            "INSERT INTO competitors "
            "(tracked_product_id, url, name, platform, added_at) "
            "VALUES (?, ?, ?, ?, ?) "
            "ON CONFLICT(tracked_product_id, url) DO UPDATE SET "
            "is_active = 1, name = excluded.name, "
            "platform = excluded.platform",
            (tracked_product_id, url, name, platform, now),
        )
        self._conn.commit()
        row = self._conn.execute(
            f"SELECT {_COMPETITOR_COLUMNS} FROM competitors "
            "WHERE tracked_product_id = ? AND url = ?",
            (tracked_product_id, url),
        ).fetchone()
        competitor = _row_to_competitor(row)
        if product is not None:
            self.update_competitor(competitor.id, product)
            competitor = self.get_competitor(competitor.id) or competitor
        logger.info(
            "Competitor %d (%s) added to product %d",
            competitor.id,
            platform,
            tracked_product_id,
        )
        return competitor

    def get_competitor(self, competitor_id: int) -> Competitor | None:
        """Return the competitor or ``None`` if it does not exist."""
        row = self._conn.execute(
            f"SELECT {_COMPETITOR_COLUMNS} FROM competitors WHERE id = ?",
            (competitor_id,),
        ).fetchone()
        return _row_to_competitor(row) if row else None

    def list_competitors(
        self, tracked_product_id: int, active_only: bool = True,
    ) -> list[Competitor]:
        """Return a product's competitors, most recently added first."""
        query = (
            f"SELECT {_COMPETITOR_COLUMNS} FROM competitors "
            "WHERE tracked_product_id = ?"
        )
        if active_only:
            query += " AND is_active = 1"
        query += " ORDER BY added_at DESC, id DESC"
        rows = self._conn.execute(query, (tracked_product_id,)).fetchall()
        return [_row_to_competitor(r) for r in rows]

    def update_competitor(
        self,
        competitor_id: int,
        product: NormalizedProduct,
        checked_at: datetime | None = None,
    ) -> bool:
        """Store a fresh acquisition as the competitor's latest values."""
        now = checked_at or datetime.now()
        cur = self._conn.execute(
            "UPDATE competitors SET latest_price = ?, latest_sales = ?, "
            "latest_rating = ?, last_checked_at = ? WHERE id = ?",
            (
                product.price,
                product.sales,
                product.rating,
                now.isoformat(),
                competitor_id,
            ),
        )
        self._conn.commit()
        return cur.rowcount > 0

    def set_competitor_active(self, competitor_id: int, active: bool) -> bool:
        """Pause or resume a competitor. Returns False for unknown ids."""
        cur = self._conn.execute(
            "UPDATE competitors SET is_active = ? WHERE id = ?",
            (1 if active else 0, competitor_id),
        )
        self._conn.commit()
        return cur.rowcount > 0

    def remove_competitor(self, competitor_id: int) -> bool:
        """Delete a competitor. Returns False for unknown ids."""
        cur = self._conn.execute(
            "DELETE FROM competitors WHERE id = ?", (competitor_id,)
        )
        self._conn.commit()
        return cur.rowcount > 0
