"""
Storage backends for market statistics and the dedup ledger.

Two implementations of the persistence collaborator are provided: an
embedded SQLite database and a process-memory store. Both are constructed
explicitly and handed to the engine; the process entry point owns their
``init()`` / ``close()`` lifecycle.
"""

import sqlite3
import threading
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from dateutil import parser as date_parser

from ..models.config import StorageConfig
from ..models.market import MarketStatsRow
from ..models.seen import SeenReason, SeenRecord
from ..utils.error_handling import (
    ErrorCategory,
    ErrorSeverity,
    StorageError,
    with_error_handling,
)
from ..utils.logging import get_logger

logger = get_logger("storage")

SCHEMA = """
CREATE TABLE IF NOT EXISTS seen_ads (
  id            INTEGER PRIMARY KEY AUTOINCREMENT,
  ad_hash       TEXT UNIQUE NOT NULL,
  url           TEXT,
  title         TEXT,
  price_num     REAL,
  published_at  TEXT,
  sent_reason   TEXT,
  created_at    TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_seen_hash ON seen_ads(ad_hash);

CREATE TABLE IF NOT EXISTS market_stats (
  group_key     TEXT PRIMARY KEY,
  brand         TEXT,
  model         TEXT,
  fuel          TEXT,
  year_bin      TEXT,
  mileage_bin   TEXT,
  sample_count  INTEGER NOT NULL,
  price_median  REAL NOT NULL,
  price_p25     REAL,
  price_p75     REAL,
  updated_at    TEXT NOT NULL
);
"""

storage_errors = with_error_handling(
    component="storage",
    category=ErrorCategory.STORAGE,
    severity=ErrorSeverity.HIGH,
)


def _timestamp_text(value) -> str:
    return value.isoformat() if isinstance(value, datetime) else str(value)


class InMemoryStore:
    """Process-memory store; contents are lost when the process exits."""

    def __init__(self):
        self._market: Dict[str, MarketStatsRow] = {}
        self._seen: Dict[str, SeenRecord] = {}
        self._lock = threading.Lock()

    def init(self) -> None:
        logger.info("In-memory store ready")

    def close(self) -> None:
        pass

    def get_market_stats(self, group_key: str) -> Optional[MarketStatsRow]:
        row = self._market.get(group_key)
        return replace(row) if row is not None else None

    def upsert_market_stats(self, row: MarketStatsRow) -> None:
        with self._lock:
            self._market[row.group_key] = replace(row)

    def has_seen(self, fingerprint: str) -> bool:
        return fingerprint in self._seen

    def insert_seen(self, record: SeenRecord) -> bool:
        with self._lock:
            if record.fingerprint in self._seen:
                return False
            self._seen[record.fingerprint] = record
            return True

    def get_seen(self, fingerprint: str) -> Optional[SeenRecord]:
        return self._seen.get(fingerprint)

    def count_seen(self) -> int:
        return len(self._seen)


class SQLiteStore:
    """Embedded SQLite store using WAL journaling."""

    def __init__(self, db_path: str):
        """
        Initialize SQLite store.

        Args:
            db_path: Database file path, or ":memory:"
        """
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    def __enter__(self):
        self.init()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @storage_errors
    def init(self) -> None:
        """Open the database and create the schema."""
        if self._conn is not None:
            return

        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            conn = sqlite3.connect(self.db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(SCHEMA)
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open SQLite database {self.db_path}: {e}") from e

        self._conn = conn
        logger.info("SQLite store opened", extra={"db_path": self.db_path})

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info("SQLite store closed", extra={"db_path": self.db_path})

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("SQLite store is not initialized; call init() first")
        return self._conn

    def _execute(self, sql: str, params=(), commit: bool = False) -> int:
        """Run a statement and return the number of affected rows."""
        conn = self.conn
        try:
            with self._lock:
                cursor = conn.execute(sql, params)
                if commit:
                    conn.commit()
                return cursor.rowcount
        except sqlite3.Error as e:
            raise StorageError(f"SQLite operation failed: {e}") from e

    def _fetchone(self, sql: str, params=()) -> Optional[sqlite3.Row]:
        conn = self.conn
        try:
            # The connection is shared across threads; fetch before releasing it.
            with self._lock:
                return conn.execute(sql, params).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"SQLite operation failed: {e}") from e

    @storage_errors
    def get_market_stats(self, group_key: str) -> Optional[MarketStatsRow]:
        row = self._fetchone(
            "SELECT * FROM market_stats WHERE group_key = ?", (group_key,)
        )
        if row is None:
            return None

        return MarketStatsRow(
            group_key=row["group_key"],
            brand=row["brand"] or "",
            model=row["model"] or "",
            fuel=row["fuel"] or "",
            year_bin=row["year_bin"] or "",
            mileage_bin=row["mileage_bin"] or "",
            sample_count=row["sample_count"],
            price_median=row["price_median"],
            price_p25=row["price_p25"],
            price_p75=row["price_p75"],
            updated_at=row["updated_at"],
        )

    @storage_errors
    def upsert_market_stats(self, row: MarketStatsRow) -> None:
        self._execute(
            """
            INSERT INTO market_stats (
                group_key, brand, model, fuel, year_bin, mileage_bin,
                sample_count, price_median, price_p25, price_p75, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(group_key) DO UPDATE SET
                brand = excluded.brand,
                model = excluded.model,
                fuel = excluded.fuel,
                year_bin = excluded.year_bin,
                mileage_bin = excluded.mileage_bin,
                sample_count = excluded.sample_count,
                price_median = excluded.price_median,
                price_p25 = excluded.price_p25,
                price_p75 = excluded.price_p75,
                updated_at = excluded.updated_at
            """,
            (
                row.group_key,
                row.brand,
                row.model,
                row.fuel,
                row.year_bin,
                row.mileage_bin,
                row.sample_count,
                row.price_median,
                row.price_p25,
                row.price_p75,
                _timestamp_text(row.updated_at),
            ),
            commit=True,
        )

    @storage_errors
    def has_seen(self, fingerprint: str) -> bool:
        row = self._fetchone(
            "SELECT 1 FROM seen_ads WHERE ad_hash = ? LIMIT 1", (fingerprint,)
        )
        return row is not None

    @storage_errors
    def insert_seen(self, record: SeenRecord) -> bool:
        inserted = self._execute(
            """
            INSERT OR IGNORE INTO seen_ads (
                ad_hash, url, title, price_num, published_at, sent_reason, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.fingerprint,
                record.url,
                record.title,
                record.price_numeric,
                record.published_at,
                record.reason.value if record.reason else None,
                _timestamp_text(record.created_at),
            ),
            commit=True,
        )
        return inserted == 1

    @storage_errors
    def get_seen(self, fingerprint: str) -> Optional[SeenRecord]:
        row = self._fetchone(
            "SELECT * FROM seen_ads WHERE ad_hash = ?", (fingerprint,)
        )
        if row is None:
            return None

        return SeenRecord(
            fingerprint=row["ad_hash"],
            url=row["url"],
            title=row["title"],
            price_numeric=row["price_num"],
            published_at=row["published_at"],
            reason=SeenReason(row["sent_reason"]) if row["sent_reason"] else None,
            created_at=date_parser.isoparse(row["created_at"]),
        )

    @storage_errors
    def count_seen(self) -> int:
        row = self._fetchone("SELECT COUNT(1) AS c FROM seen_ads")
        return int(row["c"] or 0)


def create_store(config: StorageConfig):
    """Build the store selected by configuration; the caller must ``init()`` it."""
    if config.type == "memory":
        return InMemoryStore()
    return SQLiteStore(config.sqlite_path)
