"""SQLite persistence for bot settings and the purchase history."""

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import structlog

from ..errors import PersistenceError
from ..models.bot import BotConfiguration
from ..models.purchase import AttemptStatus, PurchaseAttempt, PurchaseStatistics
from ..utils.time import format_timestamp, parse_timestamp, utc_now
from .base import DEFAULT_PAGE_SIZE, PersistenceGateway, check_page

logger = structlog.get_logger(__name__)

SETTINGS_ROW_ID = 1


class SqlitePersistenceGateway(PersistenceGateway):
    """SQLite-based gateway holding one settings row and the attempt log."""

    def __init__(self, db_path: str = "dca.db"):
        self.db_path = Path(db_path)
        self.logger = logger.bind(db_path=str(self.db_path))
        self._lock = threading.Lock()

        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        with self._get_connection("init_schema") as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS user_settings (
                    id INTEGER PRIMARY KEY,
                    credentials_ref TEXT,
                    purchase_amount REAL,
                    purchase_interval REAL,
                    is_bot_active INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS purchase_history (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    purchase_date TEXT NOT NULL,
                    amount_usd REAL NOT NULL,
                    filled_quantity REAL NOT NULL DEFAULT 0,
                    fill_price REAL NOT NULL DEFAULT 0,
                    order_id TEXT,
                    status TEXT NOT NULL CHECK (status IN ('success', 'failed')),
                    error_message TEXT,
                    created_at TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_purchase_history_date ON purchase_history(purchase_date)
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_purchase_history_status ON purchase_history(status)
            """)

            conn.commit()

    @contextmanager
    def _get_connection(self, operation: str) -> Iterator[sqlite3.Connection]:
        """Get database connection, translating sqlite errors into PersistenceError."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=30.0)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            self.logger.error("Database error", operation=operation, error=str(e))
            raise PersistenceError(
                f"Database error during {operation}: {e}",
                operation=operation,
                target=str(self.db_path),
            ) from e
        finally:
            if conn:
                conn.close()

    def get_active_configuration(self) -> Optional[BotConfiguration]:
        with self._get_connection("get_active_configuration") as conn:
            row = conn.execute("""
                SELECT * FROM user_settings ORDER BY id DESC LIMIT 1
            """).fetchone()

        if row is None:
            return None
        return self._row_to_configuration(row)

    def save_configuration(self, config: BotConfiguration) -> None:
        now = format_timestamp(utc_now())
        updated_at = format_timestamp(config.updated_at) if config.updated_at else now

        with self._lock:
            with self._get_connection("save_configuration") as conn:
                conn.execute("""
                    INSERT INTO user_settings (
                        id, credentials_ref, purchase_amount, purchase_interval,
                        is_bot_active, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        credentials_ref = excluded.credentials_ref,
                        purchase_amount = excluded.purchase_amount,
                        purchase_interval = excluded.purchase_interval,
                        is_bot_active = excluded.is_bot_active,
                        updated_at = excluded.updated_at
                """, (
                    SETTINGS_ROW_ID,
                    config.credentials_ref,
                    config.purchase_amount,
                    config.purchase_interval_minutes,
                    int(config.active_flag),
                    now,
                    updated_at,
                ))
                conn.commit()

        self.logger.info(
            "Configuration saved",
            purchase_amount=config.purchase_amount,
            purchase_interval_minutes=config.purchase_interval_minutes,
            has_credentials=bool(config.credentials_ref),
        )

    def set_active_flag(self, active: bool) -> None:
        with self._lock:
            with self._get_connection("set_active_flag") as conn:
                cursor = conn.execute("""
                    UPDATE user_settings SET is_bot_active = ?, updated_at = ?
                    WHERE id = (SELECT MAX(id) FROM user_settings)
                """, (int(active), format_timestamp(utc_now())))
                conn.commit()
                updated_rows = cursor.rowcount

        if updated_rows == 0:
            self.logger.warning("No configuration row to flag", active=active)

    def append_purchase_attempt(self, attempt: PurchaseAttempt) -> None:
        with self._lock:
            with self._get_connection("append_purchase_attempt") as conn:
                cursor = conn.execute("""
                    INSERT INTO purchase_history (
                        purchase_date, amount_usd, filled_quantity, fill_price,
                        order_id, status, error_message, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    format_timestamp(attempt.timestamp),
                    attempt.requested_amount,
                    attempt.filled_quantity,
                    attempt.fill_price,
                    attempt.order_id,
                    attempt.status.value,
                    attempt.failure_reason,
                    format_timestamp(utc_now()),
                ))
                conn.commit()
                attempt_id = cursor.lastrowid

        self.logger.debug("Purchase attempt stored", attempt_id=attempt_id, status=attempt.status.value)

    def list_attempts(self, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0) -> list[PurchaseAttempt]:
        check_page(limit, offset)
        with self._get_connection("list_attempts") as conn:
            rows = conn.execute("""
                SELECT * FROM purchase_history
                ORDER BY purchase_date DESC, id DESC
                LIMIT ? OFFSET ?
            """, (limit, offset)).fetchall()

        return [self._row_to_attempt(row) for row in rows]

    def get_statistics(self) -> PurchaseStatistics:
        with self._get_connection("get_statistics") as conn:
            row = conn.execute("""
                SELECT
                    COUNT(*) AS total_purchases,
                    SUM(CASE WHEN status = 'success' THEN amount_usd ELSE 0 END) AS total_spent,
                    SUM(CASE WHEN status = 'success' THEN filled_quantity ELSE 0 END) AS total_quantity,
                    AVG(CASE WHEN status = 'success' THEN fill_price ELSE NULL END) AS avg_price,
                    COUNT(CASE WHEN status = 'success' THEN 1 ELSE NULL END) AS successful_purchases,
                    COUNT(CASE WHEN status = 'failed' THEN 1 ELSE NULL END) AS failed_purchases
                FROM purchase_history
            """).fetchone()

        return PurchaseStatistics(
            total_purchases=row["total_purchases"] or 0,
            total_spent=row["total_spent"] or 0.0,
            total_quantity=row["total_quantity"] or 0.0,
            avg_price=row["avg_price"] or 0.0,
            successful_purchases=row["successful_purchases"] or 0,
            failed_purchases=row["failed_purchases"] or 0,
        )

    def _row_to_configuration(self, row: sqlite3.Row) -> BotConfiguration:
        return BotConfiguration(
            purchase_amount=row["purchase_amount"],
            purchase_interval_minutes=row["purchase_interval"],
            credentials_ref=row["credentials_ref"],
            active_flag=bool(row["is_bot_active"]),
            updated_at=parse_timestamp(row["updated_at"]) if row["updated_at"] else None,
        )

    def _row_to_attempt(self, row: sqlite3.Row) -> PurchaseAttempt:
        return PurchaseAttempt(
            timestamp=parse_timestamp(row["purchase_date"]),
            requested_amount=row["amount_usd"],
            status=AttemptStatus(row["status"]),
            filled_quantity=row["filled_quantity"],
            fill_price=row["fill_price"],
            order_id=row["order_id"],
            failure_reason=row["error_message"],
        )
