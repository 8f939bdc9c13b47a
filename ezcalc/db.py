"""
sqlite3-backed calculation history.

The table is append-only: rows are inserted by `record` and removed only by
`clear_all`. A connection is opened per operation so one DB instance can be
shared by the server's request threads.
"""
import os
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from ezcalc.common import CalculationRecord, get_logger
from ezcalc.configure import Config

DATA_VERSION = 1


class StorageError(Exception):
    """Raised when the history database cannot be read or written."""
    pass


def _utcnow():
    return datetime.now(timezone.utc)


class DB:
    """
    History store over one sqlite file.

    No connection is held between calls, so there is nothing to close.
    Writes from this instance are serialized so that timestamp order and
    insert order agree.
    """

    def __init__(self, datafile, timeout=30, logger=None):
        self.datafile = str(datafile)
        self.timeout = timeout
        self.logger = logger or get_logger(__name__)

        self._write_lock = threading.Lock()
        self._last_timestamp: Optional[datetime] = None

        self.file_created = not os.path.exists(self.datafile)
        self._init_tables()

    @contextmanager
    def _connect(self, operation):
        """
        Yield a connection; any sqlite3 error becomes StorageError.
        """
        con = None
        try:
            con = sqlite3.connect(self.datafile, timeout=self.timeout)
            con.row_factory = sqlite3.Row
            yield con
        except sqlite3.Error as exc:
            self.logger.error(
                "storage_error operation=%s datafile=%s error=%s",
                operation,
                self.datafile,
                exc,
            )
            raise StorageError(f"History {operation} failed: {exc}") from exc
        finally:
            if con is not None:
                con.close()

    def _init_tables(self):
        with self._connect("init") as con, con:
            con.executescript(
                f"""
                CREATE TABLE IF NOT EXISTS calculation_history (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    operand1 REAL NOT NULL,
                    operand2 REAL NOT NULL,
                    operator TEXT NOT NULL,
                    result REAL NOT NULL,
                    calculated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_calculated_at
                    ON calculation_history (calculated_at DESC);

                PRAGMA user_version = {DATA_VERSION};
                """
            )
            (latest,) = con.execute(
                "SELECT MAX(calculated_at) FROM calculation_history"
            ).fetchone()
        if latest is not None:
            self._last_timestamp = datetime.fromisoformat(latest)
        if self.file_created:
            self.logger.info("history_db_created datafile=%s", self.datafile)

    def _next_timestamp(self) -> datetime:
        # never step backwards, even if the wall clock does; caller holds _write_lock
        now = _utcnow()
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    def record(self, operand1, operand2, operator, result) -> CalculationRecord:
        with self._write_lock:
            timestamp = self._next_timestamp()
            with self._connect("write") as con, con:
                cursor = con.execute(
                    """
                    INSERT INTO calculation_history
                        (operand1, operand2, operator, result, calculated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        float(operand1),
                        float(operand2),
                        operator,
                        float(result),
                        timestamp.isoformat(timespec="microseconds"),
                    ),
                )
                record_id = cursor.lastrowid
        self.logger.debug(
            "history_recorded id=%s %s %s %s = %s",
            record_id,
            operand1,
            operator,
            operand2,
            result,
        )
        return CalculationRecord(
            id=record_id,
            operand1=float(operand1),
            operand2=float(operand2),
            operator=operator,
            result=float(result),
            timestamp=timestamp,
        )

    def recent_history(self, limit=10) -> List[CalculationRecord]:
        if limit <= 0:
            return []
        with self._connect("read") as con:
            rows = con.execute(
                """
                SELECT id, operand1, operand2, operator, result, calculated_at
                FROM calculation_history
                ORDER BY calculated_at DESC, id DESC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        return [
            CalculationRecord(
                id=row["id"],
                operand1=row["operand1"],
                operand2=row["operand2"],
                operator=row["operator"],
                result=row["result"],
                timestamp=datetime.fromisoformat(row["calculated_at"]),
            )
            for row in rows
        ]

    def clear_all(self) -> int:
        with self._write_lock, self._connect("clear") as con, con:
            deleted = con.execute("DELETE FROM calculation_history").rowcount
        self.logger.info("history_cleared deleted=%s", deleted)
        return deleted

    def count(self) -> int:
        with self._connect("read") as con:
            (total,) = con.execute(
                "SELECT COUNT(*) FROM calculation_history"
            ).fetchone()
        return total


def create_history_store(config: Config, logger=None) -> DB:
    """Open the history database named by the configuration."""
    return DB(config.datafile, timeout=config.db_timeout, logger=logger)
