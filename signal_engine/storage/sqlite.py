"""SQLite signal repository. Schema is created on first use."""

from __future__ import annotations
import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional

from signal_engine.core.types import Direction, InstrumentType, SignalRecord, SignalStatus
from signal_engine.storage.base import SignalRepository, record_to_row

logger = logging.getLogger("signal_engine.storage.sqlite")

SCHEMA = """
CREATE TABLE IF NOT EXISTS symbols (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    fmp_symbol  TEXT NOT NULL UNIQUE,
    asset_class TEXT,
    is_active   INTEGER NOT NULL DEFAULT 1,
    created_at  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS signals (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    symbol         TEXT NOT NULL,
    symbol_id      INTEGER NOT NULL REFERENCES symbols(id),
    direction      TEXT NOT NULL,
    type           TEXT NOT NULL,
    market         TEXT NOT NULL,
    timeframe      TEXT NOT NULL,
    entry          REAL NOT NULL,
    sl             REAL NOT NULL,
    tp1            REAL,
    tp2            REAL,
    tp3            REAL,
    rr             REAL NOT NULL,
    status         TEXT NOT NULL DEFAULT 'active',
    score          INTEGER NOT NULL,
    quality_tier   TEXT NOT NULL,
    regime         TEXT NOT NULL,
    factors        TEXT NOT NULL DEFAULT '{}',
    explanation    TEXT,
    engine_version TEXT NOT NULL,
    activated_at   TEXT NOT NULL,
    closed_at      TEXT
);

CREATE UNIQUE INDEX IF NOT EXISTS ux_signals_one_active
    ON signals (symbol_id, timeframe, direction)
    WHERE status = 'active';
"""

_INSERT_COLUMNS = (
    "symbol", "symbol_id", "direction", "type", "market", "timeframe",
    "entry", "sl", "tp1", "tp2", "tp3", "rr", "status", "score",
    "quality_tier", "regime", "explanation", "engine_version", "activated_at",
)


class SqliteSignalRepository(SignalRepository):
    """
    Data access layer for signal records.

    Args:
        db_path: Path to the SQLite database file (or ``":memory:"``).
        auto_register_symbols: Create unknown symbols on lookup instead of
            reporting them as missing.
    """

    def __init__(self, db_path: str, auto_register_symbols: bool = True) -> None:
        self._db_path = db_path
        self._auto_register = auto_register_symbols
        self._memory_conn: Optional[sqlite3.Connection] = None
        self._memory_lock = threading.Lock()
        if db_path == ":memory:":
            self._memory_conn = sqlite3.connect(db_path, check_same_thread=False)
            self._memory_conn.row_factory = sqlite3.Row
        else:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(SCHEMA)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        if self._memory_conn is not None:
            with self._memory_lock:
                yield self._memory_conn
            return
        conn = sqlite3.connect(self._db_path, timeout=30)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    # ── Symbols ──────────────────────────────────────────────────────────

    def resolve_symbol_id(self, symbol: str, instrument_type: Optional[InstrumentType] = None) -> Optional[int]:
        with self._connect() as conn:
            if self._auto_register:
                conn.execute(
                    "INSERT OR IGNORE INTO symbols (fmp_symbol, asset_class, created_at) VALUES (?, ?, ?)",
                    (
                        symbol,
                        instrument_type.value if instrument_type else None,
                        datetime.now(timezone.utc).isoformat(),
                    ),
                )
                conn.commit()
            row = conn.execute(
                "SELECT id FROM symbols WHERE fmp_symbol = ? AND is_active = 1", (symbol,)
            ).fetchone()
        return int(row["id"]) if row else None

    # ── Signals ──────────────────────────────────────────────────────────

    def has_active_signal(self, symbol_id: int, timeframe: str, direction: Direction) -> bool:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT 1 FROM signals
                WHERE symbol_id = ? AND timeframe = ? AND direction = ? AND status = 'active'
                LIMIT 1
                """,
                (symbol_id, timeframe, direction.value),
            ).fetchone()
        return row is not None

    def insert_signal(self, record: SignalRecord) -> Optional[int]:
        """Conditional insert: the partial unique index turns a duplicate into a no-op."""
        row = record_to_row(record)
        placeholders = ", ".join("?" for _ in _INSERT_COLUMNS)
        with self._connect() as conn:
            cur = conn.execute(
                f"INSERT OR IGNORE INTO signals ({', '.join(_INSERT_COLUMNS)}, factors) "
                f"VALUES ({placeholders}, ?)",
                tuple(row[c] for c in _INSERT_COLUMNS) + (json.dumps(record.factors, default=str),),
            )
            conn.commit()
            if cur.rowcount == 0:
                logger.debug(
                    "Active signal already stored for %s %s %s",
                    record.symbol, record.timeframe, record.direction.value,
                )
                return None
            return cur.lastrowid

    def list_active_signals(self, limit: int = 100) -> List[dict]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM signals
                WHERE status = 'active'
                ORDER BY activated_at DESC, id DESC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        out = []
        for r in rows:
            item = dict(r)
            item["factors"] = json.loads(item["factors"] or "{}")
            out.append(item)
        return out

    def close_signal(self, signal_id: int, status: SignalStatus = SignalStatus.CLOSED) -> bool:
        if status == SignalStatus.ACTIVE:
            raise ValueError("close_signal needs a terminal status")
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE signals SET status = ?, closed_at = ? WHERE id = ? AND status = 'active'",
                (status.value, datetime.now(timezone.utc).isoformat(), signal_id),
            )
            conn.commit()
            return cur.rowcount > 0
