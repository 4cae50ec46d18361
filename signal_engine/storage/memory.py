"""In-process signal repository for tests and dry runs."""

from __future__ import annotations
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from signal_engine.core.types import Direction, InstrumentType, SignalRecord, SignalStatus
from signal_engine.storage.base import SignalRepository, record_to_row


class InMemorySignalRepository(SignalRepository):
    """Dict-backed repository. A single lock makes check + insert atomic."""

    def __init__(self, known_symbols: Optional[List[str]] = None, auto_register_symbols: bool = True):
        self._lock = threading.Lock()
        self._auto_register = auto_register_symbols
        self._symbols: Dict[str, int] = {}
        self._signals: Dict[int, dict] = {}
        self._active: Dict[Tuple[int, str, str], int] = {}
        for symbol in known_symbols or []:
            self._symbols[symbol] = len(self._symbols) + 1

    def resolve_symbol_id(self, symbol: str, instrument_type: Optional[InstrumentType] = None) -> Optional[int]:
        with self._lock:
            if symbol not in self._symbols:
                if not self._auto_register:
                    return None
                self._symbols[symbol] = len(self._symbols) + 1
            return self._symbols[symbol]

    def has_active_signal(self, symbol_id: int, timeframe: str, direction: Direction) -> bool:
        with self._lock:
            return (symbol_id, timeframe, direction.value) in self._active

    def insert_signal(self, record: SignalRecord) -> Optional[int]:
        key = (record.symbol_id, record.timeframe, record.direction.value)
        with self._lock:
            if key in self._active:
                return None
            signal_id = len(self._signals) + 1
            row = record_to_row(record)
            row["id"] = signal_id
            row["factors"] = dict(record.factors)
            row["closed_at"] = None
            self._signals[signal_id] = row
            self._active[key] = signal_id
            return signal_id

    def list_active_signals(self, limit: int = 100) -> List[dict]:
        with self._lock:
            rows = [dict(self._signals[i]) for i in self._active.values()]
        rows.sort(key=lambda r: (r["activated_at"], r["id"]), reverse=True)
        return rows[:limit]

    def close_signal(self, signal_id: int, status: SignalStatus = SignalStatus.CLOSED) -> bool:
        if status == SignalStatus.ACTIVE:
            raise ValueError("close_signal needs a terminal status")
        with self._lock:
            row = self._signals.get(signal_id)
            if row is None or row["status"] != SignalStatus.ACTIVE.value:
                return False
            row["status"] = status.value
            row["closed_at"] = datetime.now(timezone.utc).isoformat()
            key = (row["symbol_id"], row["timeframe"], row["direction"])
            self._active.pop(key, None)
            return True

    def __len__(self) -> int:
        return len(self._signals)
