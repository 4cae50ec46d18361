"""
Signal engine orchestrator: symbol x timeframe universe -> stored signals.

Evaluations (fetch + indicators + scoring) run in a bounded thread pool and
share no state. Dedup check and conditional insert happen afterwards on the
calling thread, one evaluation at a time.
"""

from __future__ import annotations
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from signal_engine.core.config import DEFAULT_RISK_CONFIG, ConfigError, EngineThresholds
from signal_engine.core.types import InstrumentType, RiskConfig, SignalCandidate, SymbolConfig
from signal_engine.data.base import MarketDataSource
from signal_engine.factors import build_snapshot, detect_regime, score_directions
from signal_engine.risk.builder import CandidateBuilder
from signal_engine.storage.base import SignalRepository, record_from_candidate

logger = logging.getLogger("signal_engine.engine")

Notifier = Callable[[SignalCandidate], None]


@dataclass
class RunResult:
    """Outcome of one pass over the universe."""
    created: List[SignalCandidate] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    evaluated: int = 0
    skipped: int = 0
    duplicates: int = 0


class SignalEngine:
    """
    Runs every enabled (symbol, timeframe) pair through snapshot -> regime ->
    scores -> candidate, then stores accepted candidates unless an active
    signal with the same (symbol, timeframe, direction) already exists.
    """

    def __init__(
        self,
        market_data: MarketDataSource,
        repository: SignalRepository,
        universe: Sequence[SymbolConfig],
        risk_table: Mapping[InstrumentType, RiskConfig],
        thresholds: Optional[EngineThresholds] = None,
        default_risk: RiskConfig = DEFAULT_RISK_CONFIG,
        engine_version: str = "v2.1",
        max_workers: int = 4,
        evaluation_timeout: Optional[float] = 60.0,
        notifier: Optional[Notifier] = None,
    ):
        if not universe:
            raise ConfigError("Symbol universe is empty")
        if not risk_table:
            raise ConfigError("Risk configuration is missing")
        self.market_data = market_data
        self.repository = repository
        self.universe = tuple(universe)
        self.thresholds = thresholds or EngineThresholds()
        self.builder = CandidateBuilder(risk_table, self.thresholds, default_risk)
        self.engine_version = engine_version
        self.max_workers = max(1, max_workers)
        self.evaluation_timeout = evaluation_timeout
        self.notifier = notifier

    def tasks(self, timeframes: Optional[Iterable[str]] = None) -> List[Tuple[SymbolConfig, str]]:
        """Enabled (symbol, timeframe) pairs, optionally restricted to *timeframes*."""
        wanted = set(timeframes) if timeframes is not None else None
        return [
            (sc, tf)
            for sc in self.universe
            for tf in sc.enabled_timeframes
            if wanted is None or tf in wanted
        ]

    def find_symbol(self, symbol: str) -> Optional[SymbolConfig]:
        for sc in self.universe:
            if sc.symbol == symbol:
                return sc
        return None

    # ── Evaluation (no side effects) ─────────────────────────────────────

    def analyze(self, symbol_config: SymbolConfig, timeframe: str, bars: pd.DataFrame) -> Optional[SignalCandidate]:
        """Bars -> candidate, or None when data is short or the setup is rejected."""
        snapshot = build_snapshot(symbol_config.symbol, timeframe, bars, self.thresholds.min_bars)
        if snapshot is None:
            return None
        regime = detect_regime(snapshot, self.thresholds)
        long_scores, short_scores = score_directions(snapshot, regime, self.thresholds)
        decision = self.builder.build(
            snapshot, regime, long_scores, short_scores, symbol_config.instrument_type,
        )
        if not decision.accepted:
            logger.debug(
                "No signal %s %s (%s): %s [long=%d short=%d]",
                symbol_config.symbol, timeframe, regime.value, decision.reason,
                decision.long_score, decision.short_score,
            )
            return None
        return decision.candidate

    def evaluate(self, symbol_config: SymbolConfig, timeframe: str) -> Optional[SignalCandidate]:
        """Fetch bars and analyze. Network and data errors propagate."""
        min_bars = self.thresholds.min_bars
        bars = self.market_data.get_bars(symbol_config.symbol, timeframe, min_bars)
        if bars is None or len(bars) < min_bars:
            logger.info(
                "Insufficient data for %s %s (%d bars)",
                symbol_config.symbol, timeframe, 0 if bars is None else len(bars),
            )
            return None
        return self.analyze(symbol_config, timeframe, bars)

    # ── Run ──────────────────────────────────────────────────────────────

    def run(self, timeframes: Optional[Iterable[str]] = None, dry_run: bool = False) -> RunResult:
        """
        Evaluate the universe and store new signals.
        Never raises for per-symbol failures; they are returned in ``errors``.
        With ``dry_run`` nothing is written, but active duplicates are still
        looked up so ``created`` lists what a real run would store.
        """
        result = RunResult()
        tasks = self.tasks(timeframes)
        if not tasks:
            logger.info("No symbol/timeframe pairs to evaluate")
            return result
        logger.info("Evaluating %d symbol/timeframe pairs", len(tasks))

        started: Dict[int, float] = {}
        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="signal-eval")
        try:
            futures: List[Tuple[SymbolConfig, str, Future]] = [
                (sc, tf, executor.submit(self._timed_evaluate, i, started, sc, tf))
                for i, (sc, tf) in enumerate(tasks)
            ]
            for i, (sc, tf, future) in enumerate(futures):
                label = f"{sc.symbol} {tf}"
                try:
                    candidate = self._await(future, i, started)
                except FutureTimeout:
                    logger.warning("Evaluation timed out for %s", label)
                    result.errors.append(f"Timeout evaluating {label}")
                    continue
                except Exception as e:
                    logger.warning("Error evaluating %s: %s", label, e)
                    result.errors.append(f"Error processing {label}: {e}")
                    continue
                result.evaluated += 1
                if candidate is None:
                    result.skipped += 1
                    continue
                self._store(sc, candidate, result, dry_run)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        logger.info(
            "Run complete: %d created, %d duplicates, %d skipped, %d errors",
            len(result.created), result.duplicates, result.skipped, len(result.errors),
        )
        return result

    def _timed_evaluate(
        self, index: int, started: Dict[int, float], symbol_config: SymbolConfig, timeframe: str,
    ) -> Optional[SignalCandidate]:
        started[index] = time.monotonic()
        return self.evaluate(symbol_config, timeframe)

    def _await(self, future: Future, index: int, started: Dict[int, float]) -> Optional[SignalCandidate]:
        """
        Wait for one evaluation. The deadline counts from when a worker picked
        it up, so work queued behind a stuck evaluation is never timed out.
        """
        timeout = self.evaluation_timeout
        if timeout is None:
            return future.result()
        while True:
            begin = started.get(index)
            remaining = timeout if begin is None else begin + timeout - time.monotonic()
            try:
                return future.result(timeout=max(remaining, 0.0))
            except FutureTimeout:
                begin = started.get(index)
                if begin is not None and time.monotonic() - begin >= timeout:
                    raise

    def _store(
        self, symbol_config: SymbolConfig, candidate: SignalCandidate, result: RunResult, dry_run: bool = False,
    ) -> None:
        label = f"{candidate.symbol} {candidate.timeframe}"
        try:
            symbol_id = self.repository.resolve_symbol_id(candidate.symbol, symbol_config.instrument_type)
            if symbol_id is None:
                if dry_run:
                    # Unregistered symbol: nothing active to collide with
                    result.created.append(candidate)
                    return
                result.errors.append(f"Symbol not found in storage: {candidate.symbol}")
                return
            if self.repository.has_active_signal(symbol_id, candidate.timeframe, candidate.direction):
                logger.info("Active %s signal already exists for %s", candidate.direction.value, label)
                result.duplicates += 1
                return
            if dry_run:
                result.created.append(candidate)
                return
            record = record_from_candidate(
                candidate, symbol_id, self.engine_version, datetime.now(timezone.utc),
            )
            signal_id = self.repository.insert_signal(record)
        except Exception as e:
            logger.exception("Storage error for %s: %s", label, e)
            result.errors.append(f"Insert error {label}: {e}")
            return

        if signal_id is None:
            # Lost the race to a concurrent run
            result.duplicates += 1
            return
        logger.info(
            "Created %s %s signal id=%s score=%d tier=%s",
            candidate.direction.value, label, signal_id, candidate.score, candidate.quality_tier.value,
        )
        result.created.append(candidate)
        if self.notifier is not None:
            try:
                self.notifier(candidate)
            except Exception as e:
                logger.warning("Notifier failed for %s: %s", label, e)
