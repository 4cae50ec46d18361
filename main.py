#!/usr/bin/env python3
"""
Signal Engine CLI: run | loop | evaluate | list
Usage:
  python main.py run [--config config.yaml] [--timeframes 1h 4h] [--dry-run]
  python main.py loop [--interval 900]
  python main.py evaluate SYMBOL TIMEFRAME
  python main.py list [--limit 20]
"""

from __future__ import annotations
import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

import requests

# Project root
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from signal_engine.core.config import Config, ConfigError, load_config
from signal_engine.core.logger import setup_logging
from signal_engine.data.base import MarketDataError
from signal_engine.data.fmp import FmpMarketData
from signal_engine.engine.orchestrator import SignalEngine
from signal_engine.storage.sqlite import SqliteSignalRepository
from signal_engine.utils.telegram import TelegramNotifier

logger = logging.getLogger("signal_engine")


def build_engine(config: Config, dry_run: bool = False) -> SignalEngine:
    """Wire market data, storage and notifier from config."""
    market_data = FmpMarketData(
        config.fmp_api_key,
        base_url=config.fmp_base_url,
        timeout=config.fmp_timeout,
        max_retries=config.fmp_max_retries,
    )
    # Dry runs read stored signals for dedup but never register symbols
    repository = SqliteSignalRepository(config.db_path, auto_register_symbols=not dry_run)
    notifier = TelegramNotifier(config.telegram_bot_token, config.telegram_chat_id)
    return SignalEngine(
        market_data=market_data,
        repository=repository,
        universe=config.universe,
        risk_table=config.risk_table,
        thresholds=config.thresholds,
        default_risk=config.default_risk,
        engine_version=config.engine_version,
        max_workers=config.max_workers,
        evaluation_timeout=config.evaluation_timeout,
        notifier=notifier if notifier.enabled and not dry_run else None,
    )


def run_once(config: Config, timeframes: Optional[Sequence[str]], dry_run: bool) -> int:
    engine = build_engine(config, dry_run)
    result = engine.run(timeframes or config.timeframes, dry_run=dry_run)
    print(f"\n--- Run ({'dry run, would store' if dry_run else 'stored'}) ---")
    print(f"Evaluated: {result.evaluated}  skipped: {result.skipped}  duplicates: {result.duplicates}")
    for c in result.created:
        print(
            f"{c.direction.value.upper():5} {c.symbol:8} {c.timeframe:4} [{c.quality_tier.value}] "
            f"score={c.score} entry={c.entry:.5g} sl={c.stop:.5g} tp={c.target:.5g} | {c.explanation}"
        )
    for err in result.errors:
        print(f"error: {err}")
    return 0


def run_loop(config: Config, timeframes: Optional[Sequence[str]], interval: float) -> int:
    engine = build_engine(config)
    while True:
        try:
            result = engine.run(timeframes or config.timeframes)
            logger.info("Loop pass: %d new signals, %d errors", len(result.created), len(result.errors))
            time.sleep(interval)
        except KeyboardInterrupt:
            logger.info("Shutdown by user")
            break
    return 0


def run_evaluate(config: Config, symbol: str, timeframe: str) -> int:
    engine = build_engine(config, dry_run=True)
    symbol_config = engine.find_symbol(symbol.upper())
    if symbol_config is None:
        logger.error("Symbol %s is not in the configured universe", symbol)
        return 1
    try:
        candidate = engine.evaluate(symbol_config, timeframe.lower())
    except (requests.RequestException, MarketDataError, ValueError) as e:
        logger.error("Evaluation failed for %s %s: %s", symbol_config.symbol, timeframe, e)
        return 1
    if candidate is None:
        print(f"No signal for {symbol_config.symbol} {timeframe}")
        return 0
    print(candidate.explanation)
    print(
        f"entry={candidate.entry:.5g} stop={candidate.stop:.5g} target={candidate.target:.5g} "
        f"rr={candidate.risk_reward:.2f} tier={candidate.quality_tier.value}"
    )
    return 0


def run_list(config: Config, limit: int) -> int:
    repository = SqliteSignalRepository(config.db_path, auto_register_symbols=False)
    rows = repository.list_active_signals(limit)
    if not rows:
        print("No active signals")
    for r in rows:
        print(
            f"#{r['id']} {r['direction'].upper():5} {r['symbol']:8} {r['timeframe']:4} "
            f"[{r['quality_tier']}] score={r['score']} entry={r['entry']:.5g} "
            f"sl={r['sl']:.5g} tp={r['tp1']:.5g} {r['activated_at']}"
        )
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Signal Engine CLI")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    sub = parser.add_subparsers(dest="mode", required=True)

    p_run = sub.add_parser("run", help="Evaluate the universe once and store new signals")
    p_run.add_argument("--timeframes", nargs="*", default=None)
    p_run.add_argument("--dry-run", action="store_true", help="Do not write to the database")

    p_loop = sub.add_parser("loop", help="Run repeatedly")
    p_loop.add_argument("--timeframes", nargs="*", default=None)
    p_loop.add_argument("--interval", type=float, default=900.0, help="Seconds between runs")

    p_eval = sub.add_parser("evaluate", help="Evaluate one symbol/timeframe without storing")
    p_eval.add_argument("symbol")
    p_eval.add_argument("timeframe")

    p_list = sub.add_parser("list", help="List active signals")
    p_list.add_argument("--limit", type=int, default=20)

    args = parser.parse_args()
    try:
        config = load_config(args.config, ROOT)
    except ConfigError as e:
        print(f"config error: {e}", file=sys.stderr)
        return 1
    setup_logging(config.log_level, config.log_dir, config.log_file)

    try:
        if args.mode == "run":
            return run_once(config, args.timeframes, args.dry_run)
        if args.mode == "loop":
            return run_loop(config, args.timeframes, args.interval)
        if args.mode == "evaluate":
            return run_evaluate(config, args.symbol, args.timeframe)
        return run_list(config, args.limit)
    except ConfigError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
