"""CLI entry point for the backtesting system.

Completely independent of app/. Candles come from a CSV/JSON file, or are
generated synthetically when no file is given.

Usage:
    python -m backtest --strategy ma_cross --symbol EURUSD --start 2024-01-01 --end 2024-03-31
    python -m backtest --strategy rsi_bands --candles data/eurusd_h1.csv --param overbought=75
    python -m backtest --strategy scalper --seed 7 --output result.json
"""

import argparse
import logging
import os
import signal
import sys
from datetime import datetime, timedelta, timezone

import yaml

# Add backend to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.control import CancelToken
from core.strategy import list_strategies

from backtest.candle_source import load_candles
from backtest.config import BacktestConfig, get_backtest_settings
from backtest.engine import BacktestCancelled
from backtest.report import ReportFormatter
from backtest.runner import run_backtest
from backtest.sample_data import DEFAULT_TIMEFRAME, TIMEFRAMES, generate_sample_candles

logger = logging.getLogger("backtest")


def parse_date(date_str: str) -> datetime:
    """Parse YYYY-MM-DD to timezone-aware datetime."""
    try:
        dt = datetime.strptime(date_str, "%Y-%m-%d")
        return dt.replace(tzinfo=timezone.utc)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid date format: {date_str} (expected YYYY-MM-DD)"
        )


def parse_param(item: str) -> tuple[str, object]:
    """Parse ``key=value``; the value is read as a YAML scalar (5 -> int, 1.5 -> float)."""
    key, sep, value = item.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Invalid parameter: {item} (expected key=value)")
    return key.strip(), yaml.safe_load(value)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Backtest a trading strategy over historical or synthetic candles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m backtest --strategy ma_cross --start 2024-01-01 --end 2024-03-31
  python -m backtest --strategy rsi_bands --candles eurusd_h1.csv --param overbought=75
  python -m backtest --list-strategies
        """,
    )
    parser.add_argument(
        "--list-strategies",
        action="store_true",
        help="List registered strategies and exit",
    )
    parser.add_argument("--strategy", type=str, default="ma_cross", help="Strategy id (default: ma_cross)")
    parser.add_argument("--symbol", type=str, default="EURUSD", help="Symbol (default: EURUSD)")
    parser.add_argument(
        "--timeframe",
        type=str,
        default=DEFAULT_TIMEFRAME,
        choices=sorted(TIMEFRAMES),
        help=f"Timeframe (default: {DEFAULT_TIMEFRAME})",
    )
    parser.add_argument("--start", type=parse_date, default=None, help="Start date (YYYY-MM-DD)")
    parser.add_argument("--end", type=parse_date, default=None, help="End date (YYYY-MM-DD)")
    parser.add_argument("--balance", type=float, default=10_000.0, help="Initial balance")
    parser.add_argument("--spread", type=float, default=1.0, help="Spread in pips")
    parser.add_argument("--slippage", type=float, default=0.5, help="Slippage in pips")
    parser.add_argument(
        "--param",
        type=parse_param,
        action="append",
        default=[],
        help="Strategy parameter as key=value (repeatable)",
    )
    parser.add_argument(
        "--candles",
        type=str,
        default=None,
        help="CSV or JSON candle file (synthetic candles when omitted)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for synthetic candles")
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output file path for JSON results",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging",
    )
    return parser.parse_args(argv)


def cmd_run_backtest(args: argparse.Namespace) -> int:
    """Run a backtest. Returns the process exit code."""
    start_date = args.start
    # End date should include the full day
    end_date = args.end.replace(hour=23, minute=59, second=59) if args.end else None

    if args.candles:
        candles = load_candles(args.candles)
    else:
        end_date = end_date or datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)
        start_date = start_date or end_date - timedelta(days=90)
        print(f"\nNo candle file given; generating synthetic {args.timeframe} candles")
        candles = generate_sample_candles(
            start_date, end_date, args.timeframe, seed=args.seed, symbol=args.symbol.upper()
        )

    config = BacktestConfig(
        strategy_id=args.strategy,
        symbol=args.symbol.upper(),
        timeframe=args.timeframe,
        start_date=start_date,
        end_date=end_date,
        initial_balance=args.balance,
        spread=args.spread,
        slippage=args.slippage,
        params=dict(args.param),
    )

    print(f"\nBacktest: {config.strategy_id} on {config.symbol} {config.timeframe}")
    if start_date and end_date:
        print(f"Period: {start_date:%Y-%m-%d} → {end_date:%Y-%m-%d}")

    cancel = CancelToken("backtest")
    previous = signal.signal(signal.SIGINT, lambda *_: cancel.trip("interrupted"))
    try:
        result = run_backtest(config, candles, cancel=cancel, settings=get_backtest_settings())
    except BacktestCancelled:
        print("\nBacktest cancelled; no results.")
        return 130
    finally:
        signal.signal(signal.SIGINT, previous)

    ReportFormatter.print_console(result)
    if args.output:
        ReportFormatter.save_json(result, args.output)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.list_strategies:
        for name in list_strategies():
            print(name)
        return 0

    return cmd_run_backtest(args)


if __name__ == "__main__":
    sys.exit(main())
