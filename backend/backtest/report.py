"""Report formatting for backtest results.

Outputs results to console (formatted tables) and JSON files.
"""

from __future__ import annotations

from pathlib import Path

import orjson

from backtest.stats import BacktestResult


class ReportFormatter:
    """Format backtest results for display and export."""

    @staticmethod
    def print_console(result: BacktestResult, last_trades: int = 10) -> None:
        """Print formatted report to console."""
        print("\n" + "=" * 70)
        print(f"  BACKTEST RESULTS: {result.strategy} on {result.symbol} {result.timeframe}")
        print("=" * 70)
        print(f"  Initial balance:  {result.initial_balance:,.2f}")
        print(f"  Final balance:    {result.final_balance:,.2f}")
        print(f"  Total P/L:        {result.total_pnl:+,.2f}")

        print("\n" + "-" * 70)
        print("  OVERALL")
        print("-" * 70)
        print(f"  Total trades:     {result.total_trades}")
        print(f"  Winners:          {result.winning_trades}")
        print(f"  Losers:           {result.losing_trades}")
        print(f"  Win rate:         {result.win_rate:.1f}%")
        print(f"  Profit factor:    {result.profit_factor:.2f}")
        print(f"  Sharpe ratio:     {result.sharpe_ratio:.2f}")
        print(f"  Max drawdown:     {result.max_drawdown:,.2f} ({result.max_drawdown_pct:.2f}%)")
        print(f"  Avg win / loss:   {result.avg_win:,.2f} / {result.avg_loss:,.2f} (R:R {result.avg_rr:.2f})")
        print(f"  Largest win/loss: {result.largest_win:+,.2f} / {result.largest_loss:+,.2f}")
        print(f"  Avg duration:     {result.avg_trade_duration:.1f}h")

        if result.trades:
            print("\n" + "-" * 70)
            print(f"  TRADES (last {min(last_trades, len(result.trades))})")
            print("-" * 70)
            print(f"  {'Entry':<17} {'Side':<5} {'Entry Px':>10} {'Exit Px':>10} {'Pips':>8} {'P/L':>10}  Exit")
            for t in result.trades[-last_trades:]:
                print(
                    f"  {t.entry_time:%Y-%m-%d %H:%M} {t.side.value:<5} {t.entry_price:>10.5f} "
                    f"{t.exit_price:>10.5f} {t.pips:>+8.1f} {t.pnl:>+10.2f}  {t.exit_reason.value}"
                )

        print("\n" + "=" * 70)

    @staticmethod
    def to_dict(result: BacktestResult) -> dict:
        """Convert results to a JSON-serializable dict with camelCase keys."""
        return result.to_wire()

    @staticmethod
    def save_json(result: BacktestResult, filepath: str | Path) -> None:
        """Save results to JSON file."""
        data = ReportFormatter.to_dict(result)
        Path(filepath).write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))
        print(f"\nResults saved to {filepath}")
