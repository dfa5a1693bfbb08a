"""Decision service: the fail-closed boundary around the core operations.

Each operation takes a decoded JSON body and returns ``(status_code, body)``.
Invalid input yields 400, any other failure 500; both carry a safe default
body (no signals, ``approved=false``) plus an ``error`` string so callers
never trade on a failed evaluation.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from app.models.requests import (
    BacktestRequest,
    RiskEvaluationRequest,
    StrategyEvaluationRequest,
)
from app.trading_config import TradingConfig
from backtest.config import BacktestSettings
from backtest.engine import BacktestCancelled
from backtest.runner import run_backtest
from backtest.sample_data import generate_sample_candles
from core.control import CancelToken, KillSwitch
from core.risk import evaluate_risk
from core.strategy import evaluate_strategies
from core.symbols import PipTable

logger = logging.getLogger(__name__)

Response = tuple[int, dict[str, Any]]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _validation_message(e: ValidationError) -> str:
    first = e.errors()[0] if e.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"Invalid request: {location}: {first.get('msg', 'validation error')}"


class DecisionService:
    """Strategy, risk and backtest operations behind one kill switch."""

    def __init__(
        self,
        trading_config: TradingConfig,
        kill_switch: KillSwitch,
        pip_table: PipTable = PipTable.V2,
        leverage: float = 100.0,
        backtest_settings: BacktestSettings | None = None,
    ):
        self.trading_config = trading_config
        self.kill_switch = kill_switch
        self.pip_table = pip_table
        self.leverage = leverage
        self.backtest_settings = backtest_settings

    # -- safe defaults -----------------------------------------------------

    @staticmethod
    def _strategy_failure(status: int, error: str) -> Response:
        return status, {"signals": [], "evaluated": 0, "timestamp": _now(), "error": error}

    @staticmethod
    def _risk_failure(status: int, error: str) -> Response:
        return status, {
            "approved": False,
            "reason": "Risk evaluation failed",
            "warnings": [],
            "error": error,
        }

    # -- operations --------------------------------------------------------

    def evaluate_strategies(self, body: Any) -> Response:
        try:
            request = StrategyEvaluationRequest.model_validate(body)
            strategies = (
                request.strategies
                if request.strategies is not None
                else self.trading_config.strategies
            )
            result = evaluate_strategies(
                strategies,
                request.candles,
                request.symbol,
                request.timeframe,
                positions=request.positions,
                kill_switch=self.kill_switch,
            )
            return 200, result.to_wire()
        except ValidationError as e:
            logger.warning(f"Strategy evaluation rejected: {e.error_count()} validation errors")
            return self._strategy_failure(400, _validation_message(e))
        except Exception as e:
            logger.error("Strategy evaluation failed", exc_info=True)
            return self._strategy_failure(500, str(e) or type(e).__name__)

    def evaluate_risk(self, body: Any) -> Response:
        try:
            request = RiskEvaluationRequest.model_validate(body)
            result = evaluate_risk(
                request.signal,
                request.account,
                request.positions,
                request.settings or self.trading_config.risk,
                request.daily_stats,
                request.current_price,
                request.current_spread,
                kill_switch=self.kill_switch,
                pip_table=self.pip_table,
                leverage=self.leverage,
            )
            body = result.to_wire()
            body.setdefault("warnings", [])
            return 200, body
        except ValidationError as e:
            logger.warning(f"Risk evaluation rejected: {e.error_count()} validation errors")
            return self._risk_failure(400, _validation_message(e))
        except Exception as e:
            logger.error("Risk evaluation failed", exc_info=True)
            return self._risk_failure(500, str(e) or type(e).__name__)

    def run_backtest(self, body: Any, cancel: CancelToken | None = None) -> Response:
        """Blocking; call from a worker thread."""
        try:
            request = BacktestRequest.model_validate(body)
            config = request.config
            candles = request.candles
            if candles is None:
                if config.start_date is None or config.end_date is None:
                    return 400, {"error": "startDate and endDate are required without candles"}
                candles = generate_sample_candles(
                    config.start_date,
                    config.end_date,
                    config.timeframe,
                    seed=request.seed,
                    symbol=config.symbol,
                )
            result = run_backtest(
                config,
                candles,
                cancel=cancel,
                settings=self.backtest_settings,
                pip_table=self.pip_table,
            )
            return 200, result.to_wire()
        except ValidationError as e:
            logger.warning(f"Backtest rejected: {e.error_count()} validation errors")
            return 400, {"error": _validation_message(e)}
        except BacktestCancelled as e:
            return 409, {"error": f"Backtest cancelled: {e}"}
        except Exception as e:
            logger.error("Backtest failed", exc_info=True)
            return 500, {"error": str(e) or type(e).__name__}
