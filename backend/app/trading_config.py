"""Trading profile loaded from strategies.yaml.

The file is the read-only profile store for the service: the configured
strategies evaluated when a request does not supply its own list, and the
risk settings used when a risk request omits them.

Example:
    strategies:
      - id: eurusd-trend
        name: MA Cross
        symbol: EURUSD
        timeframe: H1
        params: {fastPeriod: 9, slowPeriod: 21}
    risk:
      maxDailyDrawdownPct: 4
      sessionFilter: {enabled: true, allowTokyo: false}

No YAML file = no strategies and default risk settings.
"""

import logging
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from core.models.config import StrategyConfig
from core.models.risk import RiskSettings
from core.strategy import UnknownStrategyError, resolve_strategy_kind

logger = logging.getLogger(__name__)


class TradingConfig(BaseModel):
    """Top-level strategies.yaml configuration."""

    strategies: list[StrategyConfig] = Field(default_factory=list)
    risk: RiskSettings = Field(default_factory=RiskSettings)

    @model_validator(mode="after")
    def _validate(self):
        ids = [s.id for s in self.strategies if s.id]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"duplicate strategy ids: {', '.join(duplicates)}")
        for entry in self.strategies:
            try:
                resolve_strategy_kind(entry.name)
            except UnknownStrategyError:
                # Kept so the entry shows up as skipped at evaluation time
                logger.warning(
                    "Strategy entry %s names unknown strategy '%s'",
                    entry.id or "(no id)",
                    entry.name,
                )
        return self

    def get_enabled_strategies(self) -> list[StrategyConfig]:
        return [s for s in self.strategies if s.enabled]


_DEFAULT_PATH = Path(__file__).parent.parent / "strategies.yaml"


def load_trading_config(path: Path | str | None = None) -> TradingConfig:
    """Load the trading profile from YAML.

    Falls back to defaults (no strategies, default risk settings) if the
    file doesn't exist.
    """
    config_path = Path(path) if path else _DEFAULT_PATH

    # Load .env next to the profile into os.environ
    env_path = config_path.parent / ".env"
    load_dotenv(env_path, override=False)

    if not config_path.exists():
        logger.info(
            "No strategies file found at %s, using defaults (no strategies)",
            config_path,
        )
        return TradingConfig()

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    config = TradingConfig(**raw)
    logger.info(
        "Loaded trading config: %d strategies (%d enabled)",
        len(config.strategies),
        len(config.get_enabled_strategies()),
    )
    return config
