"""Main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from app.api import router, websocket_endpoint
from app.config import get_settings
from app.services import DecisionService, RelayService
from app.trading_config import load_trading_config
from core.broker import resolve_broker_type
from core.control import KillSwitch
from core.symbols import pip_table_discrepancies

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def log_pip_table_discrepancies() -> None:
    """Surface symbols on which the two pip-value tables disagree."""
    for symbol, (current, legacy) in pip_table_discrepancies().items():
        logger.warning(
            "Pip value discrepancy for %s: v2=%s legacy=%s (confirm which applies)",
            symbol,
            current,
            legacy,
        )


configure_logging(get_settings().log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logger.info("Starting trading decision service...")

    broker_type = resolve_broker_type(settings.broker_type)
    trading_config = load_trading_config(settings.strategies_file)
    log_pip_table_discrepancies()
    logger.info(f"Pip table: {settings.pip_table.value}, broker: {broker_type.value}")

    kill_switch = KillSwitch("trading")
    relay = RelayService(
        shared_secret=settings.relay_shared_secret,
        kill_switch=kill_switch,
        heartbeat_interval=settings.heartbeat_interval_seconds,
    )
    app.state.broker_type = broker_type
    app.state.relay = relay
    app.state.decision_service = DecisionService(
        trading_config=trading_config,
        kill_switch=kill_switch,
        pip_table=settings.pip_table,
        leverage=settings.leverage,
    )

    await relay.start()
    try:
        yield
    finally:
        logger.info("Shutting down...")
        await relay.stop()
        logger.info("Shutdown complete")


# Create FastAPI app with orjson for faster JSON serialization
app = FastAPI(
    title="Trading Decision Core",
    description="Strategy evaluation, risk gating, backtesting and live relay",
    version="0.1.0",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)

# Relay WebSocket endpoint
app.websocket("/relay")(websocket_endpoint)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


def main():
    """Run the application."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
