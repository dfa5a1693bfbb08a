"""Live relay: authenticated message bridge between trading terminals and
dashboards.

One ``RelayService`` owns one ``ConnectionRegistry``; its lifetime is bound
to ``start()``/``stop()`` (the application lifespan). Clients only need an
async ``send_text``, so FastAPI WebSockets and test doubles both work.

Forwarding rules:
- ``auth``, ``ping`` and ``subscribe`` are answered directly to the sender
- every other message requires an authenticated sender
- market/account/order messages go to all other authenticated clients
- ``order_request`` gets a fresh ``correlationId`` before forwarding
- ``kill_switch`` goes to every connected client and trips the service
  kill switch
"""

from __future__ import annotations

import asyncio
import hmac
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

import orjson
from pydantic import ValidationError

from app.models.relay import (
    AuthMessage,
    KillSwitchMessage,
    OrderRequestMessage,
    PingMessage,
    StartTradingMessage,
    StopTradingMessage,
    SubscribeMessage,
    parse_relay_message,
)
from core.control import KillSwitch
from core.models.base import WireModel

logger = logging.getLogger(__name__)

MIN_SECRET_LENGTH = 8

# Message types forwarded unchanged to the other authenticated clients
_FORWARDED = frozenset({"tick", "candle", "account_update", "order_update", "order_result"})


class RelayClient(Protocol):
    async def send_text(self, data: str) -> None:
        ...


@dataclass
class ClientState:
    authenticated: bool = False
    account_id: str | None = None
    symbols: list[str] = field(default_factory=list)
    timeframes: list[str] = field(default_factory=list)


def _now_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def _dumps(message: dict[str, Any]) -> str:
    """Serialize object to JSON string using orjson."""
    return orjson.dumps(message, default=str).decode("utf-8")


def _payload_wire(payload: Any) -> dict[str, Any]:
    if isinstance(payload, WireModel):
        return payload.to_wire()
    return dict(payload)


def _envelope(msg_type: str, payload: dict[str, Any] | None = None) -> str:
    return _dumps({"type": msg_type, "payload": payload or {}})


class ConnectionRegistry:
    """Connected relay clients and their session state, keyed by identity."""

    def __init__(self):
        self._clients: dict[int, tuple[RelayClient, ClientState]] = {}
        self._lock = asyncio.Lock()

    async def add(self, client: RelayClient) -> ClientState:
        async with self._lock:
            _, state = self._clients.setdefault(id(client), (client, ClientState()))
        return state

    async def remove(self, client: RelayClient) -> None:
        async with self._lock:
            self._clients.pop(id(client), None)

    async def clear(self) -> None:
        async with self._lock:
            self._clients.clear()

    def get(self, client: RelayClient) -> ClientState | None:
        entry = self._clients.get(id(client))
        return entry[1] if entry else None

    async def snapshot(self) -> list[tuple[RelayClient, ClientState]]:
        async with self._lock:
            return list(self._clients.values())

    def __len__(self) -> int:
        return len(self._clients)

    @property
    def authenticated_count(self) -> int:
        return sum(1 for _, s in self._clients.values() if s.authenticated)


class RelayService:
    """Relay message router with shared-secret auth, heartbeat and kill switch."""

    def __init__(
        self,
        shared_secret: str,
        kill_switch: KillSwitch,
        heartbeat_interval: float = 30.0,
    ):
        self._secret = shared_secret
        self.kill_switch = kill_switch
        self.heartbeat_interval = heartbeat_interval
        self.registry = ConnectionRegistry()
        self._heartbeat_task: asyncio.Task | None = None

    # -- lifecycle ---------------------------------------------------------

    async def start(self) -> None:
        if self._heartbeat_task is None:
            self._heartbeat_task = asyncio.create_task(self._heartbeat_loop())
        if not self._secret:
            logger.warning("Relay shared secret not configured; all auth attempts will fail")
        logger.info(f"Relay started (heartbeat every {self.heartbeat_interval:g}s)")

    async def stop(self) -> None:
        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
            try:
                await self._heartbeat_task
            except asyncio.CancelledError:
                pass
            self._heartbeat_task = None
        await self.registry.clear()
        logger.info("Relay stopped")

    async def _heartbeat_loop(self) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            await self.send_all(_envelope("ping", {"timestamp": _now_ms()}))

    # -- connections -------------------------------------------------------

    async def connect(self, client: RelayClient) -> None:
        await self.registry.add(client)
        logger.info(f"Relay client connected. Total connections: {len(self.registry)}")
        await client.send_text(
            _envelope("connected", {"timestamp": _now_ms(), "message": "Connected to relay"})
        )

    async def disconnect(self, client: RelayClient) -> None:
        await self.registry.remove(client)
        logger.info(f"Relay client disconnected. Total connections: {len(self.registry)}")

    # -- sending -----------------------------------------------------------

    async def _send(self, client: RelayClient, text: str) -> bool:
        try:
            await client.send_text(text)
            return True
        except Exception as e:
            logger.warning(f"Failed to send relay message: {e}")
            await self.registry.remove(client)
            return False

    async def broadcast(self, sender: RelayClient | None, text: str) -> int:
        """Send to every authenticated client except ``sender``; returns the count."""
        sent = 0
        for client, state in await self.registry.snapshot():
            if client is sender or not state.authenticated:
                continue
            if await self._send(client, text):
                sent += 1
        return sent

    async def send_all(self, text: str) -> int:
        """Send to every connected client, authenticated or not."""
        sent = 0
        for client, _ in await self.registry.snapshot():
            if await self._send(client, text):
                sent += 1
        return sent

    # -- kill switch -------------------------------------------------------

    async def trip_kill_switch(self, reason: str | None = None) -> None:
        """Halt trading and tell every client."""
        reason = reason or "kill switch"
        self.kill_switch.trip(reason)
        await self.send_all(_envelope("kill_switch", {"timestamp": _now_ms(), "reason": reason}))

    # -- inbound -----------------------------------------------------------

    async def handle_text(self, client: RelayClient, text: str) -> None:
        """Decode, validate and dispatch one inbound message."""
        try:
            data = orjson.loads(text)
        except orjson.JSONDecodeError:
            await client.send_text(_envelope("error", {"error": "Invalid JSON"}))
            return

        try:
            message = parse_relay_message(data)
        except ValidationError as e:
            msg_type = data.get("type") if isinstance(data, dict) else None
            logger.warning(f"Rejected relay message type={msg_type!r}: {e.error_count()} errors")
            await client.send_text(_envelope("error", {"error": "Invalid message format"}))
            return

        await self.dispatch(client, message)

    async def dispatch(self, client: RelayClient, message) -> None:
        state = self.registry.get(client) or await self.registry.add(client)

        if isinstance(message, AuthMessage):
            await self._handle_auth(client, state, message)
        elif isinstance(message, PingMessage):
            await client.send_text(_envelope("pong", {"timestamp": _now_ms()}))
        elif isinstance(message, SubscribeMessage):
            state.symbols = message.payload.symbols
            state.timeframes = message.payload.timeframes
            await client.send_text(
                _envelope("subscribed", message.payload.to_wire())
            )
        elif not state.authenticated:
            await client.send_text(_envelope("error", {"error": "Not authenticated"}))
        elif isinstance(message, OrderRequestMessage):
            payload = message.payload.model_copy(update={"correlation_id": str(uuid.uuid4())})
            body = payload.to_wire()
            body["timestamp"] = _now_ms()
            logger.info(
                f"Order request {payload.correlation_id}: "
                f"{payload.side.value} {payload.volume} {payload.symbol}"
            )
            await self.broadcast(client, _envelope("order_request", body))
        elif isinstance(message, (StartTradingMessage, StopTradingMessage)):
            action = "start" if isinstance(message, StartTradingMessage) else "stop"
            await self.broadcast(client, _envelope("command", {"action": action, "timestamp": _now_ms()}))
        elif isinstance(message, KillSwitchMessage):
            await self.trip_kill_switch(message.payload.reason)
        elif message.type in _FORWARDED:
            await self.broadcast(client, _envelope(message.type, _payload_wire(message.payload)))
        else:
            # Exhaustive over RelayMessage; reaching here means a new type was added
            raise ValueError(f"Unhandled relay message type: {message.type}")

    async def _handle_auth(self, client: RelayClient, state: ClientState, message: AuthMessage) -> None:
        api_key = message.payload.api_key
        if not self._secret:
            logger.error("Relay auth attempted but no shared secret is configured")
            await client.send_text(
                _envelope("auth_failed", {"error": "Server not configured for authentication"})
            )
            return
        if len(api_key) < MIN_SECRET_LENGTH:
            await client.send_text(_envelope("auth_failed", {"error": "Invalid API key format"}))
            return
        if not hmac.compare_digest(api_key.encode(), self._secret.encode()):
            logger.warning("Relay auth failed: invalid key")
            await client.send_text(_envelope("auth_failed", {"error": "Invalid API key"}))
            return

        state.authenticated = True
        state.account_id = message.payload.account_id
        logger.info(f"Relay client authenticated (account={state.account_id})")
        await client.send_text(_envelope("auth_success", {"timestamp": _now_ms()}))
