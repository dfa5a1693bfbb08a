"""Tests for the live relay."""

import asyncio

import orjson
import pytest

from app.models.relay import TickMessage, parse_relay_message
from app.services.relay import RelayService
from core.control import KillSwitch

SECRET = "relay-secret-123"


class FakeClient:
    """Relay client that records decoded outgoing messages."""

    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise RuntimeError("connection closed")
        self.sent.append(orjson.loads(data))

    @property
    def types(self) -> list[str]:
        return [m["type"] for m in self.sent]

    @property
    def last(self) -> dict:
        return self.sent[-1]


def msg(msg_type: str, payload: dict | None = None) -> str:
    body = {"type": msg_type}
    if payload is not None:
        body["payload"] = payload
    return orjson.dumps(body).decode()


async def connected(relay: RelayService, authenticate: bool = True) -> FakeClient:
    client = FakeClient()
    await relay.connect(client)
    if authenticate:
        await relay.handle_text(client, msg("auth", {"apiKey": SECRET, "accountId": "acc-1"}))
    client.sent.clear()
    return client


@pytest.fixture
def relay():
    return RelayService(SECRET, KillSwitch("relay-test"))


class TestMessageParsing:
    def test_discriminated_by_type(self):
        message = parse_relay_message(
            {"type": "tick", "payload": {"symbol": "EURUSD", "bid": 1.1, "ask": 1.1002}}
        )
        assert isinstance(message, TickMessage)
        assert message.payload.ask == 1.1002

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            parse_relay_message({"type": "teleport", "payload": {}})


class TestConnection:
    @pytest.mark.asyncio
    async def test_connect_greets_client(self, relay):
        client = FakeClient()
        await relay.connect(client)

        assert client.types == ["connected"]
        assert len(relay.registry) == 1

    @pytest.mark.asyncio
    async def test_disconnect(self, relay):
        client = await connected(relay)
        await relay.disconnect(client)

        assert len(relay.registry) == 0


class TestAuth:
    @pytest.mark.asyncio
    async def test_success(self, relay):
        client = await connected(relay, authenticate=False)
        await relay.handle_text(client, msg("auth", {"apiKey": SECRET, "accountId": "acc-9"}))

        assert client.types == ["auth_success"]
        state = relay.registry.get(client)
        assert state.authenticated
        assert state.account_id == "acc-9"
        assert relay.registry.authenticated_count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "api_key,error",
        [
            ("short", "Invalid API key format"),
            ("wrong-secret-456", "Invalid API key"),
        ],
    )
    async def test_failures(self, relay, api_key, error):
        client = await connected(relay, authenticate=False)
        await relay.handle_text(client, msg("auth", {"apiKey": api_key}))

        assert client.last == {"type": "auth_failed", "payload": {"error": error}}
        assert not relay.registry.get(client).authenticated

    @pytest.mark.asyncio
    async def test_no_secret_configured(self):
        relay = RelayService("", KillSwitch())
        client = await connected(relay, authenticate=False)
        await relay.handle_text(client, msg("auth", {"apiKey": SECRET}))

        assert client.last["payload"]["error"] == "Server not configured for authentication"


class TestInbound:
    @pytest.mark.asyncio
    async def test_invalid_json(self, relay):
        client = await connected(relay)
        await relay.handle_text(client, "{not json")
        assert client.last == {"type": "error", "payload": {"error": "Invalid JSON"}}

    @pytest.mark.asyncio
    async def test_invalid_message(self, relay):
        client = await connected(relay)
        await relay.handle_text(client, msg("tick", {"symbol": "EURUSD"}))
        await relay.handle_text(client, msg("teleport", {}))

        assert [m["payload"]["error"] for m in client.sent] == ["Invalid message format"] * 2

    @pytest.mark.asyncio
    async def test_ping_and_subscribe_need_no_auth(self, relay):
        client = await connected(relay, authenticate=False)
        await relay.handle_text(client, msg("ping"))
        await relay.handle_text(client, msg("subscribe", {"symbols": ["EURUSD"], "timeframes": ["H1"]}))

        assert client.types == ["pong", "subscribed"]
        assert "timestamp" in client.sent[0]["payload"]
        assert client.last["payload"] == {"symbols": ["EURUSD"], "timeframes": ["H1"]}
        assert relay.registry.get(client).symbols == ["EURUSD"]

    @pytest.mark.asyncio
    async def test_unauthenticated_messages_rejected(self, relay):
        sender = await connected(relay, authenticate=False)
        other = await connected(relay)

        await relay.handle_text(sender, msg("tick", {"symbol": "EURUSD", "bid": 1.1, "ask": 1.1002}))

        assert sender.last == {"type": "error", "payload": {"error": "Not authenticated"}}
        assert other.sent == []


class TestForwarding:
    @pytest.mark.asyncio
    async def test_tick_goes_to_other_authenticated_clients(self, relay):
        terminal = await connected(relay)
        dashboard = await connected(relay)
        anonymous = await connected(relay, authenticate=False)

        await relay.handle_text(
            terminal, msg("tick", {"symbol": "EURUSD", "bid": 1.1, "ask": 1.1002})
        )

        assert terminal.sent == []
        assert anonymous.sent == []
        assert dashboard.sent == [
            {"type": "tick", "payload": {"symbol": "EURUSD", "bid": 1.1, "ask": 1.1002}}
        ]

    @pytest.mark.asyncio
    async def test_order_request_gets_correlation_id(self, relay):
        dashboard = await connected(relay)
        terminal = await connected(relay)

        await relay.handle_text(
            dashboard,
            msg("order_request", {"symbol": "EURUSD", "side": "buy", "volume": 0.1, "correlationId": "mine"}),
        )

        forwarded = terminal.last
        assert forwarded["type"] == "order_request"
        assert forwarded["payload"]["correlationId"] != "mine"
        assert len(forwarded["payload"]["correlationId"]) == 36
        assert "timestamp" in forwarded["payload"]
        assert forwarded["payload"]["side"] == "buy"

    @pytest.mark.asyncio
    async def test_trading_commands(self, relay):
        dashboard = await connected(relay)
        terminal = await connected(relay)

        await relay.handle_text(dashboard, msg("start_trading"))
        await relay.handle_text(dashboard, msg("stop_trading"))

        assert [m["payload"]["action"] for m in terminal.sent] == ["start", "stop"]
        assert terminal.types == ["command", "command"]

    @pytest.mark.asyncio
    async def test_failed_client_is_dropped(self, relay):
        sender = await connected(relay)
        broken = FakeClient()
        await relay.connect(broken)
        relay.registry.get(broken).authenticated = True
        broken.fail = True

        await relay.handle_text(sender, msg("order_result", {"success": True, "orderId": "42"}))

        assert relay.registry.get(broken) is None
        assert len(relay.registry) == 1


class TestKillSwitch:
    @pytest.mark.asyncio
    async def test_kill_switch_reaches_everyone(self, relay):
        sender = await connected(relay)
        anonymous = await connected(relay, authenticate=False)

        await relay.handle_text(sender, msg("kill_switch", {"reason": "news spike"}))

        assert relay.kill_switch.is_tripped
        assert relay.kill_switch.reason == "news spike"
        for client in (sender, anonymous):
            assert client.last["type"] == "kill_switch"
            assert client.last["payload"]["reason"] == "news spike"

    @pytest.mark.asyncio
    async def test_kill_switch_requires_auth(self, relay):
        client = await connected(relay, authenticate=False)
        await relay.handle_text(client, msg("kill_switch", {"reason": "prank"}))

        assert not relay.kill_switch.is_tripped
        assert client.last["payload"]["error"] == "Not authenticated"


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_heartbeat_and_stop(self):
        relay = RelayService(SECRET, KillSwitch(), heartbeat_interval=0.01)
        client = await connected(relay, authenticate=False)

        await relay.start()
        await asyncio.sleep(0.05)
        await relay.stop()

        assert "ping" in client.types
        assert len(relay.registry) == 0
