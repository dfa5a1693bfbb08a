"""WebSocket endpoint for the live relay."""

import logging

from fastapi import WebSocket, WebSocketDisconnect

from app.services.relay import RelayService

logger = logging.getLogger(__name__)


async def websocket_endpoint(websocket: WebSocket):
    """
    Relay endpoint for terminals (EAs) and dashboards.

    Message format, both directions:
    {
        "type": "tick",
        "payload": {...}
    }

    Clients authenticate with {"type": "auth", "payload": {"apiKey": "..."}}
    before anything other than ping/subscribe is accepted.
    """
    relay: RelayService = websocket.app.state.relay
    await websocket.accept()
    await relay.connect(websocket)

    try:
        while True:
            data = await websocket.receive_text()
            await relay.handle_text(websocket, data)
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"WebSocket error: {e}", exc_info=True)
    finally:
        await relay.disconnect(websocket)
