import json
import websockets
from roomwhisper.modules.logging import log_info, log_ws_event

# High-rate audio events are not logged one by one
QUIET_EVENTS = {"input_audio_buffer.append", "response.audio.delta"}


class WebSocketManager:
    """Owns the websocket to the realtime API and the JSON framing of events."""

    def __init__(self, openai_api_key, realtime_api_url):
        self.openai_api_key = openai_api_key
        self.realtime_api_url = realtime_api_url
        self.websocket = None

    @property
    def connected(self):
        return self.websocket is not None

    async def connect(self):
        """Open the websocket with the realtime auth headers"""
        headers = {
            "Authorization": f"Bearer {self.openai_api_key}",
            "OpenAI-Beta": "realtime=v1",
        }

        self.websocket = await websockets.connect(
            self.realtime_api_url,
            additional_headers=headers,
            close_timeout=120,
            ping_interval=30,
            ping_timeout=10,
        )
        log_info(f"✅ Connected to the realtime API at {self.realtime_api_url.split('?')[0]}.")
        return self.websocket

    async def send_event(self, event):
        """Serialize and send one client event"""
        if not self.websocket:
            raise ConnectionError("Realtime websocket not connected")
        if event.get("type") not in QUIET_EVENTS:
            log_ws_event("Outgoing", event)
        await self.websocket.send(json.dumps(event, allow_nan=False))

    async def receive_event(self):
        """Wait for the next server event"""
        if not self.websocket:
            raise ConnectionError("Realtime websocket not connected")
        event = json.loads(await self.websocket.recv())
        if event.get("type") not in QUIET_EVENTS:
            log_ws_event("Incoming", event)
        return event

    async def close(self):
        if self.websocket:
            websocket, self.websocket = self.websocket, None
            await websocket.close()
            log_info("Realtime websocket closed.")
