import asyncio
import inspect
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import websockets

from roomwhisper.modules.config import Config
from roomwhisper.modules.logging import log_error, log_info, log_warning, logger
from roomwhisper.modules.websocket_manager import WebSocketManager
from roomwhisper.utils.utils import base64_decode_audio, base64_encode_audio, log_runtime


@dataclass
class RealtimeResponse:
    id: str
    status: str
    status_details: Optional[Dict[str, Any]] = None
    output: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_event(cls, event: Dict[str, Any]) -> "RealtimeResponse":
        response = event.get("response", {})
        return cls(
            id=response.get("id", ""),
            status=response.get("status", ""),
            status_details=response.get("status_details"),
            output=response.get("output") or [],
        )


class RealtimeSession:
    """A live conversation with the realtime model.

    Mutation calls (session_update, create_conversation_item,
    create_response, append_audio) are synchronous: they enqueue the
    client event and a single sender task writes them to the websocket
    in call order. Server events are dispatched one at a time to the
    handlers registered with on(); async handlers are awaited before the
    next event is read. A failing handler is logged and does not stop
    dispatch.

    Once either pump stops the session is closed and further mutation
    calls are dropped.

    Events emitted: "response_done" (RealtimeResponse), "audio_delta"
    (bytes), "speech_started" (no args), "error" (error dict).
    """

    def __init__(self, openai_api_key: str, realtime_api_url: str = Config.REALTIME_API_URL, ws_manager=None):
        self.ws_manager = ws_manager or WebSocketManager(openai_api_key, realtime_api_url)
        self._outgoing: asyncio.Queue = asyncio.Queue()
        self._handlers: Dict[str, List[Callable]] = defaultdict(list)
        self._tasks: List[asyncio.Task] = []
        self.closed = False
        self.response_start_time: Optional[float] = None

    def on(self, event: str, handler: Optional[Callable] = None):
        """Register a handler for a session event. Usable as a decorator."""
        if handler is None:

            def decorator(func):
                self._handlers[event].append(func)
                return func

            return decorator
        self._handlers[event].append(handler)
        return handler

    async def start(self, session_payload: Dict[str, Any]):
        """Connect, send the initial configuration and start pumping events."""
        await self.ws_manager.connect()
        self.session_update(session_payload)
        self._tasks = [
            asyncio.create_task(self._send_loop(), name="realtime-send"),
            asyncio.create_task(self._receive_loop(), name="realtime-receive"),
        ]
        for task in self._tasks:
            task.add_done_callback(self._on_task_done)

    def session_update(self, session: Dict[str, Any]):
        self._enqueue({"type": "session.update", "session": session})

    def create_conversation_item(self, text: str, role: str = "user"):
        self._enqueue(
            {
                "type": "conversation.item.create",
                "item": {
                    "type": "message",
                    "role": role,
                    "content": [{"type": "input_text", "text": text}],
                },
            }
        )

    def create_response(self):
        self._enqueue({"type": "response.create"})

    def append_audio(self, audio_bytes: bytes):
        if audio_bytes:
            self._enqueue({"type": "input_audio_buffer.append", "audio": base64_encode_audio(audio_bytes)})

    def _enqueue(self, message: Dict[str, Any]):
        if self.closed:
            logger.debug(f"Session closed, dropping {message['type']}")
            return
        self._outgoing.put_nowait(message)

    async def _send_loop(self):
        while True:
            message = await self._outgoing.get()
            if message["type"] == "response.create":
                self.response_start_time = time.perf_counter()
            await self.ws_manager.send_event(message)
            self._outgoing.task_done()

    async def _receive_loop(self):
        while True:
            try:
                event = await self.ws_manager.receive_event()
            except websockets.ConnectionClosed:
                log_warning("⚠️ Realtime connection lost.")
                break
            await self.handle_event(event)

    async def handle_event(self, event: Dict[str, Any]):
        event_type = event.get("type")
        handlers = {
            "response.done": lambda: self.handle_response_done(event),
            "response.audio.delta": lambda: self.emit("audio_delta", base64_decode_audio(event["delta"])),
            "input_audio_buffer.speech_started": self.handle_speech_started,
            "error": lambda: self.handle_error(event),
        }

        handler = handlers.get(event_type)
        if handler:
            await handler()

    async def emit(self, event: str, *args):
        for handler in list(self._handlers[event]):
            try:
                result = handler(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.exception(f"Error in '{event}' handler {getattr(handler, '__qualname__', handler)}: {e}")

    async def handle_response_done(self, event):
        if self.response_start_time is not None:
            response_duration = time.perf_counter() - self.response_start_time
            log_runtime("realtime_api_response", response_duration)
            self.response_start_time = None

        response = RealtimeResponse.from_event(event)
        log_info(f"Assistant response {response.id} finished with status '{response.status}'.")
        await self.emit("response_done", response)

    async def handle_speech_started(self):
        logger.info("Speech detected, listening...")
        await self.emit("speech_started")

    async def handle_error(self, event):
        error = event.get("error", {})
        log_error(f"Error: {error.get('message', '')}")
        await self.emit("error", error)

    def _on_task_done(self, task: asyncio.Task):
        self._mark_closed()
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error(f"Realtime task {task.get_name()} stopped")

    def _mark_closed(self):
        if self.closed:
            return
        self.closed = True
        dropped = 0
        while not self._outgoing.empty():
            self._outgoing.get_nowait()
            self._outgoing.task_done()
            dropped += 1
        if dropped:
            log_warning(f"Dropped {dropped} queued realtime events after the session stopped")

    async def aclose(self):
        """Stop the event pumps and close the websocket."""
        self._mark_closed()
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        try:
            for task in tasks:
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        finally:
            await self.ws_manager.close()
