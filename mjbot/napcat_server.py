"""Reverse WebSocket server that NapCatQQ connects to (OneBot 11).

Receives events from NapCat, hands message events to the router one at a
time, and exposes OneBot API calls (send_api / send_message) to the rest of
the bot. API responses are matched to their calls by the "echo" field.
"""

import asyncio
import contextlib
import json
import logging
import uuid
from collections.abc import Awaitable, Callable

import websockets
from websockets.asyncio.server import ServerConnection

from mjbot.converter import onebot_to_internal
from mjbot.models import Destination, InboundMessage
from mjbot.session import BotSession

logger = logging.getLogger("mjbot.napcat_server")

# Signature: async handler(message: InboundMessage) -> object
MessageHandlerFn = Callable[[InboundMessage], Awaitable[object]]


class SendError(RuntimeError):
    """A chat message could not be delivered."""


class NapCatServer:
    """OneBot 11 reverse WebSocket endpoint for a single NapCat connection."""

    def __init__(
        self,
        host: str,
        port: int,
        session: BotSession,
        access_token: str = "",
        api_timeout: float = 30.0,
    ) -> None:
        self._host = host
        self._port = port
        # Login identity, updated on lifecycle connect
        self._session = session
        # Expected bearer token ("" = no authentication)
        self._access_token = access_token
        # Seconds to wait for an API response
        self._api_timeout = api_timeout
        # Current NapCat connection
        self._ws: ServerConnection | None = None
        # Outstanding API calls keyed by echo
        self._pending: dict[str, asyncio.Future[dict]] = {}
        # Router entry point, set after construction (router depends on send_message)
        self._message_handler: MessageHandlerFn | None = None
        self._login_task: asyncio.Task[None] | None = None

    @property
    def _bot_id(self) -> int | None:
        return self._session.bot_id

    @property
    def is_connected(self) -> bool:
        return self._ws is not None

    def set_message_handler(self, fn: MessageHandlerFn) -> None:
        """Set the callback that handles each inbound message."""
        self._message_handler = fn

    async def start(self) -> None:
        """Serve until cancelled."""
        async with websockets.serve(self._handler_ws, self._host, self._port):
            logger.info("NapCat WebSocket server listening on %s:%d", self._host, self._port)
            await asyncio.Future()

    # --- Connection handling ---

    def _authorized(self, ws: ServerConnection) -> bool:
        if not self._access_token:
            return True
        header = ws.request.headers.get("Authorization", "") if ws.request else ""
        return header == f"Bearer {self._access_token}"

    async def _handler_ws(self, ws: ServerConnection) -> None:
        if not self._authorized(ws):
            logger.warning("Rejected NapCat connection: bad access token")
            await ws.close(code=1008, reason="unauthorized")
            return

        if self._ws is not None:
            logger.warning("New NapCat connection replaces the previous one")
        self._ws = ws
        logger.info("NapCat connected from %s", ws.remote_address)

        # Message events are handled strictly one after another
        queue: asyncio.Queue[dict] = asyncio.Queue()
        worker = asyncio.create_task(self._message_worker(queue))
        try:
            async for raw in ws:
                try:
                    data = json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning("Ignored non-JSON frame: %s", str(raw)[:200])
                    continue
                self._on_frame(data, queue)
        except websockets.ConnectionClosed as e:
            logger.info("NapCat connection closed: code=%s", e.code)
        finally:
            worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await worker
            if self._ws is ws:
                self._ws = None
                for fut in self._pending.values():
                    if not fut.done():
                        fut.set_exception(ConnectionError("NapCat disconnected"))
            logger.info("NapCat disconnected")

    def _on_frame(self, data: dict, queue: "asyncio.Queue[dict]") -> None:
        # API response
        echo = data.get("echo")
        if echo is not None and "post_type" not in data:
            fut = self._pending.get(str(echo))
            if fut is not None and not fut.done():
                fut.set_result(data)
            else:
                logger.debug("Unmatched API response: echo=%s", echo)
            return

        post_type = data.get("post_type")
        if post_type == "meta_event":
            self._on_meta_event(data)
        elif post_type in ("message", "message_sent"):
            queue.put_nowait(data)
        else:
            logger.debug("Ignored %s event", post_type)

    def _on_meta_event(self, data: dict) -> None:
        if data.get("meta_event_type") != "lifecycle" or data.get("sub_type") != "connect":
            # heartbeat etc.
            return
        bot_id = int(data.get("self_id", 0))
        self._session.login(bot_id)
        logger.info("Bot %d logged in", bot_id)
        # Store task reference to prevent GC from cancelling it
        self._login_task = asyncio.create_task(self._fetch_login_info())

    async def _fetch_login_info(self) -> None:
        resp = await self.send_api("get_login_info")
        if resp and resp.get("status") == "ok":
            data = resp.get("data") or {}
            nickname = data.get("nickname")
            self._session.login(int(data.get("user_id", self._bot_id or 0)), nickname)
            logger.info("User %s login success", self._session.bot_name)

    async def _message_worker(self, queue: "asyncio.Queue[dict]") -> None:
        while True:
            event = await queue.get()
            await self._handle_event(event)

    async def _handle_event(self, event: dict) -> None:
        if self._message_handler is None:
            logger.warning("No message handler set, dropping message")
            return
        try:
            message = onebot_to_internal(event, self._bot_id)
            await self._message_handler(message)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Handle message error: %s", e, exc_info=True)

    # --- OneBot API ---

    async def send_api(self, action: str, params: dict | None = None) -> dict | None:
        """Call a OneBot API action and wait for its response.

        Returns the response dict, or None if not connected, timed out or
        disconnected before the response arrived.
        """
        ws = self._ws
        if ws is None:
            logger.warning("API call %s skipped: NapCat not connected", action)
            return None

        echo = uuid.uuid4().hex
        fut: asyncio.Future[dict] = asyncio.get_running_loop().create_future()
        self._pending[echo] = fut
        try:
            await ws.send(json.dumps({"action": action, "params": params or {}, "echo": echo}))
            return await asyncio.wait_for(fut, self._api_timeout)
        except (TimeoutError, ConnectionError, websockets.ConnectionClosed) as e:
            logger.warning("API call %s failed: %s", action, type(e).__name__)
            return None
        finally:
            self._pending.pop(echo, None)

    async def send_message(self, destination: Destination, segments: list[dict]) -> None:
        """Send a message to a friend or group.

        Raises SendError if NapCat does not confirm delivery.
        """
        if destination.kind == "group":
            action, params = "send_group_msg", {"group_id": destination.target_id}
        else:
            action, params = "send_private_msg", {"user_id": destination.target_id}
        params["message"] = segments

        resp = await self.send_api(action, params)
        if not resp or resp.get("status") != "ok":
            raise SendError(f"{action} to {destination.chat_id} failed: {resp}")
        logger.debug("Sent message to %s", destination.chat_id)
