"""Mock NapCatQQ client for server tests.

Connects to the bot's reverse WebSocket server, emits OneBot 11 events and
answers API calls. Directory lookups (login info, friend and group lists)
are answered automatically; send_* calls are queued for the test to inspect.
"""

import asyncio
import contextlib
import json
import time

import websockets


class MockNapCat:
    BOT_ID = 1234567890
    BOT_NAME = "画图机器人"

    FRIENDS = [{"user_id": 111, "nickname": "Alice", "remark": ""}]
    GROUPS = [{"group_id": 222, "group_name": "TestGroup"}]

    def __init__(self, url: str, access_token: str = "") -> None:
        self.url = url
        self.access_token = access_token
        self._ws: websockets.ClientConnection | None = None
        self._recv_task: asyncio.Task[None] | None = None
        # send_private_msg / send_group_msg calls, in arrival order
        self._api_calls: asyncio.Queue[dict] = asyncio.Queue()
        # Every action the server called, including auto-answered ones
        self.actions: list[str] = []
        self._msg_id = 1000

    async def connect(self, send_lifecycle: bool = True) -> None:
        headers = {}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        self._ws = await websockets.connect(self.url, additional_headers=headers)
        self._recv_task = asyncio.create_task(self._recv_loop())
        if send_lifecycle:
            await self._send(
                {
                    "time": int(time.time()),
                    "self_id": self.BOT_ID,
                    "post_type": "meta_event",
                    "meta_event_type": "lifecycle",
                    "sub_type": "connect",
                }
            )

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
        if self._recv_task is not None:
            self._recv_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._recv_task

    @property
    def closed(self) -> bool:
        return self._recv_task is None or self._recv_task.done()

    async def _send(self, data: dict) -> None:
        assert self._ws is not None
        await self._ws.send(json.dumps(data))

    def _next_msg_id(self) -> int:
        self._msg_id += 1
        return self._msg_id

    def _answer(self, action: str) -> object:
        if action == "get_login_info":
            return {"user_id": self.BOT_ID, "nickname": self.BOT_NAME}
        if action == "get_friend_list":
            return self.FRIENDS
        if action == "get_group_list":
            return self.GROUPS
        return {"message_id": self._next_msg_id()}

    async def _recv_loop(self) -> None:
        assert self._ws is not None
        with contextlib.suppress(websockets.ConnectionClosed):
            async for raw in self._ws:
                data = json.loads(raw)
                if "action" not in data:
                    continue
                action = data["action"]
                self.actions.append(action)
                if action.startswith("send_"):
                    self._api_calls.put_nowait(data)
                await self._send(
                    {
                        "status": "ok",
                        "retcode": 0,
                        "data": self._answer(action),
                        "echo": data.get("echo"),
                    }
                )

    async def recv_api_call(self, timeout: float = 3.0) -> dict | None:
        """Wait for the next send_* call, or None on timeout."""
        try:
            return await asyncio.wait_for(self._api_calls.get(), timeout)
        except TimeoutError:
            return None

    # --- Event senders ---

    def _message_event(self, user_id: int, name: str, segments: list[dict]) -> dict:
        return {
            "self_id": self.BOT_ID,
            "user_id": user_id,
            "time": int(time.time()),
            "message_id": self._next_msg_id(),
            "message_type": "private",
            "sub_type": "friend",
            "sender": {"user_id": user_id, "nickname": name, "card": ""},
            "message": segments,
            "message_format": "array",
            "post_type": "message",
        }

    async def send_private_message(self, user_id: int, name: str, text: str) -> None:
        await self._send(
            self._message_event(user_id, name, [{"type": "text", "data": {"text": text}}])
        )

    async def send_private_image(self, user_id: int, name: str, url: str) -> None:
        await self._send(
            self._message_event(user_id, name, [{"type": "image", "data": {"url": url}}])
        )

    async def send_group_message(
        self,
        group_id: int,
        group_name: str,
        user_id: int,
        name: str,
        text: str,
        at_bot: bool = False,
    ) -> None:
        segments: list[dict] = []
        if at_bot:
            segments.append({"type": "at", "data": {"qq": str(self.BOT_ID)}})
        segments.append({"type": "text", "data": {"text": text}})
        event = self._message_event(user_id, name, segments)
        event.update(
            message_type="group", sub_type="normal", group_id=group_id, group_name=group_name
        )
        await self._send(event)

    async def send_heartbeat(self) -> None:
        await self._send(
            {
                "time": int(time.time()),
                "self_id": self.BOT_ID,
                "post_type": "meta_event",
                "meta_event_type": "heartbeat",
                "status": {"online": True, "good": True},
                "interval": 30000,
            }
        )
