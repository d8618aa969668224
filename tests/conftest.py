"""Shared pytest fixtures and test doubles for mjbot tests."""

from pathlib import Path

import pytest

from mjbot.models import (
    SUCCESS_CODE,
    Destination,
    InboundMessage,
    MessageKind,
    TaskRequest,
    TaskResult,
)
from mjbot.session import BotSession

# Session start used by tests; messages default to a later timestamp
START_TIME = 1_700_000_000.0


@pytest.fixture
def tmp_config(tmp_path: Path) -> Path:
    """Create a temporary config.toml for testing."""
    config = tmp_path / "config.toml"
    config.write_text(
        "[server]\n"
        'host = "127.0.0.1"\n'
        "port = 0\n"  # port 0 = auto-assign
        'access_token = "secret"\n\n'
        "[webhook]\n"
        "port = 8081\n\n"
        "[mj]\n"
        'endpoint = "http://mj.test/mj"\n'
        'notify_hook = "http://bot.test:8081/notify"\n\n'
        "[image]\n"
        'http_proxy = "http://127.0.0.1:7890"\n'
        'images_path = "' + str(tmp_path / "images").replace("\\", "/") + '"\n\n'
        "[logging]\n"
        'level = "DEBUG"\n'
        'dir = "' + str(tmp_path / "logs").replace("\\", "/") + '"\n'
        "keep_days = 7\n"
    )
    return config


@pytest.fixture
def session() -> BotSession:
    return BotSession(start_time=START_TIME)


class SendCollector:
    """Collects messages sent by the router/relay (mock for send_fn)."""

    def __init__(self) -> None:
        self.sent: list[tuple[Destination, list[dict]]] = []
        # Raise on the n-th call (1-based), 0 = never
        self.fail_on: int = 0

    async def __call__(self, destination: Destination, segments: list[dict]) -> None:
        self.sent.append((destination, segments))
        if self.fail_on and len(self.sent) == self.fail_on:
            raise RuntimeError("send failed")

    @property
    def texts(self) -> list[str]:
        """All text payloads in order."""
        return [
            seg["data"]["text"]
            for _, segments in self.sent
            for seg in segments
            if seg["type"] == "text"
        ]

    @property
    def images(self) -> list[str]:
        """All image `file` references in order."""
        return [
            seg["data"]["file"]
            for _, segments in self.sent
            for seg in segments
            if seg["type"] == "image"
        ]


class SubmitRecorder:
    """Records submitted task requests and returns a configurable result."""

    def __init__(self) -> None:
        self.requests: list[TaskRequest] = []
        self.result = TaskResult(code=SUCCESS_CODE, description="提交成功", result="1234")

    async def __call__(self, request: TaskRequest) -> TaskResult:
        self.requests.append(request)
        return self.result


def make_message(
    text: str = "",
    *,
    sender: str = "Alice",
    group: str | None = None,
    kind: MessageKind = MessageKind.TEXT,
    timestamp: float = START_TIME + 10,
    is_self: bool = False,
    image_url: str = "",
) -> InboundMessage:
    """Build an InboundMessage with sensible defaults."""
    return InboundMessage(
        sender_name=sender,
        sender_id=111,
        group_name=group,
        group_id=222 if group is not None else 0,
        kind=kind,
        text=text,
        timestamp=timestamp,
        is_self=is_self,
        image_url=image_url,
    )
