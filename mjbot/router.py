"""Command router: turns inbound chat messages into MJ task submissions.

Routing order (each step may end the pass):
1. Drop replays and the bot's own messages
2. Drop non-actionable messages (system notices, unsupported kinds)
3. /help
4. Drop anything that is not /imagine, /up or a private image
5. Unwrap an HTML link into its bare URL
6. Sensitive word check
7. Build the correlation key and the task request
8. Submit, reporting refusals back to the chat
"""

import logging
import re
from collections.abc import Awaitable, Callable

from mjbot.command import (
    CHANGE_PREFIX,
    HELP_COMMAND,
    HELP_TEXT,
    IMAGINE_PREFIX,
    MSG_QUEUE_FULL,
    MSG_SENSITIVE,
    MSG_SUBMIT_FAILED,
    mention,
)
from mjbot.converter import text_segments
from mjbot.correlation import CorrelationKey
from mjbot.image_utils import download_data_url
from mjbot.models import (
    QUEUE_FULL_CODE,
    ChangeRequest,
    DescribeRequest,
    Destination,
    ImagineRequest,
    InboundMessage,
    MessageKind,
    TaskRequest,
    TaskResult,
)
from mjbot.sensitive import SensitiveFilter
from mjbot.session import BotSession

logger = logging.getLogger("mjbot.router")

# Signature: async send_fn(destination: Destination, segments: list[dict]) -> None
SendFn = Callable[[Destination, list[dict]], Awaitable[None]]
# Signature: async submit_fn(request: TaskRequest) -> TaskResult
SubmitFn = Callable[[TaskRequest], Awaitable[TaskResult]]

# Official accounts whose messages are never commands
SYSTEM_ACCOUNTS = frozenset({"微信团队", "QQ安全中心"})

# Client-generated notices that arrive as text
_SYSTEM_NOTICES = (
    "收到一条视频/语音聊天消息，请在手机上查看",
    "收到红包，请在手机上查看",
    "收到转账，请在手机上查看",
    "/cgi-bin/mmwebwx-bin/webwxgetpubliclinkimg",
)

# Last character excludes ? ! : , ; . so trailing punctuation is not captured
URL_PATTERN = re.compile(
    r"(?:https?|ftp|file)://[-A-Za-z0-9+&@#/%?=~_|!:,.;]+[-A-Za-z0-9+&@#/%=~_|]"
)

_MSG_IMAGE_DOWNLOAD_FAILED = "❌ 图片获取失败, 请重新发送"


def origin_of(message: InboundMessage) -> Destination:
    """The chat a message came from, used for immediate replies."""
    if message.is_group:
        return Destination(kind="group", target_id=message.group_id, name=message.group_name)
    return Destination(kind="private", target_id=message.sender_id, name=message.sender_name)


def is_nonsense(message: InboundMessage) -> bool:
    """Whether a message can never be a command.

    Only text is actionable, plus images sent in private chat (/describe).
    """
    if message.kind is not MessageKind.TEXT and (
        message.kind is not MessageKind.IMAGE or message.is_group
    ):
        return True
    if message.sender_name in SYSTEM_ACCOUNTS:
        return True
    return any(notice in message.text for notice in _SYSTEM_NOTICES)


def extract_url(text: str) -> str:
    """First URL in the text, or "" if there is none."""
    match = URL_PATTERN.search(text)
    return match.group(0) if match else ""


def unwrap_link(text: str) -> str:
    """Replace an HTML anchor (<a ...>...</a>) with the first URL in the text.

    Text without a complete anchor is returned unchanged.
    """
    url = extract_url(text)
    if not url:
        return text
    start = text.find("<a")
    end = text.find("</a>")
    if start < 0 or end < start:
        return text
    return text.replace(text[start : end + len("</a>")], url, 1)


class CommandRouter:
    """
    Routes one inbound message at a time: filter → parse → submit → reply.

    Decoupled from the transport: replies go through send_fn, tasks through
    submit_fn.
    """

    def __init__(
        self,
        submit_fn: SubmitFn,
        sensitive: SensitiveFilter,
        send_fn: SendFn,
        session: BotSession,
        image_download_timeout: float = 15.0,
    ) -> None:
        # Submits a task to the MJ proxy (TaskClient.submit)
        self._submit_fn = submit_fn
        # Read-only word table
        self._sensitive = sensitive
        # Callback to send a message to a chat
        self._send_fn = send_fn
        # Login identity and start time
        self._session = session
        # Timeout for downloading a private image before /describe
        self._image_download_timeout = image_download_timeout

    async def route(self, message: InboundMessage) -> TaskRequest | None:
        """
        Process one message through the full pipeline.

        Returns the submitted task request, or None when nothing was submitted.
        """
        if self._session.is_replay(message.timestamp):
            logger.debug("Ignored replayed message from %s", message.sender_name)
            return None

        # Never react to our own messages
        if message.is_self:
            return None

        if is_nonsense(message):
            return None

        origin = origin_of(message)
        text = message.text
        is_image = message.kind is MessageKind.IMAGE

        if text == HELP_COMMAND:
            await self._send_fn(origin, text_segments(HELP_TEXT))
            return None

        if not is_image and not text.startswith((IMAGINE_PREFIX, CHANGE_PREFIX)):
            return None

        # Image-to-image prompts may arrive as rich-text links
        text = unwrap_link(text)

        title = mention(message.sender_name, message.is_group)
        if self._sensitive.has_sensitive_word(text):
            logger.info("Sensitive content from %s: %s", message.sender_name, text[:100])
            await self._send_fn(origin, text_segments(title + MSG_SENSITIVE))
            return None

        if message.is_group:
            logger.info("[%s] [%s]: %s", message.group_name, message.sender_name, text)
        else:
            logger.info("[%s]: %s", message.sender_name, text)

        try:
            state = CorrelationKey(
                group=message.group_name or "", sender=message.sender_name
            ).encode()
        except ValueError as e:
            logger.warning("Cannot build correlation key, message dropped: %s", e)
            return None

        if is_image:
            # Private image (group images were filtered above)
            data_url = await download_data_url(message.image_url, self._image_download_timeout)
            if data_url is None:
                await self._send_fn(origin, text_segments(_MSG_IMAGE_DOWNLOAD_FAILED))
                return None
            request: TaskRequest = DescribeRequest(state=state, base64=data_url)
        elif text.startswith(IMAGINE_PREFIX):
            request = ImagineRequest(state=state, prompt=text[len(IMAGINE_PREFIX) :])
        else:
            # The proxy validates "<task id> <action>" itself
            request = ChangeRequest(state=state, content=text[len(CHANGE_PREFIX) :])

        result = await self._submit_fn(request)
        if result.accepted:
            logger.info("Task accepted for %s: %s", state, result.result or "-")
            return request

        template = MSG_QUEUE_FULL if result.code == QUEUE_FULL_CODE else MSG_SUBMIT_FAILED
        reply = title + template.format(description=result.description)
        await self._send_fn(origin, text_segments(reply))
        if message.is_group:
            logger.info("[%s] [%s]: %s", message.group_name, self._session.bot_name, reply)
        else:
            logger.info("[%s]: %s", self._session.bot_name, reply)
        return request
