"""Notification relay: turns MJ task callbacks into chat messages.

Sends are awaited in order. The status text is the primary message: if it
cannot be delivered the relay reports an internal error. The result image
that follows it is best-effort: fetch or send failures are logged only.
"""

import enum
import logging

from mjbot.command import (
    MSG_DESCRIBE_DONE,
    MSG_DESCRIBE_PROMPT_EN,
    MSG_DRAW_DONE,
    MSG_TASK_FAILED,
    MSG_TASK_SUBMITTED,
    MSG_UPSCALE_DONE,
    format_duration,
    mention,
)
from mjbot.converter import image_segments, text_segments
from mjbot.correlation import CorrelationKey
from mjbot.image_utils import ImageFetcher
from mjbot.models import Destination, NotificationEvent
from mjbot.resolver import DestinationResolver
from mjbot.router import SendFn

logger = logging.getLogger("mjbot.relay")


class RelayOutcome(enum.Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    INTERNAL_ERROR = "internal_error"


class NotificationRelay:
    """Resolves the chat behind a callback's state and reports task progress."""

    def __init__(
        self,
        resolver: DestinationResolver,
        send_fn: SendFn,
        image_fetcher: ImageFetcher,
    ) -> None:
        self._resolver = resolver
        self._send_fn = send_fn
        self._image_fetcher = image_fetcher

    async def relay(self, event: NotificationEvent) -> RelayOutcome:
        try:
            key = CorrelationKey.decode(event.state)
            destination = await self._resolver.resolve(key)
            if destination is None:
                logger.warning("Destination not found for state %r", event.state)
                return RelayOutcome.NOT_FOUND

            title = mention(key.sender, key.is_group)
            await self._dispatch(event, destination, title)
            return RelayOutcome.OK
        except Exception as e:
            logger.error("Relay notification error (state=%r): %s", event.state, e, exc_info=True)
            return RelayOutcome.INTERNAL_ERROR

    async def _dispatch(
        self, event: NotificationEvent, destination: Destination, title: str
    ) -> None:
        description = event.description or ""
        logger.info(
            "Task %s %s/%s for %s", event.id, event.action, event.status, destination.chat_id
        )

        if event.status == "SUBMITTED":
            text = MSG_TASK_SUBMITTED.format(description=description)
            await self._send_text(destination, title + text)
        elif event.status == "FAILURE":
            text = MSG_TASK_FAILED.format(
                description=description, fail_reason=event.fail_reason or ""
            )
            await self._send_text(destination, title + text)
        elif event.status == "SUCCESS":
            duration = format_duration(event.elapsed_ms)
            if event.action == "UPSCALE":
                text = MSG_UPSCALE_DONE.format(duration=duration, description=description)
                await self._send_text(destination, title + text)
                await self._send_image(destination, event.image_url)
            elif event.action == "DESCRIBE":
                text = MSG_DESCRIBE_DONE.format(
                    duration=duration,
                    prompt=event.prompt or "",
                    image_url=event.image_url or "",
                )
                if event.prompt_en:
                    text += MSG_DESCRIBE_PROMPT_EN.format(prompt_en=event.prompt_en)
                await self._send_text(destination, title + text)
            else:
                # IMAGINE, VARIATION, REROLL ...
                text = MSG_DRAW_DONE.format(
                    verb="绘图" if event.action == "IMAGINE" else "变换",
                    duration=duration,
                    prompt=event.prompt or "",
                    task_id=event.id or "",
                )
                await self._send_text(destination, title + text)
                await self._send_image(destination, event.image_url)
        else:
            logger.debug("No message for status %s", event.status)

    async def _send_text(self, destination: Destination, text: str) -> None:
        await self._send_fn(destination, text_segments(text))

    async def _send_image(self, destination: Destination, url: str | None) -> None:
        """Deliver the result image; failures never fail the relay."""
        if not url:
            logger.warning("Success notification without image url for %s", destination.chat_id)
            return
        try:
            file = await self._image_fetcher.fetch(url)
            await self._send_fn(destination, image_segments(file))
        except Exception as e:
            logger.warning("Image delivery failed for %s: %s (%s)", destination.chat_id, url, e)
