"""Message conversion between OneBot 11 format and internal representation."""

import logging

from mjbot.models import InboundMessage, MessageKind

logger = logging.getLogger("mjbot.converter")


def onebot_to_internal(event: dict, bot_id: int | None) -> InboundMessage:
    """
    Parse an OneBot 11 message event into an InboundMessage.

    Args:
        event: The raw OneBot message event dict
        bot_id: The bot's own QQ ID (from self_id), None before login
    """
    message_type: str = event.get("message_type", "")
    user_id: int = event.get("user_id", 0)
    self_id = event.get("self_id", bot_id)
    segments: list[dict] = event.get("message", [])
    sender: dict = event.get("sender", {})

    # Determine display name: prefer card (group nickname), fallback to nickname
    sender_name = sender.get("card") or sender.get("nickname", str(user_id))

    group_name: str | None = None
    group_id = 0
    if message_type == "group":
        group_id = event.get("group_id", 0)
        group_name = event.get("group_name") or str(group_id)

    text_parts: list[str] = []
    image_url = ""
    has_image = False
    has_other = False

    for seg in segments:
        seg_type = seg.get("type", "")
        seg_data = seg.get("data", {})

        if seg_type == "text":
            text_parts.append(seg_data.get("text", ""))

        elif seg_type == "at":
            # data.qq is a STRING in NapCatQQ, bot_id is int
            qq_str = str(seg_data.get("qq", ""))
            if bot_id is None or qq_str != str(bot_id):
                text_parts.append(f"@{qq_str}")

        elif seg_type == "image":
            has_image = True
            if not image_url:
                image_url = str(seg_data.get("url", "")).strip()

        elif seg_type != "reply":
            # face, record, video, file, json cards ...
            has_other = True

    text = "".join(text_parts).strip()

    if text:
        kind = MessageKind.TEXT
    elif has_image:
        kind = MessageKind.IMAGE
    else:
        kind = MessageKind.OTHER
        if not has_other:
            logger.debug("Empty message event: %s", event.get("message_id"))

    # NapCat reports messages sent from the bot's own account as "message_sent"
    is_self = event.get("post_type") == "message_sent" or (
        self_id is not None and user_id == self_id
    )

    return InboundMessage(
        sender_name=sender_name,
        sender_id=user_id,
        group_name=group_name,
        group_id=group_id,
        kind=kind,
        text=text,
        timestamp=float(event.get("time", 0)),
        is_self=is_self,
        image_url=image_url,
        raw_event=event,
    )


def text_segments(text: str) -> list[dict]:
    """Wrap plain text in a OneBot 11 message segment array."""
    return [{"type": "text", "data": {"text": text}}]


def image_segments(file: str) -> list[dict]:
    """Build an image message; `file` is a URL or a "base64://..." payload."""
    return [{"type": "image", "data": {"file": file}}]
