"""Destination resolver: correlation key → QQ friend or group."""

import logging
from collections.abc import Awaitable, Callable

from mjbot.correlation import CorrelationKey
from mjbot.models import Destination

logger = logging.getLogger("mjbot.resolver")

# Signature: async call_api(action: str, params: dict | None) -> dict | None
# Returns the raw OneBot response ({"status": "ok", "data": ...}) or None.
ApiCallFn = Callable[[str, dict | None], Awaitable[dict | None]]


class DestinationResolver:
    """Looks up a chat destination by name through the OneBot API.

    Private keys match a friend's nickname, group keys match a group name
    (or the numeric group id, which stands in for a missing name). Exactly one lookup per call; the first match wins.
    """

    def __init__(self, call_api: ApiCallFn) -> None:
        self._call_api = call_api

    async def resolve(self, key: CorrelationKey) -> Destination | None:
        if key.is_group:
            return await self._find_group(key.group)
        return await self._find_friend(key.sender)

    async def _list(self, action: str) -> list[dict]:
        resp = await self._call_api(action, None)
        if not resp or resp.get("status") != "ok":
            logger.warning("OneBot %s failed: %s", action, resp)
            return []
        return resp.get("data") or []

    async def _find_friend(self, name: str) -> Destination | None:
        if not name:
            logger.info("Empty private key, nothing to resolve")
            return None
        for friend in await self._list("get_friend_list"):
            if friend.get("nickname") == name:
                return Destination(kind="private", target_id=int(friend["user_id"]), name=name)
        logger.info("Friend not found: %s", name)
        return None

    async def _find_group(self, topic: str) -> Destination | None:
        for group in await self._list("get_group_list"):
            if topic in (group.get("group_name"), str(group.get("group_id"))):
                return Destination(kind="group", target_id=int(group["group_id"]), name=topic)
        logger.info("Group not found: %s", topic)
        return None
