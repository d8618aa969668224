"""Chat session state shared read-only with the router and relay."""

import time

DEFAULT_BOT_NAME = "MJ-BOT"


class BotSession:
    """Login identity and start time of the running bot.

    start_time is captured once at construction; messages older than it are
    replays delivered after a reconnect and must be ignored.
    """

    def __init__(self, start_time: float | None = None) -> None:
        self._start_time = time.time() if start_time is None else start_time
        self._bot_name = DEFAULT_BOT_NAME
        self._bot_id: int | None = None

    @property
    def start_time(self) -> float:
        return self._start_time

    @property
    def bot_name(self) -> str:
        return self._bot_name

    @property
    def bot_id(self) -> int | None:
        return self._bot_id

    def login(self, bot_id: int, bot_name: str | None = None) -> None:
        """Record the authenticated identity (called by the chat transport)."""
        self._bot_id = bot_id
        if bot_name:
            self._bot_name = bot_name

    def is_replay(self, timestamp: float) -> bool:
        # OneBot timestamps have one-second resolution
        return timestamp < int(self._start_time)
