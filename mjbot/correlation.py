"""Correlation key ("state") linking a remote task back to its chat.

The key is round-tripped through the MJ proxy untouched: "<group>:<sender>"
for group chats, "<sender>" for private chats. It is the only link between a
task callback and the chat it came from.
"""

from dataclasses import dataclass

_SEPARATOR = ":"


@dataclass(frozen=True)
class CorrelationKey:
    # Group name ("" for private chats)
    group: str
    # Sender display name (group) or friend nickname (private)
    sender: str

    @property
    def is_group(self) -> bool:
        return bool(self.group)

    def encode(self) -> str:
        """Render the key as the state string.

        Raises ValueError when the result would not decode back to this pair:
        the first colon is the separator, so it may not appear in a group
        name, nor in the sender name of a private key.
        """
        if _SEPARATOR in self.group:
            raise ValueError(f"group name contains '{_SEPARATOR}': {self.group!r}")
        if not self.group:
            if _SEPARATOR in self.sender:
                raise ValueError(f"sender name contains '{_SEPARATOR}': {self.sender!r}")
            return self.sender
        return f"{self.group}{_SEPARATOR}{self.sender}"

    @classmethod
    def decode(cls, state: str) -> "CorrelationKey":
        group, sep, sender = state.partition(_SEPARATOR)
        if not sep:
            return cls(group="", sender=state)
        return cls(group=group, sender=sender)
