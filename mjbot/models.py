"""Shared data types used across mjbot modules."""

import enum
from dataclasses import dataclass, field
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

# Task submission result codes returned by the MJ proxy
SUCCESS_CODE = 1
QUEUE_FULL_CODE = 22
# Transport or serialization failure on our side
INTERNAL_ERROR_CODE = -9


class MessageKind(enum.Enum):
    TEXT = "text"
    IMAGE = "image"
    OTHER = "other"


@dataclass(frozen=True)
class InboundMessage:
    """A received chat message, valid for one handling pass only."""

    # Display name of the sender (group card preferred, fallback to nickname)
    sender_name: str
    # QQ number of the sender
    sender_id: int
    # Group name (None for private messages)
    group_name: str | None
    # Group number (0 for private messages)
    group_id: int
    kind: MessageKind
    # Plain text extracted from the message segments
    text: str
    # Unix timestamp (seconds) reported by NapCat
    timestamp: float
    # Whether the bot account itself sent this message
    is_self: bool = False
    # Download URL of the first image segment ("" if none)
    image_url: str = ""
    # Raw OneBot event, kept for logging
    raw_event: dict = field(default_factory=dict, compare=False, repr=False)

    @property
    def is_group(self) -> bool:
        return self.group_name is not None


@dataclass(frozen=True)
class Destination:
    """A resolved chat target able to receive messages."""

    # "private" or "group"
    kind: str
    # QQ number of the friend, or group number
    target_id: int
    # Friend nickname or group name the destination was resolved from
    name: str = ""

    @property
    def chat_id(self) -> str:
        return f"{self.kind}:{self.target_id}"


@dataclass(frozen=True)
class TaskRequest:
    """Base of the task request union; each variant owns its submit path."""

    path: ClassVar[str] = ""

    # Encoded correlation key round-tripped through the remote API
    state: str

    def to_payload(self) -> dict:
        return {"state": self.state}


@dataclass(frozen=True)
class ImagineRequest(TaskRequest):
    path: ClassVar[str] = "/submit/imagine"

    prompt: str = ""

    def to_payload(self) -> dict:
        return {"state": self.state, "prompt": self.prompt}


@dataclass(frozen=True)
class ChangeRequest(TaskRequest):
    """Upscale / variation of an earlier task, e.g. content="<task id> U1"."""

    path: ClassVar[str] = "/submit/simple-change"

    content: str = ""

    def to_payload(self) -> dict:
        return {"state": self.state, "content": self.content}


@dataclass(frozen=True)
class DescribeRequest(TaskRequest):
    path: ClassVar[str] = "/submit/describe"

    # Image as a data URL ("data:image/png;base64,...")
    base64: str = ""

    def to_payload(self) -> dict:
        return {"state": self.state, "base64": self.base64}


@dataclass
class TaskResult:
    """Synchronous answer to a task submission."""

    code: int
    description: str
    # Remote task id (when accepted)
    result: str = ""

    @property
    def accepted(self) -> bool:
        return self.code == SUCCESS_CODE


class NotificationEvent(BaseModel):
    """Task progress callback posted by the MJ proxy to /notify."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    state: str
    # IMAGINE / UPSCALE / VARIATION / DESCRIBE ...
    action: str = ""
    # SUBMITTED / IN_PROGRESS / FAILURE / SUCCESS
    status: str = ""
    description: str | None = ""
    fail_reason: str | None = Field(default="", alias="failReason")
    # Milliseconds since epoch
    submit_time: int | None = Field(default=None, alias="submitTime")
    finish_time: int | None = Field(default=None, alias="finishTime")
    prompt: str | None = ""
    prompt_en: str | None = Field(default="", alias="promptEn")
    image_url: str | None = Field(default=None, alias="imageUrl")
    id: str | None = None

    @property
    def elapsed_ms(self) -> int:
        if self.submit_time is None or self.finish_time is None:
            return 0
        return max(self.finish_time - self.submit_time, 0)
