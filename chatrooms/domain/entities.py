# chatrooms/domain/entities.py
from dataclasses import dataclass
from enum import Enum


class MessageType(str, Enum):
    TEXT = "text"
    PICTURE = "picture"
    AUDIO = "audio"
    VIDEO = "video"
    TEXT_AND_PICTURE = "text_and_picture"
    TEXT_AND_AUDIO = "text_and_audio"
    TEXT_AND_VIDEO = "text_and_video"

    @property
    def carries_text(self) -> bool:
        return self.value == "text" or self.value.startswith("text_and_")

    @property
    def carries_media(self) -> bool:
        return self is not MessageType.TEXT


class AppendResult(Enum):
    SUCCESS = "success"
    ALREADY_PRESENT = "already_present"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Identity:
    """A caller verified by the identity provider. Trusted as-is by the core."""

    user_id: int
    username: str
