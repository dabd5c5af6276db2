"""Platform events received by the adapters.

Each platform has its own tagged union of event models, discriminated by
the ``kind`` field. The formatting functions match over these unions, so a
new variant has to be handled there before it type-checks.
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from telebridge.platforms.models import PlatformUser

# =============================================================================
# Telegram events
# =============================================================================


class TelegramEventBase(BaseModel):
    """Fields shared by every Telegram event."""

    model_config = ConfigDict(frozen=True)

    user: PlatformUser
    chat_id: int
    timestamp: datetime


class TextMessage(TelegramEventBase):
    """A plain text message."""

    kind: Literal["text"] = "text"
    text: str


class ReplyMessage(TelegramEventBase):
    """A text message replying to another message."""

    kind: Literal["reply"] = "reply"
    text: str
    reply_text: str = ""
    reply_user: PlatformUser
    reply_is_topic_message: bool = False
    reply_topic_name: Optional[str] = None  # set when the target created a topic


class Join(TelegramEventBase):
    """One or more users joined the group."""

    kind: Literal["join"] = "join"
    members: list[PlatformUser]


class Leave(TelegramEventBase):
    """A user left the group."""

    kind: Literal["leave"] = "leave"
    member: PlatformUser


class Sticker(TelegramEventBase):
    """A sticker, relayed as its emoji."""

    kind: Literal["sticker"] = "sticker"
    emoji: str = ""


class Document(TelegramEventBase):
    """A shared file."""

    kind: Literal["document"] = "document"
    mime_type: Optional[str] = None
    file_name: Optional[str] = None
    caption: Optional[str] = None


class Location(TelegramEventBase):
    """A shared location."""

    kind: Literal["location"] = "location"
    latitude: float
    longitude: float


TelegramEvent = Annotated[
    Union[TextMessage, ReplyMessage, Join, Leave, Sticker, Document, Location],
    Field(discriminator="kind"),
]


# =============================================================================
# IRC events
# =============================================================================


class IRCEventBase(BaseModel):
    """Fields shared by every IRC event."""

    model_config = ConfigDict(frozen=True)

    nick: str
    channel: str = ""  # empty for QUIT and NICK


class IRCMessage(IRCEventBase):
    """PRIVMSG to the channel, optionally a CTCP ACTION."""

    kind: Literal["message"] = "message"
    text: str
    action: bool = False


class IRCJoin(IRCEventBase):
    kind: Literal["join"] = "join"


class IRCPart(IRCEventBase):
    kind: Literal["part"] = "part"
    reason: str = ""


class IRCQuit(IRCEventBase):
    kind: Literal["quit"] = "quit"
    reason: str = ""


class IRCKick(IRCEventBase):
    """``nick`` kicked ``target`` from ``channel``."""

    kind: Literal["kick"] = "kick"
    target: str
    reason: str = ""


class IRCNickChange(IRCEventBase):
    kind: Literal["nick"] = "nick"
    new_nick: str


class IRCTopic(IRCEventBase):
    kind: Literal["topic"] = "topic"
    topic: str


IRCEvent = Annotated[
    Union[IRCMessage, IRCJoin, IRCPart, IRCQuit, IRCKick, IRCNickChange, IRCTopic],
    Field(discriminator="kind"),
]
