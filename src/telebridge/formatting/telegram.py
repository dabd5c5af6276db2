"""Formatting of Telegram events into IRC messages.

Every function takes the formatting settings and one event and returns the
text to relay, or ``None`` (an empty list for joins) when the event should
not be relayed.
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional, assert_never

from pydantic import BaseModel, ConfigDict, Field

from telebridge.config.schema import Config
from telebridge.formatting.users import get_full_username, get_username
from telebridge.platforms.events import (
    Document,
    Join,
    Leave,
    Location,
    ReplyMessage,
    Sticker,
    TelegramEvent,
    TextMessage,
)

logger = logging.getLogger(__name__)

ELLIPSIS = "…"


class TelegramFormatting(BaseModel):
    """Settings used to render Telegram events for IRC."""

    model_config = ConfigDict(frozen=True)

    chat_id: int
    prefix: str = "<"
    suffix: str = ">"
    reply_prefix: str = "["
    reply_suffix: str = "]"
    reply_length: int = Field(default=15, ge=1)
    show_zwsp: bool = True
    show_join_message: bool = False
    show_leave_message: bool = False
    show_location_message: bool = False
    no_forward_prefix: str = ""
    max_message_age: timedelta = timedelta(seconds=60)

    @classmethod
    def from_config(cls, config: Config) -> "TelegramFormatting":
        """Build the settings from the loaded configuration."""
        telegram = config.telegram
        return cls(
            chat_id=telegram.chat_id,
            prefix=telegram.prefix,
            suffix=telegram.suffix,
            reply_prefix=telegram.reply_prefix,
            reply_suffix=telegram.reply_suffix,
            reply_length=telegram.reply_length,
            show_zwsp=config.irc.show_zwsp,
            show_join_message=telegram.show_join_message,
            show_leave_message=telegram.show_leave_message,
            show_location_message=telegram.show_location_message,
            no_forward_prefix=config.irc.no_forward_prefix,
            max_message_age=timedelta(seconds=telegram.max_message_age),
        )


def _should_forward(
    config: TelegramFormatting,
    event: TextMessage | ReplyMessage,
    now: Optional[datetime],
    log: logging.Logger,
) -> bool:
    """Apply the staleness, ignore-prefix and chat filters."""
    now = now or datetime.now(timezone.utc)
    age = now - event.timestamp
    if age > config.max_message_age:
        log.debug("Received message was %s old, ignoring", age)
        return False

    if config.no_forward_prefix and event.text.startswith(config.no_forward_prefix):
        log.debug("Message starts with %r, not forwarding", config.no_forward_prefix)
        return False

    # Only relay messages from the chat we're bridging
    if event.chat_id != config.chat_id:
        log.debug("Message from chat %s is not from the bridged chat", event.chat_id)
        return False

    return True


def truncate(text: str, length: int) -> str:
    """Cut ``text`` to ``length`` characters, marking the cut with an ellipsis."""
    if len(text) > length:
        return text[:length] + ELLIPSIS
    return text


def format_coordinate(value: float) -> str:
    """Render a coordinate with the fewest digits that round-trip, no exponent."""
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_text(
    config: TelegramFormatting,
    event: TextMessage,
    *,
    now: Optional[datetime] = None,
    log: logging.Logger = logger,
) -> Optional[str]:
    """Format a plain text message."""
    if not _should_forward(config, event, now, log):
        return None

    username = get_username(config.show_zwsp, event.user)
    # Trim unexpected whitespace
    return f"{config.prefix}{username}{config.suffix} {event.text.strip(' ')}"


def format_reply(
    config: TelegramFormatting,
    event: ReplyMessage,
    *,
    now: Optional[datetime] = None,
    log: logging.Logger = logger,
) -> Optional[str]:
    """Format a reply, quoting a shortened copy of the replied-to message."""
    if not _should_forward(config, event, now, log):
        return None

    username = get_username(config.show_zwsp, event.user)
    reply_user = get_username(config.show_zwsp, event.reply_user)
    reply_text = truncate(event.reply_text.strip(" "), config.reply_length)

    if event.reply_is_topic_message and event.reply_topic_name is not None:
        # Message posted straight into the topic, not a reply
        quote = f"Topic: {event.reply_topic_name}"
    elif event.reply_is_topic_message:
        # Reply inside a topic, the topic name is unknown here
        quote = f"Topic Re {reply_user}: {reply_text}"
    else:
        quote = f"Re {reply_user}: {reply_text}"

    return (
        f"{config.prefix}{username}{config.suffix} "
        f"{config.reply_prefix}{quote}{config.reply_suffix} {event.text}"
    )


def format_join(config: TelegramFormatting, event: Join) -> list[str]:
    """Announce each user that joined the group."""
    if not config.show_join_message:
        return []
    return [
        get_full_username(config.show_zwsp, member) + " has joined the Telegram Group!"
        for member in event.members
    ]


def format_leave(config: TelegramFormatting, event: Leave) -> Optional[str]:
    """Announce a user leaving the group."""
    if not config.show_leave_message:
        return None
    return get_full_username(config.show_zwsp, event.member) + " has left the Telegram Group!"


def format_sticker(config: TelegramFormatting, event: Sticker) -> str:
    """Relay a sticker as its emoji."""
    username = get_username(config.show_zwsp, event.user)
    return f"{config.prefix}{username}{config.suffix} {event.emoji}"


def format_document(config: TelegramFormatting, event: Document) -> str:
    """Describe a shared file."""
    formatted = get_username(config.show_zwsp, event.user) + " shared a file"
    if event.mime_type:
        formatted += f" ({event.mime_type})"

    if event.caption:
        formatted += f" on Telegram with caption: '{event.caption}'."
    elif event.file_name:
        formatted += f" on Telegram with title: '{event.file_name}'."

    return formatted


def format_location(config: TelegramFormatting, event: Location) -> Optional[str]:
    """Describe a shared location."""
    if not config.show_location_message:
        return None

    username = get_username(config.show_zwsp, event.user)
    return (
        f"{username} shared their location: "
        f"({format_coordinate(event.latitude)}, {format_coordinate(event.longitude)})."
    )


def format_telegram_event(
    config: TelegramFormatting,
    event: TelegramEvent,
    *,
    now: Optional[datetime] = None,
    log: logging.Logger = logger,
) -> list[str]:
    """Format any Telegram event into the IRC messages to send."""
    match event:
        case TextMessage():
            formatted = format_text(config, event, now=now, log=log)
        case ReplyMessage():
            formatted = format_reply(config, event, now=now, log=log)
        case Join():
            return format_join(config, event)
        case Leave():
            formatted = format_leave(config, event)
        case Sticker():
            formatted = format_sticker(config, event)
        case Document():
            formatted = format_document(config, event)
        case Location():
            formatted = format_location(config, event)
        case _:
            assert_never(event)

    return [formatted] if formatted is not None else []
