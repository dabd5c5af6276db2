"""Formatting of IRC events into Telegram messages."""

import re
from typing import Optional, assert_never

from pydantic import BaseModel, ConfigDict, Field

from telebridge.config.schema import Config
from telebridge.platforms.events import (
    IRCEvent,
    IRCJoin,
    IRCKick,
    IRCMessage,
    IRCNickChange,
    IRCPart,
    IRCQuit,
    IRCTopic,
)

# Bold, colour (with optional fg,bg), hex colour, reset, monospace, italics,
# strikethrough, underline and reverse
_FORMATTING_CODES = re.compile(
    r"\x03(?:\d{1,2}(?:,\d{1,2})?)?"
    r"|\x04(?:[0-9a-fA-F]{6}(?:,[0-9a-fA-F]{6})?)?"
    r"|[\x02\x0f\x11\x1d\x1e\x1f\x16]"
)


def strip_formatting(text: str) -> str:
    """Remove mIRC formatting control codes from ``text``."""
    return _FORMATTING_CODES.sub("", text)


class IRCFormatting(BaseModel):
    """Settings used to render IRC events for Telegram."""

    model_config = ConfigDict(frozen=True)

    channel: str
    prefix: str = "<"
    suffix: str = ">"
    show_join_message: bool = False
    show_leave_message: bool = False
    show_kick_message: bool = False
    show_nick_message: bool = False
    show_topic_message: bool = False
    no_forward_prefix: str = ""
    blacklist: frozenset[str] = Field(default_factory=frozenset)

    @classmethod
    def from_config(cls, config: Config) -> "IRCFormatting":
        """Build the settings from the loaded configuration."""
        irc = config.irc
        return cls(
            channel=irc.channel,
            prefix=irc.prefix,
            suffix=irc.suffix,
            show_join_message=irc.show_join_message,
            show_leave_message=irc.show_leave_message,
            show_kick_message=irc.show_kick_message,
            show_nick_message=irc.show_nick_message,
            show_topic_message=irc.show_topic_message,
            no_forward_prefix=irc.no_forward_prefix,
            blacklist=frozenset(nick.lower() for nick in irc.blacklist),
        )

    def is_blacklisted(self, nick: str) -> bool:
        return nick.lower() in self.blacklist

    def is_bridged_channel(self, channel: str) -> bool:
        # QUIT and NICK carry no channel
        return not channel or channel.lower() == self.channel.lower()


def format_message(config: IRCFormatting, event: IRCMessage) -> Optional[str]:
    """Format a channel message or action."""
    text = strip_formatting(event.text)
    if config.no_forward_prefix and text.startswith(config.no_forward_prefix):
        return None

    if event.action:
        return f"* {event.nick} {text}"
    return f"{config.prefix}{event.nick}{config.suffix} {text}"


def format_join(config: IRCFormatting, event: IRCJoin) -> Optional[str]:
    if not config.show_join_message:
        return None
    return f"* {event.nick} joins"


def format_part(config: IRCFormatting, event: IRCPart) -> Optional[str]:
    if not config.show_leave_message:
        return None
    return f"* {event.nick} parts"


def format_quit(config: IRCFormatting, event: IRCQuit) -> Optional[str]:
    if not config.show_leave_message:
        return None
    return f"* {event.nick} quits"


def format_kick(config: IRCFormatting, event: IRCKick) -> Optional[str]:
    if not config.show_kick_message:
        return None
    return f"* {event.nick} kicked {event.target} from {event.channel}: {event.reason}"


def format_nick_change(config: IRCFormatting, event: IRCNickChange) -> Optional[str]:
    if not config.show_nick_message:
        return None
    return f"* {event.nick} is now known as {event.new_nick}"


def format_topic(config: IRCFormatting, event: IRCTopic) -> Optional[str]:
    if not config.show_topic_message:
        return None
    return f"* {event.nick} changed the topic to: {strip_formatting(event.topic)}"


def format_irc_event(config: IRCFormatting, event: IRCEvent) -> list[str]:
    """Format any IRC event into the Telegram messages to send."""
    if config.is_blacklisted(event.nick) or not config.is_bridged_channel(event.channel):
        return []

    match event:
        case IRCMessage():
            formatted = format_message(config, event)
        case IRCJoin():
            formatted = format_join(config, event)
        case IRCPart():
            formatted = format_part(config, event)
        case IRCQuit():
            formatted = format_quit(config, event)
        case IRCKick():
            formatted = format_kick(config, event)
        case IRCNickChange():
            formatted = format_nick_change(config, event)
        case IRCTopic():
            formatted = format_topic(config, event)
        case _:
            assert_never(event)

    return [formatted] if formatted is not None else []
