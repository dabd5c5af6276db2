"""Rendering of platform events as text for the other side of the bridge."""

from telebridge.formatting.irc import IRCFormatting, format_irc_event
from telebridge.formatting.telegram import TelegramFormatting, format_telegram_event
from telebridge.formatting.users import get_full_username, get_username, obfuscate

__all__ = [
    "IRCFormatting",
    "TelegramFormatting",
    "format_irc_event",
    "format_telegram_event",
    "get_full_username",
    "get_username",
    "obfuscate",
]
