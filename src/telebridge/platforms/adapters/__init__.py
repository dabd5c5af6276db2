"""Platform adapter implementations."""

from telebridge.platforms.adapters.irc import IRCAdapter
from telebridge.platforms.adapters.telegram import TelegramAdapter

__all__ = [
    "IRCAdapter",
    "TelegramAdapter",
]
