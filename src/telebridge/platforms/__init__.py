"""Telegram <-> IRC relaying.

Architecture:
    Adapter (inbound) → EventPump → formatter → OutboundSender → Adapter (outbound)

Key Components:
    - PlatformAdapter: Abstract protocol for the Telegram and IRC clients
    - EventPump: Reads one platform's events and relays them to the other
    - OutboundSender: Delivers formatted text with retries
    - Bridge: Runs both pumps and shuts them down together
"""

from telebridge.platforms.errors import IRCConnectionError, PumpError, TransportClosedError
from telebridge.platforms.models import OutgoingMessage, PlatformType, PlatformUser
from telebridge.platforms.protocol import PlatformAdapter

__all__ = [
    "PlatformAdapter",
    "PlatformType",
    "PlatformUser",
    "OutgoingMessage",
    "PumpError",
    "TransportClosedError",
    "IRCConnectionError",
]
