"""Platform adapter protocol definition."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from telebridge.platforms.models import OutgoingMessage, PlatformType


class PlatformAdapter(ABC):
    """Abstract base class for platform adapters.

    Each side of the bridge (Telegram, IRC) implements this protocol so the
    pumps and the bridge can drive either one the same way.
    """

    def __init__(self) -> None:
        """Initialize the platform adapter."""
        self._running = False

    @property
    @abstractmethod
    def platform_type(self) -> PlatformType:
        """The type of platform this adapter handles."""
        ...

    @property
    @abstractmethod
    def default_channel(self) -> str:
        """The chat or channel this adapter relays into."""
        ...

    @property
    def is_running(self) -> bool:
        """Check if the adapter is currently running."""
        return self._running

    @abstractmethod
    async def start(self) -> None:
        """Connect and authenticate with the platform.

        This method should:
        1. Initialize platform-specific clients/connections
        2. Authenticate (and join the bridged channel where needed)
        3. Begin listening for incoming events
        4. Set self._running = True

        Raises:
            Exception: If the platform cannot be reached or rejects the bot.
        """
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Disconnect from the platform and release its resources.

        Must be safe to call on an adapter that never finished starting
        or was already stopped.
        """
        ...

    @abstractmethod
    def receive_events(self) -> AsyncIterator[Any]:
        """Receive events from the platform.

        Yields:
            Platform events, one at a time, in the order they arrived.

        The iterator only ends when the platform connection is gone.
        """
        ...

    @abstractmethod
    async def send_message(self, channel: str, message: OutgoingMessage) -> None:
        """Send a message to a chat or channel on this platform.

        Args:
            channel: Platform-specific chat or channel identifier
            message: The message to send

        Raises:
            Exception: If sending fails
        """
        ...
