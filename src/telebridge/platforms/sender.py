"""Outbound delivery with a fixed number of retries."""

import logging
from typing import Optional

from telebridge.platforms.models import OutgoingMessage
from telebridge.platforms.protocol import PlatformAdapter

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3


class OutboundSender:
    """Delivers text to one channel of an adapter.

    A failed send is retried immediately, up to ``max_retries`` more times.
    A message that still fails is dropped; delivery errors never reach the
    caller.
    """

    def __init__(
        self,
        adapter: PlatformAdapter,
        channel: Optional[str] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        logger: logging.Logger = logger,
    ) -> None:
        """Initialize the sender.

        Args:
            adapter: The adapter to deliver through
            channel: Destination chat/channel (defaults to the adapter's own)
            max_retries: Additional attempts after the first failure
            logger: Logger for delivery failures
        """
        self._adapter = adapter
        self._channel = channel
        self._max_retries = max_retries
        self._logger = logger

    @property
    def name(self) -> str:
        return self._adapter.platform_type.value

    @property
    def channel(self) -> str:
        return self._channel or self._adapter.default_channel

    async def send(self, text: str) -> None:
        """Send ``text``, retrying on failure.

        Args:
            text: The message to deliver
        """
        self._logger.debug("%s send message: %s", self.name, text)
        message = OutgoingMessage(content=text)

        for attempt in range(1, self._max_retries + 2):
            try:
                await self._adapter.send_message(self.channel, message)
                return
            except Exception as e:
                self._logger.error("%s send failure #%d: %s", self.name, attempt, e)

        self._logger.warning(
            "%s dropped message after %d attempts", self.name, self._max_retries + 1
        )
