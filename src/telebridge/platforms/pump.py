"""Inbound event pump: one per platform."""

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

from telebridge.platforms.errors import TransportClosedError
from telebridge.platforms.protocol import PlatformAdapter
from telebridge.platforms.sender import OutboundSender

logger = logging.getLogger(__name__)

EventFormatter = Callable[[Any], list[str]]


class PumpState(str, Enum):
    """Lifecycle of a pump."""

    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    CLOSED = "closed"


class EventPump:
    """Moves events from one platform to the other side of the bridge.

    The pump:
    1. Starts its adapter (connect, authenticate)
    2. Takes events from the adapter one at a time
    3. Formats each event for the other platform
    4. Hands every formatted message to the counterpart's sender

    Any error out of ``run()`` is fatal for the pump.
    """

    def __init__(
        self,
        adapter: PlatformAdapter,
        format_event: EventFormatter,
        sender: OutboundSender,
        logger: logging.Logger = logger,
    ) -> None:
        """Initialize the pump.

        Args:
            adapter: The platform to read events from
            format_event: Turns one event into the messages to relay
            sender: Sender of the counterpart platform
            logger: Logger for this pump
        """
        self._adapter = adapter
        self._format_event = format_event
        self._sender = sender
        self._logger = logger
        self._state = PumpState.IDLE

    @property
    def name(self) -> str:
        return self._adapter.platform_type.value

    @property
    def state(self) -> PumpState:
        return self._state

    async def run(self) -> None:
        """Start the adapter and relay its events until cancelled.

        Raises:
            TransportClosedError: If the adapter's event stream ends.
            Exception: Whatever the adapter raises while starting or receiving.
        """
        if self._state is not PumpState.IDLE:
            raise RuntimeError(f"{self.name} pump already {self._state.value}")

        self._logger.info("Starting up %s...", self.name)
        self._state = PumpState.STARTING
        await self._adapter.start()

        if self._state is PumpState.CLOSED:
            return
        self._state = PumpState.RUNNING
        self._logger.info("%s is running", self.name)

        async for event in self._adapter.receive_events():
            await self._relay(event)

        if self._state is not PumpState.CLOSED:
            raise TransportClosedError(self.name)

    async def _relay(self, event: Any) -> None:
        """Format one event and send the result to the other platform."""
        try:
            messages = self._format_event(event)
        except Exception:
            self._logger.exception("Failed to format %s event: %r", self.name, event)
            return

        if not messages:
            self._logger.debug("Not relaying %s event: %r", self.name, event)
            return

        for text in messages:
            await self._sender.send(text)

    async def close(self) -> None:
        """Stop the adapter. Calling this again does nothing."""
        if self._state is PumpState.CLOSED:
            return

        self._state = PumpState.CLOSED
        self._logger.info("Closing %s...", self.name)
        await self._adapter.stop()
