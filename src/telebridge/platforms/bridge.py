"""Bridge coordinator: runs both pumps and shuts them down together."""

import asyncio
import logging
import signal
from typing import Optional

from telebridge.formatting.irc import IRCFormatting, format_irc_event
from telebridge.formatting.telegram import TelegramFormatting, format_telegram_event
from telebridge.platforms.errors import TransportClosedError
from telebridge.platforms.protocol import PlatformAdapter
from telebridge.platforms.pump import EventPump
from telebridge.platforms.sender import DEFAULT_MAX_RETRIES, OutboundSender

logger = logging.getLogger(__name__)


class ShutdownSignal:
    """Set when the process is asked to stop (SIGINT/SIGTERM)."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    def set(self, reason: str = "shutdown requested") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()

    def install(self, loop: asyncio.AbstractEventLoop) -> None:
        """Set this signal on SIGINT and SIGTERM."""
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self.set, sig.name)

    def uninstall(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)


class Bridge:
    """Relays between one Telegram chat and one IRC channel.

    The Telegram pump delivers through the IRC sender and the IRC pump
    through the Telegram sender. Whichever comes first of a pump failing or
    a shutdown signal ends the bridge; both pumps are then closed.
    """

    def __init__(
        self,
        telegram: PlatformAdapter,
        irc: PlatformAdapter,
        telegram_formatting: TelegramFormatting,
        irc_formatting: IRCFormatting,
        max_send_retries: int = DEFAULT_MAX_RETRIES,
        logger: logging.Logger = logger,
    ) -> None:
        """Initialize the bridge and wire the two pumps together.

        Args:
            telegram: Telegram adapter
            irc: IRC adapter
            telegram_formatting: Settings for Telegram -> IRC messages
            irc_formatting: Settings for IRC -> Telegram messages
            max_send_retries: Retries for a failed send
            logger: Logger for the bridge and its components
        """
        self._logger = logger

        to_irc = OutboundSender(irc, max_retries=max_send_retries, logger=logger)
        to_telegram = OutboundSender(telegram, max_retries=max_send_retries, logger=logger)

        self.telegram_pump = EventPump(
            telegram,
            lambda event: format_telegram_event(telegram_formatting, event, log=logger),
            to_irc,
            logger=logger,
        )
        self.irc_pump = EventPump(
            irc,
            lambda event: format_irc_event(irc_formatting, event),
            to_telegram,
            logger=logger,
        )

    async def run(self, shutdown: Optional[ShutdownSignal] = None) -> int:
        """Run until a pump fails or shutdown is requested.

        Args:
            shutdown: Signal to stop on. When omitted, one is installed on
                SIGINT and SIGTERM.

        Returns:
            Process exit status: 1 if a pump failed, 0 on shutdown.
        """
        loop = asyncio.get_running_loop()
        installed = shutdown is None
        if shutdown is None:
            shutdown = ShutdownSignal()
            shutdown.install(loop)

        pumps = {
            asyncio.create_task(self.telegram_pump.run(), name="pump-telegram"): self.telegram_pump,
            asyncio.create_task(self.irc_pump.run(), name="pump-irc"): self.irc_pump,
        }
        shutdown_task = asyncio.create_task(shutdown.wait(), name="shutdown-signal")

        try:
            try:
                done, _ = await asyncio.wait(
                    {*pumps, shutdown_task}, return_when=asyncio.FIRST_COMPLETED
                )
            except asyncio.CancelledError:
                await self._cancel([*pumps, shutdown_task])
                await self._close_pumps()
                raise

            exit_code = 0
            failed = [task for task in pumps if task in done]
            if failed:
                exit_code = 1
                task = failed[0]
                error = task.exception() or TransportClosedError(pumps[task].name)
                self._logger.error("%s error: %s", pumps[task].name, error)
            else:
                self._logger.info("Signal received: %s", shutdown.reason)

            self._logger.info("Shutting down...")
            await self._cancel([*pumps, shutdown_task])
            await self._close_pumps()
            self._logger.info("Exiting")
            return exit_code
        finally:
            if installed:
                shutdown.uninstall(loop)

    async def _cancel(self, tasks: list[asyncio.Task]) -> None:
        """Cancel and drain outstanding tasks."""
        for task in tasks:
            task.cancel()
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for task, result in zip(tasks, results):
            if isinstance(result, Exception):
                self._logger.debug("%s ended with: %r", task.get_name(), result)

    async def _close_pumps(self) -> None:
        for pump in (self.irc_pump, self.telegram_pump):
            try:
                await pump.close()
            except Exception as e:
                self._logger.error("Failed to close %s: %s", pump.name, e)
