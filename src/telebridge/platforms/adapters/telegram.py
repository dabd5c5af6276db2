"""Telegram bot platform adapter using long polling."""

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Optional

from telegram import Bot, Message, Update, User
from telegram.ext import Application, ContextTypes, MessageHandler, filters

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
from telebridge.platforms.models import OutgoingMessage, PlatformType, PlatformUser
from telebridge.platforms.protocol import PlatformAdapter

logger = logging.getLogger(__name__)


def to_platform_user(user: Optional[User], fallback_name: str = "") -> PlatformUser:
    """Convert a Telegram user; messages sent on behalf of a chat have none."""
    if user is None:
        return PlatformUser(
            platform=PlatformType.TELEGRAM,
            platform_user_id="",
            display_name=fallback_name,
        )
    return PlatformUser(
        platform=PlatformType.TELEGRAM,
        platform_user_id=str(user.id),
        username=user.username,
        display_name=user.first_name,
    )


def message_to_event(message: Message) -> Optional[TelegramEvent]:
    """Convert a Telegram message into a bridge event.

    Args:
        message: Message from a Telegram update

    Returns:
        The matching event, or None for messages the bridge doesn't relay
        (photos, polls, service messages other than joins/leaves, ...).
    """
    sender_name = message.sender_chat.title if message.sender_chat else ""
    common = {
        "user": to_platform_user(message.from_user, sender_name or ""),
        "chat_id": message.chat_id,
        "timestamp": message.date,
    }

    if message.new_chat_members:
        return Join(
            members=[to_platform_user(member) for member in message.new_chat_members],
            **common,
        )

    if message.left_chat_member:
        return Leave(member=to_platform_user(message.left_chat_member), **common)

    if message.sticker:
        return Sticker(emoji=message.sticker.emoji or "", **common)

    if message.document:
        return Document(
            mime_type=message.document.mime_type,
            file_name=message.document.file_name,
            caption=message.caption,
            **common,
        )

    if message.location:
        return Location(
            latitude=message.location.latitude,
            longitude=message.location.longitude,
            **common,
        )

    if message.text is None:
        return None

    replied = message.reply_to_message
    if replied is not None:
        topic = replied.forum_topic_created
        replied_chat = replied.sender_chat.title if replied.sender_chat else ""
        return ReplyMessage(
            text=message.text,
            reply_text=replied.text or replied.caption or "",
            reply_user=to_platform_user(replied.from_user, replied_chat or ""),
            reply_is_topic_message=bool(replied.is_topic_message),
            reply_topic_name=topic.name if topic else None,
            **common,
        )

    return TextMessage(text=message.text, **common)


class TelegramAdapter(PlatformAdapter):
    """Telegram bot adapter using long polling.

    Uses python-telegram-bot library with polling mode.
    No webhook setup required.

    Configuration:
        - bot_token: Telegram bot token from @BotFather
        - chat_id: The group to bridge
        - polling_interval: Seconds between poll requests (default: 0)
    """

    def __init__(
        self,
        bot_token: str,
        chat_id: int,
        polling_interval: float = 0.0,
        logger: logging.Logger = logger,
    ):
        """Initialize Telegram adapter.

        Args:
            bot_token: Bot token from @BotFather
            chat_id: Id of the bridged group
            polling_interval: Polling interval in seconds
            logger: Logger for this adapter
        """
        super().__init__()

        self._bot_token = bot_token
        self._chat_id = chat_id
        self._polling_interval = polling_interval
        self._logger = logger

        self._application: Optional[Application] = None
        self._event_queue: asyncio.Queue[TelegramEvent] = asyncio.Queue()
        self._bot: Optional[Bot] = None

    @property
    def platform_type(self) -> PlatformType:
        """The type of platform this adapter handles."""
        return PlatformType.TELEGRAM

    @property
    def default_channel(self) -> str:
        return str(self._chat_id)

    async def start(self) -> None:
        """Start the Telegram bot with long polling.

        Raises:
            telegram.error.TelegramError: If the bot token is rejected or
                Telegram cannot be reached.
        """
        if self._running:
            self._logger.warning("Telegram adapter already running")
            return

        self._logger.info("Creating new Telegram bot client...")

        # Build application
        self._application = Application.builder().token(self._bot_token).build()
        self._bot = self._application.bot

        self._application.add_handler(MessageHandler(filters.ALL, self._handle_update))

        # initialize() calls getMe, which authenticates the token
        await self._application.initialize()
        self._logger.info("Authorized on account %s", self._bot.username)

        await self._application.start()
        await self._application.updater.start_polling(
            poll_interval=self._polling_interval,
            allowed_updates=Update.ALL_TYPES,
        )

        self._running = True
        self._logger.info("Telegram bot started successfully")

    async def stop(self) -> None:
        """Stop the Telegram bot."""
        application, self._application = self._application, None
        self._running = False
        if application is None:
            return

        self._logger.info("Stopping Telegram bot adapter")

        if application.updater and application.updater.running:
            await application.updater.stop()
        if application.running:
            await application.stop()
        await application.shutdown()

        self._logger.info("Telegram bot stopped")

    async def _handle_update(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Handle an incoming update from Telegram.

        Args:
            update: Telegram update object
            context: Telegram context
        """
        message = update.message
        if message is None:
            return

        if message.chat_id != self._chat_id:
            self._logger.debug("Ignoring update from unbridged chat %s", message.chat_id)
            return

        event = message_to_event(message)
        if event is None:
            self._logger.debug("Ignoring unsupported message %s", message.message_id)
            return

        await self._event_queue.put(event)

    async def receive_events(self) -> AsyncIterator[TelegramEvent]:
        """Receive events from Telegram.

        Yields:
            Telegram events as they arrive
        """
        while True:
            yield await self._event_queue.get()

    async def send_message(self, channel: str, message: OutgoingMessage) -> None:
        """Send a message to a Telegram chat.

        Args:
            channel: Chat ID
            message: The message to send

        Raises:
            TelegramError: If sending fails
        """
        if not self._bot:
            raise RuntimeError("Bot not initialized")

        await self._bot.send_message(chat_id=int(channel), text=message.content)
