"""
Pytest configuration and fixtures for telebridge tests.
"""

import asyncio
import logging
import os
import tempfile
from collections.abc import Generator
from datetime import datetime, timezone
from pathlib import Path

import pytest
from typer.testing import CliRunner

from telebridge.formatting import IRCFormatting, TelegramFormatting
from telebridge.platforms.models import OutgoingMessage, PlatformType, PlatformUser
from telebridge.platforms.protocol import PlatformAdapter

CHAT_ID = -1001234567890


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove TELEBRIDGE_* variables from the environment."""
    for key in list(os.environ):
        if key.startswith("TELEBRIDGE_"):
            monkeypatch.delenv(key)


@pytest.fixture
def test_logger() -> logging.Logger:
    """Provide a logger that propagates to caplog."""
    logger = logging.getLogger("telebridge.tests")
    logger.setLevel(logging.DEBUG)
    return logger


@pytest.fixture
def now() -> datetime:
    """A fixed point in time, used as the receive time of test messages."""
    return datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def tg_user() -> PlatformUser:
    """A Telegram user with a handle."""
    return PlatformUser(
        platform=PlatformType.TELEGRAM,
        platform_user_id="42",
        username="test",
        display_name="testing",
    )


@pytest.fixture
def tg_user_no_handle() -> PlatformUser:
    """A Telegram user without a handle."""
    return PlatformUser(
        platform=PlatformType.TELEGRAM,
        platform_user_id="43",
        display_name="test",
    )


@pytest.fixture
def telegram_formatting() -> TelegramFormatting:
    """Formatting settings for Telegram -> IRC, everything shown."""
    return TelegramFormatting(
        chat_id=CHAT_ID,
        show_zwsp=False,
        show_join_message=True,
        show_leave_message=True,
        show_location_message=True,
    )


@pytest.fixture
def irc_formatting() -> IRCFormatting:
    """Formatting settings for IRC -> Telegram, everything shown."""
    return IRCFormatting(
        channel="#bridge",
        show_join_message=True,
        show_leave_message=True,
        show_kick_message=True,
        show_nick_message=True,
        show_topic_message=True,
    )


@pytest.fixture
def sample_config_yaml() -> str:
    """Provide a sample configuration file."""
    return """
telegram:
  token: "123:abc"
  chat_id: -1001234567890
  reply_length: 20
  show_join_message: true

irc:
  server: irc.example.org
  port: 6667
  tls: false
  channel: "#bridge"
  bot_name: bridgebot
  blacklist:
    - spammer
"""


class FakeAdapter(PlatformAdapter):
    """In-memory platform adapter for testing.

    Events put on ``events`` are yielded by ``receive_events()``; putting
    ``FakeAdapter.END`` ends the stream as if the connection dropped.
    """

    END = object()

    def __init__(self, platform_type: PlatformType, channel: str = "channel"):
        super().__init__()
        self._platform_type = platform_type
        self._channel = channel
        self.events: asyncio.Queue = asyncio.Queue()
        self.sent: list[tuple[str, str]] = []
        self.send_attempts = 0
        self.fail_sends = 0
        self.start_error: Exception | None = None
        self.start_calls = 0
        self.stop_calls = 0

    @property
    def platform_type(self) -> PlatformType:
        return self._platform_type

    @property
    def default_channel(self) -> str:
        return self._channel

    async def start(self) -> None:
        self.start_calls += 1
        if self.start_error is not None:
            raise self.start_error
        self._running = True

    async def stop(self) -> None:
        self.stop_calls += 1
        self._running = False
        self.events.put_nowait(self.END)

    async def receive_events(self):
        while True:
            event = await self.events.get()
            if event is self.END:
                return
            yield event

    async def send_message(self, channel: str, message: OutgoingMessage) -> None:
        self.send_attempts += 1
        if self.fail_sends:
            self.fail_sends -= 1
            raise ConnectionError("send failed")
        self.sent.append((channel, message.content))


@pytest.fixture
def telegram_adapter() -> FakeAdapter:
    """Fake Telegram side of the bridge."""
    return FakeAdapter(PlatformType.TELEGRAM, channel=str(CHAT_ID))


@pytest.fixture
def irc_adapter() -> FakeAdapter:
    """Fake IRC side of the bridge."""
    return FakeAdapter(PlatformType.IRC, channel="#bridge")


async def wait_until(predicate, timeout: float = 1.0) -> None:
    """Wait until ``predicate()`` is true, failing after ``timeout`` seconds."""

    async def poll() -> None:
        while not predicate():
            await asyncio.sleep(0.001)

    await asyncio.wait_for(poll(), timeout)


@pytest.fixture
def until():
    """Provide the ``wait_until`` helper to tests."""
    return wait_until
