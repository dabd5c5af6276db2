"""IRC platform adapter speaking the client protocol over asyncio streams."""

import asyncio
import logging
import ssl
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Optional

from telebridge.platforms.errors import IRCConnectionError
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
from telebridge.platforms.models import OutgoingMessage, PlatformType
from telebridge.platforms.protocol import PlatformAdapter

logger = logging.getLogger(__name__)

# RFC 1459 line limit, including the trailing CRLF
MAX_LINE_BYTES = 512
# Longest hostname the server may put in our prefix when relaying
_MAX_HOST_BYTES = 63

RPL_WELCOME = "001"
ERR_NICKNAMEINUSE = "433"
ERR_PASSWDMISMATCH = "464"


@dataclass(frozen=True)
class IRCLine:
    """A parsed IRC protocol line."""

    command: str
    params: list[str] = field(default_factory=list)
    prefix: Optional[str] = None

    @property
    def nick(self) -> Optional[str]:
        """Nick from a ``nick!user@host`` prefix."""
        if not self.prefix:
            return None
        return self.prefix.split("!", 1)[0]

    def param(self, index: int, default: str = "") -> str:
        return self.params[index] if len(self.params) > index else default


def parse_line(raw: str) -> IRCLine:
    """Parse one line received from the server.

    Message tags are dropped; the trailing parameter keeps its spaces.
    """
    line = raw.rstrip("\r\n")

    if line.startswith("@"):
        _, _, line = line.partition(" ")

    prefix = None
    if line.startswith(":"):
        prefix, _, line = line[1:].partition(" ")

    line, sep, trailing = line.partition(" :")
    params = line.split()
    command = params.pop(0).upper() if params else ""
    if sep:
        params.append(trailing)

    return IRCLine(command=command, params=params, prefix=prefix)


def split_message(text: str, max_bytes: int) -> list[str]:
    """Split ``text`` into lines of at most ``max_bytes`` UTF-8 bytes.

    Newlines always split. Long lines are broken at the last space that
    fits, or mid-word if there is none, never inside a UTF-8 sequence.
    """
    if max_bytes < 4:
        raise ValueError(f"max_bytes must fit any UTF-8 character, got {max_bytes}")

    chunks = []
    for line in text.splitlines():
        encoded = line.encode("utf-8")
        while len(encoded) > max_bytes:
            cut = max_bytes
            # Back off continuation bytes (0b10xxxxxx)
            while cut > 0 and encoded[cut] & 0xC0 == 0x80:
                cut -= 1
            space = encoded.rfind(b" ", 0, cut + 1)
            if space > 0:
                cut = space
            chunks.append(encoded[:cut].decode("utf-8"))
            encoded = encoded[cut:].lstrip(b" ")
        if encoded.strip():
            chunks.append(encoded.decode("utf-8"))
    return chunks


class IRCAdapter(PlatformAdapter):
    """IRC client adapter bridging a single channel.

    Registers with the server (optional server password, NICK, USER),
    identifies with NickServ if a password is set, then joins the channel.
    PINGs are answered while events are being received.
    """

    def __init__(
        self,
        server: str,
        port: int,
        channel: str,
        nick: str,
        ident: str = "telebridge",
        realname: str = "Telegram IRC bridge",
        tls: bool = True,
        cert_check: bool = True,
        server_password: str = "",
        channel_key: str = "",
        nickserv_service: str = "NickServ",
        nickserv_password: str = "",
        quit_message: str = "",
        connect_timeout: float = 30.0,
        logger: logging.Logger = logger,
    ):
        """Initialize IRC adapter.

        Args:
            server: IRC server hostname
            port: IRC server port
            channel: Channel to bridge, e.g. "#chat"
            nick: Nickname of the bot (suffixed with "_" while taken)
            ident: Username sent in USER
            realname: Real name sent in USER
            tls: Connect with TLS
            cert_check: Verify the server certificate when using TLS
            server_password: Sent with PASS before registering
            channel_key: Key for joining the channel
            nickserv_service: Nick of the NickServ service
            nickserv_password: Password to IDENTIFY with, if any
            quit_message: Message sent with QUIT
            connect_timeout: Seconds allowed for connecting and registering
            logger: Logger for this adapter
        """
        super().__init__()

        self._server = server
        self._port = port
        self._channel = channel
        self._nick = nick
        self._ident = ident
        self._realname = realname
        self._tls = tls
        self._cert_check = cert_check
        self._server_password = server_password
        self._channel_key = channel_key
        self._nickserv_service = nickserv_service
        self._nickserv_password = nickserv_password
        self._quit_message = quit_message
        self._connect_timeout = connect_timeout
        self._logger = logger

        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._write_lock = asyncio.Lock()

    @property
    def platform_type(self) -> PlatformType:
        """The type of platform this adapter handles."""
        return PlatformType.IRC

    @property
    def default_channel(self) -> str:
        return self._channel

    @property
    def nick(self) -> str:
        """The nick currently used by the bot."""
        return self._nick

    def _ssl_context(self) -> Optional[ssl.SSLContext]:
        if not self._tls:
            return None
        context = ssl.create_default_context()
        if not self._cert_check:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    async def start(self) -> None:
        """Connect, register and join the channel.

        Raises:
            IRCConnectionError: If the server can't be reached or rejects us.
        """
        if self._running:
            self._logger.warning("IRC adapter already running")
            return

        self._logger.info("Connecting to %s:%d...", self._server, self._port)
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self._server, self._port, ssl=self._ssl_context()),
                timeout=self._connect_timeout,
            )
            await asyncio.wait_for(self._register(), timeout=self._connect_timeout)
        except (OSError, asyncio.TimeoutError) as e:
            raise IRCConnectionError(
                f"Cannot connect to {self._server}:{self._port}: {str(e) or 'timed out'}"
            ) from e

        if self._nickserv_password:
            await self.send_raw(
                f"PRIVMSG {self._nickserv_service} :IDENTIFY {self._nickserv_password}",
                secret=True,
            )

        await self._join()
        self._running = True
        self._logger.info("Joined %s as %s", self._channel, self._nick)

    async def _register(self) -> None:
        """Send PASS/NICK/USER and wait for the welcome reply."""
        if self._server_password:
            await self.send_raw(f"PASS {self._server_password}", secret=True)
        await self.send_raw(f"NICK {self._nick}")
        await self.send_raw(f"USER {self._ident} 0 * :{self._realname}")

        while True:
            raw = await self._reader.readline()
            if not raw:
                raise IRCConnectionError("Connection closed during registration")

            line = parse_line(raw.decode("utf-8", errors="replace"))
            if line.command == "PING":
                await self.send_raw(f"PONG :{line.param(0)}")
            elif line.command == RPL_WELCOME:
                self._nick = line.param(0, self._nick)
                return
            elif line.command == ERR_NICKNAMEINUSE:
                self._nick += "_"
                self._logger.warning("Nick in use, trying %s", self._nick)
                await self.send_raw(f"NICK {self._nick}")
            elif line.command == ERR_PASSWDMISMATCH:
                raise IRCConnectionError("Server password rejected")
            elif line.command == "ERROR":
                raise IRCConnectionError(f"Server error: {line.param(0)}")

    async def _join(self) -> None:
        if self._channel_key:
            await self.send_raw(f"JOIN {self._channel} {self._channel_key}", secret=True)
        else:
            await self.send_raw(f"JOIN {self._channel}")

    async def stop(self) -> None:
        """Send QUIT and close the connection."""
        writer, self._writer = self._writer, None
        self._reader = None
        self._running = False
        if writer is None:
            return

        self._logger.info("Disconnecting from IRC")
        try:
            async with self._write_lock:
                writer.write(f"QUIT :{self._quit_message}\r\n".encode("utf-8"))
                await writer.drain()
            writer.close()
            await writer.wait_closed()
        except (OSError, ConnectionError) as e:
            self._logger.debug("Error while closing IRC connection: %s", e)

    async def receive_events(self) -> AsyncIterator[IRCEvent]:
        """Receive events from the channel.

        Yields:
            IRC events as they arrive. Ends when the server closes the
            connection.
        """
        while self._reader is not None:
            raw = await self._reader.readline()
            if not raw:
                return

            text = raw.decode("utf-8", errors="replace")
            self._logger.debug("<< %s", text.rstrip())
            line = parse_line(text)

            if line.command == "PING":
                await self.send_raw(f"PONG :{line.param(0)}")
                continue
            if line.command == "ERROR":
                self._logger.error("IRC server error: %s", line.param(0))
                return
            if line.command == "KICK" and self._is_self(line.param(1)):
                self._logger.warning("Kicked from %s: %s", line.param(0), line.param(2))
                await self._join()

            event = self.line_to_event(line)
            if event is not None:
                yield event

    def _is_self(self, nick: Optional[str]) -> bool:
        return nick is not None and nick.lower() == self._nick.lower()

    def line_to_event(self, line: IRCLine) -> Optional[IRCEvent]:
        """Convert a server line into a bridge event.

        Lines caused by the bot itself and private messages give None.
        """
        nick = line.nick
        if nick is None:
            return None

        if line.command == "NICK" and self._is_self(nick):
            self._nick = line.param(0, self._nick)
            return None
        if self._is_self(nick):
            return None

        match line.command:
            case "PRIVMSG":
                if line.param(0).lower() != self._channel.lower():
                    return None
                text = line.param(1)
                if text.startswith("\x01"):
                    ctcp = text.strip("\x01")
                    if not ctcp.startswith("ACTION "):
                        return None
                    return IRCMessage(
                        nick=nick, channel=line.param(0), text=ctcp[7:], action=True
                    )
                return IRCMessage(nick=nick, channel=line.param(0), text=text)
            case "JOIN":
                return IRCJoin(nick=nick, channel=line.param(0))
            case "PART":
                return IRCPart(nick=nick, channel=line.param(0), reason=line.param(1))
            case "QUIT":
                return IRCQuit(nick=nick, reason=line.param(0))
            case "KICK":
                return IRCKick(
                    nick=nick,
                    channel=line.param(0),
                    target=line.param(1),
                    reason=line.param(2),
                )
            case "NICK":
                return IRCNickChange(nick=nick, new_nick=line.param(0))
            case "TOPIC":
                return IRCTopic(nick=nick, channel=line.param(0), topic=line.param(1))
        return None

    def _payload_limit(self, channel: str) -> int:
        """Bytes left for text in a PRIVMSG as relayed to other clients."""
        overhead = len(f":{self._nick}!{self._ident}@ PRIVMSG {channel} :\r\n".encode("utf-8"))
        return MAX_LINE_BYTES - overhead - _MAX_HOST_BYTES

    async def send_message(self, channel: str, message: OutgoingMessage) -> None:
        """Send a message to the channel, split into as many lines as needed.

        Args:
            channel: Channel name
            message: The message to send

        Raises:
            RuntimeError: If not connected
            OSError: If the connection fails while writing
        """
        for chunk in split_message(message.content, self._payload_limit(channel)):
            await self.send_raw(f"PRIVMSG {channel} :{chunk}")

    async def send_raw(self, line: str, secret: bool = False) -> None:
        """Write one protocol line.

        Args:
            line: The line, without CRLF
            secret: Keep the line out of the debug log
        """
        if self._writer is None:
            raise RuntimeError("Not connected to IRC")

        line = line.replace("\r", " ").replace("\n", " ")
        if not secret:
            self._logger.debug(">> %s", line)

        async with self._write_lock:
            self._writer.write(f"{line}\r\n".encode("utf-8"))
            await self._writer.drain()
