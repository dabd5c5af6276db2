"""Unit tests for the IRC adapter."""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from telebridge.platforms.adapters.irc import IRCAdapter, IRCLine, parse_line, split_message
from telebridge.platforms.errors import IRCConnectionError
from telebridge.platforms.events import (
    IRCJoin,
    IRCKick,
    IRCMessage,
    IRCNickChange,
    IRCPart,
    IRCQuit,
    IRCTopic,
)
from telebridge.platforms.models import OutgoingMessage, PlatformType


def make_adapter(**kwargs) -> IRCAdapter:
    options = {
        "server": "irc.example.org",
        "port": 6697,
        "channel": "#bridge",
        "nick": "bridgebot",
    }
    options.update(kwargs)
    return IRCAdapter(**options)


# =============================================================================
# Line parsing
# =============================================================================


class TestParseLine:
    def test_privmsg(self):
        line = parse_line(":alice!al@example.com PRIVMSG #bridge :hello there\r\n")

        assert line.prefix == "alice!al@example.com"
        assert line.nick == "alice"
        assert line.command == "PRIVMSG"
        assert line.params == ["#bridge", "hello there"]

    def test_ping_without_prefix(self):
        line = parse_line("PING :irc.example.org")

        assert line.prefix is None
        assert line.nick is None
        assert line.command == "PING"
        assert line.params == ["irc.example.org"]

    def test_numeric_reply(self):
        line = parse_line(":irc.example.org 001 bridgebot :Welcome to IRC")

        assert line.command == "001"
        assert line.params == ["bridgebot", "Welcome to IRC"]

    def test_tags_are_skipped(self):
        line = parse_line("@time=2024-05-01T12:00:00.000Z :bob!b@h JOIN #bridge")

        assert line.nick == "bob"
        assert line.command == "JOIN"
        assert line.params == ["#bridge"]

    def test_empty_trailing_parameter(self):
        line = parse_line(":bob!b@h PART #bridge :")

        assert line.params == ["#bridge", ""]

    def test_command_is_uppercased(self):
        assert parse_line("ping :x").command == "PING"

    def test_param_default(self):
        line = IRCLine(command="QUIT")

        assert line.param(0) == ""
        assert line.param(2, "none") == "none"


# =============================================================================
# Message splitting
# =============================================================================


class TestSplitMessage:
    def test_short_message(self):
        assert split_message("hello", 100) == ["hello"]

    def test_newlines_split(self):
        assert split_message("one\ntwo\r\nthree", 100) == ["one", "two", "three"]

    def test_blank_lines_dropped(self):
        assert split_message("one\n\n   \ntwo", 100) == ["one", "two"]

    def test_breaks_at_spaces(self):
        assert split_message("aaaa bbbb cccc", 9) == ["aaaa bbbb", "cccc"]

    def test_breaks_long_words(self):
        assert split_message("abcdefghij", 4) == ["abcd", "efgh", "ij"]

    def test_never_splits_utf8_sequences(self):
        text = "Уикипедия" * 10
        chunks = split_message(text, 7)

        assert "".join(chunks) == text
        assert all(len(chunk.encode("utf-8")) <= 7 for chunk in chunks)

    def test_limit_too_small(self):
        with pytest.raises(ValueError):
            split_message("abc", 3)


# =============================================================================
# Events
# =============================================================================


class TestLineToEvent:
    def test_channel_message(self):
        event = make_adapter().line_to_event(parse_line(":alice!a@h PRIVMSG #bridge :hi"))
        assert event == IRCMessage(nick="alice", channel="#bridge", text="hi")

    def test_channel_name_case_insensitive(self):
        event = make_adapter().line_to_event(parse_line(":alice!a@h PRIVMSG #Bridge :hi"))
        assert isinstance(event, IRCMessage)

    def test_action(self):
        adapter = make_adapter()
        event = adapter.line_to_event(parse_line(":alice!a@h PRIVMSG #bridge :\x01ACTION waves\x01"))
        assert event == IRCMessage(nick="alice", channel="#bridge", text="waves", action=True)

    def test_other_ctcp_ignored(self):
        adapter = make_adapter()
        assert adapter.line_to_event(parse_line(":alice!a@h PRIVMSG #bridge :\x01VERSION\x01")) is None

    def test_private_message_ignored(self):
        adapter = make_adapter()
        assert adapter.line_to_event(parse_line(":alice!a@h PRIVMSG bridgebot :psst")) is None

    def test_own_lines_ignored(self):
        adapter = make_adapter()
        assert adapter.line_to_event(parse_line(":bridgebot!b@h JOIN #bridge")) is None
        assert adapter.line_to_event(parse_line(":BridgeBot!b@h PRIVMSG #bridge :echo")) is None

    def test_server_lines_ignored(self):
        adapter = make_adapter()
        assert adapter.line_to_event(parse_line("PING :irc.example.org")) is None
        assert adapter.line_to_event(parse_line(":irc.example.org NOTICE * :hello")) is None

    def test_membership(self):
        adapter = make_adapter()

        assert adapter.line_to_event(parse_line(":bob!b@h JOIN :#bridge")) == IRCJoin(
            nick="bob", channel="#bridge"
        )
        assert adapter.line_to_event(parse_line(":bob!b@h PART #bridge :later")) == IRCPart(
            nick="bob", channel="#bridge", reason="later"
        )
        assert adapter.line_to_event(parse_line(":bob!b@h QUIT :Ping timeout")) == IRCQuit(
            nick="bob", reason="Ping timeout"
        )

    def test_kick(self):
        event = make_adapter().line_to_event(parse_line(":op!o@h KICK #bridge bob :flooding"))
        assert event == IRCKick(nick="op", channel="#bridge", target="bob", reason="flooding")

    def test_nick_change(self):
        event = make_adapter().line_to_event(parse_line(":bob!b@h NICK :robert"))
        assert event == IRCNickChange(nick="bob", new_nick="robert")

    def test_own_nick_change_is_tracked(self):
        adapter = make_adapter()

        assert adapter.line_to_event(parse_line(":bridgebot!b@h NICK :bridgebot2")) is None
        assert adapter.nick == "bridgebot2"

    def test_topic(self):
        event = make_adapter().line_to_event(parse_line(":op!o@h TOPIC #bridge :New topic"))
        assert event == IRCTopic(nick="op", channel="#bridge", topic="New topic")


# =============================================================================
# Connection
# =============================================================================


class FakeConnection:
    """Stream pair standing in for a server connection."""

    def __init__(self, server_lines: list[str]):
        self.reader = asyncio.StreamReader()
        for line in server_lines:
            self.reader.feed_data(f"{line}\r\n".encode("utf-8"))

        self.writer = Mock()
        self.writer.drain = AsyncMock()
        self.writer.wait_closed = AsyncMock()
        self.open_args = None

    async def open(self, host, port, ssl=None):
        self.open_args = (host, port, ssl)
        return self.reader, self.writer

    @property
    def written(self) -> list[str]:
        data = b"".join(call.args[0] for call in self.writer.write.call_args_list)
        return [line for line in data.decode("utf-8").split("\r\n") if line]


@pytest.fixture
def connection(monkeypatch):
    def install(server_lines: list[str]) -> FakeConnection:
        fake = FakeConnection(server_lines)
        monkeypatch.setattr(
            "telebridge.platforms.adapters.irc.asyncio.open_connection", fake.open
        )
        return fake

    return install


class TestConnection:
    @pytest.mark.asyncio
    async def test_registers_and_joins(self, connection):
        fake = connection([":irc.example.org 001 bridgebot :Welcome"])
        adapter = make_adapter(
            tls=False,
            server_password="serverpass",
            nickserv_password="secret",
            channel_key="letmein",
        )

        await adapter.start()

        assert adapter.is_running
        assert adapter.platform_type is PlatformType.IRC
        assert fake.open_args == ("irc.example.org", 6697, None)
        assert fake.written == [
            "PASS serverpass",
            "NICK bridgebot",
            "USER telebridge 0 * :Telegram IRC bridge",
            "PRIVMSG NickServ :IDENTIFY secret",
            "JOIN #bridge letmein",
        ]

    @pytest.mark.asyncio
    async def test_tls_without_certificate_check(self, connection):
        fake = connection([":irc.example.org 001 bridgebot :Welcome"])
        adapter = make_adapter(tls=True, cert_check=False)

        await adapter.start()

        context = fake.open_args[2]
        assert context is not None
        assert context.check_hostname is False

    @pytest.mark.asyncio
    async def test_nick_in_use(self, connection):
        fake = connection(
            [
                "PING :irc.example.org",
                ":irc.example.org 433 * bridgebot :Nickname is already in use",
                ":irc.example.org 001 bridgebot_ :Welcome",
            ]
        )
        adapter = make_adapter(tls=False)

        await adapter.start()

        assert adapter.nick == "bridgebot_"
        assert "PONG :irc.example.org" in fake.written
        assert "NICK bridgebot_" in fake.written

    @pytest.mark.asyncio
    async def test_server_error_during_registration(self, connection):
        connection(["ERROR :Closing Link: banned"])

        with pytest.raises(IRCConnectionError, match="banned"):
            await make_adapter(tls=False).start()

    @pytest.mark.asyncio
    async def test_password_rejected(self, connection):
        connection([":irc.example.org 464 * :Password incorrect"])

        with pytest.raises(IRCConnectionError, match="password"):
            await make_adapter(tls=False).start()

    @pytest.mark.asyncio
    async def test_closed_during_registration(self, connection):
        fake = connection([])
        fake.reader.feed_eof()

        with pytest.raises(IRCConnectionError, match="closed"):
            await make_adapter(tls=False).start()

    @pytest.mark.asyncio
    async def test_unreachable_server(self, monkeypatch):
        async def refuse(*args, **kwargs):
            raise ConnectionRefusedError("Connection refused")

        monkeypatch.setattr("telebridge.platforms.adapters.irc.asyncio.open_connection", refuse)

        with pytest.raises(IRCConnectionError, match="irc.example.org:6697"):
            await make_adapter().start()

    @pytest.mark.asyncio
    async def test_receive_events_until_eof(self, connection):
        fake = connection([":irc.example.org 001 bridgebot :Welcome"])
        adapter = make_adapter(tls=False)
        await adapter.start()

        fake.reader.feed_data(b"PING :keepalive\r\n")
        fake.reader.feed_data(b":alice!a@h PRIVMSG #bridge :hello\r\n")
        fake.reader.feed_data(b":alice!a@h PRIVMSG bridgebot :private\r\n")
        fake.reader.feed_data(b":bob!b@h JOIN #bridge\r\n")
        fake.reader.feed_eof()

        events = [event async for event in adapter.receive_events()]

        assert events == [
            IRCMessage(nick="alice", channel="#bridge", text="hello"),
            IRCJoin(nick="bob", channel="#bridge"),
        ]
        assert "PONG :keepalive" in fake.written

    @pytest.mark.asyncio
    async def test_rejoins_after_kick(self, connection):
        fake = connection([":irc.example.org 001 bridgebot :Welcome"])
        adapter = make_adapter(tls=False)
        await adapter.start()

        fake.reader.feed_data(b":op!o@h KICK #bridge bridgebot :bye\r\n")
        fake.reader.feed_eof()
        events = [event async for event in adapter.receive_events()]

        assert events == [IRCKick(nick="op", channel="#bridge", target="bridgebot", reason="bye")]
        assert fake.written.count("JOIN #bridge") == 2

    @pytest.mark.asyncio
    async def test_send_message_splits_lines(self, connection):
        fake = connection([":irc.example.org 001 bridgebot :Welcome"])
        adapter = make_adapter(tls=False)
        await adapter.start()

        await adapter.send_message("#bridge", OutgoingMessage(content="<test> one\ntwo"))

        assert fake.written[-2:] == ["PRIVMSG #bridge :<test> one", "PRIVMSG #bridge :two"]

    @pytest.mark.asyncio
    async def test_send_long_message(self, connection):
        fake = connection([":irc.example.org 001 bridgebot :Welcome"])
        adapter = make_adapter(tls=False)
        await adapter.start()

        await adapter.send_message("#bridge", OutgoingMessage(content="word " * 200))

        sent = [line for line in fake.written if line.startswith("PRIVMSG #bridge")]
        assert len(sent) > 1
        assert all(len(line.encode("utf-8")) + 2 <= 512 for line in sent)

    @pytest.mark.asyncio
    async def test_send_before_connect(self):
        with pytest.raises(RuntimeError):
            await make_adapter().send_message("#bridge", OutgoingMessage(content="hi"))

    @pytest.mark.asyncio
    async def test_stop_sends_quit_once(self, connection):
        fake = connection([":irc.example.org 001 bridgebot :Welcome"])
        adapter = make_adapter(tls=False, quit_message="bye")
        await adapter.start()

        await adapter.stop()
        await adapter.stop()

        assert fake.written[-1] == "QUIT :bye"
        assert fake.written.count("QUIT :bye") == 1
        fake.writer.close.assert_called_once()
        assert not adapter.is_running

    @pytest.mark.asyncio
    async def test_stop_before_start(self):
        adapter = make_adapter()
        await adapter.stop()
        assert not adapter.is_running
