"""
Pydantic configuration schema for Telebridge.

This module defines all configuration models with validation.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

# =============================================================================
# Telegram Configuration
# =============================================================================


class TelegramConfig(BaseModel):
    """Telegram bot configuration.

    Uses long polling, no webhook setup required.
    """

    model_config = ConfigDict(extra="allow")

    token: str = ""
    chat_id: int = 0
    polling_interval: float = Field(default=0.0, ge=0.0)

    # How Telegram users are shown on IRC
    prefix: str = "<"
    suffix: str = ">"
    reply_prefix: str = "["
    reply_suffix: str = "]"
    reply_length: int = Field(default=15, ge=1)

    show_join_message: bool = False
    show_leave_message: bool = False
    show_location_message: bool = False

    # Seconds after which a received message is considered stale
    max_message_age: float = Field(default=60.0, gt=0.0)


# =============================================================================
# IRC Configuration
# =============================================================================


class IRCConfig(BaseModel):
    """IRC connection and relay configuration."""

    model_config = ConfigDict(extra="allow")

    server: str = ""
    port: int = Field(default=6697, ge=1, le=65535)
    tls: bool = True
    cert_check: bool = True
    server_password: str = ""
    connect_timeout: float = Field(default=30.0, gt=0.0)

    channel: str = ""
    channel_key: str = ""

    bot_name: str = "telebridge"
    bot_ident: str = "telebridge"
    bot_realname: str = "Telegram IRC bridge"
    nickserv_service: str = "NickServ"
    nickserv_password: str = ""
    quit_message: str = ""

    # How IRC users are shown on Telegram
    prefix: str = "<"
    suffix: str = ">"

    show_join_message: bool = False
    show_leave_message: bool = False
    show_kick_message: bool = False
    show_nick_message: bool = False
    show_topic_message: bool = False

    # Break Telegram handles on IRC with a zero-width space
    show_zwsp: bool = True
    # Messages starting with this are not relayed in either direction
    no_forward_prefix: str = ""
    blacklist: list[str] = Field(default_factory=list)

    @field_validator("channel")
    @classmethod
    def _check_channel(cls, value: str) -> str:
        if value and value[0] not in "#&":
            raise ValueError(f"IRC channel must start with '#' or '&': {value!r}")
        return value


# =============================================================================
# Root Configuration
# =============================================================================


class Config(BaseModel):
    """Root configuration model for Telebridge."""

    model_config = ConfigDict(extra="allow")

    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    irc: IRCConfig = Field(default_factory=IRCConfig)

    def missing_required(self) -> list[str]:
        """Return the dotted names of required settings that are unset."""
        required = {
            "telegram.token": self.telegram.token,
            "telegram.chat_id": self.telegram.chat_id,
            "irc.server": self.irc.server,
            "irc.channel": self.irc.channel,
        }
        return [key for key, value in required.items() if not value]
