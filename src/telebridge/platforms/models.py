"""Data models shared by the platform adapters."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class PlatformType(str, Enum):
    """Platforms the bridge connects."""

    TELEGRAM = "telegram"
    IRC = "irc"


class PlatformUser(BaseModel):
    """Represents a user on a specific platform."""

    model_config = ConfigDict(frozen=True)

    platform: PlatformType
    platform_user_id: str  # Telegram user id, IRC nick
    username: Optional[str] = None  # Telegram @handle
    display_name: Optional[str] = None  # Telegram first name

    @property
    def has_username(self) -> bool:
        """Whether the user has a unique handle."""
        return bool(self.username)

    def __str__(self) -> str:
        """String representation for logging."""
        return f"{self.platform.value}:{self.platform_user_id}"


class OutgoingMessage(BaseModel):
    """Represents a message to be sent to a platform."""

    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
