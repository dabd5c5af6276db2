"""Errors that end a pump and, with it, the bridge."""


class PumpError(Exception):
    """Raised when a platform pump cannot keep running."""

    pass


class TransportClosedError(PumpError):
    """Raised when a platform's event stream ends on its own."""

    def __init__(self, platform: str):
        self.platform = platform
        super().__init__(f"{platform} connection closed unexpectedly")


class IRCConnectionError(PumpError):
    """Raised when connecting or registering with the IRC server fails."""

    pass
