"""
Telebridge - Telegram <-> IRC relay

Relays messages, replies, joins, stickers, documents and locations between
one Telegram group and one IRC channel.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("telebridge")
except PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = [
    "__version__",
]
