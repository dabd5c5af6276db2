"""Username resolution for relayed Telegram users."""

from telebridge.platforms.models import PlatformUser

# Breaks up handles so IRC clients don't highlight the user.
# See https://github.com/42wim/matterbridge/issues/175
ZWSP = "\u200b"


def obfuscate(handle: str) -> str:
    """Insert a zero-width space after the first character of ``handle``.

    Handles shorter than two characters are returned unchanged.
    """
    if len(handle) < 2:
        return handle
    return handle[:1] + ZWSP + handle[1:]


def get_username(show_zwsp: bool, user: PlatformUser) -> str:
    """Return the handle to show for ``user``, or the first name if it has none."""
    if not user.has_username:
        return user.display_name or ""
    if show_zwsp:
        return obfuscate(user.username)
    return user.username


def get_full_username(show_zwsp: bool, user: PlatformUser) -> str:
    """Return ``"First (@handle)"``, or only the first name if there is no handle."""
    if not user.has_username:
        return user.display_name or ""
    handle = obfuscate(user.username) if show_zwsp else user.username
    return f"{user.display_name or ''} (@{handle})"
