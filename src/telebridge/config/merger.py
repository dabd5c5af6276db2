"""Helpers for layering configuration dictionaries."""

from typing import Any


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Return ``base`` with ``override`` layered on top.

    Nested sections are merged key by key. Any other value, lists included,
    replaces what ``base`` had. An explicit ``None`` (``key: ~`` in YAML)
    drops the key so the model default applies again.

    Neither argument is modified.

    Examples:
        >>> deep_merge({"irc": {"port": 6697, "tls": True}}, {"irc": {"port": 6667}})
        {'irc': {'port': 6667, 'tls': True}}
    """
    merged = dict(base)

    for key, value in override.items():
        current = merged.get(key)
        if value is None:
            merged.pop(key, None)
        elif isinstance(value, dict) and isinstance(current, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value

    return merged


def set_nested_value(config: dict[str, Any], key: str, value: Any) -> dict[str, Any]:
    """
    Set ``value`` at a dotted path such as ``"telegram.chat_id"``.

    Missing sections are created along the way. ``config`` is modified in
    place and returned.
    """
    *sections, leaf = key.split(".")

    section = config
    for name in sections:
        if not isinstance(section.get(name), dict):
            section[name] = {}
        section = section[name]

    section[leaf] = value
    return config
