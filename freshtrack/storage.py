"""Session-scoped key-value storage."""

from __future__ import annotations


class SessionStorage:
    """String key-value slots that live as long as the user session.

    Cleared when the session ends (sign-out or process exit). Not a durable
    or cross-device store.
    """

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"session storage values must be str, not {type(value).__name__}")
        self._items[key] = value

    def remove(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)
