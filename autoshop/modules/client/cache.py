from typing import Any, Dict, Hashable, Tuple

QueryKey = Tuple[Hashable, ...]


class QueryCache:
    """
    Client-held query results.

    Entries never go stale on their own; they live until invalidated or
    until the whole cache is cleared (e.g. when the session expires).
    """

    def __init__(self):
        self._entries: Dict[QueryKey, Any] = {}

    def get(self, key: QueryKey, default: Any = None) -> Any:
        return self._entries.get(key, default)

    def set(self, key: QueryKey, value: Any) -> None:
        self._entries[key] = value

    def invalidate(self, key: QueryKey) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
