from __future__ import annotations

from collections.abc import Callable, Hashable
from typing import Any, TypeVar

from app.metrics import observe_permission_cache_hit, observe_permission_cache_miss


T = TypeVar("T")


class PermissionCache:
    """Memoizes resolver decisions and grant lookups for a single request.

    Build one per inbound request and drop it when the request ends. Entries are
    keyed on principal id, so sharing an instance across requests leaks decisions.
    """

    def __init__(self) -> None:
        self._entries: dict[Hashable, Any] = {}

    def get_or_compute(self, key: Hashable, compute: Callable[[], T]) -> T:
        if key in self._entries:
            observe_permission_cache_hit(operation=_operation_label(key))
            return self._entries[key]

        observe_permission_cache_miss(operation=_operation_label(key))
        value = compute()
        self._entries[key] = value
        return value

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def _operation_label(key: Hashable) -> str:
    if isinstance(key, tuple) and key and isinstance(key[0], str):
        return key[0]
    return "unknown"
