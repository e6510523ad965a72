from __future__ import annotations

import time
from collections import OrderedDict
from typing import Any, Hashable, Optional, Tuple


class TTLMap:
    """Bounded in-process cache whose entries expire after a per-entry TTL.

    Used for catalog responses. When full, the least recently written
    entry is dropped. Expired entries are discarded lazily on `get`.
    """

    def __init__(self, maxsize: int = 256):
        self.maxsize = max(1, int(maxsize))
        self._entries: "OrderedDict[Hashable, Tuple[float, Any]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: Hashable) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: Hashable, value: Any, ttl_seconds: float) -> None:
        self._entries.pop(key, None)
        while len(self._entries) >= self.maxsize:
            self._entries.popitem(last=False)
        self._entries[key] = (time.monotonic() + max(0.0, float(ttl_seconds)), value)

    def clear(self) -> None:
        self._entries.clear()
