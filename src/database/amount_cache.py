"""
In-memory transaction amount cache.

Maps a gateway authority to the amount expected when that payment is
verified. An entry is read and deleted in one step so a verification
callback can only ever consume it once.
"""

from __future__ import annotations

import threading
from typing import Dict, Optional


class AmountCache:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._amounts: Dict[str, int] = {}

    def put(self, authority: str, amount: int) -> None:
        # Authorities are unique per initiation; an overwrite is harmless.
        with self._lock:
            self._amounts[authority] = int(amount)

    def take_and_remove(self, authority: str) -> Optional[int]:
        with self._lock:
            return self._amounts.pop(authority, None)

    def peek(self, authority: str) -> Optional[int]:
        return self._amounts.get(authority)

    def __len__(self) -> int:
        return len(self._amounts)

    # --- Misc -----------------------------------------------------------------

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        with self._lock:
            self._amounts.clear()
