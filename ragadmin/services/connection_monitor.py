import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Tuple

STABLE_MIN_SAMPLES = 3
STABLE_MIN_SUCCESS = 80.0


@dataclass(frozen=True)
class ConnectionRecord:
    timestamp: float
    ok: bool
    error: Optional[str] = None


class ConnectionHistory:
    """Fixed-capacity record of recent connection probes; the oldest entry is dropped when full."""

    def __init__(self, capacity: int = 20):
        if capacity <= 0:
            raise ValueError("capacity must be greater than 0")
        self.capacity = capacity
        self._entries: Deque[ConnectionRecord] = deque(maxlen=capacity)

    def record(self, ok: bool, error: Optional[str] = None, timestamp: Optional[float] = None) -> ConnectionRecord:
        entry = ConnectionRecord(timestamp=timestamp if timestamp is not None else time.time(), ok=ok, error=error)
        self._entries.append(entry)
        return entry

    def entries(self) -> List[ConnectionRecord]:
        """Oldest first."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def last_error(self) -> Optional[str]:
        for entry in reversed(self._entries):
            if not entry.ok:
                return entry.error
        return None

    @property
    def is_connected(self) -> bool:
        return bool(self._entries) and self._entries[-1].ok

    def stability(self) -> Tuple[float, bool]:
        """Return (success percentage, stable flag)."""
        if not self._entries:
            return 0.0, False
        successes = sum(1 for e in self._entries if e.ok)
        percentage = round(100.0 * successes / len(self._entries), 1)
        stable = len(self._entries) >= STABLE_MIN_SAMPLES and percentage >= STABLE_MIN_SUCCESS
        return percentage, stable

    def clear(self):
        self._entries.clear()
