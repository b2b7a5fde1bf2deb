"""Thread-safe bounded sample buffers."""

import threading
from collections import deque
from typing import Deque, Dict, Generic, Iterable, List, Optional, TypeVar

from telematics_core.models import MotionSample, SensorKind

T = TypeVar("T")


class SensorWindow(Generic[T]):
    """Time-ordered ring buffer; the oldest item is evicted on overflow.

    Appends may come from a sensor callback thread while the analysis task
    reads, so every access goes through the window's lock and readers get a
    list copy.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._items: Deque[T] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, item: T) -> None:
        with self._lock:
            self._items.append(item)

    def snapshot(self, last: Optional[int] = None) -> List[T]:
        """Copy of the buffered items, optionally only the trailing ``last``."""
        with self._lock:
            items = list(self._items)
        if last is not None:
            return items[-last:] if last > 0 else []
        return items

    def latest(self) -> Optional[T]:
        with self._lock:
            return self._items[-1] if self._items else None

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class SensorWindows:
    """One ``SensorWindow`` per sensor kind."""

    def __init__(self, capacities: Dict[SensorKind, int]):
        self._windows: Dict[SensorKind, SensorWindow[MotionSample]] = {
            kind: SensorWindow(capacity) for kind, capacity in capacities.items()
        }

    def accepts(self, kind: SensorKind) -> bool:
        return kind in self._windows

    def add(self, sample: MotionSample) -> bool:
        """Buffer a sample; returns False when its kind is not tracked."""
        window = self._windows.get(sample.kind)
        if window is None:
            return False
        window.append(sample)
        return True

    def __getitem__(self, kind: SensorKind) -> SensorWindow[MotionSample]:
        return self._windows[kind]

    def kinds(self) -> Iterable[SensorKind]:
        return self._windows.keys()

    def clear(self) -> None:
        for window in self._windows.values():
            window.clear()
