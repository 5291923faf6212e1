"""
历史趋势缓冲区

三个相互独立、容量固定的 FIFO 序列：CPU 使用率、内存使用率、网络增量。
"""

import threading
from collections import deque
from typing import Generic, List, TypeVar

from .models import NetworkHistoryPoint

T = TypeVar("T")

MAX_HISTORY_POINTS = 10


class HistoryBuffer(Generic[T]):
    """有界 FIFO，超出容量时丢弃最旧的元素"""

    def __init__(self, capacity: int = MAX_HISTORY_POINTS):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._items = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, value: T):
        with self._lock:
            self._items.append(value)

    def snapshot(self) -> List[T]:
        """返回按时间顺序（旧 -> 新）的副本"""
        with self._lock:
            return list(self._items)

    def clear(self):
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class MetricsHistory:
    """指标快照使用的三个历史缓冲区"""

    def __init__(self, capacity: int = MAX_HISTORY_POINTS):
        self.cpu: HistoryBuffer[float] = HistoryBuffer(capacity)
        self.memory: HistoryBuffer[float] = HistoryBuffer(capacity)
        self.network: HistoryBuffer[NetworkHistoryPoint] = HistoryBuffer(capacity)

    def clear(self):
        self.cpu.clear()
        self.memory.clear()
        self.network.clear()
