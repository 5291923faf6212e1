"""
Compose 发现缓存

两级存储：
- 内存层：当前进程内的权威数据
- 磁盘层：每个目标一个 JSON 文件，尽力而为的后备存储
"""

import asyncio
import logging
from typing import Optional

from pydantic import ValidationError

from ..config import DiscoveryConfig
from ..errors import CacheIOError
from ..models import ComposeCacheEntry
from .store import FileStore, KeyValueStore, MemoryStore

logger = logging.getLogger(__name__)


class DiscoveryCache:
    """按目标标识缓存 compose 文件位置"""

    def __init__(self, disk: KeyValueStore, memory: Optional[KeyValueStore] = None):
        self._disk = disk
        self._memory = memory if memory is not None else MemoryStore()
        # 只保护内存层；磁盘 IO 和远端读取都不持有该锁
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: DiscoveryConfig) -> "DiscoveryCache":
        return cls(FileStore(config.cache_path))

    @staticmethod
    def _decode(raw: bytes) -> Optional[ComposeCacheEntry]:
        try:
            return ComposeCacheEntry.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed cache entry: {e}")
            return None

    async def get(self, target: str) -> Optional[ComposeCacheEntry]:
        """
        读取缓存条目

        先查内存，未命中再读磁盘文件；磁盘命中时回填内存。
        读取或解析失败都视为未命中。
        """
        async with self._lock:
            raw = self._memory.get(target)
        if raw is not None:
            return self._decode(raw)

        try:
            raw = self._disk.get(target)
        except CacheIOError as e:
            logger.warning(str(e))
            return None
        if raw is None:
            return None

        entry = self._decode(raw)
        if entry is None:
            return None

        async with self._lock:
            self._memory.set(target, raw)
        logger.debug(f"Loaded compose cache for {target} from disk")
        return entry

    async def set(self, target: str, entry: ComposeCacheEntry):
        """
        写入缓存条目（整体替换）

        Raises:
            CacheIOError: 磁盘写入失败；此时内存中的更新仍然保留
        """
        raw = entry.model_dump_json(indent=2).encode("utf-8")
        async with self._lock:
            self._memory.set(target, raw)
        self._disk.set(target, raw)

    async def invalidate(self, target: str):
        """删除内存条目和磁盘文件（文件不存在不报错）"""
        async with self._lock:
            self._memory.invalidate(target)
        self._disk.invalidate(target)
