"""
键值存储

DiscoveryCache 的两级存储都实现同一个接口：以目标标识为键，读写不透明的字节串。
"""

import logging
import os
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from ..errors import CacheIOError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class KeyValueStore(ABC):
    """get / set / invalidate 接口"""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        ...

    @abstractmethod
    def set(self, key: str, value: bytes):
        ...

    @abstractmethod
    def invalidate(self, key: str):
        ...


class MemoryStore(KeyValueStore):
    """进程内字典存储（调用方负责加锁）"""

    def __init__(self):
        self._data: Dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, value: bytes):
        self._data[key] = value

    def invalidate(self, key: str):
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class FileStore(KeyValueStore):
    """
    文件存储：每个键一个文件

    文件名为 <prefix><key><suffix>，键中的非安全字符（如 IPv6 地址中的冒号）替换为 _
    """

    def __init__(self, directory: Path, prefix: str = "compose_cache_", suffix: str = ".json"):
        self.directory = Path(directory)
        self.prefix = prefix
        self.suffix = suffix

    def path_for(self, key: str) -> Path:
        return self.directory / f"{self.prefix}{_UNSAFE_CHARS.sub('_', key)}{self.suffix}"

    def get(self, key: str) -> Optional[bytes]:
        path = self.path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheIOError(f"Failed to read cache file {path}: {e}") from e

    def set(self, key: str, value: bytes):
        path = self.path_for(key)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(value)
            os.replace(tmp_path, path)
        except OSError as e:
            raise CacheIOError(f"Failed to write cache file {path}: {e}") from e

    def invalidate(self, key: str):
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to remove cache file {path}: {e}")
