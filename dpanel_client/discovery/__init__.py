"""
Compose 文件发现与缓存
"""

from .cache import DiscoveryCache
from .scanner import extract_services, refresh_compose_scan, scan_compose_files
from .store import FileStore, KeyValueStore, MemoryStore

__all__ = [
    "DiscoveryCache",
    "extract_services",
    "refresh_compose_scan",
    "scan_compose_files",
    "FileStore",
    "KeyValueStore",
    "MemoryStore",
]
