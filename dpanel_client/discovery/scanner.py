"""
Compose 文件发现

扫描常见目录下的 docker-compose 文件，并缓存其位置（默认 24 小时）。
缓存只保存位置：即使命中缓存，每个已知文件仍会重新读取一次，
服务列表总是根据远端当前内容重新解析。
"""

import asyncio
import logging
import shlex
import time
from pathlib import PurePosixPath
from typing import List, Optional

from ..config import DiscoveryConfig
from ..errors import CacheIOError, ChannelError
from ..models import CachedComposeProject, ComposeCacheEntry, ComposeProject
from .cache import DiscoveryCache

logger = logging.getLogger(__name__)

SERVICES_MARKER = "services:"
UNREADABLE_CONTENT = "Unable to read file"


def extract_services(content: str) -> List[str]:
    """
    从 compose 文件内容中提取服务名

    基于缩进的启发式扫描，不是完整的 YAML 解析，仅保证常规的两空格嵌套格式正确：
    - 跳过空行和注释行
    - 遇到 "services:" 行进入服务段，记录其缩进
    - 段内第一层子键（缩进大于 services 的第一级）即为服务名
    - 缩进不超过 services 的键（如 volumes:）结束服务段
    """
    services = []
    in_services = False
    marker_indent = 0
    child_indent = None

    for line in content.splitlines():
        stripped = line.lstrip()

        if not stripped.strip() or stripped.startswith("#"):
            continue

        indent = len(line) - len(stripped)

        if stripped.rstrip() == SERVICES_MARKER:
            in_services = True
            marker_indent = indent
            child_indent = None
            continue

        if not in_services:
            continue

        # 与 services 同级或更靠左的键结束服务段
        if indent <= marker_indent:
            if ":" in stripped and not stripped.startswith("-"):
                in_services = False
            continue

        # 有意只取第一层子键：image / ports 等更深的键不是服务名
        if child_indent is None:
            child_indent = indent
        if indent != child_indent or ":" not in stripped:
            continue

        name = stripped.split(":", 1)[0].strip()
        if name and not name.startswith("-"):
            services.append(name)

    return services


def build_find_command(root: str, max_depth: int, filenames: List[str]) -> str:
    # root 可能包含通配符（如 /home/*/），不能加引号
    name_tests = " -o ".join(f"-name {shlex.quote(name)}" for name in filenames)
    return f"find {root} -maxdepth {max_depth} -type f \\( {name_tests} \\) 2>/dev/null"


def project_name(path: str) -> str:
    """项目名取 compose 文件所在目录名"""
    return PurePosixPath(path).parent.name or "unknown"


async def _read_remote_file(session, path: str, timeout: Optional[float]) -> str:
    try:
        return await asyncio.to_thread(session.execute, f"cat {shlex.quote(path)}", timeout)
    except ChannelError as e:
        logger.warning(f"Failed to read {path}: {e}")
        return UNREADABLE_CONTENT


async def _load_project(session, name: str, path: str, timeout: Optional[float]) -> ComposeProject:
    content = await _read_remote_file(session, path, timeout)
    return ComposeProject(name=name, path=path, services=extract_services(content), content=content)


async def _projects_from_cache(
    session, entry: ComposeCacheEntry, timeout: Optional[float]
) -> List[ComposeProject]:
    projects = []
    for cached in entry.projects:
        projects.append(await _load_project(session, cached.name, cached.path, timeout))
    return projects


async def _scan_and_cache(
    session,
    cache: DiscoveryCache,
    target: str,
    config: DiscoveryConfig,
) -> List[ComposeProject]:
    """遍历扫描根目录，返回全部项目并写入缓存"""
    now = int(time.time())
    all_projects = []
    cached_projects = []

    for root in config.scan_paths:
        command = build_find_command(root, config.max_depth, config.filenames)
        try:
            output = await asyncio.to_thread(session.execute, command, config.command_timeout)
        except ChannelError as e:
            logger.warning(f"Scan of {root} failed: {e}")
            output = ""

        for line in output.splitlines():
            path = line.strip()
            if not path:
                continue

            name = project_name(path)
            all_projects.append(await _load_project(session, name, path, config.command_timeout))
            cached_projects.append(CachedComposeProject(name=name, path=path, compose_file=path))

    entry = ComposeCacheEntry(
        projects=cached_projects,
        last_scan=now,
        scan_paths=list(config.scan_paths),
    )

    try:
        await cache.set(target, entry)
    except CacheIOError as e:
        logger.warning(f"Failed to cache compose files: {e}")

    logger.info(f"Found {len(all_projects)} compose project(s) on {target}")
    return all_projects


async def scan_compose_files(
    session,
    cache: DiscoveryCache,
    target: str,
    config: Optional[DiscoveryConfig] = None,
) -> List[ComposeProject]:
    """
    发现 compose 项目

    缓存未过期时跳过目录遍历，只重新读取已知文件；否则完整扫描。
    """
    config = config or DiscoveryConfig()

    entry = await cache.get(target)
    if entry is not None:
        age = int(time.time()) - entry.last_scan
        if 0 <= age < config.ttl_seconds:
            logger.info(f"Using cached compose files for server {target}")
            return await _projects_from_cache(session, entry, config.command_timeout)

    logger.info(f"Scanning for compose files on server {target}")
    return await _scan_and_cache(session, cache, target, config)


async def refresh_compose_scan(
    session,
    cache: DiscoveryCache,
    target: str,
    config: Optional[DiscoveryConfig] = None,
) -> List[ComposeProject]:
    """强制重新扫描：先失效缓存，再完整扫描"""
    config = config or DiscoveryConfig()
    await cache.invalidate(target)
    return await _scan_and_cache(session, cache, target, config)
