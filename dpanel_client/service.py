"""
控制面服务

ControlPlane 是整个应用唯一的状态对象，启动时构造一次并显式传递：
- 当前 SSH 会话（同一时间最多一个，由互斥锁保护）
- 指标聚合器及其历史缓冲区
- Compose 发现缓存
"""

import asyncio
import logging
from typing import Callable, List, Optional

from .config import AppConfig
from .discovery import DiscoveryCache, refresh_compose_scan, scan_compose_files
from .errors import NotConnectedError, PanelError
from .history import MetricsHistory
from .metrics import MetricsAggregator
from .models import ComposeProject, ConnectionResult, ServerProfile, SystemMetrics
from .ssh import RemoteSession

logger = logging.getLogger(__name__)


class ControlPlane:
    """对外暴露的控制面操作"""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        discovery_cache: Optional[DiscoveryCache] = None,
        session_factory: Callable[..., RemoteSession] = RemoteSession,
    ):
        self.config = config or AppConfig()
        self._session_factory = session_factory
        self._session: Optional[RemoteSession] = None
        self._lock = asyncio.Lock()

        self.aggregator = MetricsAggregator(
            history=MetricsHistory(self.config.metrics.history_size),
            command_timeout=self.config.metrics.command_timeout,
            snapshot_timeout=self.config.metrics.snapshot_timeout,
        )
        self.discovery_cache = discovery_cache or DiscoveryCache.from_config(self.config.discovery)

    def _new_session(self, profile: ServerProfile) -> RemoteSession:
        return self._session_factory(
            profile,
            connect_timeout=self.config.ssh.connect_timeout,
            keepalive_interval=self.config.ssh.keepalive_interval,
        )

    def _require_session(self) -> RemoteSession:
        session = self._session
        if session is None or not session.is_connected():
            raise NotConnectedError()
        return session

    @property
    def target(self) -> Optional[str]:
        """当前会话的目标标识"""
        return self._session.host if self._session else None

    def is_connected(self) -> bool:
        session = self._session
        return session is not None and session.is_connected()

    async def test_connection(self, profile: ServerProfile) -> ConnectionResult:
        """测试连接，成功后立即断开，不影响当前会话"""
        session = self._new_session(profile)
        try:
            await asyncio.to_thread(session.connect)
        except PanelError as e:
            return ConnectionResult(success=False, message=str(e))

        await asyncio.to_thread(session.disconnect)
        return ConnectionResult(success=True, message="Connection successful")

    async def connect(self, profile: ServerProfile) -> ConnectionResult:
        """
        连接到服务器，替换当前会话

        旧会话先断开再建立新连接；新连接失败时处于未连接状态。
        断开旧会话不等待锁，从而中断旧会话上仍在运行的操作。
        """
        await self._drop_session()
        async with self._lock:
            await self._drop_session()

            session = self._new_session(profile)
            try:
                await asyncio.to_thread(session.connect)
            except PanelError as e:
                logger.warning(f"Failed to connect to {profile.host}: {e}")
                return ConnectionResult(success=False, message=str(e))

            self._session = session
            self.aggregator.reset_network_baseline(session.host)

        return ConnectionResult(success=True, message="Connected successfully")

    async def _drop_session(self):
        session, self._session = self._session, None
        if session is not None:
            await asyncio.to_thread(session.disconnect)

    async def disconnect(self):
        """断开当前会话；正在执行的命令随之以 ChannelError 结束"""
        await self._drop_session()

    async def get_metrics_snapshot(self) -> SystemMetrics:
        """
        采集系统指标快照

        Raises:
            NotConnectedError: 未连接
        """
        async with self._lock:
            return await self.aggregator.collect(self._require_session())

    async def scan_discovery(self) -> List[ComposeProject]:
        """发现当前服务器上的 compose 项目（优先使用缓存）"""
        async with self._lock:
            session = self._require_session()
            return await scan_compose_files(
                session, self.discovery_cache, session.host, self.config.discovery
            )

    async def refresh_discovery(self) -> List[ComposeProject]:
        """强制重新扫描 compose 项目"""
        async with self._lock:
            session = self._require_session()
            return await refresh_compose_scan(
                session, self.discovery_cache, session.host, self.config.discovery
            )

    async def execute_command(self, command: str) -> str:
        """在当前会话上执行任意命令"""
        async with self._lock:
            session = self._require_session()
            return await asyncio.to_thread(
                session.execute, command, self.config.ssh.command_timeout
            )
