"""
系统指标聚合

通过同一个 SSH 会话并发下发一组固定的只读诊断命令，汇总为一个 SystemMetrics 快照。

注意：RemoteSession 会串行化所有 execute 调用，这里的并发只重叠线程调度和等待，
快照总耗时约等于各命令耗时之和，而不是最大值。
"""

import asyncio
import logging
import threading
import time
from typing import Any, Dict, List, Optional

from .collectors import (
    cpu_adapter,
    disk_adapter,
    interface_adapter,
    load_adapter,
    memory_adapter,
    memory_percent,
    network_adapter,
    network_delta,
    process_adapter,
    uptime_adapter,
)
from .errors import NotConnectedError
from .history import MetricsHistory
from .models import NetworkStats, SystemMetrics

logger = logging.getLogger(__name__)

ADAPTERS = (
    cpu_adapter,
    memory_adapter,
    disk_adapter,
    load_adapter,
    uptime_adapter,
    process_adapter,
    network_adapter,
    interface_adapter,
)


class MetricsAggregator:
    """
    指标聚合器

    维护：
    - history: CPU / 内存 / 网络增量的历史缓冲区
    - last_network: 每个目标上一次的网络原始计数器（用于计算增量）
    """

    def __init__(
        self,
        history: Optional[MetricsHistory] = None,
        command_timeout: Optional[float] = None,
        snapshot_timeout: Optional[float] = None,
    ):
        self.history = history if history is not None else MetricsHistory()
        self.command_timeout = command_timeout
        if snapshot_timeout is None and command_timeout is not None:
            snapshot_timeout = command_timeout * len(ADAPTERS)
        self.snapshot_timeout = snapshot_timeout
        self._last_network: Dict[str, NetworkStats] = {}

    def reset_network_baseline(self, target: str):
        """丢弃目标的上一次网络采样（重新连接后调用），下一次采样增量为 0"""
        self._last_network.pop(target, None)

    async def _run_adapters(self, session) -> List[Any]:
        """
        在工作线程中并发执行全部采集命令

        - command_timeout: 单条命令的期限，由会话在命令拿到锁之后才开始计时，
          排在其他命令后面等待的时间不计入
        - snapshot_timeout: 整个快照的总预算，超出后仍未完成的命令被取消并返回默认值
        """
        events = [threading.Event() for _ in ADAPTERS]
        tasks = [
            asyncio.ensure_future(
                asyncio.to_thread(adapter.run, session, self.command_timeout, event)
            )
            for adapter, event in zip(ADAPTERS, events)
        ]
        _, pending = await asyncio.wait(tasks, timeout=self.snapshot_timeout)

        results = []
        for adapter, task, event in zip(ADAPTERS, tasks, events):
            if task in pending:
                # 线程无法被强制终止；置位后，排队或运行中的命令都会尽快放弃
                event.set()
                task.cancel()
                logger.warning(
                    f"{adapter.name} collector exceeded snapshot budget of {self.snapshot_timeout}s"
                )
                results.append(adapter.default())
                continue

            error = task.exception()
            if error is not None:
                logger.warning(f"{adapter.name} collector failed: {error}")
                results.append(adapter.default())
            else:
                results.append(task.result())

        return results

    async def collect(self, session) -> SystemMetrics:
        """
        采集一次系统快照

        任意单个命令失败只会把对应字段降级为默认值；只有会话不存在或未连接时才整体失败。

        Raises:
            NotConnectedError: 没有可用会话
        """
        if session is None or not session.is_connected():
            raise NotConnectedError()

        results = await self._run_adapters(session)
        values = {adapter.name: result for adapter, result in zip(ADAPTERS, results)}

        memory_used, memory_total = values["memory"]
        mem_pct = memory_percent(memory_used, memory_total)
        counters = values["network"]

        network = NetworkStats(
            bytes_sent=counters.bytes_sent,
            bytes_recv=counters.bytes_recv,
            packets_sent=counters.packets_sent,
            packets_recv=counters.packets_recv,
            interface=values["interface"],
        )

        # 计算网络增量，并无条件保存本次原始计数
        timestamp = int(time.time() * 1000)
        target = session.host
        point = network_delta(network, self._last_network.get(target), timestamp)
        self._last_network[target] = network

        cpu_percent = values["cpu"]
        self.history.cpu.append(cpu_percent)
        self.history.memory.append(mem_pct)
        self.history.network.append(point)

        return SystemMetrics(
            cpu_percent=cpu_percent,
            memory_used=memory_used,
            memory_total=memory_total,
            memory_percent=mem_pct,
            disk_usage=values["disk"],
            load_avg=values["load"],
            uptime=values["uptime"],
            process_count=values["processes"],
            network=network,
            cpu_history=self.history.cpu.snapshot(),
            memory_history=self.history.memory.snapshot(),
            network_history=self.history.network.snapshot(),
        )
