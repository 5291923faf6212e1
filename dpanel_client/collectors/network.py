"""
网络采集器

从 /proc/net/dev 读取第一块物理网卡（eth/en/wl）的原始计数器，
并通过默认路由确定主网卡名称。
"""

from typing import NamedTuple, Optional

from ..models import NetworkHistoryPoint, NetworkStats
from .base import CommandAdapter
from .parsing import field, split_fields, uint_or_zero

NETWORK_COMMAND = (
    r"cat /proc/net/dev | grep -E '^\s*(eth|en|wl)' | head -n 1"
    r" | awk -F: '{print $2}' | awk '{print $1,$2,$9,$10}'"
)
INTERFACE_COMMAND = "ip route | grep default | awk '{print $5}' | head -n 1"
DEFAULT_INTERFACE = "eth0"


class NetworkCounters(NamedTuple):
    bytes_recv: int = 0
    packets_recv: int = 0
    bytes_sent: int = 0
    packets_sent: int = 0


def parse_network_counters(output: str) -> NetworkCounters:
    """输出顺序：接收字节 接收包 发送字节 发送包"""
    parts = split_fields(output)
    return NetworkCounters(*(uint_or_zero(field(parts, i)) for i in range(4)))


def parse_interface(output: str) -> str:
    name = output.strip()
    return name or DEFAULT_INTERFACE


def network_delta(
    current: NetworkStats,
    previous: Optional[NetworkStats],
    timestamp: int,
) -> NetworkHistoryPoint:
    """
    计算两次采样之间的增量

    首次采样（previous 为 None）返回零增量；计数器回绕或网卡重置时
    采用饱和减法，增量不会为负。
    """
    if previous is None:
        return NetworkHistoryPoint(timestamp=timestamp)

    return NetworkHistoryPoint(
        timestamp=timestamp,
        bytes_sent=max(0, current.bytes_sent - previous.bytes_sent),
        bytes_recv=max(0, current.bytes_recv - previous.bytes_recv),
        packets_sent=max(0, current.packets_sent - previous.packets_sent),
        packets_recv=max(0, current.packets_recv - previous.packets_recv),
    )


network_adapter = CommandAdapter(
    name="network",
    command=NETWORK_COMMAND,
    parse=parse_network_counters,
    default=NetworkCounters,
)

interface_adapter = CommandAdapter(
    name="interface",
    command=INTERFACE_COMMAND,
    parse=parse_interface,
    default=lambda: DEFAULT_INTERFACE,
)
