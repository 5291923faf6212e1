"""
数据采集器模块

每个采集器是一条远端只读命令及其解析规则
"""

from .base import CommandAdapter
from .cpu import cpu_adapter, parse_cpu_percent
from .disk import disk_adapter, parse_disk_usage
from .memory import memory_adapter, memory_percent, parse_memory_totals
from .network import (
    NetworkCounters,
    interface_adapter,
    network_adapter,
    network_delta,
    parse_interface,
    parse_network_counters,
)
from .parsing import parse_memory
from .system import load_adapter, parse_load_avg, process_adapter, uptime_adapter

__all__ = [
    "CommandAdapter",
    "NetworkCounters",
    "cpu_adapter",
    "disk_adapter",
    "memory_adapter",
    "memory_percent",
    "interface_adapter",
    "network_adapter",
    "network_delta",
    "parse_cpu_percent",
    "parse_disk_usage",
    "parse_interface",
    "parse_load_avg",
    "parse_memory",
    "parse_memory_totals",
    "parse_network_counters",
    "load_adapter",
    "process_adapter",
    "uptime_adapter",
]
