"""
内存采集器

free -b 输出 "已用 总量"（字节）
"""

from typing import Tuple

from .base import CommandAdapter
from .parsing import field, parse_memory, split_fields

MEMORY_COMMAND = "free -b | grep Mem | awk '{print $3,$2}'"


def parse_memory_totals(output: str) -> Tuple[int, int]:
    """
    解析内存使用

    Returns:
        (used_bytes, total_bytes)，缺失字段为 0
    """
    parts = split_fields(output)
    return parse_memory(field(parts, 0)), parse_memory(field(parts, 1))


def memory_percent(used: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return used / total * 100.0


memory_adapter = CommandAdapter(
    name="memory",
    command=MEMORY_COMMAND,
    parse=parse_memory_totals,
    default=lambda: (0, 0),
)
