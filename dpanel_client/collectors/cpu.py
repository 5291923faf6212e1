"""
CPU 采集器

取 top 输出中 "Cpu(s)" 行的用户态百分比
"""

from .base import CommandAdapter
from .parsing import field, parse_percent, split_fields

CPU_COMMAND = "top -bn1 | grep 'Cpu(s)' | awk '{print $2}' | cut -d'%' -f1"


def parse_cpu_percent(output: str) -> float:
    """解析 CPU 使用率，结果限制在 0~100"""
    value = parse_percent(field(split_fields(output), 0))
    return min(100.0, max(0.0, value))


cpu_adapter = CommandAdapter(
    name="cpu",
    command=CPU_COMMAND,
    parse=parse_cpu_percent,
    default=lambda: 0.0,
)
