"""
系统负载、运行时间、进程数采集器
"""

from typing import Tuple

from .base import CommandAdapter
from .parsing import field, float_or_zero, split_fields, uint_or_zero

LOAD_COMMAND = "cat /proc/loadavg | awk '{print $1,$2,$3}'"
UPTIME_COMMAND = "cat /proc/uptime | awk '{print int($1)}'"
PROCESS_COMMAND = "ps aux | wc -l"


def parse_load_avg(output: str) -> Tuple[float, float, float]:
    parts = split_fields(output)
    return (
        float_or_zero(field(parts, 0)),
        float_or_zero(field(parts, 1)),
        float_or_zero(field(parts, 2)),
    )


def parse_first_uint(output: str) -> int:
    return uint_or_zero(field(split_fields(output), 0))


load_adapter = CommandAdapter(
    name="load",
    command=LOAD_COMMAND,
    parse=parse_load_avg,
    default=lambda: (0.0, 0.0, 0.0),
)

uptime_adapter = CommandAdapter(
    name="uptime",
    command=UPTIME_COMMAND,
    parse=parse_first_uint,
    default=lambda: 0,
)

process_adapter = CommandAdapter(
    name="processes",
    command=PROCESS_COMMAND,
    parse=parse_first_uint,
    default=lambda: 0,
)
